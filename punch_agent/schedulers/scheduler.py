# schedulers/scheduler.py
from datetime import datetime, timedelta
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger


class EffectScheduler:
    """APSchedulerによるエフェクト実行（即時ジョブと遅延ジョブ）"""

    def __init__(self, max_workers: int = 4):
        self._scheduler = BackgroundScheduler(
            executors={"default": {"type": "threadpool", "max_workers": max_workers}},
            job_defaults={"misfire_grace_time": None, "coalesce": False},
        )

    def run_now(self, func: Callable, *args) -> None:
        """別スレッドで即時実行"""
        self._scheduler.add_job(func, args=list(args))

    def run_later(self, delay: timedelta, func: Callable, *args) -> None:
        """delay 経過後に1回だけ実行"""
        run_date = datetime.now().astimezone() + delay
        self._scheduler.add_job(
            func, trigger=DateTrigger(run_date=run_date), args=list(args)
        )

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止（実行中のジョブは待たない）"""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
