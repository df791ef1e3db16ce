# graph/nodes/dashboard_node.py
from datetime import datetime, timedelta
from typing import Optional

from punch_agent.graph.effects import DeleteCredentials, Notify, PostPunch, RunAsync, ScheduleTick
from punch_agent.graph.messages import ForgetConfirmed, OperationFailed, PunchConfirmed, Tick
from punch_agent.graph.notification_policy import NotificationPolicy
from punch_agent.graph.state import SessionState, Step
from punch_agent.models.clocking import DayClockings, elapsed_today, last_punch
from punch_agent.models.employee import EmployeeContext

TICK_INTERVAL = timedelta(seconds=1)


def _now() -> datetime:
    """テスト時にモック可能な現在時刻取得（タイムゾーン付き）"""
    return datetime.now().astimezone()


def _today_key(now: datetime) -> str:
    return now.date().isoformat()


def enter_dashboard(
    state: SessionState,
    employee: EmployeeContext,
    clockings: DayClockings,
    tick_interval: timedelta = TICK_INTERVAL,
) -> dict:
    """取得したイベントでダッシュボードに入る。仮想退勤は毎回ここで計算し直す"""
    now = _now()
    elapsed, timer_running, punch_count = elapsed_today(clockings.get(_today_key(now)), now)

    # 古いTick系列を無効化するため世代を進める
    generation = state["tick_generation"] + 1
    effects = []
    if timer_running:
        effects.append(ScheduleTick(after=tick_interval, generation=generation))

    return {
        "step": Step.DASHBOARD,
        "employee": employee,
        "clockings": clockings,
        "elapsed_today": elapsed,
        "timer_running": timer_running,
        "punch_count_today": punch_count,
        "tick_generation": generation,
        "last_error": None,
        "effects": effects,
    }


def _on_tick(
    state: SessionState,
    message: Tick,
    policy: NotificationPolicy,
    tick_interval: timedelta,
) -> dict:
    if message.generation != state["tick_generation"] or not state["timer_running"]:
        return {"effects": []}

    now = _now()
    today = state["clockings"].get(_today_key(now))
    elapsed, timer_running, punch_count = elapsed_today(today, now)

    update = {
        "elapsed_today": elapsed,
        "timer_running": timer_running,
        "punch_count_today": punch_count,
    }
    effects = []

    punch = last_punch(today)
    if timer_running and punch is not None:
        since_last_punch = now - punch.timestamp
        if policy.is_due(since_last_punch, now, state["last_notification_at"]):
            text, urgency = policy.message(since_last_punch)
            effects.append(Notify(title=policy.title, message=text, urgency=urgency))
            update["last_notification_at"] = now

    if timer_running:
        effects.append(ScheduleTick(after=tick_interval, generation=message.generation))

    update["effects"] = effects
    return update


def dashboard_node(
    state: SessionState,
    policy: Optional[NotificationPolicy] = None,
    tick_interval: timedelta = TICK_INTERVAL,
) -> dict:
    """ダッシュボード: タイマー更新・長時間労働通知・打刻・認証情報削除"""
    if policy is None:
        policy = NotificationPolicy()

    message = state["message"]

    if isinstance(message, Tick):
        return _on_tick(state, message, policy, tick_interval)

    if isinstance(message, PunchConfirmed):
        if not message.confirm or state["employee"] is None:
            return {"effects": []}
        return {
            "step": Step.SUBMITTING,
            "effects": [
                RunAsync(PostPunch(token=state["token"], employee=state["employee"]))
            ],
        }

    if isinstance(message, ForgetConfirmed):
        if not message.confirm:
            return {"effects": []}
        return {"effects": [RunAsync(DeleteCredentials())]}

    if isinstance(message, OperationFailed):
        return {
            "step": Step.FETCHING_EVENTS,
            "last_error": message.reason,
            "effects": [],
        }

    return {"effects": []}
