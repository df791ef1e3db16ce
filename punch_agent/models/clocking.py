from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from punch_agent.errors import ParseError

# 上流の時刻形式: 2025-03-10 09:00:00.000 -03:00（小数秒は省略されることがある）
TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S.%f %z", "%Y-%m-%d %H:%M:%S %z")


@dataclass(frozen=True)
class ClockEvent:
    id: str
    date: str                  # YYYY-MM-DD
    time: str                  # 上流の時刻文字列
    platform: str              # 打刻元
    timestamp: datetime        # タイムゾーン付き


DayClockings = dict[str, list[ClockEvent]]


@dataclass(frozen=True)
class DaySummary:
    date: str
    worked_hours: float
    band: str


def parse_timestamp(date_event: str, time_event: str, time_zone: str) -> datetime:
    """日付・時刻・タイムゾーンを結合してdatetimeに変換"""
    raw = f"{date_event} {time_event} {time_zone}"
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise ParseError(f"打刻時刻を解析できません: {date_event} {time_event} ({time_zone})")


def group_clockings(raw_events: list[dict]) -> DayClockings:
    """上流イベントを日付ごとにまとめ、各日を時刻昇順に並べる

    1件でも解析できなければ ParseError でバッチ全体を中断する。
    """
    grouped: DayClockings = {}
    for raw in raw_events:
        timestamp = parse_timestamp(
            raw.get("dateEvent", ""), raw.get("timeEvent", ""), raw.get("timeZone", "")
        )
        event = ClockEvent(
            id=raw.get("id", ""),
            date=raw.get("dateEvent", ""),
            time=raw.get("timeEvent", ""),
            platform=raw.get("platform", ""),
            timestamp=timestamp,
        )
        grouped.setdefault(event.date, []).append(event)

    return {
        day: sorted(events, key=lambda e: e.timestamp)
        for day, events in grouped.items()
    }


def _sum_pairs(events: list[ClockEvent]) -> timedelta:
    total = timedelta(0)
    for i in range(0, len(events) - 1, 2):
        total += events[i + 1].timestamp - events[i].timestamp
    return total


def with_virtual_clock_out(events: list[ClockEvent], now: datetime) -> list[ClockEvent]:
    """奇数件なら現在時刻の仮想退勤を末尾に加えた新しいリストを返す（元のリストは変更しない）"""
    if len(events) % 2 == 0:
        return list(events)
    virtual = ClockEvent(
        id="",
        date=now.date().isoformat(),
        time=now.strftime("%H:%M:%S"),
        platform="",
        timestamp=now,
    )
    return [*events, virtual]


def elapsed_today(
    today_events: Optional[list[ClockEvent]], now: datetime
) -> tuple[timedelta, bool, int]:
    """今日の稼働時間・タイマー稼働中フラグ・打刻回数を返す"""
    events = today_events or []
    if not events:
        return timedelta(0), False, 0

    timer_running = len(events) % 2 != 0
    elapsed = _sum_pairs(with_virtual_clock_out(events, now))
    return elapsed, timer_running, len(events)


def worked_hours_for_day(day_events: list[ClockEvent]) -> float:
    """履歴用の稼働時間（末尾の未退勤イベントは除外）"""
    paired = day_events[: len(day_events) - len(day_events) % 2]
    return _sum_pairs(paired).total_seconds() / 3600


def history_band(hours: float) -> str:
    if hours < 2:
        return "short"
    if hours <= 5:
        return "regular"
    if hours <= 8.5:
        return "full"
    return "overtime"


def history_summary(clockings: DayClockings) -> list[DaySummary]:
    """日別の稼働時間一覧（新しい日付順）"""
    summaries = []
    for day in sorted(clockings, reverse=True):
        hours = worked_hours_for_day(clockings[day])
        summaries.append(DaySummary(date=day, worked_hours=hours, band=history_band(hours)))
    return summaries


def last_punch(today_events: Optional[list[ClockEvent]]) -> Optional[ClockEvent]:
    if not today_events:
        return None
    return today_events[-1]


def format_hours(hours: float) -> str:
    """時間数を XhYYm 形式に変換"""
    total_minutes = int(round(hours * 60))
    return f"{total_minutes // 60}h{total_minutes % 60:02d}m"


def format_elapsed(elapsed: timedelta) -> str:
    """経過時間を HH:MM:SS 形式に変換"""
    total = int(elapsed.total_seconds())
    return f"{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"
