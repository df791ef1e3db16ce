from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from punch_agent.models.clocking import format_hours


DEFAULT_TITLE = "打刻アラート"

MESSAGES = {
    "text": "休憩なしで {elapsed} 働いています。\n",
    "critical": "🚨 CLT第71条により、6時間を超える勤務では1時間以上の休憩が義務です。",
    "normal": "⚠️ CLT第71条により、4〜6時間の勤務では15分の休憩が推奨されます。",
    "low": "💡 こまめな休憩で健康と生産性を保ちましょう。",
}


@dataclass(frozen=True)
class NotificationPolicy:
    threshold: timedelta = timedelta(hours=4)
    cooldown: timedelta = timedelta(minutes=20)
    warning_at: timedelta = timedelta(hours=5)
    critical_at: timedelta = timedelta(hours=6)
    title: str = DEFAULT_TITLE

    @classmethod
    def from_config(cls, config: Optional[dict]) -> "NotificationPolicy":
        if not config:
            return cls()
        nc = config["notification"]
        return cls(
            threshold=timedelta(hours=nc["threshold_hours"]),
            cooldown=timedelta(minutes=nc["cooldown_minutes"]),
            warning_at=timedelta(hours=nc["warning_hours"]),
            critical_at=timedelta(hours=nc["critical_hours"]),
            title=nc["title"],
        )

    def is_due(
        self,
        since_last_punch: timedelta,
        now: datetime,
        last_notification_at: Optional[datetime],
    ) -> bool:
        """閾値を超えていて、未通知またはクールダウン経過済みなら通知する"""
        if since_last_punch < self.threshold:
            return False
        if last_notification_at is None:
            return True
        return now - last_notification_at >= self.cooldown

    def urgency(self, since_last_punch: timedelta) -> str:
        if since_last_punch >= self.critical_at:
            return "critical"
        if since_last_punch >= self.warning_at:
            return "normal"
        return "low"

    def message(self, since_last_punch: timedelta) -> tuple[str, str]:
        """通知本文と緊急度を返す"""
        hours = since_last_punch.total_seconds() / 3600
        urgency = self.urgency(since_last_punch)
        text = MESSAGES["text"].format(elapsed=format_hours(hours))
        return text + MESSAGES[urgency], urgency
