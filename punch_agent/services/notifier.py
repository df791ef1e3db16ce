import logging
import os

from plyer import notification
from slack_sdk import WebClient

logger = logging.getLogger(__name__)

APP_NAME = "punch-agent"

# 緊急度ごとの表示時間（秒）
TIMEOUTS = {"low": 10, "normal": 10, "critical": 30}

URGENCY_ICONS = {"low": "💡", "normal": "⚠️", "critical": "🚨"}


class ConsoleNotifier:
    """ログ出力による通知（フォールバック用）"""

    def notify(self, title: str, message: str, urgency: str = "low") -> bool:
        level = logging.WARNING if urgency == "critical" else logging.INFO
        logger.log(level, "[%s] %s", title, message.replace("\n", " "))
        return True


class DesktopNotifier:
    """plyer によるデスクトップ通知"""

    def __init__(self):
        self._notification = notification

    def notify(self, title: str, message: str, urgency: str = "low") -> bool:
        """通知送信（未対応環境・失敗時はFalse。呼び出し側のタイマーは止めない）"""
        try:
            self._notification.notify(
                title=title,
                message=message,
                app_name=APP_NAME,
                timeout=TIMEOUTS.get(urgency, 10),
            )
            return True
        except Exception:
            logger.exception("デスクトップ通知に失敗しました")
            return False


class SlackNotifier:
    """Slack APIによる通知サービス"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            self._client = WebClient(token=token)

    def notify(self, title: str, message: str, urgency: str = "low") -> bool:
        """メッセージ送信（クライアントがなければフォールバック）"""
        if self._client is None:
            return self._fallback.notify(title, message, urgency)

        icon = URGENCY_ICONS.get(urgency, "")
        try:
            self._client.chat_postMessage(
                channel=self._channel, text=f"{icon} *{title}*\n{message}"
            )
            return True
        except Exception:
            logger.exception("Slack通知に失敗しました")
            return False


class MultiNotifier:
    """複数の通知先へ順に送る。1つでも成功すればTrue"""

    def __init__(self, notifiers: list):
        self._notifiers = notifiers

    def notify(self, title: str, message: str, urgency: str = "low") -> bool:
        results = [n.notify(title, message, urgency) for n in self._notifiers]
        return any(results)


def create_notifier(config: dict) -> MultiNotifier:
    """設定に基づいて通知先を組み立てる"""
    notifiers = []

    if config["notification"].get("desktop", True):
        notifiers.append(DesktopNotifier())

    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    if slack_config["enabled"] and slack_token:
        notifiers.append(SlackNotifier(token=slack_token, channel=slack_config["notify_channel"]))

    if not notifiers:
        notifiers.append(ConsoleNotifier())

    return MultiNotifier(notifiers)
