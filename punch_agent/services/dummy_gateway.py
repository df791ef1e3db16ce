import logging
import uuid
from datetime import datetime, timedelta

from punch_agent.errors import AuthError
from punch_agent.models.employee import EmployeeContext
from punch_agent.services.gateway_interface import GatewayInterface, PunchReceipt

logger = logging.getLogger(__name__)

DUMMY_TOKEN = "dummy-token"

EMPLOYEE = {
    "id": "emp-1",
    "arpId": "arp-emp-1",
    "name": "Colaborador Demo",
    "pis": "00000000000",
    "shift": "Comercial",
    "timeTable": "08:00 - 12:00 / 13:00 - 17:00",
    "cpfNumber": "00000000000",
    "company": {"id": "cmp-1", "arpId": "arp-cmp-1", "name": "Empresa Demo", "cnpj": ""},
}


class DummyGateway(GatewayInterface):
    """ダミーゲートウェイ（ネットワークなしで画面と状態遷移を確認するための仮実装）"""

    def __init__(self):
        now = datetime.now().astimezone()
        yesterday = now - timedelta(days=1)
        self._events = [
            self._event(yesterday.replace(hour=h, minute=m, second=0, microsecond=0))
            for h, m in ((8, 0), (12, 0), (13, 0), (17, 30))
        ]
        self._events.append(self._event(now - timedelta(hours=1)))

    @staticmethod
    def _event(at: datetime) -> dict:
        return {
            "id": str(uuid.uuid4()),
            "dateEvent": at.strftime("%Y-%m-%d"),
            "timeEvent": at.strftime("%H:%M:%S.000"),
            "timeZone": at.strftime("%z")[:3] + ":" + at.strftime("%z")[3:],
            "platform": "dummy",
            "use": 2,
            "signature": "",
            "signatureVersion": 1,
            "appVersion": "dummy",
            "employee": EMPLOYEE,
        }

    async def login(self, user: str, password: str) -> str:
        if len(password) < 3:
            raise AuthError("ユーザーまたはパスワードが正しくありません")
        logger.info("[DummyGateway] ログイン（シミュレーション）: %s", user)
        return DUMMY_TOKEN

    async def fetch_events(self, token: str) -> list[dict]:
        return list(self._events)

    async def post_event(self, token: str, employee: EmployeeContext) -> PunchReceipt:
        event = self._event(datetime.now().astimezone())
        self._events.append(event)
        logger.info("[DummyGateway] 打刻（シミュレーション）: %s", event["timeEvent"])
        return PunchReceipt(date_event=event["dateEvent"], time_event=event["timeEvent"])

    async def close(self) -> None:
        pass
