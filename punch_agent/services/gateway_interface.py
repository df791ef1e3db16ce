from abc import ABC, abstractmethod
from dataclasses import dataclass

from punch_agent.models.employee import EmployeeContext


@dataclass
class PunchReceipt:
    date_event: str
    time_event: str


class GatewayInterface(ABC):
    """人事ゲートウェイ（ログイン・打刻一覧・打刻送信）の抽象インターフェース"""

    @abstractmethod
    async def login(self, user: str, password: str) -> str:
        """ログインしてBearerトークンを返す。拒否時は AuthError"""
        ...

    @abstractmethod
    async def fetch_events(self, token: str) -> list[dict]:
        """打刻イベント一覧（上流のJSONそのまま）。失敗時は FetchError"""
        ...

    @abstractmethod
    async def post_event(self, token: str, employee: EmployeeContext) -> PunchReceipt:
        """打刻を送信する。失敗時は SubmitError"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
