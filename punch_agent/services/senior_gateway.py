import logging
from typing import Optional

import httpx

from punch_agent.errors import AuthError, FetchError, SubmitError
from punch_agent.models.employee import EmployeeContext
from punch_agent.services.gateway_interface import GatewayInterface, PunchReceipt

logger = logging.getLogger(__name__)

LOGIN_PATH = "/senior/login"
EVENTS_PATH = "/hcm/pontomobile/queries/clockingEventByActiveUserQuery"
POST_EVENT_PATH = "/hcm/pontomobile_clocking_event/actions/clockingEventImportByBrowser"


def _error_message(response: httpx.Response) -> str:
    """エラー応答の message を取り出す（JSONでなければ本文そのまま）"""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text


class SeniorGateway(GatewayInterface):
    """Seniorプラットフォームへのアクセス（httpx）"""

    def __init__(self, config: dict, transport: Optional[httpx.AsyncBaseTransport] = None):
        gw = config["gateway"]
        self._gateway_url = gw["gateway_url"].rstrip("/")
        self._platform_url = gw["platform_url"].rstrip("/")
        self._timeout = gw["timeout_seconds"]
        self._page_size = str(gw["page_size"])
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # 呼び出しごとに asyncio.run されるため、クライアントは都度生成する
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    @staticmethod
    def _auth_headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    async def login(self, user: str, password: str) -> str:
        """ゲートウェイにログインしてトークンを取得"""
        try:
            async with self._client() as client:
                response = await client.post(
                    self._gateway_url + LOGIN_PATH,
                    json={"user": user, "password": password},
                )
        except httpx.HTTPError as e:
            raise AuthError(f"ログインリクエストに失敗しました: {e}") from e

        if response.status_code == 200:
            token = response.json().get("token", "")
            if not token:
                raise AuthError("ログイン応答にトークンがありません")
            return token

        if response.status_code in (401, 422):
            raise AuthError(_error_message(response))

        raise AuthError(
            f"予期しない応答です (status {response.status_code}): {response.text}"
        )

    async def fetch_events(self, token: str) -> list[dict]:
        """有効ユーザーの打刻イベント一覧を取得"""
        body = {
            "filter": {
                "activePlatformUser": True,
                "pageInfo": {"page": 0, "pageSize": self._page_size},
                "nameSearch": "",
                "sort": {"field": None, "order": "ASC"},
            }
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    self._platform_url + EVENTS_PATH,
                    json=body,
                    headers=self._auth_headers(token),
                )
        except httpx.HTTPError as e:
            raise FetchError(f"打刻一覧の取得に失敗しました: {e}") from e

        if response.status_code == 200:
            events = response.json().get("result") or []
            logger.debug("打刻イベントを %d 件取得しました", len(events))
            return events

        if response.status_code == 401:
            raise FetchError(f"Unauthorized: {_error_message(response)}")

        raise FetchError(
            f"予期しないエラーです (status {response.status_code}): {response.text}"
        )

    async def post_event(self, token: str, employee: EmployeeContext) -> PunchReceipt:
        """ブラウザ打刻として1件送信"""
        try:
            async with self._client() as client:
                response = await client.post(
                    self._platform_url + POST_EVENT_PATH,
                    json={"clockingInfo": employee.to_clocking_info()},
                    headers=self._auth_headers(token),
                )
        except httpx.HTTPError as e:
            raise SubmitError(f"打刻の送信に失敗しました: {e}") from e

        if response.status_code == 200:
            imported = (
                (response.json().get("clockingResult") or {}).get("clockingEventImported")
                or {}
            )
            return PunchReceipt(
                date_event=imported.get("dateEvent", ""),
                time_event=imported.get("timeEvent", ""),
            )

        if response.status_code == 401:
            raise SubmitError(f"Unauthorized: {_error_message(response)}")

        raise SubmitError(
            f"予期しないエラーです (status {response.status_code}): {response.text}"
        )

    async def close(self) -> None:
        pass
