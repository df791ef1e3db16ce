import json

import httpx
import pytest

from punch_agent.errors import AuthError, FetchError, SubmitError
from punch_agent.models.employee import EmployeeContext
from punch_agent.services.config_loader import DEFAULT_CONFIG
from punch_agent.services.senior_gateway import (
    EVENTS_PATH,
    LOGIN_PATH,
    POST_EVENT_PATH,
    SeniorGateway,
)

GATEWAY_URL = DEFAULT_CONFIG["gateway"]["gateway_url"]
PLATFORM_URL = DEFAULT_CONFIG["gateway"]["platform_url"]


def _gateway(handler):
    return SeniorGateway(DEFAULT_CONFIG, transport=httpx.MockTransport(handler))


def _employee():
    return EmployeeContext.from_raw_event(
        {
            "employee": {
                "id": "e1",
                "arpId": "ea1",
                "cpfNumber": "12345678901",
                "pis": "p1",
                "company": {"id": "c1", "arpId": "ca1", "cnpj": "00.000.000/0001-00"},
            },
            "timeZone": "-03:00",
            "appVersion": "1.0",
            "signature": "sig",
            "signatureVersion": 1,
            "use": 2,
        }
    )


@pytest.mark.asyncio
async def test_login_success():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"token": "tok"})

    token = await _gateway(handler).login("12345678901@acme.com.br", "secret")

    assert token == "tok"
    assert str(requests[0].url) == GATEWAY_URL + LOGIN_PATH
    assert json.loads(requests[0].content) == {
        "user": "12345678901@acme.com.br",
        "password": "secret",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 422])
async def test_login_rejected_uses_server_message(status):
    gateway = _gateway(lambda r: httpx.Response(status, json={"message": "senha inválida"}))
    with pytest.raises(AuthError, match="senha inválida"):
        await gateway.login("u@acme.com.br", "bad")


@pytest.mark.asyncio
async def test_login_unexpected_status():
    gateway = _gateway(lambda r: httpx.Response(500, text="oops"))
    with pytest.raises(AuthError, match="500"):
        await gateway.login("u@acme.com.br", "secret")


@pytest.mark.asyncio
async def test_login_network_error():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(AuthError):
        await _gateway(handler).login("u@acme.com.br", "secret")


@pytest.mark.asyncio
async def test_fetch_events_sends_bearer_and_page_size():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"result": [{"id": "1"}]})

    events = await _gateway(handler).fetch_events("tok")

    assert events == [{"id": "1"}]
    assert str(requests[0].url) == PLATFORM_URL + EVENTS_PATH
    assert requests[0].headers["Authorization"] == "Bearer tok"
    body = json.loads(requests[0].content)
    assert body["filter"]["activePlatformUser"] is True
    assert body["filter"]["pageInfo"] == {"page": 0, "pageSize": "20"}


@pytest.mark.asyncio
async def test_fetch_events_unauthorized():
    """401 は Unauthorized を含むエラーにする（自動再認証の判定に使う）"""
    gateway = _gateway(lambda r: httpx.Response(401, json={"message": "token expired"}))
    with pytest.raises(FetchError, match="^Unauthorized"):
        await gateway.fetch_events("tok")


@pytest.mark.asyncio
async def test_fetch_events_other_error():
    gateway = _gateway(lambda r: httpx.Response(503, text="unavailable"))
    with pytest.raises(FetchError) as exc_info:
        await gateway.fetch_events("tok")
    assert "Unauthorized" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_post_event_success():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "clockingResult": {
                    "clockingEventImported": {"dateEvent": "2025-03-10", "timeEvent": "09:00:00"}
                }
            },
        )

    receipt = await _gateway(handler).post_event("tok", _employee())

    assert receipt.date_event == "2025-03-10"
    assert receipt.time_event == "09:00:00"
    assert str(requests[0].url) == PLATFORM_URL + POST_EVENT_PATH
    info = json.loads(requests[0].content)["clockingInfo"]
    assert info["company"] == {
        "id": "c1",
        "arpId": "ca1",
        "identifier": "00.000.000/0001-00",
        "caepf": "",
        "cnoNumber": "",
    }
    assert info["employee"] == {"id": "e1", "arpId": "ea1", "cpf": "12345678901", "pis": "p1"}
    assert info["signature"] == {"signatureVersion": 1, "signature": "sig"}
    assert info["use"] == "02"


@pytest.mark.asyncio
async def test_post_event_unauthorized():
    gateway = _gateway(lambda r: httpx.Response(401, json={"message": "expired"}))
    with pytest.raises(SubmitError, match="Unauthorized"):
        await gateway.post_event("tok", _employee())
