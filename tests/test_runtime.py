from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from punch_agent.errors import AuthError, CredentialStoreError, FetchError
from punch_agent.graph.effects import (
    DeleteCredentials,
    FetchEvents,
    Login,
    Notify,
    PersistCredentials,
    PostPunch,
    RunAsync,
    ScheduleTick,
)
from punch_agent.graph.graph import TransitionEngine
from punch_agent.graph.messages import (
    CredentialsDeleted,
    CredentialsSaved,
    EventsFetched,
    IdentitySubmitted,
    LoginSucceeded,
    OperationFailed,
    PunchPosted,
    Quit,
    Tick,
)
from punch_agent.graph.state import Step, initial_state
from punch_agent.models.employee import Credentials, EmployeeContext
from punch_agent.runtime import SessionRuntime
from punch_agent.services.gateway_interface import PunchReceipt

RAW_EVENT = {
    "id": "1",
    "dateEvent": "2025-03-10",
    "timeEvent": "09:00:00.000",
    "timeZone": "-03:00",
    "employee": {"id": "e1", "company": {"id": "c1", "arpId": "ca1"}},
}


def _runtime(state=None, gateway=None, store=None, notifier=None):
    return SessionRuntime(
        engine=TransitionEngine(),
        state=state or initial_state(),
        gateway=gateway or MagicMock(),
        store=store or MagicMock(),
        notifier=notifier or MagicMock(),
        scheduler=MagicMock(),
    )


def test_execute_login_success():
    gateway = MagicMock()
    gateway.login = AsyncMock(return_value="tok")
    runtime = _runtime(gateway=gateway)

    result = runtime.execute(Login(user="u@acme.com.br", password="secret"))

    assert result == LoginSucceeded(token="tok")
    gateway.login.assert_awaited_once_with("u@acme.com.br", "secret")


def test_execute_login_failure_becomes_message():
    """ゲートウェイの例外は OperationFailed に変換されること"""
    gateway = MagicMock()
    gateway.login = AsyncMock(side_effect=AuthError("senha inválida"))

    result = _runtime(gateway=gateway).execute(Login(user="u", password="p"))

    assert result == OperationFailed(operation="login", reason="senha inválida")


def test_execute_fetch_events():
    gateway = MagicMock()
    gateway.fetch_events = AsyncMock(return_value=[RAW_EVENT])

    result = _runtime(gateway=gateway).execute(FetchEvents(token="tok"))

    assert isinstance(result, EventsFetched)
    assert result.employee.company_arp_id == "ca1"
    assert list(result.clockings) == ["2025-03-10"]


def test_execute_fetch_events_empty_is_error():
    gateway = MagicMock()
    gateway.fetch_events = AsyncMock(return_value=[])

    result = _runtime(gateway=gateway).execute(FetchEvents(token="tok"))

    assert isinstance(result, OperationFailed)
    assert result.operation == "fetch_events"


def test_execute_fetch_events_unauthorized():
    gateway = MagicMock()
    gateway.fetch_events = AsyncMock(side_effect=FetchError("Unauthorized: expired"))

    result = _runtime(gateway=gateway).execute(FetchEvents(token="tok"))

    assert result == OperationFailed(operation="fetch_events", reason="Unauthorized: expired")


def test_execute_fetch_events_malformed_timestamp():
    gateway = MagicMock()
    gateway.fetch_events = AsyncMock(return_value=[{**RAW_EVENT, "timeEvent": "9h"}])

    result = _runtime(gateway=gateway).execute(FetchEvents(token="tok"))

    assert isinstance(result, OperationFailed)


def test_execute_unexpected_exception():
    """想定外の例外もメッセージとして返す"""
    gateway = MagicMock()
    gateway.login = AsyncMock(side_effect=RuntimeError("boom"))

    result = _runtime(gateway=gateway).execute(Login(user="u", password="p"))

    assert result == OperationFailed(operation="login", reason="boom")


def test_execute_post_punch():
    gateway = MagicMock()
    gateway.post_event = AsyncMock(
        return_value=PunchReceipt(date_event="2025-03-10", time_event="09:00:00")
    )
    employee = EmployeeContext.from_raw_event(RAW_EVENT)

    result = _runtime(gateway=gateway).execute(PostPunch(token="tok", employee=employee))

    assert result == PunchPosted(date_event="2025-03-10", time_event="09:00:00")
    gateway.post_event.assert_awaited_once_with("tok", employee)


def test_execute_persist_and_delete():
    store = MagicMock()
    runtime = _runtime(store=store)
    creds = Credentials(domain="acme.com.br", cpf="12345678901", password="p", token="t")

    assert runtime.execute(PersistCredentials(credentials=creds)) == CredentialsSaved()
    store.save.assert_called_once_with(creds)
    assert runtime.execute(DeleteCredentials()) == CredentialsDeleted()
    store.delete.assert_called_once()


def test_execute_store_failure_is_reported():
    store = MagicMock()
    store.delete.side_effect = CredentialStoreError("permission denied")

    result = _runtime(store=store).execute(DeleteCredentials())

    assert result == CredentialsDeleted(error="permission denied")


def test_execute_unknown_operation():
    with pytest.raises(TypeError):
        _runtime().execute(object())


def test_dispatch_routes_effects():
    """エフェクトの種類ごとにスケジューラへ振り分けること"""
    runtime = _runtime()
    scheduler = runtime._scheduler
    login = Login(user="u", password="p")

    runtime.dispatch(
        [
            RunAsync(login),
            ScheduleTick(after=timedelta(seconds=1), generation=3),
            Notify(title="t", message="m", urgency="low"),
        ]
    )

    assert scheduler.run_now.call_args_list[0].args == (runtime._run_operation, login)
    assert scheduler.run_later.call_args.args == (timedelta(seconds=1), runtime.post, Tick(3))
    assert scheduler.run_now.call_args_list[1].args[0] == runtime._notify


def test_run_operation_posts_result():
    gateway = MagicMock()
    gateway.login = AsyncMock(return_value="tok")
    runtime = _runtime(gateway=gateway)

    runtime._run_operation(Login(user="u", password="p"))

    assert runtime._queue.get_nowait() == LoginSucceeded(token="tok")


def test_notify_failure_does_not_raise():
    notifier = MagicMock()
    notifier.notify.side_effect = RuntimeError("no display")
    runtime = _runtime(notifier=notifier)

    runtime._notify(Notify(title="t", message="m", urgency="low"))  # should not raise


def test_handle_applies_transition_and_dispatches():
    runtime = _runtime()
    runtime.handle(IdentitySubmitted(domain="acme.com.br", cpf="12345678901"))
    assert runtime.state["step"] == Step.PASSWORD
    runtime._scheduler.run_now.assert_not_called()


def test_drain_processes_queue_in_order():
    runtime = _runtime()
    runtime.post(IdentitySubmitted(domain="acme.com.br", cpf="12345678901"))
    runtime.post(Quit())
    runtime.post(IdentitySubmitted(domain="other.com", cpf="10987654321"))

    runtime.drain()

    assert runtime.state["quit"] is True
    assert runtime.state["domain"] == "acme.com.br"


def test_messages_after_quit_are_discarded():
    """終了後に届いた非同期結果はエフェクトを発生させない"""
    runtime = _runtime()
    runtime.handle(Quit())
    runtime.handle(LoginSucceeded(token="tok"))

    runtime._scheduler.run_now.assert_not_called()
    assert runtime.state["token"] == ""


def test_bootstrap_with_saved_session_fetches_events():
    state = initial_state(
        Credentials(domain="acme.com.br", cpf="12345678901", password="p", token="tok")
    )
    runtime = _runtime(state=state)

    runtime.bootstrap()

    runtime._scheduler.run_now.assert_called_once_with(
        runtime._run_operation, FetchEvents(token="tok")
    )


def test_bootstrap_without_session_does_nothing():
    runtime = _runtime()
    runtime.bootstrap()
    runtime._scheduler.run_now.assert_not_called()


def test_run_loop_until_quit():
    """終了時にスケジューラを止め、ゲートウェイを閉じること"""
    gateway = MagicMock()
    gateway.close = AsyncMock()
    runtime = _runtime(gateway=gateway)
    ui = MagicMock()
    ui.poll.side_effect = [None, Quit()]

    runtime.run(ui)

    assert runtime.state["quit"] is True
    runtime._scheduler.start.assert_called_once()
    runtime._scheduler.stop.assert_called_once()
    assert ui.render.call_count == 2
    gateway.close.assert_awaited_once()


def test_run_closes_gateway_on_interrupt():
    gateway = MagicMock()
    gateway.close = AsyncMock()
    runtime = _runtime(gateway=gateway)
    ui = MagicMock()
    ui.render.side_effect = [None, KeyboardInterrupt]
    ui.poll.return_value = IdentitySubmitted(domain="acme.com.br", cpf="12345678901")

    with pytest.raises(KeyboardInterrupt):
        runtime.run(ui)

    runtime._scheduler.stop.assert_called_once()
    gateway.close.assert_awaited_once()
