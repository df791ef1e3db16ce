import signal
from unittest.mock import MagicMock, patch

import pytest

from punch_agent.errors import CredentialStoreError
from punch_agent.graph.state import Step
from punch_agent.main import build_runtime, create_services, load_saved_credentials, main
from punch_agent.services.config_loader import load_config
from punch_agent.services.dummy_gateway import DummyGateway
from punch_agent.services.senior_gateway import SeniorGateway


def _config(tmp_path, kind="senior"):
    config = load_config("nonexistent.yaml")
    config["gateway"]["kind"] = kind
    config["credentials"]["path"] = str(tmp_path / "creds.enc")
    config["notification"]["desktop"] = False
    return config


def test_create_services_senior(tmp_path):
    gateway, store, notifier = create_services(_config(tmp_path))
    assert isinstance(gateway, SeniorGateway)
    assert store.path == tmp_path / "creds.enc"


def test_create_services_dummy(tmp_path):
    gateway, _, _ = create_services(_config(tmp_path, kind="dummy"))
    assert isinstance(gateway, DummyGateway)


def test_load_saved_credentials_ignores_broken_file():
    """壊れた認証情報ファイルは未ログイン扱い"""
    store = MagicMock()
    store.load.side_effect = CredentialStoreError("broken")
    assert load_saved_credentials(store) is None


def test_build_runtime_without_saved_credentials(tmp_path):
    runtime = build_runtime(_config(tmp_path, kind="dummy"))
    assert runtime.state["step"] == Step.IDENTIFY


def _run_main(runtime):
    with patch("punch_agent.main.load_dotenv"), \
            patch("punch_agent.main.setup_logging"), \
            patch("punch_agent.main.build_runtime", return_value=runtime), \
            patch("punch_agent.main.ConsoleUI"), \
            patch("punch_agent.main.signal.signal") as mock_signal:
        code = main(["-c", "nonexistent.yaml", "--dummy"])
    return code, mock_signal


def test_main_interrupt_exits_cleanly():
    """描画中などループ内のどこで中断されても正常終了すること"""
    runtime = MagicMock()
    runtime.run.side_effect = KeyboardInterrupt
    code, _ = _run_main(runtime)
    assert code == 0


def test_main_unexpected_error():
    runtime = MagicMock()
    runtime.run.side_effect = RuntimeError("boom")
    code, _ = _run_main(runtime)
    assert code == 1


def test_sigterm_interrupts_blocking_prompt():
    """SIGTERM は割り込みにして入力待ちからも抜けること"""
    code, mock_signal = _run_main(MagicMock())
    assert code == 0

    signum, handler = mock_signal.call_args.args
    assert signum == signal.SIGTERM
    with pytest.raises(KeyboardInterrupt):
        handler(signum, None)
