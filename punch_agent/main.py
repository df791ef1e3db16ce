"""打刻クライアント - エントリーポイント"""
import argparse
import logging
import signal
import sys
from datetime import timedelta

from dotenv import load_dotenv

from punch_agent.errors import CredentialStoreError
from punch_agent.graph.graph import TransitionEngine
from punch_agent.graph.notification_policy import NotificationPolicy
from punch_agent.graph.state import initial_state
from punch_agent.runtime import SessionRuntime
from punch_agent.schedulers.scheduler import EffectScheduler
from punch_agent.services.config_loader import load_config
from punch_agent.services.console_ui import ConsoleUI
from punch_agent.services.credential_store import CredentialStore
from punch_agent.services.logger import setup_logging
from punch_agent.services.notifier import create_notifier

VERSION = "0.1.0"

logger = logging.getLogger("punch_agent")


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    # 打刻ゲートウェイ
    if config["gateway"]["kind"] == "dummy":
        from punch_agent.services.dummy_gateway import DummyGateway
        gateway = DummyGateway()
    else:
        from punch_agent.services.senior_gateway import SeniorGateway
        gateway = SeniorGateway(config)

    store = CredentialStore(config["credentials"]["path"])
    notifier = create_notifier(config)

    return gateway, store, notifier


def load_saved_credentials(store: CredentialStore):
    """保存済み認証情報を読む。壊れていれば未ログインとして扱う"""
    try:
        return store.load()
    except CredentialStoreError as e:
        logger.warning("保存済み認証情報を無視します: %s", e)
        return None


def build_runtime(config: dict) -> SessionRuntime:
    gateway, store, notifier = create_services(config)
    engine = TransitionEngine(
        policy=NotificationPolicy.from_config(config),
        tick_interval=timedelta(seconds=config["timer"]["tick_seconds"]),
    )
    state = initial_state(load_saved_credentials(store))
    return SessionRuntime(
        engine=engine,
        state=state,
        gateway=gateway,
        store=store,
        notifier=notifier,
        scheduler=EffectScheduler(),
    )


def main(argv=None):
    """メイン起動処理"""
    parser = argparse.ArgumentParser(prog="punch-agent", description="端末から打刻するクライアント")
    parser.add_argument("-c", "--config", default="config.yaml", help="設定ファイル (YAML)")
    parser.add_argument("--dummy", action="store_true", help="ダミーゲートウェイで起動する")
    args = parser.parse_args(argv)

    load_dotenv()
    config = load_config(args.config)
    if args.dummy:
        config["gateway"]["kind"] = "dummy"
    setup_logging(config)
    logger.info("起動します (gateway=%s)", config["gateway"]["kind"])

    runtime = build_runtime(config)

    # シグナルハンドリング（入力待ちでも抜けられるよう割り込みにする）
    def shutdown(signum, frame):
        logger.info("シグナル %s を受信しました。停止します", signum)
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, shutdown)

    ui = ConsoleUI(app_version=VERSION)
    try:
        runtime.run(ui)
    except KeyboardInterrupt:
        logger.info("中断されました")
    except Exception:
        logger.exception("予期しないエラーで終了します")
        return 1
    finally:
        logger.info("停止しました")
    return 0


if __name__ == "__main__":
    sys.exit(main())
