import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def debug_enabled() -> bool:
    """環境変数 DEBUG が空でなければデバッグログを有効にする"""
    return len(os.getenv("DEBUG", "")) > 0


def setup_logging(config: dict) -> logging.Logger:
    """
    アプリケーション全体のロギング設定を行います。

    画面はUIが占有するため、ログはファイルにのみ出力します。
    DEBUG 指定時はレベルを DEBUG にし、debug.log に出力します。

    Args:
        config (dict): load_config() の結果

    Returns:
        logging.Logger: パッケージのロガー
    """
    log_config = config["logging"]
    if debug_enabled():
        level = logging.DEBUG
        log_file = log_config["debug_file"]
    else:
        level = getattr(logging, str(log_config["level"]).upper(), logging.INFO)
        log_file = log_config["file"]

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file, encoding="utf-8")],
        force=True,
    )
    # APScheduler のジョブ実行ログは多すぎるので抑える
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("punch_agent")
