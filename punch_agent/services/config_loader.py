import copy
import os

import yaml
from pathlib import Path

DEFAULT_CONFIG = {
    "gateway": {
        "kind": "senior",
        "gateway_url": "https://snr-getaway.fly.dev",
        "platform_url": "https://platform.senior.com.br/t/senior.com.br/bridge/1.0/rest",
        "timeout_seconds": 10,
        "page_size": 20,
    },
    "credentials": {
        "path": "~/.punch_agent_credentials.enc",
    },
    "timer": {
        "tick_seconds": 1,
    },
    "notification": {
        "threshold_hours": 4,
        "cooldown_minutes": 20,
        "warning_hours": 5,
        "critical_hours": 6,
        "title": "打刻アラート",
        "desktop": True,
    },
    "slack": {
        "enabled": False,
        "notify_channel": "",
    },
    "logging": {
        "level": "INFO",
        "file": "punch_agent.log",
        "debug_file": "debug.log",
    },
}

# 環境変数による上書き（環境変数名, セクション, キー）
ENV_OVERRIDES = [
    ("PUNCH_GATEWAY_URL", "gateway", "gateway_url"),
    ("PUNCH_PLATFORM_URL", "gateway", "platform_url"),
    ("PUNCH_GATEWAY_KIND", "gateway", "kind"),
    ("PUNCH_CREDENTIALS_PATH", "credentials", "path"),
    ("SLACK_NOTIFY_CHANNEL", "slack", "notify_channel"),
]


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env(config: dict) -> dict:
    for env_name, section, key in ENV_OVERRIDES:
        value = os.getenv(env_name)
        if value:
            config[section][key] = value
    return config


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定・環境変数とマージして返す"""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return _apply_env(_deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config))
    return _apply_env(copy.deepcopy(DEFAULT_CONFIG))
