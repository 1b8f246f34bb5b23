#!/usr/bin/env python3.13
import json
import os
from typing import Any

DEFAULT_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".config", "newswindow", "settings.json")

DEFAULTS: dict[str, Any] = {
    "NNTP_HOST": "news.tcpreset.net",
    "NNTP_PORT": 119,
    "NNTP_GROUP": "alt.anonymous.messages",
    "NNTP_DAYS": 1,
    "NNTP_USER": "",
    "NNTP_PASS": "",
    "NNTP_SSL": False,
    "NNTP_TLS_VERIFY": False,
    "NNTP_PROXY": "",
    "NNTP_LATEST": False,
    "NNTP_BATCH": 500,
    "NNTP_TIMEOUT": 1200,
    "NEWSWINDOW_STATE_DIR": ".",
}


def settings_path() -> str:
    return os.environ.get("NEWSWINDOW_SETTINGS_PATH", DEFAULT_SETTINGS_PATH)


def load_env(path: str = ".env") -> None:
    if not os.path.exists(path):
        return
    with open(path, "r", encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key.strip(), value.strip())


def load_settings() -> dict:
    path = settings_path()
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


def _coerce_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "y"}


def _coerce_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_setting(key: str, default: Any = None, settings: dict | None = None) -> Any:
    if settings is None:
        settings = load_settings()
    if default is None:
        default = DEFAULTS.get(key)
    if key in settings and settings[key] not in {None, ""}:
        return settings[key]
    return os.environ.get(key, default)


def get_bool_setting(key: str, default: bool | None = None, settings: dict | None = None) -> bool:
    if settings is None:
        settings = load_settings()
    if default is None:
        default = bool(DEFAULTS.get(key, False))
    if key in settings:
        return _coerce_bool(settings[key], default)
    return _coerce_bool(os.environ.get(key), default)


def get_int_setting(key: str, default: int | None = None, settings: dict | None = None) -> int:
    if settings is None:
        settings = load_settings()
    if default is None:
        default = int(DEFAULTS.get(key, 0))
    if key in settings:
        return _coerce_int(settings[key], default)
    return _coerce_int(os.environ.get(key), default)
