# src/mstodo_fetcher/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time: account credentials live in the accounts file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .todo.errors import ConfigError
from .todo.models import DEFAULT_REFRESH_SECONDS, AccountConfiguration

ENV_PREFIX = "MSTODO"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Accounts ----
    accounts_file: Path
    default_refresh_seconds: float

    # ---- Graph / HTTP ----
    graph_base_url: str
    authority_base_url: str
    http_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/mstodo"))
        return Settings(
            app_name=_env(_k("APP_NAME"), "mstodo-fetcher") or "mstodo-fetcher",
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            data_dir=data_dir,
            accounts_file=_env_path(_k("ACCOUNTS_FILE"), Path("accounts.json")),
            default_refresh_seconds=_env_float(_k("DEFAULT_REFRESH_SECONDS"), float(DEFAULT_REFRESH_SECONDS)),
            graph_base_url=_env(_k("GRAPH_BASE_URL"), "https://graph.microsoft.com/v1.0").rstrip("/"),
            authority_base_url=_env(_k("AUTHORITY_BASE_URL"), "https://login.microsoftonline.com").rstrip("/"),
            http_timeout_seconds=_env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0),
        )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def load_accounts(path: str | Path, *, default_refresh_seconds: float = DEFAULT_REFRESH_SECONDS) -> List[AccountConfiguration]:
    """
    Read account configurations from a JSON file.

    The file holds either a list of account objects or {"accounts": [...]},
    each in the host payload shape (see AccountConfiguration.from_dict).
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"accounts file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"accounts file {path} is not valid JSON: {exc.msg}") from exc

    if isinstance(data, dict):
        data = data.get("accounts")
    if not isinstance(data, list):
        raise ConfigError(f"accounts file {path} must contain a list of accounts")

    accounts: List[AccountConfiguration] = []
    seen: set[str] = set()
    for raw in data:
        account = AccountConfiguration.from_dict(raw, default_refresh_seconds=default_refresh_seconds)
        if account.id in seen:
            raise ConfigError(f"duplicate account id in {path}: {account.id}")
        seen.add(account.id)
        accounts.append(account)
    return accounts
