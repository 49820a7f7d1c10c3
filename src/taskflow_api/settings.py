from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SESSION_SECRET: HS256 secret shared with the identity provider. When unset every session is rejected
    - SESSION_COOKIE_NAME: cookie holding the session token. Default 'taskflow.session_token'
    - OPENAI_API_KEY: API key for the categorization model. When unset categorization always fails
    - OPENAI_MODEL: model used for categorization. Default 'gpt-5-mini'
    - OPENAI_BASE_URL: optional custom endpoint (proxies, compatible servers)
    - CATEGORIZE_TIMEOUT_SECONDS: upper bound on a categorization call. Default 10
    - DEFAULT_CATEGORY: label used when categorization fails on create. Default 'general'
    - LOG_LEVEL: minimum level for the taskflow loggers. Default 'INFO'
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    session_secret: Optional[str]
    session_cookie_name: str
    openai_api_key: Optional[str]
    openai_model: str
    openai_base_url: Optional[str]
    categorize_timeout_seconds: float
    default_category: str
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        session_secret=_get_optional_env("SESSION_SECRET"),
        session_cookie_name=_get_env("SESSION_COOKIE_NAME", "taskflow.session_token").strip(),
        openai_api_key=_get_optional_env("OPENAI_API_KEY"),
        openai_model=_get_env("OPENAI_MODEL", "gpt-5-mini").strip(),
        openai_base_url=_get_optional_env("OPENAI_BASE_URL"),
        categorize_timeout_seconds=_parse_float(_get_env("CATEGORIZE_TIMEOUT_SECONDS", "10"), 10.0),
        default_category=_get_env("DEFAULT_CATEGORY", "general").strip().lower(),
        log_level=log_level,
    )
