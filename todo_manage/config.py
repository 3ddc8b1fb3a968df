# todo_manage/config.py
import os
from dataclasses import dataclass
from typing import List, Optional

SAM_LOCAL_ENDPOINT = "http://host.docker.internal:62224"
SAM_LOCAL_REGION = "us-fake-1"
BACKENDS = ("dynamodb", "memory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """
    Settings for one lifecycle run, read from environment variables.

    Env vars:
    - TABLE_NAME (or tableName): DynamoDB table. Default 'TodoTable'
    - EXPIRE_AFTER_DAYS: days past targetAt before a todo is expired. Default 7
    - DELETE_AFTER_DAYS: days after expiry before a todo is deleted. Default 7
    - RESET_ADD_DAYS: days added to the run time for a carried-over todo. Default 3
    - PURGE_OVERDUE_ON_EXPIRY: also delete expiring todos already past the
      deletion threshold. Default false
    - STORE_BACKEND: 'dynamodb' (default) or 'memory'
    - DYNAMODB_ENDPOINT: endpoint override (SAM local sets a default)
    - ALLOWED_ORIGINS: comma-separated CORS origins for the admin app
    - LOG_LEVEL: root log level. Default 'INFO'
    """

    table_name: str = "TodoTable"
    expire_after_days: int = 7
    delete_after_days: int = 7
    reset_add_days: int = 3
    purge_overdue_on_expiry: bool = False
    store_backend: str = "dynamodb"
    dynamodb_endpoint: Optional[str] = None
    sam_local: bool = False
    allowed_origins: tuple = ("http://localhost:5500",)
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_days(name: str, default: int) -> int:
    raw = _get_env(name, str(default)).strip()
    try:
        days = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if days < 0:
        raise ValueError(f"{name} must not be negative, got {days}")
    return days


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {value!r}")
    return level


def _parse_origins(value: str) -> List[str]:
    return [s.strip() for s in value.split(",") if s.strip()]


def get_settings() -> Settings:
    """Return settings loaded from environment variables."""
    sam_local = bool(os.getenv("AWS_SAM_LOCAL"))

    if sam_local:
        table_name = "TodoTable"
    else:
        table_name = os.getenv("TABLE_NAME") or os.getenv("tableName") or "TodoTable"

    backend = _get_env("STORE_BACKEND", "dynamodb").strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"STORE_BACKEND must be one of {BACKENDS}, got {backend!r}")

    endpoint = os.getenv("DYNAMODB_ENDPOINT") or (SAM_LOCAL_ENDPOINT if sam_local else None)

    return Settings(
        table_name=table_name,
        expire_after_days=_parse_days("EXPIRE_AFTER_DAYS", 7),
        delete_after_days=_parse_days("DELETE_AFTER_DAYS", 7),
        reset_add_days=_parse_days("RESET_ADD_DAYS", 3),
        purge_overdue_on_expiry=_parse_bool(_get_env("PURGE_OVERDUE_ON_EXPIRY", "false")),
        store_backend=backend,
        dynamodb_endpoint=endpoint,
        sam_local=sam_local,
        allowed_origins=tuple(_parse_origins(_get_env("ALLOWED_ORIGINS", "http://localhost:5500"))),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
    )
