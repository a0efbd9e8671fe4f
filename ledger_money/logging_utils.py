import logging
import os
import sys
import uuid
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from ledger_money.constants import ENV_PREFIX

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})

_LEVEL_NAMES = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.FATAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_bool(name: str, default: bool = False) -> bool:
    """Reads a yes/no flag; unrecognized spellings fall back to `default`."""
    raw = os.getenv(name)
    if raw is None:
        return default
    flag = raw.strip().lower()
    if flag in _TRUTHY or flag in _FALSY:
        return flag in _TRUTHY
    return default


def _parse_log_level(raw_level: Optional[str], default: int) -> int:
    level = (raw_level or "").strip().upper()
    if not level:
        return default
    if level.isdigit():
        return int(level)
    return _LEVEL_NAMES.get(level, default)


class RuntimeLogContextFilter(logging.Filter):
    """Stamps every record with the run's context fields (run_id, component)."""

    def __init__(self, **context: str):
        super().__init__()
        self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


def configure_logging(component: str = "ledger-money", log_to_file: bool = True) -> str:
    run_id = _env("RUN_ID") or uuid.uuid4().hex[:12]

    base_level = _parse_log_level(_env("LOG_LEVEL"), logging.INFO)
    console_level = _parse_log_level(_env("CONSOLE_LOG_LEVEL"), base_level)
    file_level = _parse_log_level(
        _env("FILE_LOG_LEVEL"),
        _parse_log_level(_env("LOG_LEVEL"), logging.DEBUG),
    )
    backup_count = int(_env("LOG_BACKUP_COUNT", "30"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        fmt=(
            "%(asctime)s %(levelname)s %(name)s "
            "[run_id=%(run_id)s component=%(component)s pid=%(process)d] %(message)s"
        )
    )
    context_filter = RuntimeLogContextFilter(run_id=run_id, component=component)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = _env("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, f"{component}.log"),
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)

    # requests logs through urllib3; both are chatty at DEBUG
    third_party_level = _parse_log_level(_env("THIRD_PARTY_LOG_LEVEL"), logging.INFO)
    for name in ("urllib3", "requests"):
        logging.getLogger(name).setLevel(third_party_level)

    return run_id
