"""
Structured logging for Stock Watch.

Everything goes through structlog on top of the standard logging module, so
uvicorn, APScheduler and SQLAlchemy records end up in the same stream and the
same rotating file as our own events.

Notification addresses are personal data and are masked in every event
(``jane@example.com`` becomes ``j***@example.com``).
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, MutableMapping

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from .settings import Settings

FILE_HANDLER_NAME = "stockwatch-file"

# Job runs are already reported by the scheduler listeners
QUIET_LOGGERS = {
    "apscheduler.executors.default": logging.WARNING,
    "apscheduler.scheduler": logging.WARNING,
}

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


def mask_email(address: str) -> str:
    """Keep the first character of the local part and the domain."""
    local, sep, domain = address.partition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}***@{domain}"


def mask_email_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking any ``*email`` field."""
    for key, value in event_dict.items():
        if key.endswith("email") and isinstance(value, str):
            event_dict[key] = mask_email(value)
    return event_dict


def setup_logging(settings: "Settings") -> None:
    """
    Configure structlog and the root logger from application settings.

    Safe to call more than once; the file handler is replaced, not stacked.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, log_level))

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        mask_email_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Files get one JSON object per line; a terminal gets the console renderer
    if settings.log_format == "structured" and settings.log_file_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.log_format == "plain"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if settings.log_file_enabled:
        install_file_handler(
            settings.log_file_path,
            _parse_file_size(settings.log_max_file_size),
            settings.log_backup_count,
            log_level,
        )


def install_file_handler(
    file_path: str, max_bytes: int, backup_count: int, log_level: int
) -> logging.Handler:
    """Attach the rotating log file to the root logger, replacing a previous one."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == FILE_HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()

    log_file = Path(file_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.set_name(FILE_HANDLER_NAME)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(file_handler)
    return file_handler


def _parse_file_size(size_str: str) -> int:
    """'10MB' -> bytes; a bare number is already bytes."""
    size_str = size_str.strip().upper()
    for suffix, factor in _SIZE_UNITS.items():
        if size_str.endswith(suffix):
            return int(size_str[: -len(suffix)]) * factor
    return int(size_str)


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a logger named after it."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)

    def log_with_context(self, **context: Any) -> structlog.stdlib.BoundLogger:
        return self.logger.bind(**context)


def log_audit_event(event: str, **context: Any) -> None:
    """
    Record a change to persisted portfolio or notification state.

    Audit entries share the ``audit`` logger so they can be filtered out of
    the main stream.
    """
    get_logger("audit").info("Audit event", audit_event=event, **context)
