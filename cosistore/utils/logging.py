"""Logging helpers for cosistore.

Every record the library emits is named after a storage event
(``storage.object.put``, ``storage.operation.failed``, ...) and carries its
context as structured fields under ``extra_fields``. Applications that want JSON
lines call :func:`configure_logging`; otherwise the records reach whatever
handlers the application installed on the root logger.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from cosistore._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Mapping
    from logging import LogRecord
    from typing import TextIO

__all__ = (
    "ROOT_LOGGER_NAME",
    "SECRET_FIELDS",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "redact_fields",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final[str] = "cosistore"
SECRET_FIELDS: Final[frozenset[str]] = frozenset(
    ("access_key_id", "access_secret_key", "access_token", "sas_key", "secret_access_key")
)
_REDACTED: Final[str] = "***"

correlation_id_var: ContextVar[str | None] = ContextVar("cosistore_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag every record logged from the current context, or clear the tag with ``None``."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def redact_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Copy ``fields`` with credential material masked."""
    return {name: _REDACTED if name in SECRET_FIELDS else value for name, value in fields.items()}


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object.

    The record message becomes the ``event`` key and the structured fields are
    merged in at the top level, with credential fields masked.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if correlation_id := getattr(record, "correlation_id", None) or get_correlation_id():
            entry["correlation_id"] = correlation_id
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(redact_fields(extra_fields))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the context correlation ID onto records so any formatter can use it."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger in the ``cosistore`` namespace.

    Args:
        name: Dotted suffix such as ``"storage.s3"``. Names already under the
            namespace are used as given; ``None`` returns the namespace root.

    Returns:
        The logger, with a :class:`CorrelationIDFilter` attached once.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: int | str = logging.INFO, *, structured: bool = True, stream: TextIO | None = None
) -> logging.Handler:
    """Send cosistore records to ``stream`` and nowhere else.

    Replaces any handlers previously installed on the namespace root and stops
    propagation to the application's root logger.

    Args:
        level: Minimum level, as a number or a name such as ``"DEBUG"``.
        structured: Emit JSON lines through :class:`StructuredFormatter`;
            otherwise a plain text format is used.
        stream: Destination, ``sys.stderr`` by default.

    Returns:
        The installed handler.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root_logger.addHandler(handler)
    root_logger.propagate = False
    return handler


def log_with_context(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` attached as structured context.

    Args:
        logger: Logger to emit on.
        level: Log level.
        event: Event name, used as the record message.
        **fields: Structured context such as ``backend_type`` and ``path``.
    """
    if logger.isEnabledFor(level):
        logger.log(level, event, extra={"extra_fields": fields})
