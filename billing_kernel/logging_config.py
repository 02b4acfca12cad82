"""
Structured JSON logging for the billing kernel.

Every kernel module logs through ``get_logger(...)`` under the
``billing_kernel`` namespace.  Records are written one JSON object per line:

    {"ts": "...", "level": "INFO", "logger": "billing_kernel.services.ledger_store",
     "message": "active_balance_computed", "account": "acme", "entry_count": 12}

Request-scoped fields (account, package, ledger entry, acting administrator,
run correlation id) come from ``LogContext`` and are merged into every
record emitted while they are bound.  Exceptions that carry a ``code``
contribute it and their public attributes as ``exc_*`` fields.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any

_LOGGER_PREFIX = "billing_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_context: ContextVar[dict[str, str]] = ContextVar("billing_log_context", default={})


class LogContext:
    """Request-scoped log fields, isolated per thread and per task."""

    FIELDS = frozenset({"correlation_id", "account", "entry_id", "package", "actor_id"})

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Add fields to the current context. None values are skipped."""
        unknown = set(fields) - cls.FIELDS
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        _context.set({**_context.get(), **cls._present(fields)})

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """
        Bind fields for the duration of a block, then restore the previous
        context.  Unknown names and None values are ignored.
        """
        known = {k: v for k, v in fields.items() if k in cls.FIELDS}
        token = _context.set({**_context.get(), **cls._present(known)})
        try:
            yield cls
        finally:
            _context.reset(token)

    @staticmethod
    def _present(fields: dict[str, str | None]) -> dict[str, str]:
        return {k: v for k, v in fields.items() if v is not None}


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    # Decimal amounts keep their scale as strings
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; bound context wins over ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger for a kernel module, e.g. ``get_logger("services.ledger_store")``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *, level: int = logging.INFO, handler: logging.Handler | None = None
) -> None:
    """
    Attach a JSON handler to the ``billing_kernel`` logger.

    Only the first call has any effect.  Records do not propagate to the
    root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    handler = handler or logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging`` to run again. Used by tests."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
