"""
Ledger logging.

Every ledger module logs through ``get_logger(__name__-ish)`` into the
``ledger`` namespace.  Records leave as one JSON object per line so the
money-moving paths (transfers, adjustments, opening balances) can be
audited from log files alone.

Request-scoped fields such as the request id or the acting user are held
in a ContextVar and stamped onto every record written while they are
bound::

    with LogContext.bind(actor_id="clerk-7", operation="account_transfer"):
        logger.info("transfer_completed", extra={"amount": "30.000"})
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
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Iterator

ROOT_LOGGER_NAME = "ledger"

_CONTEXT_FIELDS = ("request_id", "actor_id", "account_id", "party_id", "operation")

_context: ContextVar[dict[str, str]] = ContextVar("ledger_log_context", default={})


class LogContext:
    """Fields attached to every ledger log record in the current context."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block.

        ``None`` values are ignored.  Ids usually arrive as ints from the
        ORM and are stored as strings.
        """
        unknown = set(fields) - set(_CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _context.set(merged)
        try:
            yield
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                data.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            data.update(self._describe_exception(record.exc_info[1]))
            data["traceback"] = self.formatException(record.exc_info)

        return json.dumps(data, default=_to_json)

    @staticmethod
    def _describe_exception(exc: BaseException) -> dict[str, Any]:
        # LedgerError subclasses carry a code plus structured attributes
        described = {"exc_type": type(exc).__name__, "exc_message": str(exc)}
        code = getattr(exc, "code", None)
        if code is not None:
            described["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_") and name != "code":
                described[f"exc_{name}"] = value
        return described


def get_logger(name: str) -> logging.Logger:
    """Logger for a ledger component, e.g. ``get_logger("services.transfer")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_setup_lock = threading.Lock()
_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on the ``ledger`` logger.

    Only the first call has any effect until ``reset_logging`` runs.
    """
    global _handler
    with _setup_lock:
        if _handler is not None:
            return
        _handler = handler or logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(_handler)


def reset_logging() -> None:
    """Remove the installed handler (used by the test suite)."""
    global _handler
    with _setup_lock:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
        _handler = None
