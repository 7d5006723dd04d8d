"""
Trace records for engine calls.

``@traced_engine`` wraps an engine entry point and logs one
``LEDGER_ENGINE_TRACE`` record per call with the engine's name and version,
how long it ran, and a short fingerprint of the keyword arguments named in
``fingerprint_fields``.  Two statements computed from the same entries and
window carry the same fingerprint, which makes a disputed figure easy to
replay from the logs.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def _plain(value: Any) -> Any:
    """Reduce engine inputs to JSON-friendly values with a stable text form."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # 1.50 and 1.5 are the same amount
        return format(value.normalize(), "f") if value else "0"
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """Hex digest prefix over the named keyword arguments; absent ones hash as null."""
    selected = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )
            started = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                logger.info(
                    "LEDGER_ENGINE_TRACE",
                    extra={
                        "trace_type": "LEDGER_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                        "function": func.__qualname__,
                    },
                )

        return wrapper

    return decorator
