"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the only way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Sits beside ``ledger_kernel``: the kernel never imports from
    ``ledger_config``; services receive plain values (policy flags, bucket
    definitions) from ``ledger_services.orchestrator``, which wires them.

Audit relevance:
    Every fresh load emits a ``LEDGER_CONFIG_TRACE`` log entry carrying the
    config checksum, so any statement can be tied back to the settings that
    produced it.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from ledger_config.loader import load_settings
from ledger_config.schema import (
    AccountSettings,
    AgingBucketDef,
    AgingSettings,
    DatabaseSettings,
    DefaultAccountDef,
    LedgerSettings,
)
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")

_active: LedgerSettings | None = None
_lock = threading.Lock()


def get_active_config(path: Path | None = None) -> LedgerSettings:
    """
    Return the process-wide settings, loading them on first use.

    Passing ``path`` forces a reload from that override file.
    """
    global _active
    with _lock:
        if _active is None or path is not None:
            _active = load_settings(path, os.environ)
            _logger.info(
                "LEDGER_CONFIG_TRACE",
                extra={
                    "trace_type": "LEDGER_CONFIG_TRACE",
                    "checksum": _active.checksum,
                    "currency": _active.currency,
                    "allocation_policy": _active.aging.allocation_policy,
                    "bucket_count": len(_active.aging.buckets),
                },
            )
        return _active


def reset_active_config() -> None:
    """Drop the cached settings. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "AccountSettings",
    "AgingBucketDef",
    "AgingSettings",
    "DatabaseSettings",
    "DefaultAccountDef",
    "LedgerSettings",
    "get_active_config",
    "load_settings",
    "reset_active_config",
]
