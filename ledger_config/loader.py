"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the packaged ``defaults.yaml``, deep-merges an optional override
file on top, applies environment overrides, and parses the result into
``ledger_config.schema`` dataclasses.

Failure modes
-------------
* Missing override file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values (unknown allocation policy, overlapping aging buckets,
  unknown account kind)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    ACCOUNT_KINDS,
    ALLOCATION_POLICIES,
    AccountSettings,
    AgingBucketDef,
    AgingSettings,
    DatabaseSettings,
    DefaultAccountDef,
    LedgerSettings,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_CONFIG_PATH = "LEDGER_CONFIG"
ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursive merge; lists and scalars in ``override`` replace ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def parse_aging(data: dict[str, Any]) -> AgingSettings:
    """
    Parse aging settings.

    Buckets must start at day 0, be contiguous, and only the last one may
    be open-ended.
    """
    buckets = tuple(
        AgingBucketDef(
            name=b["name"],
            min_days=int(b["min_days"]),
            max_days=int(b["max_days"]) if b.get("max_days") is not None else None,
        )
        for b in data.get("buckets", [])
    )
    if not buckets:
        raise ValueError("aging.buckets must define at least one bucket")
    expected_start = 0
    for i, bucket in enumerate(buckets):
        if bucket.min_days != expected_start:
            raise ValueError(
                f"aging bucket {bucket.name!r} starts at {bucket.min_days}, "
                f"expected {expected_start}"
            )
        if bucket.max_days is None:
            if i != len(buckets) - 1:
                raise ValueError(f"only the last aging bucket may be open-ended ({bucket.name!r})")
            break
        if bucket.max_days < bucket.min_days:
            raise ValueError(f"aging bucket {bucket.name!r} has max_days < min_days")
        expected_start = bucket.max_days + 1

    policy = str(data.get("allocation_policy", "fifo")).lower()
    if policy not in ALLOCATION_POLICIES:
        raise ValueError(
            f"aging.allocation_policy must be one of {ALLOCATION_POLICIES}, got {policy!r}"
        )
    return AgingSettings(buckets=buckets, allocation_policy=policy)


def parse_accounts(data: dict[str, Any]) -> AccountSettings:
    defaults = []
    for item in data.get("defaults", []):
        kind = item.get("kind", "bank")
        if kind not in ACCOUNT_KINDS:
            raise ValueError(f"account {item['name']!r} has unknown kind {kind!r}")
        defaults.append(DefaultAccountDef(name=item["name"], kind=kind))
    return AccountSettings(
        defaults=tuple(defaults),
        allow_negative_balance=bool(data.get("allow_negative_balance", True)),
        verify_on_write=bool(data.get("verify_on_write", True)),
    )


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return DatabaseSettings(
        url=data.get("url", DatabaseSettings.url),
        echo=bool(data.get("echo", False)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization. Deterministic."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    return LedgerSettings(
        currency=str(data.get("currency", "KWD")).upper(),
        display_scale=int(data.get("display_scale", 3)),
        foreign_display_scale=int(data.get("foreign_display_scale", 2)),
        log_level=str(data.get("log_level", "INFO")).upper(),
        database=parse_database(data.get("database", {})),
        aging=parse_aging(data.get("aging", {})),
        accounts=parse_accounts(data.get("accounts", {})),
        checksum=compute_checksum(data),
    )


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Build LedgerSettings from defaults, an optional override file and the environment.

    Precedence, lowest first: packaged defaults.yaml, the file at ``path``
    (or ``$LEDGER_CONFIG``), then ``$LEDGER_DATABASE_URL`` and
    ``$LEDGER_LOG_LEVEL``.
    """
    environ = environ if environ is not None else {}
    data = load_yaml_file(DEFAULTS_PATH)

    override_path = path or (Path(environ[ENV_CONFIG_PATH]) if environ.get(ENV_CONFIG_PATH) else None)
    if override_path is not None:
        data = merge_dicts(data, load_yaml_file(override_path))

    if environ.get(ENV_DATABASE_URL):
        data = merge_dicts(data, {"database": {"url": environ[ENV_DATABASE_URL]}})
    if environ.get(ENV_LOG_LEVEL):
        data = merge_dicts(data, {"log_level": environ[ENV_LOG_LEVEL]})

    return parse_settings(data)
