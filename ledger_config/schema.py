"""
Configuration schema (``ledger_config.schema``).

Frozen dataclasses describing everything the ledger can be configured
with.  Instances are produced only by ``ledger_config.loader``; nothing
else builds them from raw dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

ALLOCATION_POLICIES = ("fifo", "proportional")
ACCOUNT_KINDS = ("cash", "bank")


@dataclass(frozen=True)
class AgingBucketDef:
    """One aging column: items aged ``min_days`` .. ``max_days`` inclusive."""

    name: str
    min_days: int
    max_days: int | None = None


@dataclass(frozen=True)
class AgingSettings:
    buckets: tuple[AgingBucketDef, ...]
    allocation_policy: str = "fifo"


@dataclass(frozen=True)
class DefaultAccountDef:
    name: str
    kind: str = "bank"


@dataclass(frozen=True)
class AccountSettings:
    """
    Account policies.

    ``allow_negative_balance`` -- when False, a debit that would take an
    account below zero is refused with InsufficientFundsError.
    ``verify_on_write`` -- replay the ledger after every balance-mutating
    write and refuse the write if the stored balance drifted.
    """

    defaults: tuple[DefaultAccountDef, ...] = ()
    allow_negative_balance: bool = True
    verify_on_write: bool = True


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False


@dataclass(frozen=True)
class LedgerSettings:
    """Root configuration object returned by ``get_active_config()``."""

    currency: str = "KWD"
    display_scale: int = 3
    foreign_display_scale: int = 2
    log_level: str = "INFO"
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    aging: AgingSettings = field(
        default_factory=lambda: AgingSettings(buckets=())
    )
    accounts: AccountSettings = field(default_factory=AccountSettings)
    checksum: str = ""
