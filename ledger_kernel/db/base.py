"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the integer primary key convention, the exact decimal column type, the type
    annotation map, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer primary keys: ids are sequential, and statement ordering uses
      the id as the same-day tie-breaker.
    - Decimal exactness: every money column is an ExactDecimal.  PostgreSQL
      stores NUMERIC(p, s); other backends store the canonical decimal string,
      so no float ever sits between the application and the disk.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class ExactDecimal(TypeDecorator):
    """
    Fixed-scale decimal column that never round-trips through float.

    Contract:
        Values are rounded half-up to ``scale`` on write (the same thing a
        PostgreSQL NUMERIC(p, s) column does) and always come back as
        ``Decimal``.

    Guarantees:
        - PostgreSQL: native NUMERIC(precision, scale).
        - Any other dialect: VARCHAR holding ``format(value, "f")``.
        - process_result_value returns Decimal or None, never float.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 12, scale: int = 3):
        super().__init__(precision, scale)
        self.precision = precision
        self.scale = scale

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))
        # sign + decimal point
        return dialect.type_descriptor(String(self.precision + 2))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = value.quantize(Decimal(1).scaleb(-self.scale), rounding=ROUND_HALF_UP)
        if dialect.name == "postgresql":
            return value
        return format(value, "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrement integer primary key.
        - Decimal maps to ExactDecimal(12, 3) -- KWD amounts.
        - datetime maps to DateTime(timezone=True); date maps to Date.
    """

    type_annotation_map: ClassVar[dict] = {
        # Book-currency amounts: 12 digits, 3 decimal places (fils)
        Decimal: ExactDecimal(12, 3),
        datetime: DateTime(timezone=True),
        date: Date,
        int: Integer,
    }

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )


class TrackedBase(Base):
    """
    Abstract base with creation timestamp and actor tracking.

    Guarantees:
        - created_at is set to server NOW() on INSERT.
        - created_by is the acting user id when the write path knows it.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    created_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
