"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write service in the kernel layer.  All concrete services inherit
    from BaseService, receiving a SQLAlchemy ``Session`` that they use via
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (the API request scope, ``session_scope()`` or a test fixture) owns
      commit/rollback, so a failed post-write check undoes the whole write.
    - Validation before mutation: every input check runs before the first
      ``session.add()`` or balance change.

Failure modes:
    - If a subclass calls ``session.commit()`` itself, a transfer that
      fails its balance verification would leave half of its effect behind.
"""

from abc import ABC
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.decimal_math import (
    KWD_SCALE,
    is_positive,
    is_valid_amount,
    is_zero,
    round_to_scale,
    to_decimal,
)
from ledger_kernel.exceptions import (
    ExcessPrecisionError,
    InvalidAmountError,
    InvalidChoiceError,
    MissingFieldError,
)

ModelType = TypeVar("ModelType", bound=Base)
EnumType = TypeVar("EnumType", bound=Enum)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only methods -- those belong in
          ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    # -- Input checks shared by every write path ----------------------------

    @staticmethod
    def _book_amount(value: object, field: str) -> Decimal:
        """Parse ``value`` as a book-scale amount; extra decimal places are refused, not rounded."""
        if value is None or not is_valid_amount(value):
            raise InvalidAmountError(value, field)
        amount = to_decimal(value)
        if amount != round_to_scale(amount):
            raise ExcessPrecisionError(value, field, KWD_SCALE)
        return round_to_scale(amount)

    @classmethod
    def _require_positive(cls, value: object, field: str = "amount") -> Decimal:
        """Parse ``value`` as an amount that must be strictly positive."""
        amount = cls._book_amount(value, field)
        if not is_positive(amount):
            raise InvalidAmountError(value, field)
        return amount

    @classmethod
    def _require_nonzero(cls, value: object, field: str = "amount") -> Decimal:
        """Parse ``value`` as a signed amount at book scale that must not be zero."""
        amount = cls._book_amount(value, field)
        if is_zero(amount):
            raise InvalidAmountError(value, field)
        return amount

    @staticmethod
    def _require_date(value: date | None, field: str = "date") -> date:
        if value is None:
            raise MissingFieldError(field)
        return value

    @staticmethod
    def _require_text(value: str | None, field: str) -> str:
        if value is None or not value.strip():
            raise MissingFieldError(field)
        return value.strip()

    @staticmethod
    def _require_choice(value: object, choices: type[EnumType], field: str) -> EnumType:
        """Coerce ``value`` into the ``choices`` enum, case-insensitively."""
        if isinstance(value, choices):
            return value
        try:
            return choices(str(value).strip().lower())
        except ValueError:
            raise InvalidChoiceError(field, value, tuple(c.value for c in choices)) from None
