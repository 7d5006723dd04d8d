"""
Money: an exact amount tied to its currency.

Used where the currency has to travel with the figure, chiefly supplier
invoices priced in a foreign currency before conversion to KWD.  Display
scale follows the currency (KWD 3 places, USD 2, JPY 0).  Arithmetic and
comparison across two currencies raise CurrencyMismatchError; no
conversion happens here (see ``decimal_math.convert_currency``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import total_ordering

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.decimal_math import (
    DecimalLike,
    format_currency,
    parse_decimal_input,
    to_decimal,
)
from ledger_kernel.exceptions import CurrencyMismatchError

BOOK_CURRENCY = "KWD"


@total_ordering
@dataclass(frozen=True, slots=True)
class Money:
    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        # to_decimal reads floats via repr(), so 0.1 stays 0.1
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))

    @classmethod
    def of(cls, amount: DecimalLike, currency: str = BOOK_CURRENCY) -> Money:
        return cls(amount, currency)

    @classmethod
    def zero(cls, currency: str = BOOK_CURRENCY) -> Money:
        return cls(Decimal("0"), currency)

    @classmethod
    def parse(cls, text: str, currency: str = BOOK_CURRENCY) -> Money:
        """Read back display text such as "1,234.500"."""
        return cls(parse_decimal_input(text), currency)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount.is_zero()

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Quantize to the currency's display scale. Nothing rounds implicitly."""
        quantum = Decimal(1).scaleb(-self.decimal_places)
        return self._with(self.amount.quantize(quantum, rounding=rounding))

    def format(self) -> str:
        return format_currency(self.amount, self.decimal_places)

    def _with(self, amount: Decimal) -> Money:
        return Money(amount, self.currency)

    def _same_currency_amount(self, other: object) -> Decimal | None:
        if not isinstance(other, Money):
            return None
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return other.amount

    def __add__(self, other: Money) -> Money:
        amount = self._same_currency_amount(other)
        return NotImplemented if amount is None else self._with(self.amount + amount)

    def __sub__(self, other: Money) -> Money:
        amount = self._same_currency_amount(other)
        return NotImplemented if amount is None else self._with(self.amount - amount)

    def __mul__(self, factor: DecimalLike) -> Money:
        if isinstance(factor, (Money, bool, float)):
            return NotImplemented
        return self._with(self.amount * to_decimal(factor))

    __rmul__ = __mul__

    def __neg__(self) -> Money:
        return self._with(-self.amount)

    def __abs__(self) -> Money:
        return self._with(abs(self.amount))

    def __lt__(self, other: Money) -> bool:
        amount = self._same_currency_amount(other)
        return NotImplemented if amount is None else self.amount < amount

    def __str__(self) -> str:
        return f"{self.format()} {self.currency}"
