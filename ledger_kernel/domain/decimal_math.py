"""
Decimal arithmetic -- the single numeric path for every money value.

Responsibility:
    Converts loosely-typed inputs (form strings, JSON numbers, NULL columns)
    into exact ``Decimal`` values and provides the arithmetic, comparison,
    rounding and formatting primitives used by the normalizer, the running
    balance calculator, aging and the financial standing aggregator.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Binary floating point never reaches a money value. Floats are converted
      through their shortest ``repr`` so 0.1 becomes Decimal("0.1").
    - Addition, subtraction and multiplication are exact (38 significant
      digits, far beyond NUMERIC(12, 3)).
    - Rounding happens only where a caller asks for it: ``round_to_scale``
      and the ``format_*`` functions, always ROUND_HALF_UP.

Failure modes:
    None. Unparseable input, NaN, infinities and a zero divisor all resolve
    to ``Decimal(0)``; the caller never sees an exception from this module.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from typing import Any, Union

DecimalLike = Union[Decimal, int, float, str, None]

KWD_SCALE = 3
FOREIGN_SCALE = 2
ZERO = Decimal("0")

LEDGER_CONTEXT = Context(
    prec=38,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def to_decimal(value: DecimalLike) -> Decimal:
    """
    Convert any supported input into an exact Decimal.

    ``None``, ``""``, whitespace, unparseable text, NaN and infinities all
    become ``Decimal(0)``.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, bool):
        return ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return ZERO
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO
    return parsed if parsed.is_finite() else ZERO


def add_decimals(*values: DecimalLike) -> Decimal:
    """Exact sum of any number of values."""
    total = ZERO
    for value in values:
        total = LEDGER_CONTEXT.add(total, to_decimal(value))
    return total


def subtract_decimals(a: DecimalLike, b: DecimalLike) -> Decimal:
    return LEDGER_CONTEXT.subtract(to_decimal(a), to_decimal(b))


def multiply_decimals(a: DecimalLike, b: DecimalLike) -> Decimal:
    return LEDGER_CONTEXT.multiply(to_decimal(a), to_decimal(b))


def divide_decimals(a: DecimalLike, b: DecimalLike) -> Decimal:
    """Divide ``a`` by ``b``; a zero divisor yields zero instead of raising."""
    divisor = to_decimal(b)
    if divisor.is_zero():
        return ZERO
    return LEDGER_CONTEXT.divide(to_decimal(a), divisor)


def compare_decimals(a: DecimalLike, b: DecimalLike) -> int:
    """Return -1, 0 or 1."""
    left, right = to_decimal(a), to_decimal(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def max_decimal(*values: DecimalLike) -> Decimal:
    if not values:
        return ZERO
    return max(to_decimal(v) for v in values)


def min_decimal(*values: DecimalLike) -> Decimal:
    if not values:
        return ZERO
    return min(to_decimal(v) for v in values)


def absolute_value(value: DecimalLike) -> Decimal:
    return abs(to_decimal(value))


def _quantum(scale: int) -> Decimal:
    return Decimal(1).scaleb(-scale)


def round_to_scale(value: DecimalLike, scale: int = KWD_SCALE) -> Decimal:
    """Round half-up to ``scale`` places. Negative zero is normalized to zero."""
    rounded = to_decimal(value).quantize(
        _quantum(scale), rounding=ROUND_HALF_UP, context=LEDGER_CONTEXT
    )
    if rounded.is_zero():
        return abs(rounded)
    return rounded


def format_currency(value: DecimalLike, decimals: int = KWD_SCALE) -> str:
    """Render with exactly ``decimals`` fraction digits, no grouping."""
    return f"{round_to_scale(value, decimals):f}"


def format_kwd(value: DecimalLike) -> str:
    return format_currency(value, KWD_SCALE)


def parse_decimal_input(text: str | None) -> str:
    """
    Clean free-form user input into a parseable decimal string.

    Anything but digits, ``.`` and ``-`` is dropped; when more than one dot
    survives, every dot after the first is removed ("1.2.3" -> "1.23").
    """
    if not text:
        return ""
    cleaned = _NON_NUMERIC.sub("", text)
    head, sep, tail = cleaned.partition(".")
    if sep and "." in tail:
        return head + "." + tail.replace(".", "")
    return cleaned


def is_valid_amount(value: DecimalLike) -> bool:
    """True when ``value`` is present and parses to a finite number."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, int):
        return True
    text = str(value).strip()
    if not text:
        return False
    try:
        return Decimal(text).is_finite()
    except (InvalidOperation, ValueError):
        return False


def is_positive(value: DecimalLike) -> bool:
    return to_decimal(value) > ZERO


def is_zero(value: DecimalLike) -> bool:
    return to_decimal(value).is_zero()


# ---------------------------------------------------------------------------
# Line items, VAT and conversion
# ---------------------------------------------------------------------------


def calculate_line_total(quantity: DecimalLike, unit_price: DecimalLike) -> Decimal:
    return multiply_decimals(quantity, unit_price)


def sum_line_items(items: Iterable[Mapping[str, Any]]) -> Decimal:
    """
    Sum invoice lines exactly.

    A line carrying ``total`` contributes that total; otherwise it
    contributes ``quantity * unit_price``.
    """
    total = ZERO
    for item in items:
        if item.get("total") is not None:
            line = to_decimal(item["total"])
        else:
            line = calculate_line_total(item.get("quantity"), item.get("unit_price"))
        total = LEDGER_CONTEXT.add(total, line)
    return total


def calculate_vat(amount: DecimalLike, vat_rate: DecimalLike = 0) -> Decimal:
    """VAT portion of ``amount`` at ``vat_rate`` percent."""
    return divide_decimals(multiply_decimals(amount, vat_rate), 100)


def net_from_gross(gross: DecimalLike, vat_rate: DecimalLike = 0) -> Decimal:
    rate = to_decimal(vat_rate)
    if rate.is_zero():
        return to_decimal(gross)
    return divide_decimals(gross, add_decimals(1, divide_decimals(rate, 100)))


def gross_from_net(net: DecimalLike, vat_rate: DecimalLike = 0) -> Decimal:
    rate = to_decimal(vat_rate)
    if rate.is_zero():
        return to_decimal(net)
    return multiply_decimals(net, add_decimals(1, divide_decimals(rate, 100)))


def convert_currency(amount: DecimalLike, exchange_rate: DecimalLike) -> Decimal:
    """Foreign amount times rate, unrounded."""
    return multiply_decimals(amount, exchange_rate)
