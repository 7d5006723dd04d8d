"""
Module: ledger_engines.stock_valuation
Responsibility:
    Value inventory on hand at a date using weighted average cost over
    opening stock and received purchases.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Method:
    quantity   = opening + purchased - sold + sale returns - purchase returns
    avg cost   = (opening cost + purchase cost) / (opening qty + purchased qty)
    value      = max(quantity, 0) * avg cost

    Items match by name, case- and whitespace-insensitively.  An item that
    was sold but never bought has no cost basis and is valued at zero.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.decimal_math import (
    ZERO,
    add_decimals,
    divide_decimals,
    max_decimal,
    multiply_decimals,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.stock_valuation")


class MovementType(str, Enum):
    OPENING = "opening"
    PURCHASE = "purchase"
    SALE = "sale"
    SALE_RETURN = "sale_return"
    PURCHASE_RETURN = "purchase_return"


@dataclass(frozen=True)
class StockMovement:
    """
    One quantity movement of one item.

    ``cost_amount`` is the total cost of the movement and only matters for
    OPENING and PURCHASE.
    """

    item_name: str
    movement_type: MovementType
    movement_date: date
    quantity: Decimal
    cost_amount: Decimal = ZERO


@dataclass(frozen=True)
class ItemValuation:
    item_name: str
    quantity_on_hand: Decimal
    average_cost: Decimal
    value: Decimal


@dataclass(frozen=True)
class StockValuation:
    as_of_date: date
    items: tuple[ItemValuation, ...]
    total_value: Decimal


@dataclass
class _ItemTotals:
    display_name: str
    cost_quantity: Decimal = ZERO
    cost_amount: Decimal = ZERO
    on_hand: Decimal = ZERO


_QUANTITY_SIGN: dict[MovementType, int] = {
    MovementType.OPENING: 1,
    MovementType.PURCHASE: 1,
    MovementType.SALE: -1,
    MovementType.SALE_RETURN: 1,
    MovementType.PURCHASE_RETURN: -1,
}


def _item_key(name: str) -> str:
    return " ".join(name.split()).lower()


class StockValuationEngine:
    """Weighted-average stock valuation. Pure."""

    @traced_engine("stock_valuation", "1.0", fingerprint_fields=("movements", "as_of_date"))
    def value(
        self,
        *,
        movements: Sequence[StockMovement],
        as_of_date: date,
    ) -> StockValuation:
        totals: dict[str, _ItemTotals] = {}
        for movement in movements:
            if movement.movement_date > as_of_date:
                continue
            key = _item_key(movement.item_name)
            item = totals.setdefault(key, _ItemTotals(display_name=movement.item_name.strip()))
            movement_type = MovementType(movement.movement_type)
            if movement_type in (MovementType.OPENING, MovementType.PURCHASE):
                item.cost_quantity = add_decimals(item.cost_quantity, movement.quantity)
                item.cost_amount = add_decimals(item.cost_amount, movement.cost_amount)
            signed = multiply_decimals(movement.quantity, _QUANTITY_SIGN[movement_type])
            item.on_hand = add_decimals(item.on_hand, signed)

        valuations = []
        for key in sorted(totals):
            item = totals[key]
            average_cost = divide_decimals(item.cost_amount, item.cost_quantity)
            # Multiply first: untouched stock is valued at exactly its cost
            value = divide_decimals(
                multiply_decimals(item.cost_amount, max_decimal(item.on_hand, ZERO)),
                item.cost_quantity,
            )
            valuations.append(
                ItemValuation(
                    item_name=item.display_name,
                    quantity_on_hand=item.on_hand,
                    average_cost=average_cost,
                    value=value,
                )
            )

        total_value = add_decimals(*(v.value for v in valuations))
        logger.debug(
            "stock_valued",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "item_count": len(valuations),
                "total_value": str(total_value),
            },
        )
        return StockValuation(
            as_of_date=as_of_date,
            items=tuple(valuations),
            total_value=total_value,
        )
