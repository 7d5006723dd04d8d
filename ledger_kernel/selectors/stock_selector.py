"""
Module: ledger_kernel.selectors.stock_selector
Responsibility: Read purchase invoices and item movements for the financial
    standing report.
Architecture position: Kernel > Selectors.

Purchased goods only enter stock once received (``grn_date``); before that
they are in transit and counted separately, never both.  A received
purchase adds its stored line totals to stock, which sum to the total_kwd
counted while in transit.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select

from ledger_kernel.domain.decimal_math import calculate_line_total
from ledger_kernel.models.inventory import OpeningStock
from ledger_kernel.models.trade import PurchaseOrder, Return, ReturnType, SalesOrder
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class PurchaseRow:
    purchase_date: date
    grn_date: date | None
    total_kwd: Decimal


@dataclass(frozen=True)
class MovementRow:
    """movement_type is one of opening / purchase / sale / sale_return / purchase_return."""

    item_name: str
    movement_type: str
    movement_date: date
    quantity: Decimal
    cost_amount: Decimal = Decimal("0")


class StockSelector(BaseSelector):
    """Read-side access to purchases and stock movements."""

    def purchases(self) -> list[PurchaseRow]:
        stmt = (
            select(PurchaseOrder)
            .where(PurchaseOrder.purchase_date.is_not(None))
            .order_by(PurchaseOrder.id)
        )
        return [
            PurchaseRow(purchase_date=po.purchase_date, grn_date=po.grn_date, total_kwd=po.total_kwd)
            for po in self.session.execute(stmt).scalars()
        ]

    def movements(self) -> list[MovementRow]:
        rows: list[MovementRow] = []

        for stock in self.session.execute(select(OpeningStock).order_by(OpeningStock.id)).scalars():
            rows.append(MovementRow(
                item_name=stock.item_name,
                movement_type="opening",
                movement_date=stock.stock_date,
                quantity=stock.quantity,
                cost_amount=calculate_line_total(stock.quantity, stock.unit_cost),
            ))

        received = select(PurchaseOrder).where(PurchaseOrder.grn_date.is_not(None)).order_by(PurchaseOrder.id)
        for po in self.session.execute(received).scalars():
            for line in po.lines:
                rows.append(MovementRow(
                    item_name=line.item_name,
                    movement_type="purchase",
                    movement_date=po.grn_date,
                    quantity=line.quantity,
                    cost_amount=line.line_total,
                ))

        sold = select(SalesOrder).where(SalesOrder.sale_date.is_not(None)).order_by(SalesOrder.id)
        for so in self.session.execute(sold).scalars():
            for line in so.lines:
                rows.append(MovementRow(
                    item_name=line.item_name,
                    movement_type="sale",
                    movement_date=so.sale_date,
                    quantity=line.quantity,
                ))

        returned = select(Return).where(Return.return_date.is_not(None)).order_by(Return.id)
        for ret in self.session.execute(returned).scalars():
            movement_type = (
                "sale_return" if ret.return_type == ReturnType.SALE_RETURN.value else "purchase_return"
            )
            for line in ret.lines:
                rows.append(MovementRow(
                    item_name=line.item_name,
                    movement_type=movement_type,
                    movement_date=ret.return_date,
                    quantity=line.quantity,
                ))

        return rows
