"""
Module: ledger_engines.financial_standing
Responsibility:
    Compare the business's financial position for the current calendar
    month (first of month through the as-of date) against the full previous
    calendar month.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumes the same
    normalized ledgers the statements use, so a balance on the dashboard
    always equals the closing balance of the matching statement.

Metrics:
    flow (summed over the window)
        total_sales          sales - sale returns
        cost_of_goods_sold   purchases - purchase returns
        net_profit           total_sales - cost_of_goods_sold
    snapshot (as of the window's last day)
        total_receivables    sum of positive customer balances
        total_payables       sum of positive supplier balances
        cash_in_hand         cash account balances
        bank_balances        all other account balances
        po_in_transit        purchases booked but not yet received (no GRN)
        stock_value          weighted-average value of goods received
    derived
        total_liquidity      cash_in_hand + bank_balances
        net_worth            liquidity + stock + receivables + in transit - payables

Trends:
    percent = (current - previous) / |previous| * 100, one decimal place.
    Both zero -> flat, 0%.  Previous zero -> +/-100%.  For payables and
    COGS a decrease is the favourable direction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ledger_engines.running_balance import BalanceSide, RunningBalanceCalculator
from ledger_engines.stock_valuation import StockMovement, StockValuationEngine
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.decimal_math import (
    LEDGER_CONTEXT,
    ZERO,
    absolute_value,
    add_decimals,
    divide_decimals,
    max_decimal,
    multiply_decimals,
)
from ledger_kernel.domain.dtos import EntryType, LedgerEntry
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.financial_standing")

# Metrics where going down is good news
INVERSE_METRICS = frozenset({"total_payables", "cost_of_goods_sold"})


@dataclass(frozen=True)
class PurchaseDocument:
    """What the aggregator needs to know about a purchase invoice."""

    purchase_date: date
    grn_date: date | None
    total_kwd: Decimal


@dataclass(frozen=True)
class StandingInputs:
    """Everything the aggregator reads, already normalized by the caller."""

    customer_ledgers: tuple[tuple[LedgerEntry, ...], ...] = ()
    supplier_ledgers: tuple[tuple[LedgerEntry, ...], ...] = ()
    cash_ledgers: tuple[tuple[LedgerEntry, ...], ...] = ()
    bank_ledgers: tuple[tuple[LedgerEntry, ...], ...] = ()
    purchases: tuple[PurchaseDocument, ...] = ()
    stock_movements: tuple[StockMovement, ...] = ()


@dataclass(frozen=True)
class FinancialMetrics:
    start_date: date
    end_date: date
    total_receivables: Decimal = ZERO
    total_payables: Decimal = ZERO
    po_in_transit: Decimal = ZERO
    stock_value: Decimal = ZERO
    cash_in_hand: Decimal = ZERO
    bank_balances: Decimal = ZERO
    total_sales: Decimal = ZERO
    cost_of_goods_sold: Decimal = ZERO
    net_profit: Decimal = ZERO

    @property
    def total_liquidity(self) -> Decimal:
        return add_decimals(self.cash_in_hand, self.bank_balances)

    @property
    def net_worth(self) -> Decimal:
        return add_decimals(
            self.total_liquidity,
            self.stock_value,
            self.total_receivables,
            self.po_in_transit,
            -self.total_payables,
        )

    def as_dict(self) -> dict[str, Decimal]:
        values = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("start_date", "end_date")
        }
        values["total_liquidity"] = self.total_liquidity
        values["net_worth"] = self.net_worth
        return values


@dataclass(frozen=True)
class Trend:
    current: Decimal
    previous: Decimal
    change: Decimal
    percent_change: Decimal
    direction: str  # "up" | "down" | "flat"
    favorable: bool | None


@dataclass(frozen=True)
class FinancialStanding:
    as_of_date: date
    current: FinancialMetrics
    previous: FinancialMetrics
    trends: dict[str, Trend] = field(default_factory=dict)


def month_windows(as_of: date) -> tuple[tuple[date, date], tuple[date, date]]:
    """((current month start, as_of), (previous month start, previous month end))."""
    current_start = as_of.replace(day=1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end.replace(day=1)
    return (current_start, as_of), (previous_start, previous_end)


def compute_trend(current: Decimal, previous: Decimal, inverse: bool = False) -> Trend:
    change = add_decimals(current, -previous)
    if previous.is_zero():
        if current.is_zero():
            percent = ZERO
        else:
            percent = Decimal(100) if current > ZERO else Decimal(-100)
    else:
        percent = multiply_decimals(divide_decimals(change, absolute_value(previous)), 100)
    percent = percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP, context=LEDGER_CONTEXT)
    if percent.is_zero():
        percent = abs(percent)

    if change > ZERO:
        direction = "up"
    elif change < ZERO:
        direction = "down"
    else:
        direction = "flat"

    if direction == "flat":
        favorable = None
    else:
        favorable = (direction == "down") if inverse else (direction == "up")

    return Trend(
        current=current,
        previous=previous,
        change=change,
        percent_change=percent,
        direction=direction,
        favorable=favorable,
    )


class FinancialStandingAggregator:
    """
    Month-over-month financial snapshot.

    Contract:
        Pure.  The caller provides the as-of date and the normalized ledgers.
    """

    def __init__(self) -> None:
        self._party_balances = RunningBalanceCalculator(BalanceSide.DEBIT_NORMAL)
        self._account_balances = RunningBalanceCalculator(BalanceSide.CREDIT_NORMAL)
        self._stock = StockValuationEngine()

    def metrics_for_window(
        self,
        inputs: StandingInputs,
        start_date: date,
        end_date: date,
    ) -> FinancialMetrics:
        receivables = add_decimals(*(
            max_decimal(self._party_balances.balance_as_of(ledger, end_date), ZERO)
            for ledger in inputs.customer_ledgers
        ))
        payables = add_decimals(*(
            max_decimal(self._party_balances.balance_as_of(ledger, end_date), ZERO)
            for ledger in inputs.supplier_ledgers
        ))
        cash = add_decimals(*(
            self._account_balances.balance_as_of(ledger, end_date)
            for ledger in inputs.cash_ledgers
        ))
        bank = add_decimals(*(
            self._account_balances.balance_as_of(ledger, end_date)
            for ledger in inputs.bank_ledgers
        ))
        in_transit = add_decimals(*(
            p.total_kwd
            for p in inputs.purchases
            if p.purchase_date <= end_date and (p.grn_date is None or p.grn_date > end_date)
        ))
        stock = self._stock.value(
            movements=inputs.stock_movements, as_of_date=end_date
        ).total_value

        sales = self._flow(inputs.customer_ledgers, start_date, end_date,
                           EntryType.SALE, EntryType.SALE_RETURN)
        cogs = self._flow(inputs.supplier_ledgers, start_date, end_date,
                          EntryType.PURCHASE, EntryType.PURCHASE_RETURN)

        return FinancialMetrics(
            start_date=start_date,
            end_date=end_date,
            total_receivables=receivables,
            total_payables=payables,
            po_in_transit=in_transit,
            stock_value=stock,
            cash_in_hand=cash,
            bank_balances=bank,
            total_sales=sales,
            cost_of_goods_sold=cogs,
            net_profit=add_decimals(sales, -cogs),
        )

    def _flow(
        self,
        ledgers: Sequence[Sequence[LedgerEntry]],
        start_date: date,
        end_date: date,
        gross_type: EntryType,
        return_type: EntryType,
    ) -> Decimal:
        total = ZERO
        for ledger in ledgers:
            for entry in ledger:
                if not (start_date <= entry.entry_date <= end_date):
                    continue
                if entry.entry_type == gross_type:
                    total = add_decimals(total, entry.debit, -entry.credit)
                elif entry.entry_type == return_type:
                    total = add_decimals(total, -entry.credit, entry.debit)
        return total

    @traced_engine("financial_standing", "1.0", fingerprint_fields=("as_of_date",))
    def compare(self, *, inputs: StandingInputs, as_of_date: date) -> FinancialStanding:
        (cur_start, cur_end), (prev_start, prev_end) = month_windows(as_of_date)
        current = self.metrics_for_window(inputs, cur_start, cur_end)
        previous = self.metrics_for_window(inputs, prev_start, prev_end)

        current_values = current.as_dict()
        previous_values = previous.as_dict()
        trends = {
            name: compute_trend(current_values[name], previous_values[name], name in INVERSE_METRICS)
            for name in current_values
        }

        logger.info(
            "financial_standing_computed",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "net_worth": str(current.net_worth),
                "previous_net_worth": str(previous.net_worth),
            },
        )
        return FinancialStanding(
            as_of_date=as_of_date,
            current=current,
            previous=previous,
            trends=trends,
        )
