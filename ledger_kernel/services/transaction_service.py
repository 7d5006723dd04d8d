"""
TransactionService -- record the trading documents and cash movements that
feed the party and account ledgers.

Responsibility:
    Sales invoices, purchase invoices (optionally in a foreign currency),
    payments, returns, customer discounts, expenses and opening stock.  A
    payment or expense drawn on an account moves that account's balance in
    the same flush as the record itself.

Architecture position:
    Kernel > Services -- imperative shell, owns no transaction.

Invariants enforced:
    - Every document is dated; amounts are strictly positive.
    - Document totals are computed from their lines with exact decimal
      arithmetic and stored at book scale (3 places).
    - Foreign-currency purchases keep the invoice-currency total at that
      currency's scale alongside the converted book total.
    - Purchase line totals sum exactly to the order's total_kwd.
    - A sale never takes a customer past a positive credit limit.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.decimal_math import (
    KWD_SCALE,
    calculate_line_total,
    convert_currency,
    is_positive,
    is_valid_amount,
    round_to_scale,
    sum_line_items,
    to_decimal,
)
from ledger_kernel.domain.dtos import Direction
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import (
    CreditLimitExceededError,
    DocumentNotFoundError,
    GoodsReceivedBeforePurchaseError,
    InvalidAmountError,
    InvalidChoiceError,
    InvalidDirectionError,
    MissingFieldError,
    PartyNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.discount import Discount
from ledger_kernel.models.inventory import OpeningStock
from ledger_kernel.models.party import Party, PartyType
from ledger_kernel.models.payment import Expense, Payment
from ledger_kernel.models.trade import (
    PurchaseOrder,
    PurchaseOrderLine,
    Return,
    ReturnLine,
    ReturnType,
    SalesOrder,
    SalesOrderLine,
)
from ledger_kernel.services.account_balances import AccountBalanceWriter, BalanceVerifier
from ledger_kernel.services.base import BaseService

logger = get_logger("services.transaction")

LineInput = Mapping[str, Any]

# Called with a customer id; returns the current receivable from a full replay
ReceivableLookup = Callable[[int], Decimal]


@dataclass(frozen=True)
class RecordedDocument:
    """Id and book total of a newly recorded document."""

    id: int
    kind: str
    total_kwd: Decimal
    document_date: date


class TransactionService(BaseService):
    """Write side for trading documents and cash movements."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        allow_negative_balance: bool = True,
        verifier: BalanceVerifier | None = None,
        receivable_lookup: ReceivableLookup | None = None,
    ):
        super().__init__(session, clock)
        self._receivable_lookup = receivable_lookup
        self._balances = AccountBalanceWriter(
            session,
            allow_negative_balance=allow_negative_balance,
            verifier=verifier,
        )

    def _require_party(self, party_id: int | None) -> Party:
        if party_id is None:
            raise MissingFieldError("party_id")
        party = self.session.get(Party, party_id)
        if party is None:
            raise PartyNotFoundError(party_id)
        return party

    def _clean_lines(self, lines: Iterable[LineInput], priced: bool = True) -> list[dict[str, Any]]:
        cleaned = []
        for line in lines:
            item = self._require_text(line.get("item_name"), "item_name")
            entry = {"item_name": item, "quantity": self._require_positive(line.get("quantity"), "quantity")}
            if priced:
                entry["unit_price"] = self._require_positive(line.get("unit_price"), "unit_price")
            cleaned.append(entry)
        if not cleaned:
            raise MissingFieldError("lines")
        return cleaned

    # -- Sales & purchases ---------------------------------------------------

    def record_sale(
        self,
        customer_id: int,
        sale_date: date | None,
        lines: Iterable[LineInput],
        invoice_number: str | None = None,
        salesman_id: int | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """
        Record a sales invoice; its total is the exact sum of its lines.

        Raises:
            CreditLimitExceededError: the customer has a positive credit
                limit and the sale would take their balance past it.
        """
        when = self._require_date(sale_date, "sale_date")
        items = self._clean_lines(lines)
        customer = self._require_party(customer_id)
        if salesman_id is not None:
            self._require_party(salesman_id)

        total = round_to_scale(sum_line_items(items), KWD_SCALE)
        self._check_credit_limit(customer, total)
        order = SalesOrder(
            sale_date=when,
            invoice_number=invoice_number,
            customer_id=customer_id,
            salesman_id=salesman_id,
            total_kwd=total,
            created_by=actor_id,
            lines=[SalesOrderLine(**item) for item in items],
        )
        self.session.add(order)
        self.session.flush()

        logger.info(
            "sale_recorded",
            extra={"sale_id": order.id, "party_id": customer_id, "total_kwd": str(total)},
        )
        return RecordedDocument(id=order.id, kind="sale", total_kwd=total, document_date=when)

    def _check_credit_limit(self, customer: Party, amount: Decimal) -> None:
        if self._receivable_lookup is None or customer.party_type != PartyType.CUSTOMER:
            return
        # A zero or missing limit means unlimited credit
        limit = customer.credit_limit
        if limit is None or not is_positive(limit):
            return
        current = self._receivable_lookup(customer.id)
        if current + amount > limit:
            logger.warning(
                "credit_limit_exceeded",
                extra={"party_id": customer.id, "credit_limit": str(limit),
                       "current_balance": str(current), "sale_amount": str(amount)},
            )
            raise CreditLimitExceededError(customer.id, limit, current, amount)

    def record_purchase(
        self,
        supplier_id: int,
        purchase_date: date | None,
        lines: Iterable[LineInput],
        invoice_number: str | None = None,
        fx_currency: str | None = None,
        fx_rate: object = None,
        grn_date: date | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """
        Record a purchase invoice.

        Without ``fx_currency`` the lines are priced in KWD.  With it, the
        lines are priced in that currency and ``fx_rate`` converts one unit
        of it to KWD; lines are stored converted to KWD.
        """
        when = self._require_date(purchase_date, "purchase_date")
        items = self._clean_lines(lines)
        self._require_party(supplier_id)
        if grn_date is not None:
            self._require_received_after_purchase(grn_date, when)

        total_fx = None
        rate = None
        currency = None
        if fx_currency:
            invoiced = Money.of(sum_line_items(items), fx_currency).round()
            currency, total_fx = invoiced.currency, invoiced.amount
            rate = self._require_positive_rate(fx_rate)
            total = round_to_scale(convert_currency(total_fx, rate), KWD_SCALE)
            self._cost_lines(items, rate, total)
        else:
            total = self._cost_lines(items)

        order = PurchaseOrder(
            purchase_date=when,
            invoice_number=invoice_number,
            supplier_id=supplier_id,
            total_kwd=total,
            fx_currency=currency,
            fx_rate=rate,
            total_fx=total_fx,
            grn_date=grn_date,
            created_by=actor_id,
            lines=[PurchaseOrderLine(**item) for item in items],
        )
        self.session.add(order)
        self.session.flush()

        logger.info(
            "purchase_recorded",
            extra={
                "purchase_id": order.id,
                "party_id": supplier_id,
                "total_kwd": str(total),
                "fx_currency": currency,
                "in_transit": grn_date is None,
            },
        )
        return RecordedDocument(id=order.id, kind="purchase", total_kwd=total, document_date=when)

    @staticmethod
    def _require_positive_rate(value: object) -> Decimal:
        # Rates are stored to four places, amounts to book scale
        if value is None or not is_valid_amount(value) or not is_positive(value):
            raise InvalidAmountError(value, "fx_rate")
        return round_to_scale(to_decimal(value), 4)

    @staticmethod
    def _cost_lines(
        items: list[dict[str, Any]],
        rate: Decimal | None = None,
        total: Decimal | None = None,
    ) -> Decimal:
        """
        Set each line's book-scale ``line_total`` (and KWD ``unit_price``).

        Lines are converted and rounded one by one; whatever they miss the
        converted invoice ``total`` by goes onto the largest line.  Without
        ``total`` the order total is the sum of the rounded lines.  The lines
        always add up to the returned total.
        """
        for item in items:
            cost = calculate_line_total(item["quantity"], item["unit_price"])
            if rate is not None:
                cost = convert_currency(cost, rate)
                item["unit_price"] = round_to_scale(convert_currency(item["unit_price"], rate), KWD_SCALE)
            item["line_total"] = round_to_scale(cost, KWD_SCALE)

        lines_sum = sum((item["line_total"] for item in items), Decimal("0"))
        if total is None:
            return lines_sum
        largest = max(items, key=lambda item: item["line_total"])
        largest["line_total"] += total - lines_sum
        return total

    @staticmethod
    def _require_received_after_purchase(grn_date: date, purchase_date: date | None) -> None:
        # Undated legacy purchases have nothing to compare against
        if purchase_date is not None and grn_date < purchase_date:
            raise GoodsReceivedBeforePurchaseError(grn_date, purchase_date)

    def receive_purchase(self, purchase_id: int, grn_date: date | None) -> None:
        """Mark a purchase's goods as received; they leave transit and enter stock."""
        when = self._require_date(grn_date, "grn_date")
        order = self.session.get(PurchaseOrder, purchase_id)
        if order is None:
            raise DocumentNotFoundError("purchase", purchase_id)
        self._require_received_after_purchase(when, order.purchase_date)
        order.grn_date = when
        self.session.flush()
        logger.info("purchase_received", extra={"purchase_id": purchase_id, "grn_date": when.isoformat()})

    # -- Returns -------------------------------------------------------------

    def record_return(
        self,
        party_id: int,
        return_type: ReturnType | str,
        return_date: date | None,
        total_kwd: object,
        lines: Iterable[LineInput] = (),
        return_number: str | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """Record goods coming back from a customer or going back to a supplier."""
        kind = self._require_choice(return_type, ReturnType, "return_type")
        when = self._require_date(return_date, "return_date")
        total = self._require_positive(total_kwd, "total_kwd")
        items = list(lines)
        cleaned = self._clean_lines(items, priced=False) if items else []
        self._require_party(party_id)

        record = Return(
            return_date=when,
            return_number=return_number,
            return_type=kind.value,
            party_id=party_id,
            total_kwd=total,
            notes=notes,
            created_by=actor_id,
            lines=[ReturnLine(**item) for item in cleaned],
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "return_recorded",
            extra={"return_id": record.id, "party_id": party_id,
                   "return_type": kind.value, "total_kwd": str(total)},
        )
        return RecordedDocument(id=record.id, kind=kind.value, total_kwd=total, document_date=when)

    def record_discount(
        self,
        customer_id: int,
        amount: object,
        discount_date: date | None,
        sales_order_id: int | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """
        Grant a customer a discount, optionally against one of their invoices.

        The discount is credited to the customer's ledger; no account moves.

        Raises:
            InvalidChoiceError: the party is not a customer.
            DocumentNotFoundError: ``sales_order_id`` is not a sale billed to
                this customer.
        """
        value = self._require_positive(amount)
        when = self._require_date(discount_date, "discount_date")
        customer = self._require_party(customer_id)
        if customer.party_type != PartyType.CUSTOMER:
            raise InvalidChoiceError("party_type", customer.party_type, (PartyType.CUSTOMER.value,))
        if sales_order_id is not None:
            order = self.session.get(SalesOrder, sales_order_id)
            if order is None or order.customer_id != customer_id:
                raise DocumentNotFoundError("sale", sales_order_id)

        discount = Discount(
            discount_date=when,
            party_id=customer_id,
            sales_order_id=sales_order_id,
            amount=value,
            notes=notes,
            created_by=actor_id,
        )
        self.session.add(discount)
        self.session.flush()

        logger.info(
            "discount_recorded",
            extra={"discount_id": discount.id, "party_id": customer_id,
                   "sales_order_id": sales_order_id, "amount": str(value)},
        )
        return RecordedDocument(id=discount.id, kind="discount", total_kwd=value, document_date=when)

    # -- Cash movements ----------------------------------------------------

    def record_payment(
        self,
        direction: Direction | str,
        amount: object,
        payment_date: date | None,
        party_id: int | None = None,
        account_id: int | None = None,
        reference: str | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """
        Record money received (IN) or paid (OUT).

        With ``account_id`` the account balance moves by the same amount:
        credited for IN, debited for OUT.
        """
        try:
            flow = Direction(str(direction).upper())
        except ValueError:
            raise InvalidDirectionError(direction) from None
        value = self._require_positive(amount)
        when = self._require_date(payment_date, "payment_date")
        if party_id is not None:
            self._require_party(party_id)

        with LogContext.bind(actor_id=actor_id, party_id=party_id,
                             account_id=account_id, operation="payment"):
            account = None
            if account_id is not None:
                account = self._balances.lock(account_id)[account_id]
                if flow == Direction.IN:
                    self._balances.credit(account, value)
                else:
                    self._balances.debit(account, value)

            payment = Payment(
                payment_date=when,
                direction=flow.value,
                party_id=party_id,
                account_id=account_id,
                amount=value,
                reference=reference,
                notes=notes,
                created_by=actor_id,
            )
            self.session.add(payment)
            self.session.flush()
            if account is not None:
                self._balances.verify(account_id)

            logger.info(
                "payment_recorded",
                extra={"payment_id": payment.id, "direction": flow.value, "amount": str(value)},
            )
        return RecordedDocument(id=payment.id, kind="payment", total_kwd=value, document_date=when)

    def record_expense(
        self,
        category: str,
        amount: object,
        expense_date: date | None,
        account_id: int | None = None,
        description: str | None = None,
        actor_id: str | None = None,
    ) -> RecordedDocument:
        """Record an operating expense, debiting ``account_id`` when given."""
        label = self._require_text(category, "category")
        value = self._require_positive(amount)
        when = self._require_date(expense_date, "expense_date")

        with LogContext.bind(actor_id=actor_id, account_id=account_id, operation="expense"):
            if account_id is not None:
                account = self._balances.lock(account_id)[account_id]
                self._balances.debit(account, value)

            expense = Expense(
                expense_date=when,
                account_id=account_id,
                category=label,
                amount=value,
                description=description,
                created_by=actor_id,
            )
            self.session.add(expense)
            self.session.flush()
            if account_id is not None:
                self._balances.verify(account_id)

            logger.info(
                "expense_recorded",
                extra={"expense_id": expense.id, "category": label, "amount": str(value)},
            )
        return RecordedDocument(id=expense.id, kind="expense", total_kwd=value, document_date=when)

    def record_opening_stock(
        self,
        item_name: str,
        quantity: object,
        unit_cost: object,
        stock_date: date | None,
        actor_id: str | None = None,
    ) -> int:
        """Record inventory on hand at go-live; returns the new row id."""
        stock = OpeningStock(
            item_name=self._require_text(item_name, "item_name"),
            quantity=self._require_positive(quantity, "quantity"),
            unit_cost=self._require_positive(unit_cost, "unit_cost"),
            stock_date=self._require_date(stock_date, "stock_date"),
            created_by=actor_id,
        )
        self.session.add(stock)
        self.session.flush()
        return stock.id
