"""
Module: ledger_kernel.models.trade
Responsibility: ORM persistence for the trading documents that create
    receivables and payables: sales invoices, purchase invoices and returns,
    each with its item lines.
Architecture position: Kernel > Models.  May import from db/ only.

Dates are nullable because legacy imports sometimes arrived without one.
Such rows are kept but are excluded from statements (the normalizer logs
them); every write path in TransactionService requires a date.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, TrackedBase
from ledger_kernel.db.types import (
    Amount,
    CurrencyCode,
    FxAmount,
    FxRate,
    LongText,
    Quantity,
    ShortCode,
)


class ReturnType(str, Enum):
    """Which side of the trade goods are coming back from."""

    SALE_RETURN = "sale_return"
    PURCHASE_RETURN = "purchase_return"


class SalesOrder(TrackedBase):
    """A sales invoice: increases the customer's receivable by total_kwd."""

    __tablename__ = "sales_orders"

    __table_args__ = (
        Index("idx_sale_customer", "customer_id"),
        Index("idx_sale_salesman", "salesman_id"),
        Index("idx_sale_date", "sale_date"),
    )

    sale_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    invoice_number: Mapped[str | None] = mapped_column(
        ShortCode,
        nullable=True,
    )

    customer_id: Mapped[int] = mapped_column(
        ForeignKey("parties.id"),
        nullable=False,
    )

    # Salesman who booked the sale, if any
    salesman_id: Mapped[int | None] = mapped_column(
        ForeignKey("parties.id"),
        nullable=True,
    )

    total_kwd: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    lines: Mapped[list["SalesOrderLine"]] = relationship(
        back_populates="sales_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<SalesOrder {self.id}: {self.invoice_number} {self.total_kwd}>"


class SalesOrderLine(Base):
    """One item line on a sales invoice."""

    __tablename__ = "sales_order_lines"

    sales_order_id: Mapped[int] = mapped_column(
        ForeignKey("sales_orders.id"),
        nullable=False,
    )

    item_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    sales_order: Mapped[SalesOrder] = relationship(back_populates="lines")


class PurchaseOrder(TrackedBase):
    """
    A purchase invoice: increases the supplier's payable by total_kwd.

    Foreign-currency invoices keep the supplier-side total and the rate used;
    total_kwd is the book amount.  Goods count as received (in stock) from
    grn_date; before that the invoice is "in transit".
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        Index("idx_purchase_supplier", "supplier_id"),
        Index("idx_purchase_date", "purchase_date"),
    )

    purchase_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    invoice_number: Mapped[str | None] = mapped_column(
        ShortCode,
        nullable=True,
    )

    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("parties.id"),
        nullable=False,
    )

    total_kwd: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    fx_currency: Mapped[str | None] = mapped_column(
        CurrencyCode,
        nullable=True,
    )

    fx_rate: Mapped[Decimal | None] = mapped_column(
        FxRate,
        nullable=True,
    )

    total_fx: Mapped[Decimal | None] = mapped_column(
        FxAmount,
        nullable=True,
    )

    # Goods received note date; NULL while goods are in transit
    grn_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    lines: Mapped[list["PurchaseOrderLine"]] = relationship(
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder {self.id}: {self.invoice_number} {self.total_kwd}>"


class PurchaseOrderLine(Base):
    """One item line on a purchase invoice, priced in KWD."""

    __tablename__ = "purchase_order_lines"

    purchase_order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id"),
        nullable=False,
    )

    item_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    # Book-scale cost of the line; the lines of an order sum to its total_kwd
    line_total: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    purchase_order: Mapped[PurchaseOrder] = relationship(back_populates="lines")


class Return(TrackedBase):
    """Goods returned by a customer (sale return) or to a supplier (purchase return)."""

    __tablename__ = "returns"

    __table_args__ = (
        Index("idx_return_party", "party_id"),
        Index("idx_return_type", "return_type"),
    )

    return_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    return_number: Mapped[str | None] = mapped_column(
        ShortCode,
        nullable=True,
    )

    return_type: Mapped[ReturnType] = mapped_column(
        String(20),
        nullable=False,
    )

    party_id: Mapped[int] = mapped_column(
        ForeignKey("parties.id"),
        nullable=False,
    )

    total_kwd: Mapped[Decimal] = mapped_column(
        Amount,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        LongText,
        nullable=True,
    )

    lines: Mapped[list["ReturnLine"]] = relationship(
        back_populates="return_record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Return {self.id}: {self.return_type} {self.total_kwd}>"


class ReturnLine(Base):
    """Item quantity coming back on a return."""

    __tablename__ = "return_lines"

    return_id: Mapped[int] = mapped_column(
        ForeignKey("returns.id"),
        nullable=False,
    )

    item_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    return_record: Mapped[Return] = relationship(back_populates="lines")
