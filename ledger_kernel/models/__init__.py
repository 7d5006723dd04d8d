"""ORM models for the trade ledger."""

from ledger_kernel.models.account import (
    Account,
    AccountAdjustment,
    AccountKind,
    AccountTransfer,
)
from ledger_kernel.models.discount import Discount
from ledger_kernel.models.inventory import OpeningStock
from ledger_kernel.models.opening_balance import OpeningBalance
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

__all__ = [
    "Account",
    "AccountAdjustment",
    "AccountKind",
    "AccountTransfer",
    "Discount",
    "Expense",
    "OpeningBalance",
    "OpeningStock",
    "Party",
    "PartyType",
    "Payment",
    "PurchaseOrder",
    "PurchaseOrderLine",
    "Return",
    "ReturnLine",
    "ReturnType",
    "SalesOrder",
    "SalesOrderLine",
]
