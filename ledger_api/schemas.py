"""Request bodies. Field names on the wire are camelCase."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TransferIn(_Body):
    transfer_date: Optional[dt.date] = Field(default=None, alias="transferDate")
    from_account_id: int = Field(alias="fromAccountId")
    to_account_id: int = Field(alias="toAccountId")
    amount: Optional[Decimal] = None
    notes: Optional[str] = None


class OpeningBalanceIn(_Body):
    amount: Optional[Decimal] = None
    balance_date: Optional[dt.date] = Field(default=None, alias="date")
    notes: Optional[str] = None


class DiscountIn(_Body):
    amount: Optional[Decimal] = None
    discount_date: Optional[dt.date] = Field(default=None, alias="date")
    sales_order_id: Optional[int] = Field(default=None, alias="salesOrderId")
    notes: Optional[str] = None


class AdjustmentIn(_Body):
    amount: Optional[Decimal] = None
    direction: Optional[str] = None
    adjustment_date: Optional[dt.date] = Field(default=None, alias="date")
    reason: Optional[str] = None


class AccountIn(_Body):
    name: str
    kind: str = "bank"
