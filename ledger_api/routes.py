"""
HTTP endpoints for the ledger.

Each handler opens one ``ledger_scope``: the request's work commits as a
unit or rolls back entirely, and LedgerError subclasses are turned into
status codes by the handlers registered in ``ledger_api.app``.  Request
bodies use the camelCase field names of ``ledger_api.schemas``; every
response goes through ``ledger_api.serializers`` so money always leaves as
a fixed-scale string.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from ledger_api import serializers
from ledger_api.deps import actor_id, ledger_scope
from ledger_api.schemas import AccountIn, AdjustmentIn, DiscountIn, OpeningBalanceIn, TransferIn
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_services.export import export_party_statement_xlsx, statement_filename

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# -- Accounts ----------------------------------------------------------------


@router.get("/accounts", tags=["accounts"])
def list_accounts(request: Request):
    with ledger_scope(request) as ledger:
        return [serializers.account(a) for a in ledger.selector.list_accounts()]


@router.get("/accounts/{account_id}", tags=["accounts"])
def get_account(account_id: int, request: Request):
    with ledger_scope(request) as ledger:
        return serializers.account(ledger.accounts.get_by_id(account_id))


@router.post("/accounts", status_code=201, tags=["accounts"])
def create_account(data: AccountIn, request: Request, actor: Optional[str] = Depends(actor_id)):
    with ledger_scope(request) as ledger:
        return serializers.account(ledger.accounts.create_account(data.name, data.kind, actor_id=actor))


@router.delete("/accounts/{account_id}", status_code=204, tags=["accounts"])
def delete_account(account_id: int, request: Request):
    with ledger_scope(request) as ledger:
        ledger.accounts.delete_account(account_id)
    return Response(status_code=204)


@router.get("/accounts/{account_id}/transactions", tags=["accounts"])
def account_transactions(
    account_id: int,
    request: Request,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
):
    with ledger_scope(request) as ledger:
        result = ledger.statements.account_statement(account_id, startDate, endDate)
        return serializers.account_statement(result)


@router.get("/accounts/{account_id}/reconciliation", tags=["accounts"])
def account_reconciliation(account_id: int, request: Request):
    with ledger_scope(request) as ledger:
        return serializers.reconciliation(ledger.statements.reconcile_account(account_id))


@router.post("/accounts/{account_id}/opening-balance", status_code=201, tags=["accounts"])
def account_opening_balance(
    account_id: int,
    data: OpeningBalanceIn,
    request: Request,
    actor: Optional[str] = Depends(actor_id),
):
    with ledger_scope(request) as ledger:
        account = ledger.accounts.add_opening_balance(
            account_id, data.amount, data.balance_date, data.notes, actor_id=actor
        )
        return serializers.account(account)


@router.post("/accounts/{account_id}/adjustment", status_code=201, tags=["accounts"])
def account_adjustment(
    account_id: int,
    data: AdjustmentIn,
    request: Request,
    actor: Optional[str] = Depends(actor_id),
):
    with ledger_scope(request) as ledger:
        account = ledger.accounts.add_adjustment(
            account_id,
            data.amount,
            data.direction,
            data.adjustment_date,
            data.reason,
            actor_id=actor,
        )
        return serializers.account(account)


# -- Transfers -------------------------------------------------------------


@router.get("/account-transfers", tags=["transfers"])
def list_transfers(request: Request, accountId: Optional[int] = None):
    with ledger_scope(request) as ledger:
        if accountId is not None and ledger.selector.find_account(accountId) is None:
            raise AccountNotFoundError(accountId)
        return [serializers.transfer_info(t) for t in ledger.selector.list_transfers(accountId)]


@router.post("/account-transfers", status_code=201, tags=["transfers"])
def create_transfer(data: TransferIn, request: Request, actor: Optional[str] = Depends(actor_id)):
    with ledger_scope(request) as ledger:
        result = ledger.transfers.transfer(
            data.from_account_id,
            data.to_account_id,
            data.amount,
            data.transfer_date,
            data.notes,
            actor_id=actor,
        )
        return serializers.transfer(result)


# -- Parties -----------------------------------------------------------------


@router.post("/parties/{party_id}/opening-balance", status_code=201, tags=["parties"])
def party_opening_balance(
    party_id: int,
    data: OpeningBalanceIn,
    request: Request,
    actor: Optional[str] = Depends(actor_id),
):
    with ledger_scope(request) as ledger:
        party = ledger.parties.add_opening_balance(
            party_id, data.amount, data.balance_date, data.notes, actor_id=actor
        )
        return {"id": party.id, "name": party.name, "partyType": party.party_type}


@router.post("/parties/{party_id}/discounts", status_code=201, tags=["parties"])
def party_discount(
    party_id: int,
    data: DiscountIn,
    request: Request,
    actor: Optional[str] = Depends(actor_id),
):
    with ledger_scope(request) as ledger:
        doc = ledger.transactions.record_discount(
            party_id, data.amount, data.discount_date,
            sales_order_id=data.sales_order_id, notes=data.notes, actor_id=actor,
        )
        return serializers.recorded_document(doc)


# -- Reports -------------------------------------------------------------------


@router.get("/reports/customer-aging", tags=["reports"])
def customer_aging(request: Request, asOfDate: Optional[date] = None):
    with ledger_scope(request) as ledger:
        return serializers.aging_report(ledger.reporting.customer_aging(asOfDate))


@router.get("/reports/party-statement/{party_id}", tags=["reports"])
def party_statement(
    party_id: int,
    request: Request,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
):
    with ledger_scope(request) as ledger:
        result = ledger.statements.party_statement(party_id, startDate, endDate)
        return serializers.party_statement(result)


@router.get("/reports/party-statement/{party_id}/export", tags=["reports"])
def party_statement_export(
    party_id: int,
    request: Request,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
):
    with ledger_scope(request) as ledger:
        result = ledger.statements.party_statement(party_id, startDate, endDate)
        content = export_party_statement_xlsx(result)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{statement_filename(result)}"'},
    )


@router.get("/financial-standing", tags=["reports"])
def financial_standing(request: Request, asOfDate: Optional[date] = None):
    with ledger_scope(request) as ledger:
        return serializers.financial_standing(ledger.reporting.financial_standing(asOfDate))
