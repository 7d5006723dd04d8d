"""
DTO -> JSON.

Money always leaves as a fixed-scale decimal string ("120.000"), never a
float; dates as ISO strings.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ledger_engines.aging import AgingReport, CustomerAging
from ledger_engines.financial_standing import FinancialMetrics, FinancialStanding, Trend
from ledger_engines.running_balance import Statement
from ledger_kernel.domain.decimal_math import KWD_SCALE, format_currency
from ledger_kernel.domain.dtos import AccountInfo, SkippedRecord, TransferInfo
from ledger_kernel.services.transaction_service import RecordedDocument
from ledger_kernel.services.transfer_service import TransferResult
from ledger_services.statement_service import AccountStatement, PartyStatement, Reconciliation


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def money(value: Decimal, scale: int = KWD_SCALE) -> str:
    return format_currency(value, scale)


def account(info: AccountInfo) -> dict[str, Any]:
    return {
        "id": info.id,
        "name": info.name,
        "kind": info.kind,
        "balance": money(info.balance),
    }


def statement_body(statement: Statement) -> dict[str, Any]:
    return {
        "startDate": statement.start_date.isoformat() if statement.start_date else None,
        "endDate": statement.end_date.isoformat() if statement.end_date else None,
        "openingBalance": money(statement.opening_balance),
        "closingBalance": money(statement.closing_balance),
        "totalDebit": money(statement.total_debit),
        "totalCredit": money(statement.total_credit),
        "entries": [
            {
                "date": row.entry.entry_date.isoformat(),
                "entryType": row.entry.entry_type.value,
                "reference": row.entry.reference,
                "description": row.entry.description,
                "debit": money(row.entry.debit),
                "credit": money(row.entry.credit),
                "balance": money(row.balance),
                "sourceKind": row.entry.source_kind.value,
                "sourceId": row.entry.source_id,
            }
            for row in statement.rows
        ],
    }


def _skipped(skipped: tuple[SkippedRecord, ...]) -> list[dict[str, Any]]:
    return [{"sourceKind": s.kind.value, "sourceId": s.source_id, "reason": s.reason} for s in skipped]


def account_statement(result: AccountStatement) -> dict[str, Any]:
    body = statement_body(result.statement)
    body["account"] = account(result.account)
    body["skipped"] = _skipped(result.skipped)
    return body


def party_statement(result: PartyStatement) -> dict[str, Any]:
    body = statement_body(result.statement)
    body["party"] = {
        "id": result.party.id,
        "name": result.party.name,
        "partyType": result.party.party_type,
    }
    body["skipped"] = _skipped(result.skipped)
    return body


def transfer(result: TransferResult) -> dict[str, Any]:
    return {
        "id": result.transfer_id,
        "transferDate": result.transfer_date.isoformat(),
        "fromAccountId": result.from_account_id,
        "toAccountId": result.to_account_id,
        "amount": money(result.amount),
        "fromBalance": money(result.from_balance),
        "toBalance": money(result.to_balance),
    }


def aging_row(row: CustomerAging) -> dict[str, Any]:
    body: dict[str, Any] = {
        "customerId": row.customer_id,
        "customerName": row.customer_name,
    }
    for name, amount in row.buckets.items():
        body[_camel(name)] = money(amount)
    body["totalBalance"] = money(row.total_balance)
    return body


def aging_report(report: AgingReport) -> dict[str, Any]:
    return {
        "asOfDate": report.as_of_date.isoformat(),
        "buckets": [_camel(name) for name in report.bucket_names],
        "rows": [aging_row(r) for r in report.rows],
        "totals": {_camel(k): money(v) for k, v in report.total_by_bucket().items()},
        "totalBalance": money(report.total_balance),
    }


def metrics(m: FinancialMetrics) -> dict[str, Any]:
    body: dict[str, Any] = {
        "startDate": m.start_date.isoformat(),
        "endDate": m.end_date.isoformat(),
    }
    body.update({_camel(k): money(v) for k, v in m.as_dict().items()})
    return body


def _trend(t: Trend) -> dict[str, Any]:
    return {
        "change": money(t.change),
        "percentChange": format_currency(t.percent_change, 1),
        "direction": t.direction,
        "favorable": t.favorable,
    }


def financial_standing(standing: FinancialStanding) -> dict[str, Any]:
    return {
        "asOfDate": standing.as_of_date.isoformat(),
        "currentMonth": metrics(standing.current),
        "lastMonth": metrics(standing.previous),
        "trends": {_camel(k): _trend(v) for k, v in standing.trends.items()},
    }


def reconciliation(result: Reconciliation) -> dict[str, Any]:
    return {
        "accountId": result.account_id,
        "storedBalance": money(result.stored_balance),
        "replayedBalance": money(result.replayed_balance),
        "matches": result.matches,
    }


def transfer_info(info: TransferInfo) -> dict[str, Any]:
    return {
        "id": info.id,
        "transferDate": info.transfer_date.isoformat(),
        "fromAccountId": info.from_account_id,
        "toAccountId": info.to_account_id,
        "amount": money(info.amount),
        "notes": info.notes,
        "createdBy": info.created_by,
    }


def recorded_document(doc: RecordedDocument) -> dict[str, Any]:
    return {
        "id": doc.id,
        "kind": doc.kind,
        "amount": money(doc.total_kwd),
        "date": doc.document_date.isoformat(),
    }
