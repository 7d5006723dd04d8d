"""
Party statement export to .xlsx.

One sheet: a header block (party, period, opening balance), one row per
statement line with its running balance, then totals and the closing
balance.  Amounts are written as exact Decimal cell values with a
three-decimal number format, so the spreadsheet shows what the statement
shows.
"""

from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font

from ledger_kernel.domain.decimal_math import KWD_SCALE, round_to_scale
from ledger_kernel.logging_config import get_logger
from ledger_services.statement_service import PartyStatement

logger = get_logger("services.export")

AMOUNT_FORMAT = "#,##0.000"
COLUMNS = ("Date", "Type", "Reference", "Description", "Debit", "Credit", "Balance")


def statement_filename(statement: PartyStatement) -> str:
    safe = "".join(c if c.isalnum() else "_" for c in statement.party.name).strip("_") or "party"
    return f"statement_{safe}_{statement.party.id}.xlsx"


def export_party_statement_xlsx(statement: PartyStatement) -> bytes:
    """Render ``statement`` as an .xlsx workbook and return its bytes."""
    body = statement.statement
    wb = Workbook()
    ws = wb.active
    ws.title = "Statement"
    bold = Font(bold=True)

    ws.append(["Party", statement.party.name])
    ws.append(["Type", statement.perspective.value])
    ws.append(["From", body.start_date.isoformat() if body.start_date else ""])
    ws.append(["To", body.end_date.isoformat() if body.end_date else ""])
    ws.append([])
    ws.append(["Opening balance", "", "", "", "", "", round_to_scale(body.opening_balance, KWD_SCALE)])
    ws.append(list(COLUMNS))
    for cell in ws[ws.max_row]:
        cell.font = bold

    for row in body.rows:
        entry = row.entry
        ws.append([
            entry.entry_date,
            entry.entry_type.value,
            entry.reference,
            entry.description,
            round_to_scale(entry.debit, KWD_SCALE),
            round_to_scale(entry.credit, KWD_SCALE),
            round_to_scale(row.balance, KWD_SCALE),
        ])
        ws.cell(row=ws.max_row, column=1).number_format = "yyyy-mm-dd"

    ws.append([
        "Totals", "", "", "",
        round_to_scale(body.total_debit, KWD_SCALE),
        round_to_scale(body.total_credit, KWD_SCALE),
        "",
    ])
    ws.append(["Closing balance", "", "", "", "", "", round_to_scale(body.closing_balance, KWD_SCALE)])
    for cell in ws[ws.max_row - 1] + ws[ws.max_row]:
        cell.font = bold

    for column in ("E", "F", "G"):
        for cell in ws[column]:
            cell.number_format = AMOUNT_FORMAT
    for column, width in zip("ABCDEFG", (12, 18, 18, 36, 14, 14, 14)):
        ws.column_dimensions[column].width = width

    buffer = BytesIO()
    wb.save(buffer)
    logger.info(
        "party_statement_exported",
        extra={"party_id": statement.party.id, "row_count": len(body.rows)},
    )
    return buffer.getvalue()
