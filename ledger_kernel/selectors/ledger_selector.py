"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Load every persisted record that affects one account's or one
    party's ledger and flatten it into ``SourceRecord`` DTOs for the
    normalizer.  Also lists accounts and parties.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only.
    - When ``end_date`` is given, rows dated after it are not loaded.  Rows
      with no date are always loaded so the normalizer can report them.
    - Results are ordered by id within each record family; final ledger
      ordering is the normalizer's job.
"""

from datetime import date

from sqlalchemy import or_, select

from ledger_kernel.domain.dtos import (
    AccountInfo,
    Direction,
    PartyInfo,
    Perspective,
    SourceKind,
    SourceRecord,
    TransferInfo,
)
from ledger_kernel.models.account import Account, AccountAdjustment, AccountKind, AccountTransfer
from ledger_kernel.models.discount import Discount
from ledger_kernel.models.opening_balance import OpeningBalance
from ledger_kernel.models.party import Party, PartyType
from ledger_kernel.models.payment import Expense, Payment
from ledger_kernel.models.trade import PurchaseOrder, Return, ReturnType, SalesOrder
from ledger_kernel.selectors.base import BaseSelector


def _until(column, end_date: date | None):
    if end_date is None:
        return True
    return or_(column.is_(None), column <= end_date)


class LedgerSelector(BaseSelector):
    """Read-side access to ledger source records."""

    # -- Accounts ---------------------------------------------------------

    def list_accounts(self) -> list[AccountInfo]:
        rows = self.session.execute(select(Account).order_by(Account.id)).scalars()
        return [self._account_dto(a) for a in rows]

    def find_account(self, account_id: int) -> AccountInfo | None:
        account = self.session.get(Account, account_id)
        return self._account_dto(account) if account is not None else None

    @staticmethod
    def _account_dto(account: Account) -> AccountInfo:
        return AccountInfo(
            id=account.id,
            name=account.name,
            kind=AccountKind(account.kind).value,
            balance=account.balance,
        )

    def list_transfers(self, account_id: int | None = None) -> list[TransferInfo]:
        """Transfers, newest first; optionally only those touching one account."""
        stmt = select(AccountTransfer).order_by(
            AccountTransfer.transfer_date.desc(), AccountTransfer.id.desc()
        )
        if account_id is not None:
            stmt = stmt.where(
                or_(AccountTransfer.from_account_id == account_id,
                    AccountTransfer.to_account_id == account_id)
            )
        return [
            TransferInfo(
                id=t.id,
                transfer_date=t.transfer_date,
                from_account_id=t.from_account_id,
                to_account_id=t.to_account_id,
                amount=t.amount,
                notes=t.notes,
                created_by=t.created_by,
            )
            for t in self.session.execute(stmt).scalars()
        ]

    def account_records(self, account_id: int, end_date: date | None = None) -> list[SourceRecord]:
        """Opening balances, linked payments, adjustments, transfers and expenses."""
        records: list[SourceRecord] = []

        for ob in self.session.execute(
            select(OpeningBalance)
            .where(OpeningBalance.account_id == account_id, _until(OpeningBalance.balance_date, end_date))
            .order_by(OpeningBalance.id)
        ).scalars():
            records.append(SourceRecord(
                kind=SourceKind.OPENING_BALANCE,
                source_id=ob.id,
                record_date=ob.balance_date,
                amount=ob.amount,
                reference="Opening Balance",
                description=ob.notes or "",
            ))

        for p in self.session.execute(
            select(Payment)
            .where(Payment.account_id == account_id, _until(Payment.payment_date, end_date))
            .order_by(Payment.id)
        ).scalars():
            records.append(self._payment_record(p))

        for adj in self.session.execute(
            select(AccountAdjustment)
            .where(AccountAdjustment.account_id == account_id,
                   _until(AccountAdjustment.adjustment_date, end_date))
            .order_by(AccountAdjustment.id)
        ).scalars():
            records.append(SourceRecord(
                kind=SourceKind.ADJUSTMENT,
                source_id=adj.id,
                record_date=adj.adjustment_date,
                amount=adj.amount,
                reference=f"Adjustment - {adj.adjustment_date.isoformat()}",
                description=adj.reason,
                direction=Direction(adj.direction),
            ))

        for t in self.session.execute(
            select(AccountTransfer)
            .where(
                or_(AccountTransfer.from_account_id == account_id,
                    AccountTransfer.to_account_id == account_id),
                _until(AccountTransfer.transfer_date, end_date),
            )
            .order_by(AccountTransfer.id)
        ).scalars():
            records.append(SourceRecord(
                kind=SourceKind.TRANSFER,
                source_id=t.id,
                record_date=t.transfer_date,
                amount=t.amount,
                reference=f"TRF-{t.id}",
                description=t.notes or "",
                from_account_id=t.from_account_id,
                to_account_id=t.to_account_id,
            ))

        for e in self.session.execute(
            select(Expense)
            .where(Expense.account_id == account_id, _until(Expense.expense_date, end_date))
            .order_by(Expense.id)
        ).scalars():
            records.append(SourceRecord(
                kind=SourceKind.EXPENSE,
                source_id=e.id,
                record_date=e.expense_date,
                amount=e.amount,
                reference=e.category,
                description=e.description or "",
            ))

        return records

    # -- Parties ----------------------------------------------------------

    def list_parties(self, party_type: PartyType | None = None) -> list[PartyInfo]:
        stmt = select(Party).order_by(Party.id)
        if party_type is not None:
            stmt = stmt.where(Party.party_type == PartyType(party_type).value)
        return [self._party_dto(p) for p in self.session.execute(stmt).scalars()]

    def find_party(self, party_id: int) -> PartyInfo | None:
        party = self.session.get(Party, party_id)
        return self._party_dto(party) if party is not None else None

    @staticmethod
    def _party_dto(party: Party) -> PartyInfo:
        return PartyInfo(
            id=party.id,
            name=party.name,
            party_type=PartyType(party.party_type).value,
            phone=party.phone,
        )

    def party_records(
        self,
        party_id: int,
        perspective: Perspective,
        end_date: date | None = None,
    ) -> list[SourceRecord]:
        """
        Source records for a party statement.

        customer: opening balances, sales billed to them, their sale returns,
                  discounts, payments
        supplier: opening balances, purchases, purchase returns, payments
        salesman: opening balances, sales they booked, payments from them
        """
        perspective = Perspective(perspective)
        records: list[SourceRecord] = []

        for ob in self.session.execute(
            select(OpeningBalance)
            .where(OpeningBalance.party_id == party_id, _until(OpeningBalance.balance_date, end_date))
            .order_by(OpeningBalance.id)
        ).scalars():
            records.append(SourceRecord(
                kind=SourceKind.OPENING_BALANCE,
                source_id=ob.id,
                record_date=ob.balance_date,
                amount=ob.amount,
                reference="Opening Balance",
                description=ob.notes or "",
            ))

        if perspective in (Perspective.CUSTOMER, Perspective.SALESMAN):
            column = SalesOrder.customer_id if perspective == Perspective.CUSTOMER else SalesOrder.salesman_id
            for s in self.session.execute(
                select(SalesOrder)
                .where(column == party_id, _until(SalesOrder.sale_date, end_date))
                .order_by(SalesOrder.id)
            ).scalars():
                records.append(SourceRecord(
                    kind=SourceKind.SALE,
                    source_id=s.id,
                    record_date=s.sale_date,
                    amount=s.total_kwd,
                    reference=s.invoice_number or f"SO-{s.id}",
                ))

        if perspective == Perspective.SUPPLIER:
            for po in self.session.execute(
                select(PurchaseOrder)
                .where(PurchaseOrder.supplier_id == party_id, _until(PurchaseOrder.purchase_date, end_date))
                .order_by(PurchaseOrder.id)
            ).scalars():
                records.append(SourceRecord(
                    kind=SourceKind.PURCHASE,
                    source_id=po.id,
                    record_date=po.purchase_date,
                    amount=po.total_kwd,
                    reference=po.invoice_number or f"PO-{po.id}",
                ))

        return_type = {
            Perspective.CUSTOMER: ReturnType.SALE_RETURN,
            Perspective.SUPPLIER: ReturnType.PURCHASE_RETURN,
        }.get(perspective)
        if return_type is not None:
            kind = (SourceKind.SALE_RETURN if return_type == ReturnType.SALE_RETURN
                    else SourceKind.PURCHASE_RETURN)
            for r in self.session.execute(
                select(Return)
                .where(Return.party_id == party_id,
                       Return.return_type == return_type.value,
                       _until(Return.return_date, end_date))
                .order_by(Return.id)
            ).scalars():
                records.append(SourceRecord(
                    kind=kind,
                    source_id=r.id,
                    record_date=r.return_date,
                    amount=r.total_kwd,
                    reference=r.return_number or f"RET-{r.id}",
                    description=r.notes or "",
                ))

        if perspective == Perspective.CUSTOMER:
            for d in self.session.execute(
                select(Discount)
                .where(Discount.party_id == party_id, _until(Discount.discount_date, end_date))
                .order_by(Discount.id)
            ).scalars():
                records.append(SourceRecord(
                    kind=SourceKind.DISCOUNT,
                    source_id=d.id,
                    record_date=d.discount_date,
                    amount=d.amount,
                    reference=f"DSC-{d.id}",
                    description=d.notes or "",
                ))

        for p in self.session.execute(
            select(Payment)
            .where(Payment.party_id == party_id, _until(Payment.payment_date, end_date))
            .order_by(Payment.id)
        ).scalars():
            records.append(self._payment_record(p))

        return records

    @staticmethod
    def _payment_record(p: Payment) -> SourceRecord:
        return SourceRecord(
            kind=SourceKind.PAYMENT,
            source_id=p.id,
            record_date=p.payment_date,
            amount=p.amount,
            reference=p.reference or f"PAY-{p.id}",
            description=p.notes or "",
            direction=Direction(p.direction),
        )
