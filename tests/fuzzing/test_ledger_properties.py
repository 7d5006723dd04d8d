"""
Property-based tests for the ledger engines and the transfer path.

Properties checked:
- Splitting a statement window at any date chains: the first part's
  closing balance is the second part's opening balance.
- closing - opening always equals the net movement of the listed rows.
- Formatted money parses back to the same amount.
- Aging buckets always add up to the customer's balance.
- Any sequence of transfers conserves the total held across accounts.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ledger_engines.aging import STANDARD_BUCKETS, AgingClassifier, AllocationPolicy
from ledger_engines.running_balance import BalanceSide, RunningBalanceCalculator
from ledger_kernel.domain.dtos import EntryType, LedgerEntry, SourceKind
from ledger_kernel.domain.values import Money

EPOCH = date(2024, 1, 1)
AS_OF = date(2024, 12, 31)

amounts = st.decimals(min_value=Decimal("0.001"), max_value=Decimal("100000"), places=3)
days = st.integers(min_value=0, max_value=(AS_OF - EPOCH).days)


@st.composite
def ledger_entries(draw, max_size=30):
    """Entries on random dates, each with exactly one nonzero column."""
    specs = draw(st.lists(st.tuples(days, amounts, st.booleans()), max_size=max_size))
    entries = []
    for source_id, (offset, amount, is_debit) in enumerate(specs, start=1):
        entries.append(
            LedgerEntry(
                entry_date=EPOCH + timedelta(days=offset),
                entry_type=EntryType.SALE if is_debit else EntryType.PAYMENT_IN,
                reference=f"R{source_id}",
                description="",
                debit=amount if is_debit else Decimal("0"),
                credit=Decimal("0") if is_debit else amount,
                source_kind=SourceKind.SALE if is_debit else SourceKind.PAYMENT,
                source_id=source_id,
            )
        )
    return entries


class TestStatementProperties:
    @settings(deadline=None)
    @given(entries=ledger_entries(), split=days, side=st.sampled_from(list(BalanceSide)))
    def test_adjacent_windows_chain(self, entries, split, side):
        calculator = RunningBalanceCalculator(side)
        cut = EPOCH + timedelta(days=split)

        before = calculator.statement(entries=entries, end_date=cut)
        after = calculator.statement(entries=entries, start_date=cut + timedelta(days=1))
        full = calculator.statement(entries=entries)

        assert before.closing_balance == after.opening_balance
        assert after.closing_balance == full.closing_balance
        assert len(before.rows) + len(after.rows) == len(full.rows)

    @settings(deadline=None)
    @given(entries=ledger_entries(), start=days, length=st.integers(min_value=0, max_value=120))
    def test_movement_matches_rows(self, entries, start, length):
        start_date = EPOCH + timedelta(days=start)
        end_date = start_date + timedelta(days=length)

        debit_normal = RunningBalanceCalculator(BalanceSide.DEBIT_NORMAL).statement(
            entries=entries, start_date=start_date, end_date=end_date
        )
        credit_normal = RunningBalanceCalculator(BalanceSide.CREDIT_NORMAL).statement(
            entries=entries, start_date=start_date, end_date=end_date
        )

        assert (
            debit_normal.closing_balance - debit_normal.opening_balance
            == debit_normal.total_debit - debit_normal.total_credit
        )
        assert (
            credit_normal.closing_balance - credit_normal.opening_balance
            == credit_normal.total_credit - credit_normal.total_debit
        )
        assert debit_normal.closing_balance == -credit_normal.closing_balance


class TestMoneyProperties:
    @settings(deadline=None)
    @given(amount=st.decimals(min_value=Decimal("-1e12"), max_value=Decimal("1e12"), places=6))
    def test_format_parse_roundtrip(self, amount):
        money = Money.of(amount)

        assert Money.parse(money.format()) == money.round()


class TestAgingProperties:
    @settings(deadline=None)
    @given(
        entries=ledger_entries(),
        policy=st.sampled_from(list(AllocationPolicy)),
    )
    def test_buckets_sum_to_balance(self, entries, policy):
        row = AgingClassifier(STANDARD_BUCKETS, policy).classify_customer(
            customer_id=1, customer_name="Customer", entries=entries, as_of_date=AS_OF
        )

        assert sum(row.buckets.values(), Decimal("0")) == row.total_balance
        if policy == AllocationPolicy.FIFO:
            assert all(item.outstanding > 0 for item in row.items)


class TestTransferProperties:
    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(
        moves=st.lists(
            st.tuples(st.integers(0, 2), st.integers(0, 2), amounts),
            min_size=1,
            max_size=10,
        )
    )
    def test_transfers_conserve_funds(self, ledger, moves):
        suffix = uuid4().hex[:8]
        accounts = [
            ledger.accounts.create_account(f"{name}-{suffix}").id for name in ("A", "B", "C")
        ]
        for account_id in accounts:
            ledger.accounts.add_opening_balance(account_id, "500", EPOCH)

        for source, target, amount in moves:
            if source == target:
                continue
            ledger.transfers.transfer(accounts[source], accounts[target], amount, EPOCH)

        balances = [ledger.accounts.get_by_id(a).balance for a in accounts]
        assert sum(balances, Decimal("0")) == Decimal("1500")
        assert all(ledger.statements.reconcile_account(a).matches for a in accounts)
