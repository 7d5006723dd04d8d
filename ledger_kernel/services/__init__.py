"""Write services for the trade ledger. Services flush; callers commit."""

from ledger_kernel.services.account_balances import AccountBalanceWriter, BalanceVerifier
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.party_service import PartyService
from ledger_kernel.services.transaction_service import RecordedDocument, TransactionService
from ledger_kernel.services.transfer_service import TransferResult, TransferService

__all__ = [
    "AccountBalanceWriter",
    "AccountService",
    "BalanceVerifier",
    "PartyService",
    "RecordedDocument",
    "TransactionService",
    "TransferResult",
    "TransferService",
]
