"""
Typed exception hierarchy for the trade ledger.

Callers catch by type and read structured attributes; they never parse
messages. Every class carries a machine-readable ``code`` class attribute
which the HTTP layer returns verbatim.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- LedgerValidationError               -> HTTP 400
    |   +-- InvalidAmountError
    |   |   +-- ExcessPrecisionError
    |   +-- MissingFieldError
    |   +-- SelfTransferError
    |   +-- InvalidDirectionError
    |   +-- AdjustmentReasonRequiredError
    |   +-- InvalidDateRangeError
    |   +-- DuplicateAccountNameError
    |   +-- InvalidChoiceError
    |   +-- GoodsReceivedBeforePurchaseError
    |   +-- CreditLimitExceededError
    |
    +-- NotFoundError                       -> HTTP 404
    |   +-- AccountNotFoundError
    |   +-- PartyNotFoundError
    |   +-- DocumentNotFoundError
    |
    +-- ConsistencyError                    -> HTTP 409, transaction rolled back
    |   +-- AccountReferencedError
    |   +-- InsufficientFundsError
    |   +-- BalanceDriftError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- StorageError                        -> HTTP 500, "try again"

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                        | When Raised
--------------|-----------------------------|-------------------------------------
Validation    | INVALID_AMOUNT              | Amount missing, zero or negative
              | EXCESS_PRECISION            | More than 3 decimal places
              | MISSING_FIELD               | Required field absent or blank
              | SELF_TRANSFER               | Transfer source == destination
              | INVALID_DIRECTION           | Direction not IN / OUT
              | ADJUSTMENT_REASON_REQUIRED  | Adjustment without a reason
              | INVALID_DATE_RANGE          | startDate after endDate
              | DUPLICATE_ACCOUNT_NAME      | Account name already taken
              | INVALID_CHOICE              | Unknown account kind, party or return type
              | GRN_BEFORE_PURCHASE         | Goods received before the invoice date
              | CREDIT_LIMIT_EXCEEDED       | Sale would pass the customer credit limit
--------------|-----------------------------|-------------------------------------
Not found     | ACCOUNT_NOT_FOUND           | Account id doesn't exist
              | PARTY_NOT_FOUND             | Party id doesn't exist
              | DOCUMENT_NOT_FOUND          | Sale / purchase / return id doesn't exist
--------------|-----------------------------|-------------------------------------
Consistency   | ACCOUNT_REFERENCED          | Delete blocked by history
              | INSUFFICIENT_FUNDS          | Negative balance forbidden by policy
              | BALANCE_DRIFT               | Stored balance != replayed balance
--------------|-----------------------------|-------------------------------------
Currency      | INVALID_CURRENCY            | Not a known ISO 4217 code
              | CURRENCY_MISMATCH           | Mixed currencies in one operation
--------------|-----------------------------|-------------------------------------
Storage       | STORAGE_ERROR               | Persistence layer failure

Numeric edge cases (division by zero, unparseable input) never raise: the
decimal module resolves them to zero locally.
"""

from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ERROR"


# Validation


class LedgerValidationError(LedgerError):
    """Base exception for rejected input. Nothing has been written."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(LedgerValidationError):
    """Amount is missing, zero or negative where a positive amount is required."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, field: str = "amount", reason: str = "must be greater than zero"):
        self.amount = str(amount) if amount is not None else None
        self.field = field
        super().__init__(f"Invalid {field}: {amount!r} ({reason})")


class ExcessPrecisionError(InvalidAmountError):
    """Amount carries more decimal places than the book currency holds."""

    code: str = "EXCESS_PRECISION"

    def __init__(self, amount: object, field: str = "amount", max_places: int = 3):
        self.max_places = max_places
        super().__init__(amount, field, f"at most {max_places} decimal places")


class MissingFieldError(LedgerValidationError):
    """A required field is absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required field: {field}")


class SelfTransferError(LedgerValidationError):
    """Transfer source and destination are the same account."""

    code: str = "SELF_TRANSFER"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__("Cannot transfer to the same account")


class InvalidDirectionError(LedgerValidationError):
    """Direction is not one of IN / OUT."""

    code: str = "INVALID_DIRECTION"

    def __init__(self, direction: object):
        self.direction = str(direction)
        super().__init__(f"Invalid direction: {direction!r} (expected IN or OUT)")


class AdjustmentReasonRequiredError(LedgerValidationError):
    """Manual adjustments must state a reason."""

    code: str = "ADJUSTMENT_REASON_REQUIRED"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Adjustment on account {account_id} requires a reason")


class InvalidDateRangeError(LedgerValidationError):
    """Start date falls after end date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: object, end_date: object):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"Start date {start_date} is after end date {end_date}")


class GoodsReceivedBeforePurchaseError(LedgerValidationError):
    """Goods received note dated before the purchase invoice."""

    code: str = "GRN_BEFORE_PURCHASE"

    def __init__(self, grn_date: object, purchase_date: object):
        self.grn_date = grn_date
        self.purchase_date = purchase_date
        super().__init__(f"Goods received {grn_date} before purchase dated {purchase_date}")


class CreditLimitExceededError(LedgerValidationError):
    """A sale would take the customer's balance past their credit limit."""

    code: str = "CREDIT_LIMIT_EXCEEDED"

    def __init__(
        self,
        party_id: int,
        credit_limit: Decimal,
        current_balance: Decimal,
        sale_amount: Decimal,
    ):
        self.party_id = party_id
        self.credit_limit = credit_limit
        self.current_balance = current_balance
        self.sale_amount = sale_amount
        self.new_balance = current_balance + sale_amount
        super().__init__(
            f"Credit limit exceeded for party {party_id}: limit {credit_limit}, "
            f"balance {current_balance}, sale {sale_amount}, new balance {self.new_balance}"
        )


class DuplicateAccountNameError(LedgerValidationError):
    """An account with this name already exists."""

    code: str = "DUPLICATE_ACCOUNT_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Account name already exists: {name}")


class InvalidChoiceError(LedgerValidationError):
    """Value is not one of the allowed options for an enumerated field."""

    code: str = "INVALID_CHOICE"

    def __init__(self, field: str, value: object, allowed: tuple[str, ...]):
        self.field = field
        self.value = str(value)
        self.allowed = allowed
        super().__init__(f"Invalid {field}: {value!r} (expected one of {', '.join(allowed)})")


# Not found


class NotFoundError(LedgerError):
    """Base exception for unknown ids."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class PartyNotFoundError(NotFoundError):
    """Party was not found."""

    code: str = "PARTY_NOT_FOUND"

    def __init__(self, party_id: int):
        self.party_id = party_id
        super().__init__(f"Party not found: {party_id}")


class DocumentNotFoundError(NotFoundError):
    """Trading document (sale, purchase, return) does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, kind: str, document_id: int):
        self.kind = kind
        self.document_id = document_id
        super().__init__(f"{kind.capitalize()} not found: {document_id}")


# Consistency


class ConsistencyError(LedgerError):
    """
    A write would leave the ledger unable to reconstruct a consistent balance.

    Raised inside the write transaction; the caller's session_scope rolls
    everything back.
    """

    code: str = "CONSISTENCY_ERROR"


class AccountReferencedError(ConsistencyError):
    """Account cannot be deleted because ledger records reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: int, references: dict[str, int]):
        self.account_id = account_id
        self.references = references
        super().__init__(
            f"Account {account_id} cannot be deleted: referenced by "
            + ", ".join(f"{n} {kind}" for kind, n in sorted(references.items()))
        )


class InsufficientFundsError(ConsistencyError):
    """Debit would take the account below zero while negative balances are disabled."""

    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, account_id: int, balance: Decimal, amount: Decimal):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Account {account_id} balance {balance} cannot cover {amount}"
        )


class BalanceDriftError(ConsistencyError):
    """Stored account balance disagrees with the replayed ledger."""

    code: str = "BALANCE_DRIFT"

    def __init__(self, account_id: int, stored: Decimal, replayed: Decimal):
        self.account_id = account_id
        self.stored = stored
        self.replayed = replayed
        super().__init__(
            f"Account {account_id} stored balance {stored} "
            f"!= replayed balance {replayed}"
        )


# Currency


class CurrencyError(LedgerError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not supported."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: {currency}")


class CurrencyMismatchError(CurrencyError):
    """Operation mixes two currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(f"Currency mismatch: expected {expected}, got {received}")


# Storage


class StorageError(LedgerError):
    """Persistence layer failed; the operation may be retried."""

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}".rstrip(": "))
