"""
Module: ledger_kernel.db.types
Responsibility: Shared column types so every model declares money,
    foreign-currency totals and exchange rates with identical precision.
Architecture position: Kernel > DB.  May be imported by models/.

Scales follow the trading business: book amounts carry 3 decimals (KWD
fils), foreign invoice totals 2 decimals, exchange rates 4 decimals.
"""

from sqlalchemy import String

from ledger_kernel.db.base import ExactDecimal

# Book-currency amount (KWD)
Amount = ExactDecimal(12, 3)

# Foreign-currency invoice total
FxAmount = ExactDecimal(12, 2)

# Exchange rate, foreign -> KWD
FxRate = ExactDecimal(10, 4)

# Item quantities may be fractional (cables by the metre)
Quantity = ExactDecimal(12, 3)

# ISO 4217 currency code
CurrencyCode = String(3)

# Invoice / return / reference numbers
ShortCode = String(50)

# Free text notes
LongText = String(2000)

AMOUNT_SCALE = 3
FX_AMOUNT_SCALE = 2
FX_RATE_SCALE = 4
