"""Currencies the business trades in, keyed by ISO 4217 code."""

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.exceptions import InvalidCurrencyError

# Display precision for a code we do not list
FALLBACK_DECIMAL_PLACES = 2


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimal_places: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest unit, e.g. Decimal("0.001") for KWD."""
        return Decimal(1).scaleb(-self.decimal_places)


_TABLE = (
    # book currency and the Gulf
    ("KWD", 3, "Kuwaiti Dinar"),
    ("BHD", 3, "Bahraini Dinar"),
    ("OMR", 3, "Omani Rial"),
    ("AED", 2, "UAE Dirham"),
    ("SAR", 2, "Saudi Riyal"),
    ("QAR", 2, "Qatari Riyal"),
    # suppliers invoice in these
    ("USD", 2, "US Dollar"),
    ("EUR", 2, "Euro"),
    ("GBP", 2, "Pound Sterling"),
    ("CNY", 2, "Chinese Yuan"),
    ("HKD", 2, "Hong Kong Dollar"),
    ("INR", 2, "Indian Rupee"),
    ("JPY", 0, "Japanese Yen"),
)

_BY_CODE = {row[0]: CurrencyInfo(*row) for row in _TABLE}


def _normalize(code: str | None) -> str:
    return (code or "").strip().upper()


class CurrencyRegistry:
    """Lookup helpers over the supported currency table."""

    @staticmethod
    def get_info(code: str) -> CurrencyInfo | None:
        return _BY_CODE.get(_normalize(code))

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return cls.get_info(code) is not None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return FALLBACK_DECIMAL_PLACES if info is None else info.decimal_places

    @classmethod
    def validate(cls, code: str) -> str:
        """Normalized code, or InvalidCurrencyError for anything unlisted."""
        info = cls.get_info(code)
        if info is None:
            raise InvalidCurrencyError(code)
        return info.code

    @staticmethod
    def all_codes() -> frozenset[str]:
        return frozenset(_BY_CODE)
