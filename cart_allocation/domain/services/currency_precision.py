"""
CURRENCY PRECISION TABLE
Currency code → number of minor-unit digits

RULES:
❌ No precision inferred from how a price is written
❌ No silent default for unknown currencies (caller must opt in)
✅ Read-only after construction
✅ Exact Decimal ↔ minor-unit conversion
"""

from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from cart_allocation.domain.errors import UnknownCurrencyError


DEFAULT_MINOR_UNITS = 2

# ISO 4217 exponents for commonly used currencies
ISO_MINOR_UNITS: Dict[str, int] = {
    # zero-decimal
    "BIF": 0, "CLP": 0, "DJF": 0, "GNF": 0, "ISK": 0, "JPY": 0, "KMF": 0,
    "KRW": 0, "PYG": 0, "RWF": 0, "UGX": 0, "VND": 0, "VUV": 0, "XAF": 0,
    "XOF": 0, "XPF": 0,
    # two-decimal
    "AED": 2, "AUD": 2, "BRL": 2, "CAD": 2, "CHF": 2, "CNY": 2, "CZK": 2,
    "DKK": 2, "EUR": 2, "GBP": 2, "HKD": 2, "HUF": 2, "INR": 2, "MXN": 2,
    "NOK": 2, "NZD": 2, "PLN": 2, "RON": 2, "SEK": 2, "SGD": 2, "THB": 2,
    "TRY": 2, "USD": 2, "ZAR": 2,
    # three-decimal
    "BHD": 3, "IQD": 3, "JOD": 3, "KWD": 3, "LYD": 3, "OMR": 3, "TND": 3,
}


class CurrencyPrecisionTable:
    """
    Read-only currency precision lookup

    Built once at startup (from config/currencies.yml or the ISO defaults)
    and shared by every allocation call.
    """

    def __init__(
        self,
        precisions: Optional[Mapping[str, Optional[int]]] = None,
        default_precision: Optional[int] = None
    ):
        """
        Args:
            precisions: Currency code -> minor-unit digits. A code mapped to
                None gets DEFAULT_MINOR_UNITS. Falls back to ISO_MINOR_UNITS.
            default_precision: Precision for codes missing from the table.
                None (the default) makes unknown codes an error.
        """
        source = ISO_MINOR_UNITS if precisions is None else precisions

        table = {}
        for code, digits in source.items():
            normalized = self._normalize_code(code)
            if normalized is None:
                raise ValueError(f"Invalid currency code: {code!r}")
            table[normalized] = self._check_digits(
                normalized,
                DEFAULT_MINOR_UNITS if digits is None else digits
            )

        self._precisions = MappingProxyType(table)
        self._default_precision = (
            None if default_precision is None
            else self._check_digits("<default>", default_precision)
        )

    @staticmethod
    def _normalize_code(code) -> Optional[str]:
        if not isinstance(code, str):
            return None
        code = code.strip().upper()
        return code if code else None

    @staticmethod
    def _check_digits(code: str, digits) -> int:
        if isinstance(digits, bool) or not isinstance(digits, int):
            raise ValueError(f"Precision for {code} must be an integer, got {digits!r}")
        if digits < 0 or digits > 6:
            raise ValueError(f"Precision for {code} must be between 0 and 6, got {digits}")
        return digits

    @property
    def precisions(self) -> Mapping[str, int]:
        """Read-only view of the table"""
        return self._precisions

    @property
    def default_precision(self) -> Optional[int]:
        return self._default_precision

    def __contains__(self, currency) -> bool:
        code = self._normalize_code(currency)
        return code is not None and code in self._precisions

    def __len__(self) -> int:
        return len(self._precisions)

    def precision(self, currency: str) -> int:
        """
        Minor-unit digits for a currency

        Raises:
            UnknownCurrencyError: currency not in the table and no default
        """
        code = self._normalize_code(currency)
        if code is not None and code in self._precisions:
            return self._precisions[code]
        if self._default_precision is not None:
            return self._default_precision
        raise UnknownCurrencyError(currency)


def quantum(precision: int) -> Decimal:
    """Decimal exponent template for a precision: 2 -> Decimal('0.01')"""
    return Decimal(1).scaleb(-precision)


def round_half_up(amount: Decimal, precision: int) -> Decimal:
    """Round half away from zero to the given number of digits"""
    return amount.quantize(quantum(precision), rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal, precision: int) -> int:
    """
    Convert an amount already at currency precision to integer minor units

    Raises:
        ValueError: amount has more digits than the precision allows
    """
    units = amount.scaleb(precision)
    if units != units.to_integral_value():
        raise ValueError(f"{amount} is not a whole number of minor units at precision {precision}")
    return int(units)


def from_minor_units(units: int, precision: int) -> Decimal:
    """Convert integer minor units back to a Decimal amount"""
    return (Decimal(units).scaleb(-precision)).quantize(quantum(precision))
