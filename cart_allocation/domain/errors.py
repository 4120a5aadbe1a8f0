"""
Domain Errors
Typed failures raised by the allocation engine.

All of them are input-validation failures: they are raised before any
allocation arithmetic starts and the same input always fails the same way.
"""

from typing import Optional


class AllocationError(ValueError):
    """Base class for every allocation failure"""


class InvalidDiscountError(AllocationError):
    """Discount rate or amount outside its valid range"""


class DegenerateCartError(AllocationError):
    """Cart subtotal is zero, so proportional shares are undefined"""


class InvalidLineItemError(AllocationError):
    """Line item with a negative price or a non-positive quantity"""


class UnknownCurrencyError(AllocationError):
    """Currency code missing from the precision table"""

    def __init__(self, currency: Optional[str]):
        self.currency = currency
        super().__init__(f"Unknown currency: {currency!r}")
