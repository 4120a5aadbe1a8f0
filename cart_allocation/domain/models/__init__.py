"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    AllocationAccuracy,
    DiscountKind,

    # Entities
    AllocationRecord,
    AllocationResult,
    DiscountDescriptor,
    FixedAmountDiscount,
    ItemId,
    LineItem,
    PercentageDiscount,

    # Helpers
    discount_from_dict,
    to_decimal,
)

__all__ = [
    # Enums
    "AllocationAccuracy",
    "DiscountKind",

    # Entities
    "AllocationRecord",
    "AllocationResult",
    "DiscountDescriptor",
    "FixedAmountDiscount",
    "ItemId",
    "LineItem",
    "PercentageDiscount",

    # Helpers
    "discount_from_dict",
    "to_decimal",
]
