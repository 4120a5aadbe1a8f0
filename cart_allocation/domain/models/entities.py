"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar, Mapping, Tuple, Union

from cart_allocation.domain.errors import InvalidDiscountError, InvalidLineItemError


ItemId = Union[str, int]


class DiscountKind(str, Enum):
    """Kind of cart-level discount"""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class AllocationAccuracy(str, Enum):
    """How the per-item discounts were obtained"""
    EXACT = "exact"                # single item (or empty cart), no split needed
    PROPORTIONAL = "proportional"  # floored shares already summed to the target
    RECONCILED = "reconciled"      # leftover minor units handed out by remainder


def to_decimal(value: Any) -> Decimal:
    """
    Coerce an int, str, float or Decimal to Decimal.

    Floats go through str() so 8.5 becomes Decimal('8.5'), not its binary
    expansion.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary value")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class LineItem:
    """Cart line snapshot - Immutable"""
    id: ItemId
    unit_price: Decimal
    quantity: int

    def __post_init__(self):
        try:
            price = to_decimal(self.unit_price)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidLineItemError(
                f"Item {self.id!r}: unit price {self.unit_price!r} is not a number"
            ) from None

        if not price.is_finite():
            raise InvalidLineItemError(f"Item {self.id!r}: unit price must be finite")
        if price < Decimal('0'):
            raise InvalidLineItemError(f"Item {self.id!r}: unit price cannot be negative")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidLineItemError(f"Item {self.id!r}: quantity must be an integer")
        if self.quantity < 1:
            raise InvalidLineItemError(f"Item {self.id!r}: quantity must be at least 1")

        object.__setattr__(self, "unit_price", price)

    @property
    def line_total(self) -> Decimal:
        """Unit price times quantity"""
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PercentageDiscount:
    """Percentage off the whole cart, rate in (0, 100]"""
    rate: Decimal

    kind: ClassVar[DiscountKind] = DiscountKind.PERCENTAGE

    def __post_init__(self):
        rate = _discount_value(self.rate, "rate")
        if rate <= Decimal('0') or rate > Decimal('100'):
            raise InvalidDiscountError(f"Discount rate must be in (0, 100], got {rate}")
        object.__setattr__(self, "rate", rate)


@dataclass(frozen=True)
class FixedAmountDiscount:
    """Flat amount off the whole cart, capped at the subtotal when allocated"""
    amount: Decimal

    kind: ClassVar[DiscountKind] = DiscountKind.FIXED_AMOUNT

    def __post_init__(self):
        amount = _discount_value(self.amount, "amount")
        if amount <= Decimal('0'):
            raise InvalidDiscountError(f"Discount amount must be positive, got {amount}")
        object.__setattr__(self, "amount", amount)


DiscountDescriptor = Union[PercentageDiscount, FixedAmountDiscount]


def _discount_value(value: Any, field: str) -> Decimal:
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidDiscountError(f"Discount {field} {value!r} is not a number") from None
    if not number.is_finite():
        raise InvalidDiscountError(f"Discount {field} must be finite")
    return number


def discount_from_dict(data: Mapping[str, Any]) -> DiscountDescriptor:
    """
    Build a discount descriptor from a plain mapping

    Args:
        data: {"kind": "percentage", "rate": 15} or
              {"kind": "fixed_amount", "amount": "5.00"}

    Returns:
        PercentageDiscount or FixedAmountDiscount
    """
    try:
        kind = DiscountKind(data.get("kind"))
    except ValueError:
        raise InvalidDiscountError(f"Unknown discount kind: {data.get('kind')!r}") from None

    if kind == DiscountKind.PERCENTAGE:
        if "rate" not in data:
            raise InvalidDiscountError("Percentage discount requires a rate")
        return PercentageDiscount(data["rate"])

    if "amount" not in data:
        raise InvalidDiscountError("Fixed amount discount requires an amount")
    return FixedAmountDiscount(data["amount"])


@dataclass(frozen=True)
class AllocationRecord:
    """Discount share of one line item"""
    item_id: ItemId
    original_amount: Decimal
    discount_amount: Decimal
    discounted_amount: Decimal


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of one allocation call - Immutable"""
    records: Tuple[AllocationRecord, ...]
    subtotal: Decimal
    total_discount: Decimal
    currency: str
    accuracy: AllocationAccuracy
    adjusted_units: int = 0

    @property
    def allocated_discount(self) -> Decimal:
        """Sum of per-item discounts (always equals total_discount)"""
        return sum((r.discount_amount for r in self.records), Decimal('0'))

    @property
    def discounted_total(self) -> Decimal:
        """Cart value after the discount"""
        return self.subtotal - self.total_discount

    @property
    def effective_rate(self) -> Decimal:
        """Total discount as a percentage of the subtotal"""
        if self.subtotal == Decimal('0'):
            return Decimal('0')
        return (self.total_discount / self.subtotal * Decimal('100')).quantize(Decimal('0.01'))
