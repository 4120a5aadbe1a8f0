"""
ALLOCATION ENGINE
Split a cart-level discount → per-item discounts

RESPONSIBILITIES:
- Compute the cart subtotal at currency precision
- Distribute percentage and fixed-amount discounts proportionally
- Reconcile rounding with the largest-remainder method
- Validate inputs and fail with typed errors

RULES:
❌ No logging, no fallbacks (callers decide how to mask failures)
❌ No mutation of caller-supplied items
❌ No item discounted beyond its own value
✅ Σ item discounts == total discount, exactly
✅ Floor every share, then hand out leftover minor units
✅ Deterministic output (ties broken by input order)
"""

from decimal import Decimal, InvalidOperation
from typing import List, Sequence, Tuple

from cart_allocation.domain.errors import DegenerateCartError, InvalidLineItemError
from cart_allocation.domain.models import (
    AllocationAccuracy,
    AllocationRecord,
    AllocationResult,
    DiscountDescriptor,
    FixedAmountDiscount,
    LineItem,
    PercentageDiscount,
    to_decimal,
)
from cart_allocation.domain.services.currency_precision import (
    CurrencyPrecisionTable,
    from_minor_units,
    round_half_up,
    to_minor_units,
)


class AllocationEngine:
    """
    Allocation Engine
    Pure discount allocation over an immutable cart snapshot
    """

    def __init__(
        self,
        currency_table: CurrencyPrecisionTable,
        rounding_epsilon: Decimal = Decimal('0.001')
    ):
        """
        Initialize allocation engine

        Args:
            currency_table: Currency precision lookup (read-only)
            rounding_epsilon: Shortfall, in minor units, below which no
                reconciliation pass is run
        """
        rounding_epsilon = to_decimal(rounding_epsilon)
        if rounding_epsilon < Decimal('0') or rounding_epsilon >= Decimal('1'):
            raise ValueError("rounding_epsilon must be in [0, 1) minor units")

        self.currency_table = currency_table
        self.rounding_epsilon = rounding_epsilon

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def allocate(
        self,
        items: Sequence[LineItem],
        discount: DiscountDescriptor,
        currency: str
    ) -> AllocationResult:
        """
        Allocate a resolved discount descriptor across the cart

        Args:
            items: Cart snapshot, in display order
            discount: PercentageDiscount or FixedAmountDiscount
            currency: ISO currency code

        Returns:
            AllocationResult with one record per item
        """
        if isinstance(discount, PercentageDiscount):
            return self.allocate_percentage(items, discount.rate, currency)
        if isinstance(discount, FixedAmountDiscount):
            return self.allocate_fixed_amount(items, discount.amount, currency)
        raise TypeError(f"Unsupported discount descriptor: {type(discount).__name__}")

    def allocate_percentage(
        self,
        items: Sequence[LineItem],
        rate,
        currency: str
    ) -> AllocationResult:
        """
        Allocate a percentage discount proportionally

        Args:
            items: Cart snapshot
            rate: Percentage in (0, 100], e.g. 15 for 15%
            currency: ISO currency code

        Returns:
            AllocationResult

        Raises:
            UnknownCurrencyError: currency not configured
            InvalidDiscountError: rate outside (0, 100]
            DegenerateCartError: multi-item cart with a zero subtotal
            InvalidLineItemError: line totals too large to represent
        """
        precision = self.currency_table.precision(currency)
        rate = PercentageDiscount(rate).rate

        if not items:
            return self._empty_result(currency, precision)

        line_units, subtotal_units = self._line_units(items, precision)

        if len(items) == 1:
            # Straight from the unrounded line total
            discount = round_half_up(items[0].line_total * rate / Decimal('100'), precision)
            return self._single_item_result(items[0], line_units[0], discount, currency, precision)

        self._ensure_allocatable(subtotal_units)

        subtotal = from_minor_units(subtotal_units, precision)
        target = round_half_up(subtotal * rate / Decimal('100'), precision)
        target_units = min(to_minor_units(target, precision), subtotal_units)

        return self._allocate_proportionally(
            items, line_units, subtotal_units, target_units, currency, precision
        )

    def allocate_fixed_amount(
        self,
        items: Sequence[LineItem],
        amount,
        currency: str
    ) -> AllocationResult:
        """
        Allocate a flat discount proportionally, capped at the subtotal

        Args:
            items: Cart snapshot
            amount: Positive discount amount in currency
            currency: ISO currency code

        Returns:
            AllocationResult (total_discount == min(amount, subtotal))

        Raises:
            UnknownCurrencyError: currency not configured
            InvalidDiscountError: amount not positive
            DegenerateCartError: multi-item cart with a zero subtotal
            InvalidLineItemError: line totals too large to represent
        """
        precision = self.currency_table.precision(currency)
        amount = FixedAmountDiscount(amount).amount

        if not items:
            return self._empty_result(currency, precision)

        line_units, subtotal_units = self._line_units(items, precision)

        # Cap before rounding so oversized amounts never reach quantize()
        subtotal = from_minor_units(subtotal_units, precision)
        target_units = to_minor_units(round_half_up(min(amount, subtotal), precision), precision)

        if len(items) == 1:
            return self._single_item_result(
                items[0], line_units[0], from_minor_units(target_units, precision),
                currency, precision
            )

        self._ensure_allocatable(subtotal_units)

        return self._allocate_proportionally(
            items, line_units, subtotal_units, target_units, currency, precision
        )

    def round_to_currency(self, amount, currency: str) -> Decimal:
        """
        Round an amount to the currency's minor unit (half away from zero)

        Args:
            amount: Decimal, int, str or float
            currency: ISO currency code

        Returns:
            Rounded Decimal
        """
        return round_half_up(to_decimal(amount), self.currency_table.precision(currency))

    def calculate_subtotal(self, items: Sequence[LineItem], currency: str) -> Decimal:
        """Sum of line totals, each rounded to currency precision"""
        precision = self.currency_table.precision(currency)
        _, subtotal_units = self._line_units(items, precision)
        return from_minor_units(subtotal_units, precision)

    # ------------------------------------------------------------------
    # Internals (all arithmetic in integer minor units)
    # ------------------------------------------------------------------

    @staticmethod
    def _line_units(items: Sequence[LineItem], precision: int) -> Tuple[List[int], int]:
        """Line totals and subtotal in minor units"""
        line_units = []
        for item in items:
            try:
                rounded = round_half_up(item.line_total, precision)
            except InvalidOperation:
                raise InvalidLineItemError(
                    f"Item {item.id!r}: line total {item.line_total} is too large to round"
                ) from None
            line_units.append(to_minor_units(rounded, precision))

        subtotal_units = sum(line_units)
        try:
            from_minor_units(subtotal_units, precision)
        except InvalidOperation:
            raise InvalidLineItemError("Cart subtotal is too large to represent") from None
        return line_units, subtotal_units

    @staticmethod
    def _ensure_allocatable(subtotal_units: int) -> None:
        if subtotal_units == 0:
            raise DegenerateCartError(
                "Cart subtotal is zero; a proportional discount split is undefined"
            )

    def _allocate_proportionally(
        self,
        items: Sequence[LineItem],
        line_units: List[int],
        subtotal_units: int,
        target_units: int,
        currency: str,
        precision: int
    ) -> AllocationResult:
        """
        Floor each proportional share, then reconcile the shortfall

        share_i = target * line_i / subtotal is kept as an exact fraction:
        floored_i = (target * line_i) // subtotal, remainder_i is the modulo.
        """
        floored = []
        remainders = []
        for units in line_units:
            share, remainder = divmod(target_units * units, subtotal_units)
            floored.append(share)
            remainders.append(remainder)

        shortfall = target_units - sum(floored)
        discount_units, adjusted = self._reconcile(floored, remainders, shortfall)

        records = tuple(
            self._make_record(item, units, discount, precision)
            for item, units, discount in zip(items, line_units, discount_units)
        )

        return AllocationResult(
            records=records,
            subtotal=from_minor_units(subtotal_units, precision),
            total_discount=from_minor_units(target_units, precision),
            currency=currency,
            accuracy=AllocationAccuracy.RECONCILED if adjusted else AllocationAccuracy.PROPORTIONAL,
            adjusted_units=adjusted
        )

    def _reconcile(
        self,
        floored: List[int],
        remainders: List[int],
        shortfall: int
    ) -> Tuple[List[int], int]:
        """
        Largest-remainder reconciliation

        Hands one minor unit to each item in order of descending remainder
        (lowest input index first on ties) until the shortfall is used up.

        Returns:
            Tuple of (per-item discount units, units handed out)
        """
        if Decimal(shortfall) <= self.rounding_epsilon:
            return list(floored), 0

        ranked = sorted(range(len(floored)), key=lambda i: (-remainders[i], i))

        # Each remainder is < 1 unit and they sum to the shortfall,
        # so the shortfall is always smaller than the item count.
        adjusted = list(floored)
        for index in ranked[:shortfall]:
            adjusted[index] += 1

        return adjusted, shortfall

    def _single_item_result(
        self,
        item: LineItem,
        line_units: int,
        discount: Decimal,
        currency: str,
        precision: int
    ) -> AllocationResult:
        """Fast path: one item takes the whole discount, no reconciliation"""
        discount_units = min(to_minor_units(discount, precision), line_units)
        record = self._make_record(item, line_units, discount_units, precision)

        return AllocationResult(
            records=(record,),
            subtotal=record.original_amount,
            total_discount=record.discount_amount,
            currency=currency,
            accuracy=AllocationAccuracy.EXACT
        )

    @staticmethod
    def _make_record(
        item: LineItem,
        line_units: int,
        discount_units: int,
        precision: int
    ) -> AllocationRecord:
        discounted_units = max(0, line_units - discount_units)
        return AllocationRecord(
            item_id=item.id,
            original_amount=from_minor_units(line_units, precision),
            discount_amount=from_minor_units(discount_units, precision),
            discounted_amount=from_minor_units(discounted_units, precision)
        )

    @staticmethod
    def _empty_result(currency: str, precision: int) -> AllocationResult:
        zero = from_minor_units(0, precision)
        return AllocationResult(
            records=(),
            subtotal=zero,
            total_discount=zero,
            currency=currency,
            accuracy=AllocationAccuracy.EXACT
        )
