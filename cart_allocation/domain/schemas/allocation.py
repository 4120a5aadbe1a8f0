from decimal import Decimal
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from cart_allocation.domain.models import AllocationResult, LineItem


class LineItemIn(BaseModel):
    id: Union[str, int]
    unit_price: Decimal
    quantity: int

    def to_domain(self) -> LineItem:
        return LineItem(id=self.id, unit_price=self.unit_price, quantity=self.quantity)


class PercentageAllocationRequest(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)
    rate: Decimal
    currency: Optional[str] = None


class FixedAmountAllocationRequest(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)
    amount: Decimal
    currency: Optional[str] = None


class DiscountIn(BaseModel):
    kind: Literal["percentage", "fixed_amount"]
    rate: Optional[Decimal] = None
    amount: Optional[Decimal] = None


class AllocationRequest(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)
    discount: DiscountIn
    currency: Optional[str] = None


class SignatureRequest(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)


class SignatureResponse(BaseModel):
    signature: str
    item_count: int


class AllocationRecordOut(BaseModel):
    item_id: Union[str, int]
    original_amount: Decimal
    discount_amount: Decimal
    discounted_amount: Decimal


class AllocationResponse(BaseModel):
    currency: str
    subtotal: Decimal
    total_discount: Decimal
    discounted_total: Decimal
    effective_rate: Decimal
    accuracy: str
    adjusted_units: int
    records: List[AllocationRecordOut]

    @classmethod
    def from_result(cls, result: AllocationResult) -> "AllocationResponse":
        return cls(
            currency=result.currency,
            subtotal=result.subtotal,
            total_discount=result.total_discount,
            discounted_total=result.discounted_total,
            effective_rate=result.effective_rate,
            accuracy=result.accuracy.value,
            adjusted_units=result.adjusted_units,
            records=[
                AllocationRecordOut(
                    item_id=r.item_id,
                    original_amount=r.original_amount,
                    discount_amount=r.discount_amount,
                    discounted_amount=r.discounted_amount,
                )
                for r in result.records
            ],
        )


class CurrencyTableResponse(BaseModel):
    default_currency: str
    currencies: Dict[str, int]
