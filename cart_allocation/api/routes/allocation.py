"""
Allocation API Routes
Thin HTTP adapter over the allocation engine
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from cart_allocation.core.logging import get_logger
from cart_allocation.domain.errors import AllocationError
from cart_allocation.domain.models import LineItem, discount_from_dict
from cart_allocation.domain.schemas.allocation import (
    AllocationRequest,
    AllocationResponse,
    CurrencyTableResponse,
    FixedAmountAllocationRequest,
    LineItemIn,
    PercentageAllocationRequest,
    SignatureRequest,
    SignatureResponse,
)
from cart_allocation.domain.services.snapshot_signature import compute_signature

router = APIRouter()
logger = get_logger(__name__)


def _get_engines():
    from cart_allocation.main import allocation_engine, config_engine

    if allocation_engine is None or config_engine is None:
        raise HTTPException(status_code=500, detail="Allocation engine not initialised")
    return allocation_engine, config_engine


def _to_items(items: List[LineItemIn]) -> List[LineItem]:
    return [item.to_domain() for item in items]


def _reject(error: AllocationError) -> HTTPException:
    logger.warning("Allocation rejected: %s: %s", type(error).__name__, error)
    return HTTPException(
        status_code=400,
        detail={"error": type(error).__name__, "message": str(error)},
    )


def _currency(requested: Optional[str], config_engine) -> str:
    return requested or config_engine.default_currency


@router.post("/percentage", response_model=AllocationResponse)
async def allocate_percentage(request: PercentageAllocationRequest):
    """
    Split a percentage discount across the cart
    """
    engine, config_engine = _get_engines()
    try:
        result = engine.allocate_percentage(
            _to_items(request.items),
            request.rate,
            _currency(request.currency, config_engine),
        )
    except AllocationError as e:
        raise _reject(e)

    return AllocationResponse.from_result(result)


@router.post("/fixed", response_model=AllocationResponse)
async def allocate_fixed_amount(request: FixedAmountAllocationRequest):
    """
    Split a flat discount across the cart (capped at the subtotal)
    """
    engine, config_engine = _get_engines()
    try:
        result = engine.allocate_fixed_amount(
            _to_items(request.items),
            request.amount,
            _currency(request.currency, config_engine),
        )
    except AllocationError as e:
        raise _reject(e)

    return AllocationResponse.from_result(result)


@router.post("", response_model=AllocationResponse)
async def allocate(request: AllocationRequest):
    """
    Split a resolved discount descriptor across the cart
    """
    engine, config_engine = _get_engines()
    try:
        discount = discount_from_dict(request.discount.model_dump(exclude_none=True))
        result = engine.allocate(
            _to_items(request.items),
            discount,
            _currency(request.currency, config_engine),
        )
    except AllocationError as e:
        raise _reject(e)

    return AllocationResponse.from_result(result)


@router.post("/signature", response_model=SignatureResponse)
async def snapshot_signature(request: SignatureRequest):
    """
    Fingerprint a cart snapshot so callers can skip unchanged reallocations
    """
    try:
        items = _to_items(request.items)
    except AllocationError as e:
        raise _reject(e)

    return SignatureResponse(signature=compute_signature(items), item_count=len(items))


@router.get("/currencies", response_model=CurrencyTableResponse)
async def get_currencies():
    """
    Get the configured currency precision table
    """
    _, config_engine = _get_engines()
    return CurrencyTableResponse(
        default_currency=config_engine.default_currency,
        currencies=dict(config_engine.currency_table.precisions),
    )
