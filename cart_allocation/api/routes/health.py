from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready():
    from cart_allocation.main import allocation_engine

    engine_ready = allocation_engine is not None
    return {
        "status": "ready" if engine_ready else "not_ready",
        "engine_loaded": engine_ready,
    }
