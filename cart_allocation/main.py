"""
FastAPI Main Application
Loads configuration once and serves the allocation engine
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI

from cart_allocation.api.routes import allocation, health
from cart_allocation.config import settings
from cart_allocation.core.logging import get_logger, setup_logging
from cart_allocation.domain.services.allocation_engine import AllocationEngine
from cart_allocation.domain.services.config_engine import ConfigEngine

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


# Global instances (read-only after startup)
config_engine: ConfigEngine | None = None
allocation_engine: AllocationEngine | None = None


def _resolve_config_dir() -> Path:
    config_dir = Path(settings.CONFIG_DIR)
    if not config_dir.is_absolute():
        config_dir = Path(__file__).resolve().parent.parent / config_dir
    return config_dir


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Builds the currency table and allocation engine before serving
    """
    global config_engine, allocation_engine

    logger.info("Starting cart allocation service (%s)", settings.APP_ENV)

    config_engine = ConfigEngine(_resolve_config_dir())
    config_engine.load_all()

    allocation_engine = AllocationEngine(
        currency_table=config_engine.currency_table,
        rounding_epsilon=config_engine.rounding_epsilon,
    )
    logger.info("Allocation engine ready")

    yield

    logger.info("Shutting down cart allocation service")


app = FastAPI(
    title="Cart Discount Allocation",
    description="Proportional discount allocation with exact minor-unit reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["Health"])
app.include_router(allocation.router, prefix="/api/v1/allocation", tags=["Allocation"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cart_allocation.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
