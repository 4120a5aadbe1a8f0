from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from cart_allocation.api.routes import allocation, health
from cart_allocation.domain.models import LineItem
from cart_allocation.domain.services.allocation_engine import AllocationEngine
from cart_allocation.domain.services.config_engine import ConfigEngine
from cart_allocation.domain.services.currency_precision import CurrencyPrecisionTable
import cart_allocation.main as app_main


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def config_dir() -> Path:
    """Repository config directory"""
    return CONFIG_DIR


@pytest.fixture
def currency_table() -> CurrencyPrecisionTable:
    """ISO default currency table, unknown codes rejected"""
    return CurrencyPrecisionTable()


@pytest.fixture
def engine(currency_table) -> AllocationEngine:
    return AllocationEngine(currency_table=currency_table)


@pytest.fixture
def sample_cart():
    """12.99 x1, 8.50 x2, 22.45 x1"""
    return [
        LineItem(id="1", unit_price=Decimal("12.99"), quantity=1),
        LineItem(id="2", unit_price=Decimal("8.50"), quantity=2),
        LineItem(id="3", unit_price=Decimal("22.45"), quantity=1),
    ]


@pytest.fixture
def loaded_config(config_dir) -> ConfigEngine:
    config_engine = ConfigEngine(config_dir)
    config_engine.load_all()
    return config_engine


@pytest.fixture
def app(loaded_config, monkeypatch) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(allocation.router, prefix="/api/v1/allocation", tags=["Allocation"])

    # Routes read the engines from the main module
    monkeypatch.setattr(app_main, "config_engine", loaded_config)
    monkeypatch.setattr(
        app_main,
        "allocation_engine",
        AllocationEngine(
            currency_table=loaded_config.currency_table,
            rounding_epsilon=loaded_config.rounding_epsilon,
        ),
    )
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
