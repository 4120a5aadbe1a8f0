"""
CONFIG ENGINE
Load, validate, and expose allocation configuration

RESPONSIBILITIES:
- Load YAML configuration files
- Validate configuration integrity
- Expose read-only typed objects

RULES:
❌ No partial configuration (missing file = startup failure)
✅ Fail fast on invalid config
✅ Deterministic output
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cart_allocation.domain.services.currency_precision import (
    DEFAULT_MINOR_UNITS,
    CurrencyPrecisionTable,
)

logger = logging.getLogger(__name__)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for the currency table and rounding tolerance
    """

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._currency_table: Optional[CurrencyPrecisionTable] = None
        self._allocation_config: Optional[Dict[str, Any]] = None
        self._rounding_epsilon: Optional[Decimal] = None

    def load_all(self) -> None:
        """Load all configuration files"""
        self._load_allocation_config()
        self._load_currencies()
        logger.info(
            "Loaded %d currencies from %s (default currency %s, epsilon %s)",
            len(self._currency_table),
            self.config_dir,
            self.default_currency,
            self._rounding_epsilon,
        )

    def _read_yaml(self, name: str) -> Dict[str, Any]:
        path = self.config_dir / name
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{name} must contain a mapping at the top level")
        return data

    def _load_allocation_config(self) -> None:
        """Load rounding and defaults from allocation.yml"""
        data = self._read_yaml("allocation.yml")

        rounding = data.get("rounding") or {}
        try:
            epsilon = Decimal(str(rounding.get("epsilon", "0.001")))
        except InvalidOperation:
            raise ValueError(f"rounding.epsilon is not a number: {rounding.get('epsilon')!r}") from None
        if not (Decimal('0') <= epsilon < Decimal('1')):
            raise ValueError(f"rounding.epsilon must be in [0, 1), got {epsilon}")

        default_currency = str(data.get("default_currency", "EUR")).upper()
        if not _CURRENCY_CODE.match(default_currency):
            raise ValueError(f"Invalid default_currency: {default_currency}")

        self._rounding_epsilon = epsilon
        self._allocation_config = {
            "default_currency": default_currency,
            "allow_default_precision": bool(data.get("allow_default_precision", False)),
        }

    def _load_currencies(self) -> None:
        """Load currency precision table from currencies.yml"""
        data = self._read_yaml("currencies.yml")

        currencies = data.get("currencies")
        if not isinstance(currencies, dict) or not currencies:
            raise ValueError("currencies.yml must define a non-empty 'currencies' mapping")

        for code in currencies:
            if not isinstance(code, str) or not _CURRENCY_CODE.match(code):
                raise ValueError(f"Invalid currency code in currencies.yml: {code!r}")

        default_precision = (
            DEFAULT_MINOR_UNITS if self._allocation_config["allow_default_precision"] else None
        )
        self._currency_table = CurrencyPrecisionTable(currencies, default_precision=default_precision)

        if self.default_currency not in self._currency_table:
            raise ValueError(
                f"default_currency {self.default_currency} is missing from currencies.yml"
            )

    def _require_loaded(self) -> None:
        if self._currency_table is None:
            raise RuntimeError("Configuration not loaded; call load_all() first")

    # Public accessors

    @property
    def currency_table(self) -> CurrencyPrecisionTable:
        self._require_loaded()
        return self._currency_table

    @property
    def rounding_epsilon(self) -> Decimal:
        self._require_loaded()
        return self._rounding_epsilon

    @property
    def default_currency(self) -> str:
        if self._allocation_config is None:
            raise RuntimeError("Configuration not loaded; call load_all() first")
        return self._allocation_config["default_currency"]
