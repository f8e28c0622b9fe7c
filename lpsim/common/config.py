"""Configuration loading and scenario manifest validation utilities."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from lpsim.common.errors import ConfigurationError
from lpsim.common.models import PoolKey, SimulationConfig, SwapParams, SwapSettings
from lpsim.simulator.fixed_point import encode_sqrt_price_x96
from lpsim.simulator.tick_math import MAX_SQRT_PRICE, MIN_SQRT_PRICE

SCENARIO_SCHEMA = "scenario.schema.json"

# Addresses of the first two contracts a fresh local devnet deploys.
DEFAULT_TOKEN_A = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
DEFAULT_TOKEN_B = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"

log = logging.getLogger(__name__)


def _load_json(path: str | Path) -> Dict[str, Any]:
    with Path(path).expanduser().open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _load_schema(name: str) -> Dict[str, Any]:
    here = Path(__file__).resolve().parent / "schemas"
    return _load_json(here / name)


def validate_json_manifest(payload: Dict[str, Any], schema_name: str) -> None:
    """Validate a manifest dict against a bundled JSON schema."""
    schema = _load_schema(schema_name)
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        msgs = "; ".join(f"{'/'.join(map(str, e.path)) or '<root>'}: {e.message}" for e in errors)
        raise ConfigurationError(f"Manifest validation failed: {msgs}")


def load_validated_manifest(path: str | Path, schema_name: str) -> Dict[str, Any]:
    """Load JSON file and validate it; returns the parsed object."""
    payload = _load_json(path)
    validate_json_manifest(payload, schema_name)
    return payload


def _sqrt_price(price: Optional[Dict[str, Any]]) -> int:
    """Raw sqrt price, or a ``[numerator, denominator]`` ratio encoded to Q64.96; absent means 0."""
    if price is None:
        return 0
    if "sqrt_price_x96" in price:
        return int(price["sqrt_price_x96"])
    numerator, denominator = (int(v) for v in price["ratio"])
    return encode_sqrt_price_x96(numerator, denominator)


def _price_limit(value: Any, zero_for_one: bool) -> int:
    if value is None:
        value = "min" if zero_for_one else "max"
    if value == "min":
        return MIN_SQRT_PRICE + 1
    if value == "max":
        return MAX_SQRT_PRICE - 1
    return int(value)


def scenario_from_dict(payload: Dict[str, Any]) -> SimulationConfig:
    """Build a ``SimulationConfig`` from an already schema-validated manifest."""
    swap = payload["swap"]
    fields: Dict[str, Any] = {
        "pool_key": PoolKey(**payload["pool"]),
        "initial_sqrt_price_x96": _sqrt_price(payload["initial_price"]),
        "sqrt_price_lower_x96": _sqrt_price(payload.get("price_lower")),
        "sqrt_price_upper_x96": _sqrt_price(payload.get("price_upper")),
        "amount0_desired": int(payload["amount0_desired"]),
        "amount1_desired": int(payload["amount1_desired"]),
        "swap_count": payload["swap_count"],
        "swap": SwapParams(
            zero_for_one=swap["zero_for_one"],
            amount_specified=int(swap["amount_specified"]),
            sqrt_price_limit_x96=_price_limit(swap.get("sqrt_price_limit_x96"), swap["zero_for_one"]),
        ),
        "swap_settings": SwapSettings(**payload.get("swap_settings", {})),
    }
    for name in ("name", "provider", "investor", "reserve_account", "decimals0", "decimals1"):
        if name in payload:
            fields[name] = payload[name]
    for name in ("deadline", "mint_slippage"):
        if name in payload:
            fields[name] = int(payload[name])
    for name in ("provider_funding", "investor_funding"):
        if name in payload:
            fields[name] = tuple(int(v) for v in payload[name])
    return SimulationConfig(**fields)


def load_scenario(path: str | Path) -> SimulationConfig:
    """Load, validate and convert a scenario manifest."""
    try:
        payload = load_validated_manifest(path, SCENARIO_SCHEMA)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Scenario {path} could not be read: {exc}") from exc
    try:
        config = scenario_from_dict(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Scenario {path} is invalid: {exc}") from exc
    log.info("Loaded scenario %s from %s (%d swaps)", config.name, path, config.swap_count)
    return config


def default_scenario() -> SimulationConfig:
    """1:1 pool at 0.3% with a 1/2..2 range, sold into by ten 0.1-token swaps."""
    return SimulationConfig(
        name="default",
        pool_key=PoolKey(currency0=DEFAULT_TOKEN_A, currency1=DEFAULT_TOKEN_B, fee=3000, tick_spacing=60),
        initial_sqrt_price_x96=encode_sqrt_price_x96(1, 1),
        sqrt_price_lower_x96=encode_sqrt_price_x96(1, 2),
        sqrt_price_upper_x96=encode_sqrt_price_x96(2, 1),
        amount0_desired=100 * 10 ** 18,
        amount1_desired=100 * 10 ** 18,
        swap_count=10,
        swap=SwapParams(zero_for_one=True, amount_specified=10 ** 17, sqrt_price_limit_x96=MIN_SQRT_PRICE + 1),
    )


class Settings(BaseSettings):
    """Environment-driven configuration for the lpsim CLI."""

    service_name: str = Field("lpsim", alias="LPSIM_SERVICE_NAME")
    log_level: str = Field("INFO", alias="LPSIM_LOG_LEVEL")
    scenario_path: str | None = Field(None, alias="LPSIM_SCENARIO_PATH")
    telemetry_path: str = Field("-", alias="LPSIM_TELEMETRY_PATH")
    metrics_host: str = Field("127.0.0.1", alias="LPSIM_METRICS_HOST")
    metrics_port: int = Field(9100, alias="LPSIM_METRICS_PORT")

    # Load environment from a dot-env file if present; ignore unrelated keys
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    def load_scenario(self, path: str | None = None) -> SimulationConfig:
        """Scenario from ``path`` or the configured manifest, else the built-in default."""
        path = path or self.scenario_path
        if not path:
            log.info("No scenario manifest configured; using built-in default")
            return default_scenario()
        if not Path(path).expanduser().exists():
            raise ConfigurationError(f"Scenario manifest {path} not found")
        return load_scenario(path)


__all__ = [
    "Settings",
    "validate_json_manifest",
    "load_validated_manifest",
    "scenario_from_dict",
    "load_scenario",
    "default_scenario",
]
