"""Prometheus metrics helpers for lpsim."""

from __future__ import annotations

from typing import Dict

from prometheus_client import Counter, Gauge, Histogram

# Gauges
POOL_SQRT_PRICE = Gauge("lpsim_pool_sqrt_price", "Current sqrtPriceX96 (lossy float)", ["pool_id"])
POOL_TICK = Gauge("lpsim_pool_tick", "Current tick", ["pool_id"])
POOL_RESERVE = Gauge("lpsim_pool_reserve", "Reported reserve balance in raw token units", ["pool_id", "currency"])
LAST_ITERATION = Gauge("lpsim_last_iteration", "Iteration of the last emitted record", ["scenario"])

# Counters
SWAPS = Counter("lpsim_swaps_total", "Swaps executed by the driver", ["scenario", "direction"])
RECORDS = Counter("lpsim_records_total", "Telemetry records emitted", ["scenario"])
ENGINE_REJECTIONS = Counter("lpsim_engine_rejections_total", "Engine rejections by reason", ["reason"])
SCENARIOS = Counter("lpsim_scenarios_total", "Scenario runs by outcome", ["outcome"])

# Histograms
SCENARIO_DURATION_SECONDS = Histogram(
    "lpsim_scenario_duration_seconds",
    "Wall time of a full scenario run",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5),
)


def update_pool_metrics(pool_id: str, *, sqrt_price_x96: int, tick: int, reserves: Dict[str, int]) -> None:
    """Set all per-pool gauges in one call."""
    POOL_SQRT_PRICE.labels(pool_id).set(float(sqrt_price_x96))
    POOL_TICK.labels(pool_id).set(tick)
    for currency, amount in reserves.items():
        POOL_RESERVE.labels(pool_id, currency).set(float(amount))


def increment_counter(counter: Counter, labels: Dict[str, str]) -> None:
    """Increment a labeled counter safely."""
    counter.labels(**labels).inc()


__all__ = [
    "POOL_SQRT_PRICE",
    "POOL_TICK",
    "POOL_RESERVE",
    "LAST_ITERATION",
    "SWAPS",
    "RECORDS",
    "ENGINE_REJECTIONS",
    "SCENARIOS",
    "SCENARIO_DURATION_SECONDS",
    "update_pool_metrics",
    "increment_counter",
]
