"""Metrics export helpers."""

from __future__ import annotations

from lpsim.common import metrics
from lpsim.common.models import PoolKey, SimulationRecord


def publish_record(scenario: str, key: PoolKey, record: SimulationRecord) -> None:
    metrics.RECORDS.labels(scenario=scenario).inc()
    metrics.LAST_ITERATION.labels(scenario=scenario).set(record.iteration)
    if record.sqrt_price_x96 is None:
        return
    reserves = {}
    if record.raw_balance0 is not None:
        reserves[key.currency0] = record.raw_balance0
    if record.raw_balance1 is not None:
        reserves[key.currency1] = record.raw_balance1
    metrics.update_pool_metrics(
        key.to_id(),
        sqrt_price_x96=record.sqrt_price_x96,
        tick=record.tick or 0,
        reserves=reserves,
    )


def publish_rejection(reason: str) -> None:
    metrics.increment_counter(metrics.ENGINE_REJECTIONS, {"reason": reason})


__all__ = ["publish_record", "publish_rejection"]
