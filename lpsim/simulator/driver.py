"""Scenario driver: initialize a pool, mint one position, run scripted swaps.

The driver walks a fixed protocol

    UNINITIALIZED -> POOL_INITIALIZED -> POSITION_MINTED -> SWAP_EXECUTED* -> DONE

and after the mint and after every swap reads the price and both reserve
balances back from the engine into one ``SimulationRecord``. Engine rejections
stop the loop at once and propagate untouched; records already emitted stay
valid.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import List, Optional, Tuple

from lpsim.common import metrics
from lpsim.common.errors import ConfigurationError, EngineRejection, ScenarioAborted, SimulationStateError
from lpsim.common.models import PoolKey, SimulationConfig, SimulationRecord, SwapParams
from lpsim.engine.interface import PoolEngine
from lpsim.engine.memory_engine import InMemoryPoolEngine
from lpsim.simulator.liquidity import size_liquidity
from lpsim.simulator.telemetry import format_balance, format_price
from lpsim.simulator.tick_converter import aligned_tick_range
from lpsim.simulator.tick_math import MAX_SQRT_PRICE, MIN_SQRT_PRICE, get_sqrt_price_at_tick
from lpsim.visibility.metrics_exporter import publish_record, publish_rejection
from lpsim.visibility.telemetry_sink import TelemetrySink

log = logging.getLogger(__name__)


class DriverState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    POOL_INITIALIZED = "pool_initialized"
    POSITION_MINTED = "position_minted"
    SWAP_EXECUTED = "swap_executed"
    DONE = "done"


class SimulationDriver:
    def __init__(self, config: SimulationConfig, engine: PoolEngine, sink: Optional[TelemetrySink] = None) -> None:
        self.config = config
        self.engine = engine
        self.sink = sink
        self.state = DriverState.UNINITIALIZED
        self.records: List[SimulationRecord] = []
        self.position_id: Optional[int] = None
        self.failed_iteration: Optional[int] = None
        self.reserve_account = config.reserve_account or engine.address

    def _require(self, *allowed: DriverState) -> None:
        if self.state not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise SimulationStateError(f"driver is {self.state.value}, expected {expected}")

    # Planning ------------------------------------------------------------
    def plan_position(self) -> Tuple[int, int, int]:
        """Tick range and liquidity for the position, checked before any engine call."""
        cfg = self.config
        spacing = cfg.pool_key.tick_spacing
        try:
            tick_lower, tick_upper = aligned_tick_range(cfg.sqrt_price_lower_x96, cfg.sqrt_price_upper_x96, spacing)
        except ValueError as exc:
            raise ConfigurationError(f"price bounds outside the tick domain: {exc}") from exc
        if tick_lower >= tick_upper:
            raise ConfigurationError(
                f"aligned tick range [{tick_lower}, {tick_upper}) is empty at spacing {spacing}"
            )
        if not MIN_SQRT_PRICE <= cfg.initial_sqrt_price_x96 < MAX_SQRT_PRICE:
            raise ConfigurationError(f"initial sqrt price {cfg.initial_sqrt_price_x96} outside the price domain")

        liquidity = size_liquidity(
            cfg.initial_sqrt_price_x96,
            get_sqrt_price_at_tick(tick_lower),
            get_sqrt_price_at_tick(tick_upper),
            cfg.amount0_desired,
            cfg.amount1_desired,
        )
        if liquidity <= 0:
            raise ConfigurationError(
                f"desired amounts ({cfg.amount0_desired}, {cfg.amount1_desired}) size to zero liquidity "
                f"over [{tick_lower}, {tick_upper})"
            )
        return tick_lower, tick_upper, liquidity

    # Protocol steps ------------------------------------------------------
    def initialize_pool(self, key: PoolKey, initial_sqrt_price_x96: int) -> int:
        self._require(DriverState.UNINITIALIZED)
        tick = self.engine.initialize(key, initial_sqrt_price_x96)
        self.state = DriverState.POOL_INITIALIZED
        log.info("Pool %s initialized at tick %d", key.label(), tick)
        return tick

    def mint_position(self, key: PoolKey, tick_lower: int, tick_upper: int, liquidity: int, provider: str) -> int:
        self._require(DriverState.POOL_INITIALIZED)
        amount0_max, amount1_max = self.config.mint_maximums()
        self.position_id = self.engine.mint(
            key,
            tick_lower,
            tick_upper,
            liquidity,
            amount0_max,
            amount1_max,
            provider,
            self.config.deadline,
        )
        self.state = DriverState.POSITION_MINTED
        log.info("Position #%d minted [%d, %d) liquidity=%d", self.position_id, tick_lower, tick_upper, liquidity)
        self.capture(0)
        return self.position_id

    def run_swaps(self, count: int, params: SwapParams) -> List[SimulationRecord]:
        self._require(DriverState.POSITION_MINTED)
        key = self.config.pool_key
        direction = "zero_for_one" if params.zero_for_one else "one_for_zero"
        for iteration in range(1, count + 1):
            try:
                delta = self.engine.swap(key, params, self.config.swap_settings, self.config.investor)
            except EngineRejection as exc:
                self.failed_iteration = iteration
                publish_rejection(exc.reason)
                log.warning("Swap %d/%d rejected (%s): %s", iteration, count, exc.reason, exc)
                raise
            self.state = DriverState.SWAP_EXECUTED
            metrics.SWAPS.labels(scenario=self.config.name, direction=direction).inc()
            log.debug("Swap %d/%d delta=(%d, %d)", iteration, count, delta.amount0, delta.amount1)
            self.capture(iteration)
        self.state = DriverState.DONE
        return list(self.records)

    def capture(self, iteration: int) -> SimulationRecord:
        """Read price and reserves from the engine and emit one record."""
        cfg = self.config
        key = cfg.pool_key
        slot0 = self.engine.get_slot0(key)
        balance0 = self.engine.balance_of(self.reserve_account, key.currency0)
        balance1 = self.engine.balance_of(self.reserve_account, key.currency1)
        record = SimulationRecord(
            iteration=iteration,
            price=format_price(slot0.sqrt_price_x96),
            balance0=format_balance(balance0, cfg.decimals0),
            balance1=format_balance(balance1, cfg.decimals1),
            sqrt_price_x96=slot0.sqrt_price_x96,
            tick=slot0.tick,
            raw_balance0=balance0,
            raw_balance1=balance1,
        )
        self.records.append(record)
        if self.sink is not None:
            self.sink.emit(record)
        publish_record(cfg.name, key, record)
        return record


def _fund_actors(engine: PoolEngine, config: SimulationConfig) -> None:
    """Top up provider and investor on engines that can mint test balances."""
    key = config.pool_key
    for account, (amount0, amount1) in (
        (config.provider, config.funding_for_provider()),
        (config.investor, config.funding_for_investor()),
    ):
        for currency, amount in ((key.currency0, amount0), (key.currency1, amount1)):
            if amount and not engine.fund(account, currency, amount):
                log.info("Engine cannot fund %s; expecting external balances", account)
                return


def run_scenario(
    config: SimulationConfig,
    engine: Optional[PoolEngine] = None,
    sink: Optional[TelemetrySink] = None,
) -> List[SimulationRecord]:
    """Run one scenario on fresh pool state and return its records in order.

    Raises ``ConfigurationError`` before touching the engine when the scenario
    is degenerate, and ``ScenarioAborted`` (carrying the records emitted so far
    and the engine's rejection) when the engine refuses a step.
    """
    engine = engine or InMemoryPoolEngine()
    driver = SimulationDriver(config, engine, sink)
    tick_lower, tick_upper, liquidity = driver.plan_position()
    key = config.pool_key

    log.info(
        "Scenario %s: pool %s range [%d, %d) liquidity=%d swaps=%d",
        config.name,
        key.to_id()[:10],
        tick_lower,
        tick_upper,
        liquidity,
        config.swap_count,
    )
    started = time.time()
    try:
        _fund_actors(engine, config)
        driver.initialize_pool(key, config.initial_sqrt_price_x96)
        driver.mint_position(key, tick_lower, tick_upper, liquidity, config.provider)
        driver.run_swaps(config.swap_count, config.swap)
    except EngineRejection as exc:
        metrics.SCENARIOS.labels(outcome="aborted").inc()
        raise ScenarioAborted(driver.records, exc, iteration=driver.failed_iteration) from exc
    finally:
        metrics.SCENARIO_DURATION_SECONDS.observe(time.time() - started)

    metrics.SCENARIOS.labels(outcome="completed").inc()
    log.info("Scenario %s finished with %d records", config.name, len(driver.records))
    return list(driver.records)


__all__ = ["DriverState", "SimulationDriver", "run_scenario"]
