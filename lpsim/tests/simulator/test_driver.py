import pytest

from lpsim.common.config import default_scenario
from lpsim.common.errors import (
    ConfigurationError,
    InsufficientBalance,
    PriceLimitAlreadyExceeded,
    ScenarioAborted,
    SimulationStateError,
)
from lpsim.common.models import SwapParams
from lpsim.engine.interface import PoolEngine
from lpsim.engine.memory_engine import ENGINE_ADDRESS, InMemoryPoolEngine
from lpsim.simulator.driver import DriverState, SimulationDriver, run_scenario
from lpsim.simulator.fixed_point import Q96, encode_sqrt_price_x96
from lpsim.simulator.telemetry import format_price
from lpsim.simulator.tick_math import MAX_SQRT_PRICE, get_sqrt_price_at_tick
from lpsim.visibility.telemetry_sink import MemorySink


class RecordingEngine(InMemoryPoolEngine):
    """Counts engine calls and can refuse the n-th swap."""

    def __init__(self, fail_on_swap=None):
        super().__init__()
        self.calls = []
        self.fail_on_swap = fail_on_swap
        self.swaps = 0

    def deal(self, account, currency, amount):
        self.calls.append("deal")
        super().deal(account, currency, amount)

    def initialize(self, key, sqrt_price_x96):
        self.calls.append("initialize")
        return super().initialize(key, sqrt_price_x96)

    def mint(self, *args):
        self.calls.append("mint")
        return super().mint(*args)

    def swap(self, key, params, settings, sender):
        self.calls.append("swap")
        self.swaps += 1
        if self.swaps == self.fail_on_swap:
            raise PriceLimitAlreadyExceeded("refused by test engine")
        return super().swap(key, params, settings, sender)


def test_default_scenario_emits_ordered_records():
    sink = MemorySink()
    records = run_scenario(default_scenario(), sink=sink)
    assert [r.iteration for r in records] == list(range(11))
    assert sink.lines == [r.line() for r in records]
    # iteration 0 is the post-mint state at the initial price
    assert records[0].price == format_price(Q96)
    assert records[0].sqrt_price_x96 == Q96
    prices = [r.sqrt_price_x96 for r in records]
    assert all(a > b for a, b in zip(prices, prices[1:]))
    reserves0 = [r.raw_balance0 for r in records]
    reserves1 = [r.raw_balance1 for r in records]
    assert all(a < b for a, b in zip(reserves0, reserves0[1:]))
    assert all(a > b for a, b in zip(reserves1, reserves1[1:]))
    assert records[-1].raw_balance0 - records[0].raw_balance0 == 10 * 10 ** 17


def test_record_line_shape():
    records = run_scenario(default_scenario())
    for r in records:
        parts = r.line().split(",")
        assert len(parts) == 4
        assert parts[0] == str(r.iteration)
        assert parts[1].startswith("0.000")
        assert parts[2].isdigit() and parts[3].isdigit()


def test_one_for_zero_prices_rise():
    cfg = default_scenario().model_copy(
        update={"swap": SwapParams(zero_for_one=False, amount_specified=10 ** 17, sqrt_price_limit_x96=MAX_SQRT_PRICE - 1)}
    )
    records = run_scenario(cfg)
    prices = [r.sqrt_price_x96 for r in records]
    assert all(a < b for a, b in zip(prices, prices[1:]))


def test_zero_swaps_emits_only_mint_record():
    cfg = default_scenario().model_copy(update={"swap_count": 0})
    records = run_scenario(cfg)
    assert [r.iteration for r in records] == [0]


def test_exact_output_scenario():
    cfg = default_scenario().model_copy(
        update={
            "swap_count": 3,
            "swap": SwapParams(zero_for_one=True, amount_specified=-10 ** 16, sqrt_price_limit_x96=4295128740),
        }
    )
    records = run_scenario(cfg)
    assert len(records) == 4
    assert records[0].raw_balance1 - records[-1].raw_balance1 == 3 * 10 ** 16


def test_reserves_can_track_another_account():
    engine = InMemoryPoolEngine()
    cfg = default_scenario().model_copy(update={"reserve_account": default_scenario().investor, "swap_count": 1})
    records = run_scenario(cfg, engine=engine)
    key = cfg.pool_key
    assert records[-1].raw_balance1 == engine.balance_of(cfg.investor, key.currency1)
    assert records[-1].raw_balance0 != engine.balance_of(ENGINE_ADDRESS, key.currency0)


def test_abort_keeps_records_before_failure():
    engine = RecordingEngine(fail_on_swap=3)
    sink = MemorySink()
    with pytest.raises(ScenarioAborted) as info:
        run_scenario(default_scenario(), engine=engine, sink=sink)
    exc = info.value
    assert [r.iteration for r in exc.records] == [0, 1, 2]
    assert len(sink.records) == 3
    assert exc.iteration == 3
    assert isinstance(exc.error, PriceLimitAlreadyExceeded)
    assert exc.__cause__ is exc.error
    assert engine.swaps == 3


def test_price_limit_reached_aborts_next_swap():
    # first swap parks the price on the limit, the second has nowhere to go
    cfg = default_scenario().model_copy(
        update={"swap": SwapParams(zero_for_one=True, amount_specified=10 ** 17, sqrt_price_limit_x96=Q96 - 1)}
    )
    with pytest.raises(ScenarioAborted) as info:
        run_scenario(cfg)
    assert [r.iteration for r in info.value.records] == [0, 1]
    assert info.value.records[1].sqrt_price_x96 == Q96 - 1
    assert info.value.iteration == 2
    assert isinstance(info.value.error, PriceLimitAlreadyExceeded)


@pytest.mark.parametrize(
    "update",
    [
        # identical bounds
        {"sqrt_price_lower_x96": Q96, "sqrt_price_upper_x96": Q96},
        # narrower than one tick spacing
        {"sqrt_price_lower_x96": get_sqrt_price_at_tick(0), "sqrt_price_upper_x96": get_sqrt_price_at_tick(30)},
        # inverted
        {"sqrt_price_lower_x96": encode_sqrt_price_x96(2, 1), "sqrt_price_upper_x96": encode_sqrt_price_x96(1, 2)},
        # nothing to deposit
        {"amount0_desired": 0, "amount1_desired": 0},
        # below the price domain
        {"sqrt_price_lower_x96": 1},
        {"initial_sqrt_price_x96": 1},
    ],
)
def test_degenerate_scenarios_fail_before_engine(update):
    engine = RecordingEngine()
    cfg = default_scenario().model_copy(update=update)
    with pytest.raises(ConfigurationError):
        run_scenario(cfg, engine=engine)
    assert engine.calls == []


def test_driver_enforces_protocol_order():
    cfg = default_scenario()
    engine = InMemoryPoolEngine()
    driver = SimulationDriver(cfg, engine)
    with pytest.raises(SimulationStateError):
        driver.run_swaps(1, cfg.swap)
    with pytest.raises(SimulationStateError):
        driver.mint_position(cfg.pool_key, -60, 60, 1, cfg.provider)
    driver.initialize_pool(cfg.pool_key, cfg.initial_sqrt_price_x96)
    assert driver.state == DriverState.POOL_INITIALIZED
    with pytest.raises(SimulationStateError):
        driver.initialize_pool(cfg.pool_key, cfg.initial_sqrt_price_x96)


def test_driver_step_by_step():
    cfg = default_scenario()
    engine = InMemoryPoolEngine()
    engine.deal(cfg.provider, cfg.pool_key.currency0, 10 ** 30)
    engine.deal(cfg.provider, cfg.pool_key.currency1, 10 ** 30)
    engine.deal(cfg.investor, cfg.pool_key.currency0, 10 ** 30)
    driver = SimulationDriver(cfg, engine)
    tick_lower, tick_upper, liquidity = driver.plan_position()
    assert (tick_lower, tick_upper) == (-6900, 6900)
    driver.initialize_pool(cfg.pool_key, cfg.initial_sqrt_price_x96)
    driver.mint_position(cfg.pool_key, tick_lower, tick_upper, liquidity, cfg.provider)
    assert driver.state == DriverState.POSITION_MINTED
    assert driver.position_id == 1
    records = driver.run_swaps(2, cfg.swap)
    assert driver.state == DriverState.DONE
    assert [r.iteration for r in records] == [0, 1, 2]


class UnfundedEngine(InMemoryPoolEngine):
    """Engine that falls back to the interface's no-op funding."""

    def fund(self, account, currency, amount):
        return PoolEngine.fund(self, account, currency, amount)


def test_engine_without_funding_relies_on_external_balances():
    cfg = default_scenario()
    engine = UnfundedEngine()
    with pytest.raises(ScenarioAborted) as info:
        run_scenario(cfg, engine=engine)
    assert isinstance(info.value.error, InsufficientBalance)
    assert info.value.records == []

    funded = UnfundedEngine()
    for account in (cfg.provider, cfg.investor):
        funded.deal(account, cfg.pool_key.currency0, 10 ** 30)
        funded.deal(account, cfg.pool_key.currency1, 10 ** 30)
    assert len(run_scenario(cfg, engine=funded)) == 11
