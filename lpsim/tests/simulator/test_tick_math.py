import pytest

from lpsim.simulator.fixed_point import Q96
from lpsim.simulator.tick_math import (
    MAX_SQRT_PRICE,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MIN_TICK,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
    max_usable_tick,
    min_usable_tick,
)


def test_tick_bounds_match_price_bounds():
    assert get_sqrt_price_at_tick(MIN_TICK) == MIN_SQRT_PRICE
    assert get_sqrt_price_at_tick(MAX_TICK) == MAX_SQRT_PRICE
    assert get_sqrt_price_at_tick(0) == Q96


@pytest.mark.parametrize("tick", [MIN_TICK, -200000, -6932, -1, 0, 1, 6931, 200000, MAX_TICK - 1])
def test_tick_roundtrip(tick):
    assert get_tick_at_sqrt_price(get_sqrt_price_at_tick(tick)) == tick


def test_tick_at_price_is_floor():
    s = get_sqrt_price_at_tick(100)
    assert get_tick_at_sqrt_price(s + 1) == 100
    assert get_tick_at_sqrt_price(s - 1) == 99
    assert get_tick_at_sqrt_price(MAX_SQRT_PRICE - 1) == MAX_TICK - 1


def test_sqrt_price_strictly_increasing():
    prices = [get_sqrt_price_at_tick(t) for t in range(-50, 51)]
    assert all(a < b for a, b in zip(prices, prices[1:]))


@pytest.mark.parametrize("bad", [MIN_TICK - 1, MAX_TICK + 1])
def test_tick_out_of_bounds(bad):
    with pytest.raises(ValueError):
        get_sqrt_price_at_tick(bad)


@pytest.mark.parametrize("bad", [0, MIN_SQRT_PRICE - 1, MAX_SQRT_PRICE])
def test_price_out_of_bounds(bad):
    with pytest.raises(ValueError):
        get_tick_at_sqrt_price(bad)


@pytest.mark.parametrize("spacing,bound", [(1, 887272), (10, 887270), (60, 887220), (200, 887200)])
def test_usable_ticks(spacing, bound):
    assert min_usable_tick(spacing) == -bound
    assert max_usable_tick(spacing) == bound


def test_usable_ticks_reject_bad_spacing():
    with pytest.raises(ValueError):
        min_usable_tick(0)
    with pytest.raises(ValueError):
        max_usable_tick(32768)
