import pytest

from lpsim.simulator.fixed_point import Q96
from lpsim.simulator.liquidity import (
    get_amounts_for_liquidity,
    get_liquidity_for_amount0,
    get_liquidity_for_amounts,
    size_liquidity,
)
from lpsim.simulator.tick_math import get_sqrt_price_at_tick

LOWER = get_sqrt_price_at_tick(-6900)
UPPER = get_sqrt_price_at_tick(6900)


def test_sized_liquidity_never_spends_more_than_desired():
    desired0, desired1 = 100 * 10 ** 18, 37 * 10 ** 18
    liquidity = size_liquidity(Q96, LOWER, UPPER, desired0, desired1)
    amount0, amount1 = get_amounts_for_liquidity(Q96, LOWER, UPPER, liquidity, round_up=True)
    assert 0 < amount0 <= desired0
    assert 0 < amount1 <= desired1
    # the scarcer token is almost fully used
    assert desired1 - amount1 < 10 ** 9


def test_liquidity_is_monotonic_in_amounts():
    base = size_liquidity(Q96, LOWER, UPPER, 10 ** 18, 10 ** 18)
    assert size_liquidity(Q96, LOWER, UPPER, 2 * 10 ** 18, 2 * 10 ** 18) > base
    assert size_liquidity(Q96, LOWER, UPPER, 2 * 10 ** 18, 10 ** 18) >= base


def test_out_of_range_needs_single_token():
    below = get_sqrt_price_at_tick(-10000)
    above = get_sqrt_price_at_tick(10000)
    assert get_liquidity_for_amounts(below, LOWER, UPPER, 10 ** 18, 0) == get_liquidity_for_amount0(LOWER, UPPER, 10 ** 18)
    assert get_liquidity_for_amounts(above, LOWER, UPPER, 10 ** 18, 0) == 0
    liquidity = 10 ** 20
    amount0, amount1 = get_amounts_for_liquidity(below, LOWER, UPPER, liquidity)
    assert amount0 > 0 and amount1 == 0
    amount0, amount1 = get_amounts_for_liquidity(above, LOWER, UPPER, liquidity)
    assert amount0 == 0 and amount1 > 0


def test_zero_width_range_has_no_liquidity():
    assert get_liquidity_for_amounts(Q96, Q96, Q96, 10 ** 18, 10 ** 18) == 0


def test_rounding_up_favours_pool():
    down = get_amounts_for_liquidity(Q96, LOWER, UPPER, 10 ** 20 + 7)
    up = get_amounts_for_liquidity(Q96, LOWER, UPPER, 10 ** 20 + 7, round_up=True)
    assert up[0] >= down[0] and up[1] >= down[1]


def test_size_liquidity_rejects_negative():
    with pytest.raises(ValueError):
        size_liquidity(Q96, LOWER, UPPER, -1, 0)
