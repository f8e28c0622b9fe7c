from lpsim.simulator.fixed_point import Q96
from lpsim.simulator.sqrt_price_math import get_amount0_delta, get_amount1_delta, get_next_sqrt_price_from_input
from lpsim.simulator.swap_math import compute_swap_step
from lpsim.simulator.tick_math import get_sqrt_price_at_tick

LIQUIDITY = 10 ** 21


def test_exact_input_within_range_consumes_whole_amount():
    target = get_sqrt_price_at_tick(-600)
    step = compute_swap_step(Q96, target, LIQUIDITY, 10 ** 18, 3000)
    assert target < step.sqrt_price_next_x96 < Q96
    assert step.amount_in + step.fee_amount == 10 ** 18
    assert step.fee_amount >= 10 ** 18 * 3000 // 1_000_000
    assert 0 < step.amount_out < 10 ** 18


def test_exact_input_reaching_target_stops_there():
    target = get_sqrt_price_at_tick(-60)
    step = compute_swap_step(Q96, target, 10 ** 18, 10 ** 30, 3000)
    assert step.sqrt_price_next_x96 == target
    assert step.amount_in == get_amount0_delta(target, Q96, 10 ** 18, True)
    assert step.amount_in + step.fee_amount < 10 ** 30


def test_exact_output_pays_exactly_requested():
    target = get_sqrt_price_at_tick(-600)
    step = compute_swap_step(Q96, target, LIQUIDITY, -10 ** 15, 500)
    assert step.amount_out == 10 ** 15
    assert target < step.sqrt_price_next_x96 < Q96
    assert step.amount_in > 10 ** 15


def test_one_for_zero_moves_price_up():
    target = get_sqrt_price_at_tick(600)
    step = compute_swap_step(Q96, target, LIQUIDITY, 10 ** 18, 0)
    assert Q96 < step.sqrt_price_next_x96 < target
    assert step.amount_in == get_amount1_delta(Q96, step.sqrt_price_next_x96, LIQUIDITY, True)


def test_zero_fee_and_zero_liquidity():
    target = get_sqrt_price_at_tick(-60)
    step = compute_swap_step(Q96, target, 0, 10 ** 18, 3000)
    assert step.sqrt_price_next_x96 == target
    assert step.amount_in == step.amount_out == step.fee_amount == 0


def test_next_price_from_input_rounds_toward_pool():
    after0 = get_next_sqrt_price_from_input(Q96, LIQUIDITY, 10 ** 18, True)
    assert after0 < Q96
    after1 = get_next_sqrt_price_from_input(Q96, LIQUIDITY, 10 ** 18, False)
    assert after1 > Q96
