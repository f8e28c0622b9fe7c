"""Token amount <-> sqrt price deltas (integer, with explicit rounding).

Rounding always favours the pool: amounts the pool receives round up, amounts
it pays round down.
"""

from __future__ import annotations

from lpsim.simulator.fixed_point import MAX_UINT160, Q96, RESOLUTION


def mul_div(a: int, b: int, denominator: int) -> int:
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    return -((-(a * b)) // denominator)


def div_rounding_up(x: int, y: int) -> int:
    return -((-x) // y)


def get_amount0_delta(sqrt_a_x96: int, sqrt_b_x96: int, liquidity: int, round_up: bool) -> int:
    """Token0 between two sqrt prices: L * (sqrtB - sqrtA) / (sqrtA * sqrtB)."""
    if sqrt_a_x96 > sqrt_b_x96:
        sqrt_a_x96, sqrt_b_x96 = sqrt_b_x96, sqrt_a_x96
    if sqrt_a_x96 <= 0:
        raise ValueError("sqrt price must be positive")
    numerator1 = liquidity << RESOLUTION
    numerator2 = sqrt_b_x96 - sqrt_a_x96
    if round_up:
        return div_rounding_up(mul_div_rounding_up(numerator1, numerator2, sqrt_b_x96), sqrt_a_x96)
    return mul_div(numerator1, numerator2, sqrt_b_x96) // sqrt_a_x96


def get_amount1_delta(sqrt_a_x96: int, sqrt_b_x96: int, liquidity: int, round_up: bool) -> int:
    """Token1 between two sqrt prices: L * (sqrtB - sqrtA)."""
    if sqrt_a_x96 > sqrt_b_x96:
        sqrt_a_x96, sqrt_b_x96 = sqrt_b_x96, sqrt_a_x96
    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_b_x96 - sqrt_a_x96, Q96)
    return mul_div(liquidity, sqrt_b_x96 - sqrt_a_x96, Q96)


def _next_from_amount0_rounding_up(sqrt_price_x96: int, liquidity: int, amount: int, add: bool) -> int:
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION
    product = amount * sqrt_price_x96
    if add:
        return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 + product)
    denominator = numerator1 - product
    if denominator <= 0:
        raise ValueError("not enough token0 liquidity for output")
    return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)


def _next_from_amount1_rounding_down(sqrt_price_x96: int, liquidity: int, amount: int, add: bool) -> int:
    if add:
        result = sqrt_price_x96 + (amount << RESOLUTION) // liquidity
        if result > MAX_UINT160:
            raise ValueError("sqrt price overflow")
        return result
    quotient = div_rounding_up(amount << RESOLUTION, liquidity)
    if sqrt_price_x96 <= quotient:
        raise ValueError("not enough token1 liquidity for output")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("sqrt price and liquidity must be positive")
    if zero_for_one:
        return _next_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return _next_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(sqrt_price_x96: int, liquidity: int, amount_out: int, zero_for_one: bool) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("sqrt price and liquidity must be positive")
    if zero_for_one:
        return _next_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_out, False)
    return _next_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)


__all__ = [
    "mul_div",
    "mul_div_rounding_up",
    "div_rounding_up",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
]
