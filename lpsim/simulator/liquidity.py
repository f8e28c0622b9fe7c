"""Liquidity sizing from a price range and desired token amounts."""

from __future__ import annotations

from typing import Tuple

from lpsim.simulator.fixed_point import Q96
from lpsim.simulator.sqrt_price_math import get_amount0_delta, get_amount1_delta, mul_div


def _ordered(sqrt_a_x96: int, sqrt_b_x96: int) -> Tuple[int, int]:
    if sqrt_a_x96 > sqrt_b_x96:
        return sqrt_b_x96, sqrt_a_x96
    return sqrt_a_x96, sqrt_b_x96


def get_liquidity_for_amount0(sqrt_a_x96: int, sqrt_b_x96: int, amount0: int) -> int:
    """amount0 * (sqrtA * sqrtB) / (sqrtB - sqrtA), rounded down."""
    sqrt_a_x96, sqrt_b_x96 = _ordered(sqrt_a_x96, sqrt_b_x96)
    if sqrt_a_x96 == sqrt_b_x96:
        return 0
    intermediate = mul_div(sqrt_a_x96, sqrt_b_x96, Q96)
    return mul_div(amount0, intermediate, sqrt_b_x96 - sqrt_a_x96)


def get_liquidity_for_amount1(sqrt_a_x96: int, sqrt_b_x96: int, amount1: int) -> int:
    """amount1 / (sqrtB - sqrtA), rounded down."""
    sqrt_a_x96, sqrt_b_x96 = _ordered(sqrt_a_x96, sqrt_b_x96)
    if sqrt_a_x96 == sqrt_b_x96:
        return 0
    return mul_div(amount1, Q96, sqrt_b_x96 - sqrt_a_x96)


def get_liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_a_x96: int,
    sqrt_b_x96: int,
    amount0: int,
    amount1: int,
) -> int:
    """Maximum liquidity that fits both amounts at the current price.

    Below the range only token0 is needed, above it only token1; inside the
    range the scarcer side limits the result.
    """
    sqrt_a_x96, sqrt_b_x96 = _ordered(sqrt_a_x96, sqrt_b_x96)
    if sqrt_price_x96 <= sqrt_a_x96:
        return get_liquidity_for_amount0(sqrt_a_x96, sqrt_b_x96, amount0)
    if sqrt_price_x96 < sqrt_b_x96:
        liquidity0 = get_liquidity_for_amount0(sqrt_price_x96, sqrt_b_x96, amount0)
        liquidity1 = get_liquidity_for_amount1(sqrt_a_x96, sqrt_price_x96, amount1)
        return min(liquidity0, liquidity1)
    return get_liquidity_for_amount1(sqrt_a_x96, sqrt_b_x96, amount1)


def get_amounts_for_liquidity(
    sqrt_price_x96: int,
    sqrt_a_x96: int,
    sqrt_b_x96: int,
    liquidity: int,
    round_up: bool = False,
) -> Tuple[int, int]:
    """Token amounts represented by ``liquidity`` over the range at the current price."""
    sqrt_a_x96, sqrt_b_x96 = _ordered(sqrt_a_x96, sqrt_b_x96)
    if sqrt_price_x96 <= sqrt_a_x96:
        return get_amount0_delta(sqrt_a_x96, sqrt_b_x96, liquidity, round_up), 0
    if sqrt_price_x96 < sqrt_b_x96:
        amount0 = get_amount0_delta(sqrt_price_x96, sqrt_b_x96, liquidity, round_up)
        amount1 = get_amount1_delta(sqrt_a_x96, sqrt_price_x96, liquidity, round_up)
        return amount0, amount1
    return 0, get_amount1_delta(sqrt_a_x96, sqrt_b_x96, liquidity, round_up)


def size_liquidity(
    current_sqrt_price_x96: int,
    sqrt_price_at_tick_lower_x96: int,
    sqrt_price_at_tick_upper_x96: int,
    amount0_desired: int,
    amount1_desired: int,
) -> int:
    """Liquidity for a new position that spends at most the desired amounts."""
    if amount0_desired < 0 or amount1_desired < 0:
        raise ValueError("desired amounts must be non-negative")
    return get_liquidity_for_amounts(
        current_sqrt_price_x96,
        sqrt_price_at_tick_lower_x96,
        sqrt_price_at_tick_upper_x96,
        amount0_desired,
        amount1_desired,
    )


__all__ = [
    "get_liquidity_for_amount0",
    "get_liquidity_for_amount1",
    "get_liquidity_for_amounts",
    "get_amounts_for_liquidity",
    "size_liquidity",
]
