"""Integer-exact tick <-> sqrt price conversion.

Port of the pool engine's TickMath: ``get_sqrt_price_at_tick`` reproduces the
bit-by-bit ratio multiplication, and ``get_tick_at_sqrt_price`` is its exact
inverse found by binary search (no floats, no logarithms).
"""

from __future__ import annotations

from lpsim.simulator.fixed_point import MAX_UINT256

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_PRICE = 4295128739  # ratio at MIN_TICK
MAX_SQRT_PRICE = 1461446703485210103287273052203988822378723970342  # ratio at MAX_TICK
MIN_TICK_SPACING = 1
MAX_TICK_SPACING = 32767

# sqrt(1.0001^-(2^i)) in Q128.128 for bit i of |tick|
_RATIOS = (
    0xfffcb933bd6fad37aa2d162d1a594001,
    0xfff97272373d413259a46990580e213a,
    0xfff2e50f5f656932ef12357cf3c7fdcc,
    0xffe5caca7e10e4e61c3624eaa0941cd0,
    0xffcb9843d60f6159c9db58835c926644,
    0xff973b41fa98c081472e6896dfb254c0,
    0xff2ea16466c96a3843ec78b326b52861,
    0xfe5dee046a99a2a811c461f1969c3053,
    0xfcbe86c7900a88aedcffc83b479aa3a4,
    0xf987a7253ac413176f2b074cf7815e54,
    0xf3392b0822b70005940c7a398e4b70f3,
    0xe7159475a2c29b7443b29c7fa6e889d9,
    0xd097f3bdfd2022b8845ad8f792aa5825,
    0xa9f746462d870fdf8a65dc1f90e061e5,
    0x70d869a156d2a1b890bb3df62baf32f7,
    0x31be135f97d08fd981231505542fcfa6,
    0x9aa508b5b7a84e1c677de54f3e99bc9,
    0x5d6af8dedb81196699c329225ee604,
    0x2216e584f5fa1ea926041bedfe98,
    0x48a170391f7dc42444e8fa2,
)


def get_sqrt_price_at_tick(tick: int) -> int:
    """sqrt(1.0001^tick) * 2^96, rounded up to the next Q96 unit."""
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"tick {tick} out of bounds")
    abs_tick = -tick if tick < 0 else tick
    ratio = 1 << 128
    for i, factor in enumerate(_RATIOS):
        if (abs_tick >> i) & 1:
            ratio = (ratio * factor) >> 128
    if tick > 0:
        ratio = MAX_UINT256 // ratio
    # Q128.128 -> Q64.96, rounding up
    return (ratio >> 32) + (1 if ratio % (1 << 32) else 0)


def get_tick_at_sqrt_price(sqrt_price_x96: int) -> int:
    """Greatest tick whose sqrt price is <= ``sqrt_price_x96``."""
    if sqrt_price_x96 < MIN_SQRT_PRICE or sqrt_price_x96 >= MAX_SQRT_PRICE:
        raise ValueError(f"sqrt price {sqrt_price_x96} out of bounds")
    lo, hi = MIN_TICK, MAX_TICK
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if get_sqrt_price_at_tick(mid) <= sqrt_price_x96:
            lo = mid
        else:
            hi = mid - 1
    return lo


def _truncated_multiple(tick: int, spacing: int) -> int:
    # Solidity-style signed division: rounds toward zero
    quotient = abs(tick) // spacing
    return (-quotient if tick < 0 else quotient) * spacing


def min_usable_tick(tick_spacing: int) -> int:
    _check_spacing(tick_spacing)
    return _truncated_multiple(MIN_TICK, tick_spacing)


def max_usable_tick(tick_spacing: int) -> int:
    _check_spacing(tick_spacing)
    return _truncated_multiple(MAX_TICK, tick_spacing)


def _check_spacing(tick_spacing: int) -> None:
    if tick_spacing < MIN_TICK_SPACING or tick_spacing > MAX_TICK_SPACING:
        raise ValueError(f"tick spacing {tick_spacing} out of bounds")


__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_PRICE",
    "MAX_SQRT_PRICE",
    "get_sqrt_price_at_tick",
    "get_tick_at_sqrt_price",
    "min_usable_tick",
    "max_usable_tick",
]
