"""Turn sqrt price bounds into a spacing-aligned tick range."""

from __future__ import annotations

from typing import Tuple

from lpsim.simulator.tick_math import _truncated_multiple, get_tick_at_sqrt_price, max_usable_tick, min_usable_tick


def floor_to_spacing(tick: int, tick_spacing: int) -> int:
    """Align ``tick`` to a multiple of ``tick_spacing``.

    Rounds toward zero like a signed integer division, so ``-7`` at spacing 5
    becomes ``-5``. Negative ticks are therefore never pushed further down.
    """
    if tick_spacing <= 0:
        raise ValueError("tick spacing must be positive")
    return _truncated_multiple(tick, tick_spacing)


def aligned_tick_range(sqrt_price_lower_x96: int, sqrt_price_upper_x96: int, tick_spacing: int) -> Tuple[int, int]:
    """Return ``(tick_lower, tick_upper)`` for a position.

    A zero bound means "as wide as the pool allows" and maps to the usable
    tick limit for the spacing. The caller checks that the result is not empty.
    """
    if sqrt_price_lower_x96 == 0:
        tick_lower = min_usable_tick(tick_spacing)
    else:
        tick_lower = floor_to_spacing(get_tick_at_sqrt_price(sqrt_price_lower_x96), tick_spacing)

    if sqrt_price_upper_x96 == 0:
        tick_upper = max_usable_tick(tick_spacing)
    else:
        tick_upper = floor_to_spacing(get_tick_at_sqrt_price(sqrt_price_upper_x96), tick_spacing)

    return tick_lower, tick_upper


__all__ = ["floor_to_spacing", "aligned_tick_range"]
