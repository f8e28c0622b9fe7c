"""Fixed-width telemetry rendering.

The strings produced here are a wire format that downstream log parsers
match literally. The price display keeps only five significant digits of long
values and the balance display drops the fraction; both are part of the
format and must not be "corrected".
"""

from __future__ import annotations

from typing import Tuple

PRICE_SCALE = 10 ** 18
PRICE_PREFIX = "0.000"
PRICE_DIGITS = 5
FRACTION_DIGITS = 6


def price_from_sqrt_price(sqrt_price_x96: int) -> int:
    """(sqrtPriceX96^2 * 1e18) >> 192."""
    return (sqrt_price_x96 * sqrt_price_x96 * PRICE_SCALE) >> 192


def render_price(price: int) -> str:
    digits = str(price)
    if len(digits) <= PRICE_DIGITS:
        return PRICE_PREFIX + digits.zfill(PRICE_DIGITS)
    return PRICE_PREFIX + digits[:3] + "..." + digits[-2:]


def format_price(sqrt_price_x96: int) -> str:
    """Telemetry string for a pool price.

    >>> format_price(0)
    '0.00000000'
    """
    return render_price(price_from_sqrt_price(sqrt_price_x96))


def split_balance(balance: int, decimals: int) -> Tuple[str, str]:
    """Whole units and a zero-padded 6-digit fraction."""
    unit = 10 ** decimals
    whole = balance // unit
    fraction = balance % unit
    if decimals >= FRACTION_DIGITS:
        fraction //= 10 ** (decimals - FRACTION_DIGITS)
    else:
        fraction *= 10 ** (FRACTION_DIGITS - decimals)
    return str(whole), str(fraction).zfill(FRACTION_DIGITS)


def format_balance(balance: int, decimals: int) -> str:
    """Telemetry string for a token balance: whole units only, fraction dropped."""
    whole, _fraction = split_balance(balance, decimals)
    return whole


def format_record_line(iteration: int, price: str, balance0: str, balance1: str) -> str:
    return f"{iteration},{price},{balance0},{balance1}"


__all__ = [
    "price_from_sqrt_price",
    "render_price",
    "format_price",
    "split_balance",
    "format_balance",
    "format_record_line",
]
