"""Q64.96 fixed-point helpers.

All arithmetic is on Python ints, so the wide intermediates (``n << 192``,
``sqrt**2``) never overflow. Results that the pool stores in narrower slots are
masked explicitly.
"""

from __future__ import annotations

from decimal import Decimal, getcontext

getcontext().prec = 80

RESOLUTION = 96
Q96 = 1 << 96
Q192 = 1 << 192
MAX_UINT160 = (1 << 160) - 1
MAX_UINT256 = (1 << 256) - 1


def integer_sqrt(x: int) -> int:
    """floor(sqrt(x)) by Newton's method seeded at (x + 1) // 2."""
    if x < 0:
        raise ValueError("integer_sqrt of negative value")
    z = (x + 1) // 2
    y = x
    while z < y:
        y = z
        z = (x // z + z) // 2
    return y


def encode_sqrt_price_x96(numerator: int, denominator: int) -> int:
    """sqrt(numerator / denominator) in Q64.96, truncated to 160 bits.

    A zero on either side yields the sentinel price 0 instead of raising.
    """
    if numerator < 0 or denominator < 0:
        raise ValueError("price ratio terms must be non-negative")
    if numerator == 0 or denominator == 0:
        return 0
    ratio_x192 = (numerator << 192) // denominator
    return integer_sqrt(ratio_x192) & MAX_UINT160


def decode_sqrt_price_x96(sqrt_price_x96: int, decimals0: int = 18, decimals1: int = 18) -> Decimal:
    """Human price of token0 in token1 units, adjusted for token decimals."""
    sqrt_dec = Decimal(sqrt_price_x96) / Decimal(Q96)
    scale = Decimal(10) ** (decimals0 - decimals1)
    return (sqrt_dec * sqrt_dec) * scale


__all__ = [
    "RESOLUTION",
    "Q96",
    "Q192",
    "MAX_UINT160",
    "MAX_UINT256",
    "integer_sqrt",
    "encode_sqrt_price_x96",
    "decode_sqrt_price_x96",
]
