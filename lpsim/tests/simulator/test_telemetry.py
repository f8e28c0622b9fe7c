import pytest

from lpsim.simulator.fixed_point import Q96, integer_sqrt
from lpsim.simulator.telemetry import (
    format_balance,
    format_price,
    format_record_line,
    price_from_sqrt_price,
    render_price,
    split_balance,
)


def _sqrt_for_price(price):
    """Smallest sqrtPriceX96 whose scaled price is ``price``."""
    target = -(-price * 2 ** 192 // 10 ** 18)
    s = integer_sqrt(target)
    if s * s < target:
        s += 1
    assert price_from_sqrt_price(s) == price
    return s


@pytest.mark.parametrize(
    "price,expected",
    [
        (0, "0.00000000"),
        (12, "0.00000012"),
        (12345, "0.00012345"),
        (123456, "0.000123...56"),
        (123456789, "0.000123...89"),
        (10 ** 18, "0.000100...00"),
    ],
)
def test_render_price(price, expected):
    assert render_price(price) == expected


def test_format_price_at_parity():
    assert price_from_sqrt_price(Q96) == 10 ** 18
    assert format_price(Q96) == "0.000100...00"


def test_format_price_zero_sentinel():
    assert format_price(0) == "0.00000000"


@pytest.mark.parametrize("price,expected", [(12345, "0.00012345"), (123456789, "0.000123...89"), (7, "0.00000007")])
def test_format_price_from_sqrt(price, expected):
    assert format_price(_sqrt_for_price(price)) == expected


def test_split_balance():
    assert split_balance(1_234_567_890_123_456_789, 18) == ("1", "234567")
    assert split_balance(1_500_000, 6) == ("1", "500000")
    assert split_balance(15, 1) == ("1", "500000")
    assert split_balance(5, 18) == ("0", "000000")


def test_format_balance_drops_fraction():
    assert format_balance(1_234_567_890_123_456_789, 18) == "1"
    assert format_balance(999_999_999_999_999_999, 18) == "0"
    assert format_balance(0, 18) == "0"
    assert format_balance(42, 0) == "42"


def test_record_line():
    assert format_record_line(0, "0.00012345", "1", "0") == "0,0.00012345,1,0"
