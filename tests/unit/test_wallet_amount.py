"""Unit tests for display-unit amount formatting."""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

from wallet_amount import format_amount  # noqa: E402
from wallet_errors import ArgumentError  # noqa: E402


# ---------------------------------------------------------------------------
# BTC
# ---------------------------------------------------------------------------


def test_btc_short():
    assert format_amount(123456789, "BTC") == "1.23456789"
    assert format_amount(100000000, "BTC") == "1.00"
    assert format_amount(150000000, "BTC") == "1.50"
    assert format_amount(0, "BTC") == "0.00"
    assert format_amount(1, "BTC") == "0.00000001"


def test_btc_full_precision():
    assert format_amount(100000000, "BTC", full_precision=True) == "1.00000000"


def test_btc_thousands():
    assert format_amount(123456789012345, "BTC") == "1,234,567.89012345"


def test_custom_separators():
    assert (
        format_amount(123456789012345, "BTC", thousands_separator=".", decimal_separator=",")
        == "1.234.567,89012345"
    )


def test_unit_is_case_insensitive():
    assert format_amount(100000000, "btc") == "1.00"


def test_negative_amount():
    assert format_amount(-150000000, "BTC") == "-1.50"


# ---------------------------------------------------------------------------
# Other units
# ---------------------------------------------------------------------------


def test_mbtc_truncates():
    assert format_amount(123456789, "mBTC") == "1,234.567"
    assert format_amount(100000, "mBTC") == "1.00"
    assert format_amount(123456789, "mBTC", full_precision=True) == "1,234.56789"


def test_bits():
    assert format_amount(123456789, "bits") == "1,234,567"
    assert format_amount(199999, "bits") == "1,999"
    assert format_amount(123456789, "bits", full_precision=True) == "1,234,567.89"
    assert format_amount(100, "bit") == "1"


def test_sat():
    assert format_amount(1234567, "sat") == "1,234,567"
    assert format_amount(12, "sats") == "12"


def test_decimal_and_string_amounts():
    assert format_amount(Decimal("123456789"), "BTC") == "1.23456789"
    assert format_amount("100000000", "BTC") == "1.00"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("unit", ["ETH", "", None])
def test_unknown_unit(unit):
    with pytest.raises(ArgumentError):
        format_amount(1000, unit)


@pytest.mark.parametrize("amount", [True, None, "abc", [1], float("nan")])
def test_non_numeric_amount(amount):
    with pytest.raises(ArgumentError):
        format_amount(amount, "BTC")
