# CajaLedger Tests - Input Parsing
#
# Amount, quantity, text and date parsing shared by the services.

from datetime import date, datetime

import pytest

from cajaledger.exceptions import InvalidArgumentError
from cajaledger.time_utils import day_bounds, days_ago, parse_business_date, to_utc_z
from cajaledger.validation import (
    MAX_AMOUNT_CENTS,
    MAX_QUANTITY,
    coerce_amount_cents,
    parse_amount_cents,
    parse_day,
    parse_flag,
    parse_price_cents,
    parse_quantity,
    require_text,
)


class TestAmounts:
    """Currency units in, integer cents out."""

    @pytest.mark.parametrize("value,cents", [
        (12, 1200),
        ("12.5", 1250),
        (" 0.01 ", 1),
        (0.105, 11),
        ("-3", -300),
        ("1000", 100000),
    ])
    def test_parse(self, value, cents):
        assert parse_amount_cents(value) == cents

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "NaN", "inf", True, False, [1]])
    def test_not_a_number(self, value):
        assert parse_amount_cents(value) is None

    @pytest.mark.parametrize("value", ["1e30", "1e20", "-1e20", 10 ** 40, "9" * 60])
    def test_out_of_range_is_not_a_number(self, value):
        assert parse_amount_cents(value) is None

    def test_ceiling_is_inclusive(self):
        assert parse_amount_cents("9999999.99") == MAX_AMOUNT_CENTS
        assert parse_amount_cents("-9999999.99") == -MAX_AMOUNT_CENTS
        assert parse_amount_cents("10000000") is None

    def test_coerce_keeps_fallback(self):
        assert coerce_amount_cents("oops", 700) == 700
        assert coerce_amount_cents("2", 700) == 200

    def test_price(self):
        assert parse_price_cents(None) == 0
        assert parse_price_cents("") == 0
        assert parse_price_cents("3.5") == 350
        with pytest.raises(InvalidArgumentError):
            parse_price_cents("-0.01")
        with pytest.raises(InvalidArgumentError):
            parse_price_cents("1e30")


class TestQuantities:
    """Strict integer parsing for stock quantities."""

    @pytest.mark.parametrize("value,expected", [(3, 3), ("7", 7), (" 12 ", 12), (4.0, 4)])
    def test_accepts_integers(self, value, expected):
        assert parse_quantity(value) == expected

    def test_zero_only_when_allowed(self):
        assert parse_quantity(0, allow_zero=True) == 0
        with pytest.raises(InvalidArgumentError):
            parse_quantity(0)

    @pytest.mark.parametrize("value", [MAX_QUANTITY + 1, 10 ** 20, "100000000000000000000", 1e300])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(InvalidArgumentError, match="cannot exceed"):
            parse_quantity(value)

    def test_ceiling_is_inclusive(self):
        assert parse_quantity(MAX_QUANTITY) == MAX_QUANTITY

    def test_error_names_the_field(self):
        with pytest.raises(InvalidArgumentError, match="limit"):
            parse_quantity("x", "limit")


class TestTextAndDates:

    def test_require_text(self):
        assert require_text("  Yerba ", "name") == "Yerba"
        with pytest.raises(InvalidArgumentError):
            require_text("abcdef", "code", max_length=3)

    def test_parse_business_date(self):
        assert parse_business_date(None) is None
        assert parse_business_date("") is None
        assert parse_business_date("2026-03-14") == date(2026, 3, 14)
        assert parse_business_date("2026-03-14T18:20:00Z") == date(2026, 3, 14)
        assert parse_business_date(datetime(2026, 3, 14, 9)) == date(2026, 3, 14)

    def test_parse_day_rejects_garbage(self):
        with pytest.raises(InvalidArgumentError):
            parse_day("yesterday")

    def test_day_bounds(self):
        start, end = day_bounds(date(2026, 3, 14))

        assert start == datetime(2026, 3, 14, 0, 0, 0)
        assert end == datetime(2026, 3, 14, 23, 59, 59, 999000)

    def test_days_ago_starts_at_midnight(self):
        assert days_ago(datetime(2026, 3, 14, 15, 0), 30) == datetime(2026, 2, 12)

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 3, 14, 12, 0, 0, 500)) == "2026-03-14T12:00:00Z"
        assert to_utc_z(None) is None


class TestFlags:
    """One-way switches never fall back to truthiness."""

    @pytest.mark.parametrize("value,expected", [
        (True, True), (False, False), ("true", True), (" FALSE ", False),
        ("1", True), ("0", False), (1, True), (0, False), (None, None), ("", None),
    ])
    def test_recognised_values(self, value, expected):
        assert parse_flag(value, "closed") is expected

    @pytest.mark.parametrize("value", ["maybe", "closed", 2, 1.0, []])
    def test_rejects_anything_else(self, value):
        with pytest.raises(InvalidArgumentError, match="closed"):
            parse_flag(value, "closed")
