"""Tests for shared utility functions."""

import pytest

from booking_engine.utils import (
    format_minutes,
    is_valid_phone,
    normalize_phone,
    parse_hhmm,
    round_half_away,
    strip_phone,
)


class TestNormalizePhone:
    def test_local_polish_number(self):
        assert normalize_phone("733 854 184") == "+48733854184"

    def test_already_international(self):
        assert normalize_phone("+48 733 854 184") == "+48733854184"

    def test_double_zero_prefix(self):
        assert normalize_phone("0048 733 854 184") == "+48733854184"

    def test_country_code_without_plus(self):
        assert normalize_phone("47504503123") == "+47504503123"

    def test_trunk_zero_removed(self):
        assert normalize_phone("+49 (0) 171 1234567") == "+491711234567"

    def test_subscriber_zero_after_country_code_kept(self):
        assert normalize_phone("+48 501 222 333") == "+48501222333"

    def test_strips_separators(self):
        assert normalize_phone("733-854-184") == "+48733854184"

    def test_other_default_country(self):
        assert normalize_phone("733854184", default_country="DE") == "+733854184"

    def test_empty(self):
        assert normalize_phone("") == ""

    @pytest.mark.parametrize("value", ["abc", "+", "()-"])
    def test_no_digits_gives_empty(self, value):
        assert normalize_phone(value) == ""

    def test_strip_phone(self):
        assert strip_phone("+48 (733) 854-184") == "48733854184"

    @pytest.mark.parametrize("value,expected", [
        ("733 854 184", True),
        ("+44 20 7946 0958", True),
        ("1234", False),
    ])
    def test_is_valid_phone(self, value, expected):
        assert is_valid_phone(value) is expected


class TestTimeHelpers:
    @pytest.mark.parametrize("value,expected", [
        ("08:00", 480),
        ("8:05", 485),
        ("09:30:00", 570),
        ("24:00", 1440),
        ("24:30", None),
        ("12:60", None),
        ("noon", None),
        ("", None),
        (None, None),
    ])
    def test_parse_hhmm(self, value, expected):
        assert parse_hhmm(value) == expected

    def test_format_minutes_zero_pads(self):
        assert format_minutes(485) == "08:05"

    def test_format_minutes_does_not_wrap(self):
        assert format_minutes(1470) == "24:30"


class TestRounding:
    @pytest.mark.parametrize("value,expected", [
        (2.5, 3),
        (-2.5, -3),
        (2.4, 2),
        (116.99999999, 117),
    ])
    def test_round_half_away(self, value, expected):
        assert round_half_away(value) == expected
