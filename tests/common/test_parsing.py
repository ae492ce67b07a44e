# tests/common/test_parsing.py
"""
Тесты нормализации пользовательского ввода.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from src.common.parsing import (
    clamp_non_negative,
    clean_str,
    escape_like,
    fits_int32,
    is_ymd,
    slugify_id,
    time_parts_to_minutes,
    to_float,
    to_id_or_none,
    to_int_or_none,
    to_num_or_none,
)


class TestCleanStr:
    def test_none_is_empty(self) -> None:
        assert clean_str(None) == ""

    def test_strips_and_stringifies(self) -> None:
        assert clean_str("  жим  ") == "жим"
        assert clean_str(12) == "12"


class TestIsYmd:
    @pytest.mark.parametrize("value", ["2024-02-29", "2025-01-01"])
    def test_valid(self, value: str) -> None:
        assert is_ymd(value)

    @pytest.mark.parametrize("value", ["", "2025-1-1", "2025-02-30", "01.01.2025", "2025-01-01T00:00"])
    def test_invalid(self, value: str) -> None:
        assert not is_ymd(value)


class TestNumbers:
    """Тесты числовых преобразований."""

    @pytest.mark.parametrize(
        "value, expected",
        [("12,5", 12.5), ("  3 ", 3.0), (7, 7.0), ("", None), ("abc", None), (None, None), ("inf", None), (True, None)],
    )
    def test_to_num_or_none(self, value: object, expected: float | None) -> None:
        assert to_num_or_none(value) == expected

    def test_to_int_truncates(self) -> None:
        assert to_int_or_none("8,9") == 8
        assert to_int_or_none("-2.7") == -2
        assert to_int_or_none("x") is None

    @pytest.mark.parametrize("value, expected", [("5", 5), (5, 5), (" 12 ", 12), ("9223372036854775807", 2**63 - 1)])
    def test_to_id_valid(self, value: object, expected: int) -> None:
        assert to_id_or_none(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "0", "-1", "1.5", "5.0", "1e3", "1e30", "+7", "abc", True, "nan", "9223372036854775808", 2**63],
    )
    def test_to_id_invalid(self, value: object) -> None:
        assert to_id_or_none(value) is None

    def test_to_id_keeps_large_ids_exact(self) -> None:
        """Соседние большие id не схлопываются в одно значение."""
        assert to_id_or_none("9007199254740993") == 9007199254740993
        assert to_id_or_none("9007199254740992") != to_id_or_none("9007199254740993")

    def test_fits_int32(self) -> None:
        assert fits_int32(None)
        assert fits_int32(2**31 - 1)
        assert fits_int32(-(2**31))
        assert not fits_int32(2**31)
        assert not fits_int32(to_int_or_none("1e12"))

    def test_clamp_non_negative(self) -> None:
        assert clamp_non_negative(-3) == 0
        assert clamp_non_negative(4) == 4
        assert clamp_non_negative(None) is None

    def test_to_float_decimal(self) -> None:
        assert to_float(Decimal("62.5")) == 62.5
        assert to_float(None) is None


class TestTimeParts:
    def test_days_hours_minutes(self) -> None:
        assert time_parts_to_minutes({"d": 1, "h": "2", "m": "30"}) == 1440 + 120 + 30

    def test_missing_parts_are_zero(self) -> None:
        assert time_parts_to_minutes({"m": 15}) == 15

    def test_no_parts(self) -> None:
        assert time_parts_to_minutes(None) is None
        assert time_parts_to_minutes({}) is None


class TestSlugAndLike:
    def test_slugify(self) -> None:
        assert slugify_id("  Супы и Борщи ") == "супы-и-борщи"
        assert slugify_id("a / b") == "a-b"

    def test_slugify_empty_fallback(self) -> None:
        assert slugify_id("!!!") == "category"

    def test_escape_like(self) -> None:
        assert escape_like("50%_a\\b") == "50\\%\\_a\\\\b"
