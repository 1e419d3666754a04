"""Tests for Spanish-locale amount parsing and header text cleanup."""

from __future__ import annotations

from decimal import Decimal

import pytest

from pge_breakdowns.utils.parsing import collapse_whitespace, parse_spanish_amount


class TestParseSpanishAmount:
    """Tests for parse_spanish_amount."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.342", Decimal(1342)),
            ("64.057,25", Decimal("64057.25")),
            ("3,97", Decimal("3.97")),
            ("1.234.567", Decimal(1234567)),
            ("0", Decimal(0)),
            ("  250 ", Decimal(250)),
        ],
    )
    def test_positive_amounts(self, raw: str, expected: Decimal) -> None:
        """Periods are thousands separators and commas decimal marks."""
        assert parse_spanish_amount(raw) == expected

    def test_leading_minus_is_negative(self) -> None:
        """A leading minus sign negates the amount."""
        assert parse_spanish_amount("-62.982") == Decimal(-62982)

    def test_parentheses_are_negative(self) -> None:
        """Accounting parentheses negate the amount."""
        assert parse_spanish_amount("(1.500,50)") == Decimal("-1500.50")

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw: str | None) -> None:
        """Blank cells carry no amount."""
        assert parse_spanish_amount(raw) is None

    @pytest.mark.parametrize("raw", ["abc", "-", "1,2,3", "12abc", "1.23", "12.3456", "1.000.00", "€ 100"])
    def test_garbage_raises(self, raw: str) -> None:
        """Text, stray symbols and misplaced separators raise ValueError."""
        with pytest.raises(ValueError, match="Could not parse amount"):
            parse_spanish_amount(raw)


class TestCollapseWhitespace:
    """Tests for collapse_whitespace."""

    def test_nbsp_and_newlines(self) -> None:
        """NBSP and line breaks collapse to single spaces."""
        assert collapse_whitespace("Sección:\xa060\n   SEGURIDAD  SOCIAL ") == "Sección: 60 SEGURIDAD SOCIAL"

    def test_plain_text_unchanged(self) -> None:
        """Already clean text is returned as is."""
        assert collapse_whitespace("Programa: 312B") == "Programa: 312B"
