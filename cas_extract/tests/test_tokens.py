"""Tests for numeric and date token normalization."""

from decimal import Decimal

import pytest

from cas_extract.tokens import (
    is_date_range,
    is_transaction_start,
    match_date_token,
    parse_numeric_value,
)


class TestParseNumericValue:
    """Tests for parse_numeric_value."""

    def test_parse_positive_numbers(self):
        """Test plain and comma-separated numbers."""
        assert parse_numeric_value("1000") == Decimal("1000")
        assert parse_numeric_value("1,000") == Decimal("1000")
        assert parse_numeric_value("1,000.50") == Decimal("1000.50")
        assert parse_numeric_value("1,23,456.78") == Decimal("123456.78")

    def test_parse_parenthesis_negative(self):
        """Test parenthesis-wrapped negatives."""
        assert parse_numeric_value("(1000)") == Decimal("-1000")
        assert parse_numeric_value("(1,000.50)") == Decimal("-1000.50")
        assert parse_numeric_value("(2,130.664)") == Decimal("-2130.664")

    def test_whitespace_trimmed(self):
        """Test surrounding whitespace is ignored."""
        assert parse_numeric_value("  1000  ") == Decimal("1000")
        assert parse_numeric_value("  (1000)  ") == Decimal("-1000")

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "()", ",", "...", "1.2.3"])
    def test_invalid_input_returns_none(self, value):
        """Test empty and non-numeric input yields None."""
        assert parse_numeric_value(value) is None

    @pytest.mark.parametrize("value", [1000, 10.5, ["1"], object()])
    def test_non_string_returns_none(self, value):
        """Test non-string input yields None rather than raising."""
        assert parse_numeric_value(value) is None

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf"])
    def test_non_finite_returns_none(self, value):
        """Test NaN and infinities are not numbers here."""
        assert parse_numeric_value(value) is None


class TestDateToken:
    """Tests for the DD-Mon-YYYY date token."""

    def test_match_at_line_start(self):
        """Test the date literal is returned verbatim."""
        assert match_date_token("18-Aug-2023 299,985.00 23.3062") == "18-Aug-2023"
        assert match_date_token("01-apr-2014") == "01-apr-2014"

    def test_leading_whitespace_ignored(self):
        """Test indentation does not hide the date."""
        assert match_date_token("   19-Aug-2023\t***X***") == "19-Aug-2023"

    def test_no_match_mid_line(self):
        """Test a date later in the line is not a row start."""
        assert match_date_token("Closing on 19-Aug-2023") is None
        assert is_transaction_start("NAV on 19-Aug-2023") is False

    @pytest.mark.parametrize("line", ["", "1-Aug-2023", "19-August-2023", "19/08/2023", "Invalid-Date-Format"])
    def test_non_dates(self, line):
        """Test other date shapes are not transaction starts."""
        assert match_date_token(line) is None

    def test_non_string(self):
        """Test non-string input is not a date."""
        assert match_date_token(None) is None

    def test_date_range_remainder(self):
        """Test detection of the page-header date range remainder."""
        assert is_date_range("To 19-Jul-2025")
        assert is_date_range("to 19-Jul-2025 Page 2")
        assert not is_date_range("Purchase 19-Jul-2025")
