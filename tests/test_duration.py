"""Tests for duration parsing."""

import pytest

from simplebiz.duration import parse_duration


class TestParseDuration:
    """Tests for parse_duration function."""

    def test_units(self) -> None:
        assert parse_duration("100ms") == 100
        assert parse_duration("30s") == 30_000
        assert parse_duration("5m") == 300_000
        assert parse_duration("1h") == 3_600_000
        assert parse_duration("7d") == 604_800_000
        assert parse_duration("0s") == 0

    def test_compound(self) -> None:
        assert parse_duration("1h30m") == 5_400_000
        assert parse_duration("1m30s") == 90_000
        assert parse_duration("2s500ms") == 2_500

    def test_bare_digits_are_seconds(self) -> None:
        """REVALIDATE=3600 means an hour."""
        assert parse_duration("3600") == 3_600_000
        assert parse_duration(" 60 ") == 60_000

    def test_case_insensitive(self) -> None:
        assert parse_duration("1H") == 3_600_000

    def test_integer_passthrough(self) -> None:
        """Integers are already milliseconds."""
        assert parse_duration(1000) == 1000
        assert parse_duration(0) == 0

    @pytest.mark.parametrize("value", ["invalid", "10x", "s10", "", "1h 30m", "-5s"])
    def test_invalid_format(self, value: str) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)

    @pytest.mark.parametrize("value", [-1, True])
    def test_invalid_integer(self, value: int) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)
