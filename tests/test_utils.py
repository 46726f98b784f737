"""
Unit tests for numeric coercion and timestamp helpers.
"""

import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from biasdesk.core.utils import (
    format_age_human,
    format_number,
    is_blank,
    next_entity_id,
    parse_numeric,
    parse_timestamp,
)


class TestParseNumeric:
    """Zero-on-failure parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("500", 500.0),
        ("  12.5 ", 12.5),
        ("12.5abc", 12.5),
        ("-3", -3.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        (7, 7.0),
        (2.25, 2.25),
    ])
    def test_reads_numbers(self, value, expected):
        assert parse_numeric(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "$100", True, [], float("nan"), "inf"])
    def test_failure_is_zero(self, value):
        assert parse_numeric(value) == 0.0


class TestIsBlank:
    """Emptiness test used by the engine guards."""

    def test_blank_values(self):
        assert is_blank(None)
        assert is_blank("")
        assert is_blank("  ")
        assert is_blank(0)

    def test_non_blank_values(self):
        assert not is_blank("0")
        assert not is_blank("abc")
        assert not is_blank(5000)


class TestFormatting:
    """Test text helpers."""

    def test_format_number(self):
        assert format_number(500.0) == "500"
        assert format_number(3.33) == "3.33"
        assert format_number("12") == "12"
        assert format_number(None) == ""

    @pytest.mark.parametrize("seconds, expected", [
        (30, "just now"),
        (1800, "30m"),
        (9000, "2h 30m"),
        (90000, "1d 1h"),
    ])
    def test_format_age_human(self, seconds, expected):
        assert format_age_human(seconds) == expected


class TestTimestamps:
    """Test timestamp parsing and id allocation."""

    def test_naive_is_utc(self):
        parsed = parse_timestamp("2026-10-19T08:00:00")
        assert parsed.tzinfo == timezone.utc

    def test_unreadable(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None

    def test_next_entity_id_skips_taken(self):
        now = datetime(2026, 10, 19, tzinfo=timezone.utc)
        base = int(now.timestamp() * 1000)
        assert next_entity_id([base, base + 1], now) == base + 2
