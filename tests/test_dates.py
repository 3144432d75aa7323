"""Tests for docdiagrams/dates.py - lenient date normalization."""

import logging
from datetime import date, datetime

import pytest

from docdiagrams.dates import find_date_token, normalize_date, parse_date


class TestParseDate:
    """Strict parsing of the accepted formats."""

    @pytest.mark.parametrize("raw, expected", [
        ("2024-01-10", date(2024, 1, 10)),
        ("2024-1-5", date(2024, 1, 5)),
        ("2024/01/10", date(2024, 1, 10)),
        ("2024-01-10T09:30:00", date(2024, 1, 10)),
        ("01/10/2024", date(2024, 1, 10)),
        ("January 5, 2025", date(2025, 1, 5)),
        ("Jan 5 2025", date(2025, 1, 5)),
        ("Sept. 5, 2025", date(2025, 9, 5)),
        ("March 3rd, 2024", date(2024, 3, 3)),
    ])
    def test_formats(self, raw, expected):
        assert parse_date(raw) == expected

    def test_date_objects_pass_through(self):
        """Dates are returned as-is and datetimes lose their time."""
        assert parse_date(date(2024, 5, 1)) == date(2024, 5, 1)
        assert parse_date(datetime(2024, 5, 1, 12, 30)) == date(2024, 5, 1)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_date("next tuesday")

    def test_rejects_impossible_day(self):
        with pytest.raises(ValueError):
            parse_date("2024-02-30")


class TestNormalizeDate:
    """Lenient parsing with a fallback."""

    def test_falls_back_to_today(self):
        assert normalize_date("not a date") == date.today()

    def test_falls_back_to_default(self):
        assert normalize_date("soon", default=date(2020, 1, 1)) == date(2020, 1, 1)

    def test_none_falls_back(self):
        assert normalize_date(None, default=date(2020, 1, 1)) == date(2020, 1, 1)

    def test_fallback_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="docdiagrams.dates"):
            normalize_date("whenever")
        assert "Could not parse date" in caplog.text

    @pytest.mark.parametrize("raw", [
        "2024-01-10", "2023-12-31", "2024-02-29", "January 5, 2025", "Dec 1 1999",
    ])
    def test_idempotent(self, raw):
        """Normalizing the ISO form of a normalized date gives the same date."""
        once = normalize_date(raw)
        assert normalize_date(once.isoformat()) == once


class TestFindDateToken:

    def test_finds_first_token(self):
        match = find_date_token("Kickoff on 2024-01-10, review on 2024-02-01")
        assert match.group(0) == "2024-01-10"

    def test_long_form_token(self):
        match = find_date_token("Launch - March 1, 2024 (public)")
        assert match.group(0) == "March 1, 2024"

    def test_no_token(self):
        assert find_date_token("no dates here") is None
