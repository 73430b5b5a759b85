"""Tests for the entry language parser."""

from datetime import date, datetime, time

import pytest

from almanac.errors import InvalidTime, MalformedDuration, MissingDetail, MissingShape, UnparsableDate
from almanac.language.duration import Duration
from almanac.language.entry import parse_entry
from almanac.models import AllDayShape, InstantShape, SpanShape

MORNING = datetime(2024, 3, 1, 9, 0)  # Friday
EVENING = datetime(2024, 3, 1, 19, 0)
WEDNESDAY = datetime(2024, 3, 6, 10, 0)


class TestParseEntry:
    def test_instant_with_notify(self):
        draft = parse_entry("tomorrow at 8pm notify 30m Take a Shower", MORNING)
        assert draft.recurrence is None
        assert draft.shape == InstantShape(date=date(2024, 3, 2), at=time(20, 0))
        assert draft.notify == Duration(minutes=30)
        assert draft.detail == "Take a Shower"

    def test_weekly_all_day(self):
        draft = parse_entry("recur 1w monday all day notify 1h Standup", WEDNESDAY)
        assert draft.recurrence == Duration(weeks=1)
        assert draft.shape == AllDayShape(date=date(2024, 3, 11))
        assert draft.notify == Duration(hours=1)
        assert draft.detail == "Standup"

    def test_span_today_infers_afternoon(self):
        draft = parse_entry("today from 1 to 3 Meeting", EVENING)
        assert draft.shape == SpanShape(date=date(2024, 3, 1), start=time(13, 0), end=time(15, 0))

    def test_span_crossing_midnight(self):
        draft = parse_entry("friday from 22:00 to 2:00 Night shift", MORNING)
        assert isinstance(draft.shape, SpanShape)
        assert draft.shape.crosses_midnight
        assert draft.shape.date == date(2024, 3, 1)
        assert draft.shape.end_date == date(2024, 3, 2)
        assert draft.shape.end_instant() == datetime(2024, 3, 2, 2, 0)

    def test_until_and_bare_range(self):
        until = parse_entry("tomorrow from 9 until 17 Work", EVENING)
        bare = parse_entry("tomorrow from 9 17 Work", EVENING)
        expected = SpanShape(date=date(2024, 3, 2), start=time(9, 0), end=time(17, 0))
        assert until.shape == expected
        assert bare.shape == expected

    def test_notify_me(self):
        draft = parse_entry("tomorrow at 8 notify me 15m Call mom", MORNING)
        assert draft.notify == Duration(minutes=15)
        assert draft.detail == "Call mom"

    def test_keywords_case_insensitive_detail_keeps_case(self):
        draft = parse_entry("TOMORROW AT 8PM Dinner   With Ana", MORNING)
        assert draft.shape == InstantShape(date=date(2024, 3, 2), at=time(20, 0))
        assert draft.detail == "Dinner With Ana"

    def test_monthly_recurrence(self):
        draft = parse_entry("recur 1mo 1/31 at 9 Rent", MORNING)
        assert draft.recurrence == Duration(months=1)
        assert draft.shape.date == date(2024, 1, 31)

    def test_24h_preference(self):
        draft = parse_entry("today at 8 Walk", EVENING, infer_12h=False)
        assert draft.shape == InstantShape(date=date(2024, 3, 1), at=time(8, 0))

    def test_zero_notify_allowed(self):
        draft = parse_entry("tomorrow at 8 notify 0s Alarm", MORNING)
        assert draft.notify == Duration()


class TestParseEntryErrors:
    @pytest.mark.parametrize(
        ("text", "error"),
        [
            ("", UnparsableDate),
            ("blursday at 8 Party", UnparsableDate),
            ("tomorrow", MissingShape),
            ("tomorrow lunch with bob", MissingShape),
            ("tomorrow all night Party", MissingShape),
            ("tomorrow at 8pm", MissingDetail),
            ("tomorrow at 8pm notify 30m", MissingDetail),
            ("tomorrow at", InvalidTime),
            ("tomorrow from 9", InvalidTime),
            ("tomorrow at 25:00 Late", InvalidTime),
            ("recur 0s tomorrow at 8 Never", MalformedDuration),
            ("recur -1d tomorrow at 8 Back", MalformedDuration),
            ("recur tomorrow at 8 Oops", MalformedDuration),
            ("tomorrow at 8 notify -5m Late", MalformedDuration),
            ("tomorrow at 8 notify", MalformedDuration),
        ],
    )
    def test_error_types(self, text, error):
        with pytest.raises(error):
            parse_entry(text, MORNING)

    def test_error_names_offending_token(self):
        with pytest.raises(InvalidTime) as exc:
            parse_entry("tomorrow at 25:00 Late", MORNING)
        assert exc.value.token == "25:00"
        assert "25:00" in str(exc.value)

    def test_missing_shape_says_what_was_expected(self):
        with pytest.raises(MissingShape) as exc:
            parse_entry("tomorrow lunch", MORNING)
        assert exc.value.token == "lunch"
        assert "all day" in exc.value.expected
