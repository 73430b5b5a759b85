"""Entry and search language: tokens, durations, dates and times."""

from almanac.language.duration import Duration, format_duration, parse_duration
from almanac.language.resolvers import resolve_date, resolve_time

__all__ = ["Duration", "format_duration", "parse_duration", "resolve_date", "resolve_time"]
