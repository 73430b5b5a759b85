"""Entry language parser.

    entry := ["recur" duration] date shape ["notify" ["me"] duration] detail
    shape := "at" time | "from" time ["to" | "until"] time | "all" "day"

Tokens are consumed left to right without backtracking. Keywords are matched
case-insensitively; the detail keeps the user's casing.
"""

import logging
from datetime import date, datetime, time
from functools import partial

from almanac.errors import InvalidTime, MalformedDuration, MissingDetail, MissingShape, UnparsableDate
from almanac.language.duration import Duration, parse_duration
from almanac.language.resolvers import resolve_date, resolve_time
from almanac.language.tokens import TokenStream
from almanac.models import AllDayShape, EntryDraft, InstantShape, Shape, SpanShape

logger = logging.getLogger(__name__)

SHAPE_KEYWORDS = "'at', 'from' or 'all day'"


def _expect_duration(stream: TokenStream, what: str) -> Duration:
    token = stream.next()
    if token is None:
        raise MalformedDuration(f"statement ends before the {what}", expected=what)
    return parse_duration(token.text)


def _expect_time(
    stream: TokenStream, what: str, *, now: datetime, is_today: bool, infer_12h: bool
) -> time:
    token = stream.next()
    if token is None:
        raise InvalidTime(f"statement ends before the {what}", expected=what)
    return resolve_time(token.text, now=now, is_today=is_today, infer_12h=infer_12h)


def _parse_shape(
    stream: TokenStream, day: date, *, now: datetime, is_today: bool, infer_12h: bool
) -> Shape:
    token = stream.next()
    if token is None:
        raise MissingShape("entry ends after the date", expected=SHAPE_KEYWORDS)

    read_time = partial(_expect_time, stream, now=now, is_today=is_today, infer_12h=infer_12h)

    if token.keyword == "at":
        return InstantShape(date=day, at=read_time("time after 'at'"))

    if token.keyword == "from":
        start = read_time("start time after 'from'")
        stream.accept("to", "until")
        end = read_time("end time after 'to'")
        span = SpanShape(date=day, start=start, end=end)
        if span.crosses_midnight:
            logger.debug("Span %s-%s crosses midnight, ends %s", start, end, span.end_date)
        return span

    if token.keyword == "all":
        if stream.accept("day") is None:
            raise MissingShape("'all' must be followed by 'day'", token=token.text, expected="all day")
        return AllDayShape(date=day)

    raise MissingShape("no time clause after the date", token=token.text, expected=SHAPE_KEYWORDS)


def parse_entry(text: str, now: datetime, *, infer_12h: bool = True) -> EntryDraft:
    """Parse an entry statement such as `tomorrow at 8pm notify 30m Take a Shower`.

    Args:
        text: The statement.
        now: Reference instant; relative dates and 12-hour inference use it.
        infer_12h: When False, bare hours are always read as 24h.

    Returns:
        A fresh EntryDraft.

    Raises:
        ParseError: any subclass describing the first offending token.
    """
    stream = TokenStream.from_text(text)

    recurrence: Duration | None = None
    if stream.accept("recur"):
        recurrence = _expect_duration(stream, "interval after 'recur'")
        if not recurrence.is_positive:
            raise MalformedDuration("recurrence interval must be positive", token=str(recurrence))

    date_token = stream.next()
    if date_token is None:
        raise UnparsableDate("entry has no date", expected="a date")
    day = resolve_date(date_token.text, now.date())

    shape = _parse_shape(
        stream, day, now=now, is_today=day == now.date(), infer_12h=infer_12h
    )

    notify: Duration | None = None
    if stream.accept("notify"):
        stream.accept("me")
        notify = _expect_duration(stream, "duration after 'notify'")
        if notify.is_negative:
            raise MalformedDuration("notify duration cannot be negative", token=str(notify))

    detail = " ".join(token.text for token in stream.rest())
    if not detail:
        raise MissingDetail("entry has no detail text", expected="a description after the time")

    return EntryDraft(recurrence=recurrence, shape=shape, notify=notify, detail=detail)
