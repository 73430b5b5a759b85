"""Search language parser and predicate evaluation.

A search is a sequence of clauses, all of which must hold (there is no OR):

    field key K [value V] | field value V key K
    date D | date from D1 to D2
    time T | time from T1 to T2
    detail WORD
    recur TASK_ID
    finished | unfinished
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from almanac.errors import AmbiguousRange, UnknownSearchTerm
from almanac.language.resolvers import resolve_date, resolve_time
from almanac.language.tokens import Token, TokenStream
from almanac.models import AllDayShape, CalendarItem, InstantShape

logger = logging.getLogger(__name__)

CLAUSE_KEYWORDS = "field, date, time, detail, recur, finished or unfinished"

_DAY_START = time(0, 0, 0)
_DAY_END = time(23, 59, 59, 999999)


def _segments(start: time, end: time) -> list[tuple[time, time]]:
    """Split a clock range into non-wrapping pieces; end < start wraps past midnight."""
    if start <= end:
        return [(start, end)]
    return [(start, _DAY_END), (_DAY_START, end)]


def _clock_ranges_meet(a: tuple[time, time], b: tuple[time, time]) -> bool:
    return any(
        a_start <= b_end and b_start <= a_end
        for a_start, a_end in _segments(*a)
        for b_start, b_end in _segments(*b)
    )


@dataclass(frozen=True)
class FieldClause:
    key: str
    value: str | None = None

    def matches(self, item: CalendarItem) -> bool:
        if self.key not in item.fields:
            return False
        return self.value is None or item.fields[self.key] == self.value


@dataclass(frozen=True)
class DateClause:
    """Inclusive date range; a single date has start == end."""

    start: date
    end: date

    def matches(self, item: CalendarItem) -> bool:
        return item.shape.date <= self.end and item.shape.end_date >= self.start


@dataclass(frozen=True)
class TimeClause:
    """Inclusive clock range; end < start wraps past midnight.

    All-day items have no clock time and never match.
    """

    start: time
    end: time

    def matches(self, item: CalendarItem) -> bool:
        shape = item.shape
        if isinstance(shape, AllDayShape):
            return False
        if isinstance(shape, InstantShape):
            return _clock_ranges_meet((shape.at, shape.at), (self.start, self.end))
        return _clock_ranges_meet((shape.start, shape.end), (self.start, self.end))


@dataclass(frozen=True)
class DetailClause:
    text: str

    def matches(self, item: CalendarItem) -> bool:
        return self.text.lower() in item.detail.lower()


@dataclass(frozen=True)
class RecurClause:
    task_id: int

    def matches(self, item: CalendarItem) -> bool:
        return item.recurrence_id == self.task_id


@dataclass(frozen=True)
class DoneClause:
    finished: bool

    def matches(self, item: CalendarItem) -> bool:
        return item.completed == self.finished


Clause = FieldClause | DateClause | TimeClause | DetailClause | RecurClause | DoneClause


@dataclass(frozen=True)
class SearchPredicate:
    """Conjunction of clauses. Stateless; can be evaluated against any item."""

    clauses: tuple[Clause, ...]

    def matches(self, item: CalendarItem) -> bool:
        return all(clause.matches(item) for clause in self.clauses)


def evaluate(predicate: SearchPredicate, item: CalendarItem) -> bool:
    """True when every clause of `predicate` holds for `item`."""
    return predicate.matches(item)


def filter_items(predicate: SearchPredicate, items: list[CalendarItem]) -> list[CalendarItem]:
    return [item for item in items if predicate.matches(item)]


def _expect(stream: TokenStream, what: str) -> Token:
    token = stream.next()
    if token is None:
        raise UnknownSearchTerm(f"search ends before the {what}", expected=what)
    return token


def _expect_to(stream: TokenStream, kind: str) -> None:
    if stream.accept("to") is None:
        found = stream.peek()
        raise UnknownSearchTerm(
            f"{kind} range is missing 'to'",
            token=found.text if found else "",
            expected=f"from <{kind}> to <{kind}>",
        )


def _parse_field(stream: TokenStream) -> FieldClause:
    selector = _expect(stream, "'key' or 'value' after 'field'")

    if selector.keyword == "key":
        key = _expect(stream, "field name after 'key'").text
        value = None
        if stream.accept("value"):
            value = _expect(stream, "field value after 'value'").text
        return FieldClause(key=key, value=value)

    if selector.keyword == "value":
        value = _expect(stream, "field value after 'value'").text
        if stream.accept("key") is None:
            raise UnknownSearchTerm("a field value needs a key", expected="key <name>")
        key = _expect(stream, "field name after 'key'").text
        return FieldClause(key=key, value=value)

    raise UnknownSearchTerm(
        "'field' must be followed by 'key' or 'value'", token=selector.text, expected="key or value"
    )


def _parse_date(stream: TokenStream, today: date) -> DateClause:
    first = _expect(stream, "date after 'date'")
    if first.keyword != "from":
        day = resolve_date(first.text, today)
        return DateClause(start=day, end=day)

    start = resolve_date(_expect(stream, "start date after 'from'").text, today)
    _expect_to(stream, "date")
    end_token = _expect(stream, "end date after 'to'")
    end = resolve_date(end_token.text, today)
    if end < start:
        raise AmbiguousRange(
            f"date range ends ({end}) before it starts ({start})", token=end_token.text
        )
    return DateClause(start=start, end=end)


def _parse_time(stream: TokenStream, now: datetime) -> TimeClause:
    # Search times are 24h unless designated: there is no "today" to anchor 12h inference.
    def read(token: Token) -> time:
        return resolve_time(token.text, now=now, is_today=False)

    first = _expect(stream, "time after 'time'")
    if first.keyword != "from":
        at = read(first)
        return TimeClause(start=at, end=at)

    start = read(_expect(stream, "start time after 'from'"))
    _expect_to(stream, "time")
    end = read(_expect(stream, "end time after 'to'"))
    return TimeClause(start=start, end=end)


def parse_search(text: str, now: datetime) -> SearchPredicate:
    """Parse a search statement into a predicate.

    Raises:
        UnknownSearchTerm: unknown keyword, malformed clause or empty search.
        AmbiguousRange: a date range that ends before it starts.
        UnparsableDate, InvalidDate, InvalidTime: from the date/time resolvers.
    """
    stream = TokenStream.from_text(text)
    clauses: list[Clause] = []

    while not stream.exhausted():
        token = _expect(stream, "search term")
        keyword = token.keyword
        if keyword == "field":
            clauses.append(_parse_field(stream))
        elif keyword == "date":
            clauses.append(_parse_date(stream, now.date()))
        elif keyword == "time":
            clauses.append(_parse_time(stream, now))
        elif keyword == "detail":
            clauses.append(DetailClause(text=_expect(stream, "text after 'detail'").text))
        elif keyword == "recur":
            task_token = _expect(stream, "task id after 'recur'")
            if not task_token.text.isdigit():
                raise UnknownSearchTerm(
                    "recur needs a numeric task id", token=task_token.text, expected="a task id"
                )
            clauses.append(RecurClause(task_id=int(task_token.text)))
        elif keyword in ("finished", "unfinished"):
            clauses.append(DoneClause(finished=keyword == "finished"))
        else:
            raise UnknownSearchTerm("unknown search term", token=token.text, expected=CLAUSE_KEYWORDS)

    if not clauses:
        raise UnknownSearchTerm("empty search", expected=CLAUSE_KEYWORDS)

    logger.debug("Parsed search %r into %d clauses", text, len(clauses))
    return SearchPredicate(clauses=tuple(clauses))
