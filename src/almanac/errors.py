"""Error types raised by the entry/search language, the recurrence generator and the store.

Parse errors are local and recoverable: they identify the offending token and
the grammar position that was expected, and no partial result is ever returned
alongside them.
"""


class AlmanacError(Exception):
    """Base class for every error raised by almanac."""


class ParseError(AlmanacError, ValueError):
    """A statement could not be turned into structured calendar data.

    Attributes:
        token: The offending token ("" when the statement ended early).
        expected: Description of what the grammar expected at that position.
    """

    def __init__(self, message: str, token: str = "", expected: str = "") -> None:
        self.token = token
        self.expected = expected
        detail = message
        if token:
            detail += f" (at {token!r})"
        if expected:
            detail += f"; expected {expected}"
        super().__init__(detail)


class MalformedDuration(ParseError):
    """A duration literal repeats a unit, is out of order, or has leftovers."""


class UnparsableDate(ParseError):
    """A token does not have the shape of any date expression."""


class InvalidDate(ParseError):
    """A date expression names a day that does not exist."""


class InvalidTime(ParseError):
    """A time expression is out of range or has an unknown shape."""


class MissingShape(ParseError):
    """An entry has a date but no `at`, `from .. to` or `all day` clause."""


class MissingDetail(ParseError):
    """An entry ends after its shape (and notify) clause with no detail text."""


class UnknownSearchTerm(ParseError):
    """A search statement contains a token that is not a clause keyword or is malformed."""


class AmbiguousRange(ParseError):
    """A range ends before it starts and no midnight-crossing rule covers it."""


class NonMonotonicState(AlmanacError):
    """Stored anchor/sequence data of a recurring task is inconsistent."""


class ItemNotFound(AlmanacError, LookupError):
    """No calendar item or recurring task has the requested id."""


class StoreCorrupted(AlmanacError):
    """The calendar file exists but cannot be decoded."""
