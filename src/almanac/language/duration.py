"""Duration resolver: compact literals such as `2h15m12s` or `1m2d`.

Units, in the only order they may appear: y, months, w, d, h, minutes, s.
`mo` always means months. A bare `m` means months when a later unit in the
same literal is `w`, `d` or `h` (so `1m2d` is a month and two days) and
minutes otherwise (`5m`, `1h30m`, `1y5m`). Formatting always writes months as
`mo`, so a formatted literal parses back to the same value.
"""

import re
from typing import Any

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, model_validator

from almanac.errors import MalformedDuration

_LITERAL_RE = re.compile(r"-?(?:\d+[a-z]+)+")
_PART_RE = re.compile(r"(\d+)([a-z]+)")

# field name -> precedence rank
_ORDER = {
    "years": 0,
    "months": 1,
    "weeks": 2,
    "days": 3,
    "hours": 4,
    "minutes": 5,
    "seconds": 6,
}
_UNIT_FIELDS = {"y": "years", "mo": "months", "w": "weeks", "d": "days", "h": "hours", "s": "seconds"}
_FIELD_UNITS = {
    "years": "y",
    "months": "mo",
    "weeks": "w",
    "days": "d",
    "hours": "h",
    "minutes": "m",
    "seconds": "s",
}


class Duration(BaseModel):
    """A signed count of calendar (years, months) and fixed-length units.

    Two durations are equal only when every component matches; `1h` and `60m`
    are different values.
    """

    model_config = ConfigDict(frozen=True)

    years: int = 0
    months: int = 0
    weeks: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @model_validator(mode="before")
    @classmethod
    def _accept_literal(cls, data: Any) -> Any:
        if isinstance(data, str):
            return parse_duration(data).model_dump()
        return data

    @model_validator(mode="after")
    def _uniform_sign(self) -> "Duration":
        values = self.components()
        if any(v > 0 for v in values) and any(v < 0 for v in values):
            raise ValueError("duration components must share one sign")
        return self

    def components(self) -> tuple[int, ...]:
        return tuple(getattr(self, name) for name in _ORDER)

    @property
    def is_zero(self) -> bool:
        return not any(self.components())

    @property
    def is_positive(self) -> bool:
        return not self.is_zero and all(v >= 0 for v in self.components())

    @property
    def is_negative(self) -> bool:
        return any(v < 0 for v in self.components())

    def scaled(self, factor: int) -> "Duration":
        """Multiply every component by `factor`."""
        return Duration(**{name: getattr(self, name) * factor for name in _ORDER})

    def relativedelta(self) -> relativedelta:
        """Calendar-aware delta: month/year steps clamp to the last valid day."""
        return relativedelta(
            years=self.years,
            months=self.months,
            weeks=self.weeks,
            days=self.days,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
        )

    def __str__(self) -> str:
        return format_duration(self)


def _resolve_unit(unit: str, later_units: list[str], literal: str) -> str:
    if unit == "m":
        return "months" if any(u in ("w", "d", "h") for u in later_units) else "minutes"
    field = _UNIT_FIELDS.get(unit)
    if field is None:
        raise MalformedDuration("unknown duration unit", token=literal, expected="one of y, mo, m, w, d, h, s")
    return field


def parse_duration(text: str) -> Duration:
    """Parse a compact duration literal.

    Raises:
        MalformedDuration: empty literal, unknown or repeated unit, units out of
            order, or characters left over.
    """
    literal = text.strip().lower()
    if not _LITERAL_RE.fullmatch(literal):
        raise MalformedDuration("not a duration", token=text, expected="<int><unit> pairs such as 1h30m")

    negative = literal.startswith("-")
    parts = _PART_RE.findall(literal.lstrip("-"))
    units = [unit for _, unit in parts]

    values: dict[str, int] = {}
    last_rank = -1
    for i, (amount, unit) in enumerate(parts):
        field = _resolve_unit(unit, units[i + 1 :], text)
        rank = _ORDER[field]
        if field in values:
            raise MalformedDuration(f"repeated {field}", token=text)
        if rank <= last_rank:
            raise MalformedDuration(f"{field} out of order", token=text, expected="units in y, mo, w, d, h, m, s order")
        last_rank = rank
        values[field] = -int(amount) if negative else int(amount)

    return Duration(**values)


def format_duration(duration: Duration) -> str:
    """Canonical literal for `duration`; parsing it again yields an equal value."""
    if duration.is_zero:
        return "0s"
    sign = "-" if duration.is_negative else ""
    parts = [
        f"{abs(getattr(duration, name))}{_FIELD_UNITS[name]}"
        for name in _ORDER
        if getattr(duration, name)
    ]
    return sign + "".join(parts)
