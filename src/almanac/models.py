"""Pydantic models for calendar items, recurring tasks and the API."""

import datetime as dt
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from almanac.language.duration import Duration

_END_OF_DAY = dt.time(23, 59, 59)


class InstantShape(BaseModel):
    """An item that happens at one moment: `at 8pm`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["instant"] = "instant"
    date: dt.date
    at: dt.time

    def start_instant(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.at)

    def end_instant(self) -> dt.datetime:
        return self.start_instant()

    @property
    def end_date(self) -> dt.date:
        return self.date

    def shifted_to(self, start: dt.datetime) -> "InstantShape":
        return InstantShape(date=start.date(), at=start.time())


class SpanShape(BaseModel):
    """An item scheduled `from` one time `to` another.

    An end time earlier than the start time crosses midnight: the span ends on
    the following day.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["span"] = "span"
    date: dt.date
    start: dt.time
    end: dt.time

    @property
    def crosses_midnight(self) -> bool:
        return self.end < self.start

    @property
    def end_date(self) -> dt.date:
        return self.date + dt.timedelta(days=1) if self.crosses_midnight else self.date

    def start_instant(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.start)

    def end_instant(self) -> dt.datetime:
        return dt.datetime.combine(self.end_date, self.end)

    def shifted_to(self, start: dt.datetime) -> "SpanShape":
        end = start + (self.end_instant() - self.start_instant())
        return SpanShape(date=start.date(), start=start.time(), end=end.time())


class AllDayShape(BaseModel):
    """An item that takes the whole day: `all day`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["all_day"] = "all_day"
    date: dt.date

    @property
    def end_date(self) -> dt.date:
        return self.date

    def start_instant(self) -> dt.datetime:
        return dt.datetime.combine(self.date, dt.time())

    def end_instant(self) -> dt.datetime:
        return dt.datetime.combine(self.date, _END_OF_DAY)

    def shifted_to(self, start: dt.datetime) -> "AllDayShape":
        return AllDayShape(date=start.date())


Shape = Annotated[InstantShape | SpanShape | AllDayShape, Field(discriminator="kind")]


class EntryDraft(BaseModel):
    """Result of parsing one entry statement, before the store assigns an id."""

    model_config = ConfigDict(frozen=True)

    recurrence: Duration | None = None
    shape: Shape
    notify: Duration | None = None
    detail: str


class CalendarItem(BaseModel):
    """A standalone calendar item or a materialized occurrence of a recurring task.

    Occurrences carry `recurrence_id` and `sequence_index`. An item whose `id` is
    None is provisional: it was generated for display and has not been committed.
    """

    id: int | None = None
    shape: Shape
    notify: Duration | None = None
    detail: str
    fields: dict[str, str] = Field(default_factory=dict)
    completed: bool = False
    notified: bool = False
    recurrence_id: int | None = None
    sequence_index: int | None = None

    @property
    def provisional(self) -> bool:
        return self.id is None

    @property
    def date(self) -> dt.date:
        return self.shape.date

    def start_instant(self) -> dt.datetime:
        return self.shape.start_instant()

    def end_instant(self) -> dt.datetime:
        return self.shape.end_instant()

    def notify_at(self) -> dt.datetime | None:
        """When a reminder for this item is due, or None without a notify clause."""
        if self.notify is None:
            return None
        return self.start_instant() - self.notify.relativedelta()


class RecurringTask(BaseModel):
    """Template for occurrences repeating every `interval`.

    `template` is the shape of occurrence `base_index` (0 until the task is
    edited). `sequence_index` and `anchor_instant` describe the last committed
    occurrence.
    """

    id: int
    interval: Duration
    template: Shape
    notify: Duration | None = None
    detail: str
    fields: dict[str, str] = Field(default_factory=dict)
    base_index: int = 0
    sequence_index: int = 0
    anchor_instant: dt.datetime
    materialized_at: dt.datetime | None = None

    def nominal_start(self, index: int) -> dt.datetime:
        """Start instant of occurrence `index`, always stepped from the template."""
        return self.template.start_instant() + self.interval.scaled(index - self.base_index).relativedelta()


class CalendarState(BaseModel):
    """Everything persisted in the calendar file."""

    next_item_id: int = 1
    next_task_id: int = 1
    items: list[CalendarItem] = Field(default_factory=list)
    tasks: list[RecurringTask] = Field(default_factory=list)

    def allocate_item_id(self) -> int:
        item_id = self.next_item_id
        self.next_item_id += 1
        return item_id

    def allocate_task_id(self) -> int:
        task_id = self.next_task_id
        self.next_task_id += 1
        return task_id

    def find_item(self, item_id: int) -> CalendarItem | None:
        return next((i for i in self.items if i.id == item_id), None)

    def find_task(self, task_id: int) -> RecurringTask | None:
        return next((t for t in self.tasks if t.id == task_id), None)


# --- API ---


class EntryRequest(BaseModel):
    """Request body for creating an item from an entry statement."""

    text: str = Field(min_length=1, max_length=2000)


class EditRequest(BaseModel):
    """Request body for replacing an item's shape and detail."""

    text: str = Field(min_length=1, max_length=2000)


class SearchRequest(BaseModel):
    """Request body for the search endpoint."""

    text: str = Field(min_length=1, max_length=2000)
    include_completed: bool = True


class FieldUpdateRequest(BaseModel):
    """Request body for setting a free-form field on an item."""

    key: str = Field(min_length=1)
    value: str


class EntryResponse(BaseModel):
    """The committed item, plus its recurring task when the entry used `recur`."""

    item: CalendarItem
    task: RecurringTask | None = None
