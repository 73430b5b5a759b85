"""Calendar commands shared by the CLI and the HTTP API.

Read-only commands show due recurring occurrences without committing them.
Mutating commands commit them first, so ids stay stable once an item has been
changed.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from almanac.errors import ItemNotFound, ParseError
from almanac.language.duration import Duration
from almanac.language.entry import parse_entry
from almanac.language.search import filter_items, parse_search
from almanac.models import AllDayShape, CalendarItem, CalendarState, EntryResponse, RecurringTask
from almanac.notify import due_notifications, in_well
from almanac.recurrence import occurrence_at
from almanac.settings import Preferences
from almanac.stores.calendar import CalendarStore, commit_due_occurrences, pending_occurrences

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def sort_key(item: CalendarItem) -> tuple[object, ...]:
    """Date, all-day items first, start time, then id (provisional items last)."""
    timed = not isinstance(item.shape, AllDayShape)
    return (
        item.date,
        timed,
        item.start_instant().time(),
        item.id is None,
        item.id or 0,
        item.recurrence_id or 0,
        item.sequence_index or 0,
    )


def _find_item(state: CalendarState, item_id: int) -> CalendarItem:
    item = state.find_item(item_id)
    if item is None:
        raise ItemNotFound(f"no item with id {item_id}")
    return item


def _find_task(state: CalendarState, task_id: int) -> RecurringTask:
    task = state.find_task(task_id)
    if task is None:
        raise ItemNotFound(f"no recurring task with id {task_id}")
    return task


class CalendarService:
    """Runs calendar commands against one store.

    Args:
        store: Where items and tasks live.
        preferences: 12h inference and the default `now` window.
        clock: Returns the naive local "now"; every command reads it once.
    """

    def __init__(self, store: CalendarStore, preferences: Preferences, clock: Clock) -> None:
        self.store = store
        self.preferences = preferences
        self.clock = clock

    # --- read-only ---

    def _view(self, now: datetime, include_completed: bool = True) -> list[CalendarItem]:
        state = self.store.snapshot()
        items = state.items + pending_occurrences(state, now)
        if not include_completed:
            items = [item for item in items if not item.completed]
        return sorted(items, key=sort_key)

    def list_items(self, include_completed: bool = False) -> list[CalendarItem]:
        return self._view(self.clock(), include_completed)

    def today(self, include_completed: bool = True) -> list[CalendarItem]:
        now = self.clock()
        today = now.date()
        return [
            item
            for item in self._view(now, include_completed)
            if item.shape.date <= today <= item.shape.end_date
        ]

    def now(self, well: Duration | None = None, include_completed: bool = False) -> list[CalendarItem]:
        """Items inside the window around now, plus those with a reminder due."""
        now = self.clock()
        window = well if well is not None else self.preferences.query_window
        items = self._view(now, include_completed)
        due = {id(item) for item in due_notifications(items, now, include_completed)}
        return [item for item in items if id(item) in due or in_well(item, now, window)]

    def notifications(self, include_completed: bool = False) -> list[CalendarItem]:
        now = self.clock()
        return due_notifications(self._view(now), now, include_completed)

    def search(self, text: str, include_completed: bool = True) -> list[CalendarItem]:
        now = self.clock()
        predicate = parse_search(text, now)
        return filter_items(predicate, self._view(now, include_completed))

    def show(self, item_id: int) -> CalendarItem:
        return _find_item(self.store.snapshot(), item_id)

    def list_recurring(self) -> list[RecurringTask]:
        return sorted(self.store.snapshot().tasks, key=lambda t: t.id)

    def show_recurring(self, task_id: int) -> RecurringTask:
        return _find_task(self.store.snapshot(), task_id)

    # --- mutating ---

    def add_entry(self, text: str) -> EntryResponse:
        """Parse `text` and commit it. A `recur` entry also commits its occurrence 0."""
        now = self.clock()
        draft = parse_entry(text, now, infer_12h=self.preferences.infer_12h)

        with self.store.transaction() as state:
            commit_due_occurrences(state, now)

            if draft.recurrence is None:
                item = CalendarItem(
                    id=state.allocate_item_id(),
                    shape=draft.shape,
                    notify=draft.notify,
                    detail=draft.detail,
                )
                state.items.append(item)
                logger.info("Added item %d on %s", item.id, item.date)
                return EntryResponse(item=item)

            task = RecurringTask(
                id=state.allocate_task_id(),
                interval=draft.recurrence,
                template=draft.shape,
                notify=draft.notify,
                detail=draft.detail,
                anchor_instant=draft.shape.start_instant(),
                materialized_at=now,
            )
            first = occurrence_at(task, 0).model_copy(update={"id": state.allocate_item_id()})
            state.tasks.append(task)
            state.items.append(first)
            logger.info("Added recurring task %d every %s, first item %d", task.id, task.interval, first.id)

            # a template in the past may already have later occurrences due
            commit_due_occurrences(state, now)
            return EntryResponse(item=first, task=state.find_task(task.id))

    def complete(self, item_id: int) -> CalendarItem:
        with self.store.transaction() as state:
            commit_due_occurrences(state, self.clock())
            item = _find_item(state, item_id)
            item.completed = True
            logger.info("Completed item %d", item_id)
            return item

    def delete(self, item_id: int) -> CalendarItem:
        """Delete one item. Deleting an occurrence leaves its task running."""
        with self.store.transaction() as state:
            commit_due_occurrences(state, self.clock())
            item = _find_item(state, item_id)
            state.items.remove(item)
            logger.info("Deleted item %d", item_id)
            return item

    def delete_recurring(self, task_id: int) -> RecurringTask:
        """Delete a recurring task and every occurrence it produced."""
        with self.store.transaction() as state:
            commit_due_occurrences(state, self.clock())
            task = _find_task(state, task_id)
            state.tasks.remove(task)
            before = len(state.items)
            state.items = [item for item in state.items if item.recurrence_id != task_id]
            logger.info("Deleted recurring task %d and %d occurrences", task_id, before - len(state.items))
            return task

    def edit(self, item_id: int, text: str) -> CalendarItem:
        """Replace an item's timing, reminder and detail with those of a new entry statement.

        The id, fields, completion state and recurrence link are kept. Edits
        apply to the one item; a recurring task's schedule cannot be edited.
        """
        now = self.clock()
        draft = parse_entry(text, now, infer_12h=self.preferences.infer_12h)
        if draft.recurrence is not None:
            raise ParseError("an edit cannot add a recurrence", token="recur")

        with self.store.transaction() as state:
            commit_due_occurrences(state, now)
            item = _find_item(state, item_id)
            item.shape = draft.shape
            item.notify = draft.notify
            item.detail = draft.detail
            item.notified = False
            logger.info("Edited item %d", item_id)
            return item

    def edit_recurring(self, task_id: int, text: str) -> EntryResponse:
        """Re-enter a recurring task's schedule, reminder and detail.

        Occurrences that already started, or were completed, stay as they are.
        The task's other future occurrences are dropped, and the edited entry
        becomes the next occurrence in the sequence. The interval is kept
        unless `text` names a new one with `recur`.
        """
        now = self.clock()
        draft = parse_entry(text, now, infer_12h=self.preferences.infer_12h)

        with self.store.transaction() as state:
            commit_due_occurrences(state, now)
            task = _find_task(state, task_id)

            index = task.sequence_index + 1
            updated = task.model_copy(
                update={
                    "interval": draft.recurrence or task.interval,
                    "template": draft.shape,
                    "notify": draft.notify,
                    "detail": draft.detail,
                    "base_index": index,
                    "sequence_index": index,
                    "anchor_instant": draft.shape.start_instant(),
                    "materialized_at": now,
                }
            )
            state.tasks[state.tasks.index(task)] = updated
            state.items = [
                item
                for item in state.items
                if item.recurrence_id != task_id or item.completed or item.start_instant() <= now
            ]
            item = occurrence_at(updated, index).model_copy(update={"id": state.allocate_item_id()})
            state.items.append(item)
            logger.info("Edited recurring task %d, now every %s from item %d", task_id, updated.interval, item.id)

            commit_due_occurrences(state, now)
            return EntryResponse(item=item, task=state.find_task(task_id))

    def set_field(self, item_id: int, key: str, value: str) -> CalendarItem:
        with self.store.transaction() as state:
            commit_due_occurrences(state, self.clock())
            item = _find_item(state, item_id)
            item.fields[key] = value
            return item

    def acknowledge(self, item_ids: list[int] | None = None, include_completed: bool = False) -> list[CalendarItem]:
        """Mark reminders as delivered. With no ids, every currently due reminder is."""
        now = self.clock()
        with self.store.transaction() as state:
            commit_due_occurrences(state, now)
            if item_ids is None:
                targets = due_notifications(state.items, now, include_completed)
            else:
                targets = [_find_item(state, item_id) for item_id in item_ids]
            for item in targets:
                item.notified = True
            if targets:
                logger.info("Acknowledged reminders for items %s", ", ".join(str(i.id) for i in targets))
            return targets
