"""JSON-file store for the calendar state."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from almanac.errors import StoreCorrupted
from almanac.models import CalendarItem, CalendarState
from almanac.recurrence import advance, materialize_due
from almanac.stores.files import atomic_write_text

logger = logging.getLogger(__name__)


class CalendarStore:
    """Calendar state persisted as one JSON document.

    All reads and writes go through one lock, so generator runs and commits
    against the same store never interleave.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> CalendarState:
        if not self.path.exists():
            return CalendarState()
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreCorrupted(f"cannot read {self.path}: {e}") from e
        try:
            return CalendarState.model_validate_json(text)
        except ValidationError as e:
            raise StoreCorrupted(
                f"cannot decode {self.path} ({e.error_count()} errors); fix or move it aside"
            ) from e

    def _save(self, state: CalendarState) -> None:
        atomic_write_text(self.path, state.model_dump_json(indent=2))

    def snapshot(self) -> CalendarState:
        """Current state, for read-only use. Changes to it are never saved."""
        with self._lock:
            return self._load()

    @contextmanager
    def transaction(self) -> Iterator[CalendarState]:
        """Yield the state for modification; it is saved if the block exits cleanly."""
        with self._lock:
            state = self._load()
            yield state
            self._save(state)
            logger.debug("Saved %d items, %d tasks to %s", len(state.items), len(state.tasks), self.path)


def pending_occurrences(state: CalendarState, now: datetime) -> list[CalendarItem]:
    """Due occurrences of every task, uncommitted, in (task id, sequence) order."""
    pending: list[CalendarItem] = []
    for task in sorted(state.tasks, key=lambda t: t.id):
        pending.extend(materialize_due(task, now))
    return pending


def commit_due_occurrences(state: CalendarState, now: datetime) -> list[CalendarItem]:
    """Give every due occurrence an id, add it to `state` and advance its task.

    Ids are assigned in ascending (task id, sequence) order.
    """
    committed: list[CalendarItem] = []
    state.tasks.sort(key=lambda t: t.id)
    for i, task in enumerate(state.tasks):
        due = materialize_due(task, now)
        if not due:
            continue
        items = [occurrence.model_copy(update={"id": state.allocate_item_id()}) for occurrence in due]
        state.items.extend(items)
        state.tasks[i] = advance(task, due, now)
        committed.extend(items)
        logger.info(
            "Materialized task %d occurrences %d..%d as items %d..%d",
            task.id,
            items[0].sequence_index,
            items[-1].sequence_index,
            items[0].id,
            items[-1].id,
        )
    return committed
