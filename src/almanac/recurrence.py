"""Recurrence generator: turns a recurring task into concrete occurrences.

Every occurrence start is stepped from the task template, never
from the previous occurrence, so month and year steps clamp to the last valid
day without drifting: a task on Jan 31 runs Feb 29 (or 28), then Mar 31.

Nothing here touches storage. `materialize_due` yields provisional items and
`advance` computes the task state after the caller commits them.
"""

import logging
from datetime import datetime

from almanac.errors import NonMonotonicState
from almanac.models import CalendarItem, RecurringTask

logger = logging.getLogger(__name__)


def check_task_state(task: RecurringTask) -> None:
    """Raise NonMonotonicState if the stored anchor/sequence pair is inconsistent."""
    if task.sequence_index < 0:
        raise NonMonotonicState(f"task {task.id} has negative sequence index {task.sequence_index}")
    if task.sequence_index < task.base_index:
        raise NonMonotonicState(
            f"task {task.id} sequence index {task.sequence_index} precedes its template at {task.base_index}"
        )
    if not task.interval.is_positive:
        raise NonMonotonicState(f"task {task.id} has non-positive interval {task.interval}")
    expected = task.nominal_start(task.sequence_index)
    if task.anchor_instant != expected:
        raise NonMonotonicState(
            f"task {task.id} anchor {task.anchor_instant.isoformat()} does not match "
            f"occurrence {task.sequence_index} at {expected.isoformat()}"
        )


def occurrence_at(task: RecurringTask, index: int) -> CalendarItem:
    """Provisional occurrence `index` of `task` (no id assigned)."""
    return CalendarItem(
        shape=task.template.shifted_to(task.nominal_start(index)),
        notify=task.notify,
        detail=task.detail,
        fields=dict(task.fields),
        recurrence_id=task.id,
        sequence_index=index,
    )


def materialize_due(task: RecurringTask, now: datetime) -> list[CalendarItem]:
    """Every occurrence after the last committed one whose start is at or before `now`.

    Pure: the task is not modified, so calling this twice with the same
    arguments gives equal results.

    Raises:
        NonMonotonicState: see `check_task_state`.
    """
    check_task_state(task)

    due: list[CalendarItem] = []
    index = task.sequence_index + 1
    while task.nominal_start(index) <= now:
        due.append(occurrence_at(task, index))
        index += 1

    if due:
        logger.debug("Task %d has %d due occurrences (%d..%d)", task.id, len(due), task.sequence_index + 1, index - 1)
    return due


def advance(task: RecurringTask, occurrences: list[CalendarItem], now: datetime) -> RecurringTask:
    """Task state after committing `occurrences`, as returned by `materialize_due`.

    Raises:
        NonMonotonicState: the occurrences do not continue the task's sequence.
    """
    if not occurrences:
        return task

    expected = list(range(task.sequence_index + 1, task.sequence_index + 1 + len(occurrences)))
    indexes = [o.sequence_index for o in occurrences]
    if indexes != expected or any(o.recurrence_id != task.id for o in occurrences):
        raise NonMonotonicState(f"occurrences {indexes} do not continue task {task.id} at {task.sequence_index}")

    last = expected[-1]
    return task.model_copy(
        update={
            "sequence_index": last,
            "anchor_instant": task.nominal_start(last),
            "materialized_at": now,
        }
    )
