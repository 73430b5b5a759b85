"""Which items are happening now, and which reminders are due."""

from datetime import datetime, time, timedelta

from almanac.language.duration import Duration
from almanac.models import AllDayShape, CalendarItem, InstantShape

_LAST_MINUTE = time(23, 59)


def in_well(item: CalendarItem, now: datetime, well: Duration) -> bool:
    """True when `item` falls in the window of width `well` around `now`.

    Instants count while they are still ahead but less than `well` away. Spans
    count from `well` before they start until `well` after they end. All-day
    items are announced on the evening before, in the last `well` of the day.
    """
    delta = well.relativedelta()
    shape = item.shape

    if isinstance(shape, InstantShape):
        start = shape.start_instant()
        return now < start < now + delta

    if isinstance(shape, AllDayShape):
        tomorrow = now.date() + timedelta(days=1)
        return shape.date == tomorrow and now > datetime.combine(now.date(), _LAST_MINUTE) - delta

    return shape.start_instant() - delta <= now <= shape.end_instant() + delta


def notify_at(item: CalendarItem) -> datetime | None:
    return item.notify_at()


def notification_due(item: CalendarItem, now: datetime, include_completed: bool = False) -> bool:
    if item.notified or (item.completed and not include_completed):
        return False
    at = item.notify_at()
    return at is not None and at <= now < item.start_instant()


def due_notifications(
    items: list[CalendarItem], now: datetime, include_completed: bool = False
) -> list[CalendarItem]:
    """Unacknowledged reminders whose time has come and whose item has not started yet.

    Completed items are skipped unless `include_completed` is set.
    """
    due = [item for item in items if notification_due(item, now, include_completed)]
    return sorted(due, key=lambda item: (item.start_instant(), item.id or 0))
