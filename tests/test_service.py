"""Tests for the calendar service commands."""

from datetime import date, datetime, time

import pytest

from almanac.errors import ItemNotFound, MissingShape, ParseError, UnknownSearchTerm
from almanac.language.duration import Duration
from almanac.models import AllDayShape, InstantShape
from almanac.service import CalendarService
from almanac.settings import Preferences
from tests.conftest import FakeClock


class TestAddEntry:
    def test_single_item(self, service, store):
        result = service.add_entry("tomorrow at 8pm notify 30m Take a Shower")
        assert result.task is None
        assert result.item.id == 1
        assert result.item.shape == InstantShape(date=date(2024, 3, 2), at=time(20, 0))
        assert store.snapshot().items == [result.item]

    def test_recurring_commits_occurrence_zero(self, service, store):
        result = service.add_entry("recur 1w monday all day notify 1h Standup")
        assert result.task is not None
        assert result.task.id == 1
        assert result.task.template == AllDayShape(date=date(2024, 3, 4))
        assert result.item.id == 1
        assert result.item.recurrence_id == 1
        assert result.item.sequence_index == 0
        state = store.snapshot()
        assert len(state.items) == 1
        assert len(state.tasks) == 1

    def test_recurring_in_the_past_catches_up(self, service):
        result = service.add_entry("recur 1d yesterday at 8 Pills")
        assert result.task.sequence_index == 1
        ids = [(i.id, i.sequence_index) for i in service.list_items()]
        assert ids == [(1, 0), (2, 1)]

    def test_parse_error_leaves_store_untouched(self, service, store):
        with pytest.raises(MissingShape):
            service.add_entry("tomorrow lunch")
        assert not store.path.exists()

    def test_uses_24h_preference(self, store):
        evening = FakeClock(datetime(2024, 3, 1, 19, 0))
        twelve_hour = CalendarService(store, Preferences(), evening)
        twenty_four = CalendarService(store, Preferences(use_24h_time=True), evening)
        assert twelve_hour.add_entry("today at 8 Walk").item.shape.at == time(20, 0)
        assert twenty_four.add_entry("today at 8 Walk").item.shape.at == time(8, 0)


class TestReadOnlyViews:
    def test_due_occurrences_shown_but_not_committed(self, service, store, clock):
        service.add_entry("recur 1w monday all day Standup")
        clock.now = datetime(2024, 3, 11, 9, 0)

        items = service.list_items()
        assert [(i.id, i.date) for i in items] == [(1, date(2024, 3, 4)), (None, date(2024, 3, 11))]
        assert service.list_items() == items
        assert len(store.snapshot().items) == 1

    def test_mutation_commits_occurrences_first(self, service, store, clock):
        service.add_entry("recur 1w monday all day Standup")
        clock.now = datetime(2024, 3, 11, 9, 0)

        added = service.add_entry("today at 10 Dentist")
        assert added.item.id == 3
        state = store.snapshot()
        assert [(i.id, i.sequence_index) for i in state.items] == [(1, 0), (2, 1), (3, None)]
        assert state.tasks[0].sequence_index == 1

    def test_order_all_day_first_then_time(self, service):
        service.add_entry("today at 11 Lunch")
        service.add_entry("today at 10 Call")
        service.add_entry("today all day Holiday")
        service.add_entry("tomorrow at 8 Gym")
        assert [i.detail for i in service.list_items()] == ["Holiday", "Call", "Lunch", "Gym"]

    def test_today(self, service):
        service.add_entry("today at 10 Call")
        service.add_entry("yesterday from 22 to 2 Night shift")
        service.add_entry("tomorrow at 8 Gym")
        assert [i.detail for i in service.today()] == ["Night shift", "Call"]

    def test_completed_hidden_unless_requested(self, service):
        item = service.add_entry("today at 10 Call").item
        service.complete(item.id)
        assert service.list_items() == []
        assert [i.id for i in service.list_items(include_completed=True)] == [item.id]

    def test_now_window(self, service):
        service.add_entry("today at 9:15 Standup")
        service.add_entry("today at 11 Lunch")
        assert [i.detail for i in service.now()] == ["Standup"]
        assert [i.detail for i in service.now(Duration(hours=3))] == ["Standup", "Lunch"]

    def test_now_includes_due_reminders(self, service):
        service.add_entry("today at 11 notify 3h Lunch")
        assert [i.detail for i in service.now()] == ["Lunch"]

    def test_completed_items_on_request(self, service):
        item = service.add_entry("today at 9:15 Standup").item
        service.complete(item.id)
        assert service.now() == []
        assert [i.id for i in service.now(include_completed=True)] == [item.id]
        assert [i.id for i in service.today()] == [item.id]
        assert service.today(include_completed=False) == []

    def test_search(self, service):
        service.add_entry("10/23 from 2pm to 4pm Coffee with Scarlett")
        service.add_entry("10/23 at 9am Scarlett dentist")
        service.add_entry("10/24 from 3pm to 4pm Scarlett again")
        found = service.search("date 10/23 time from 2pm to 10pm detail Scarlett unfinished")
        assert [i.detail for i in found] == ["Coffee with Scarlett"]

    def test_search_error(self, service):
        with pytest.raises(UnknownSearchTerm):
            service.search("banana")

    def test_show_unknown(self, service):
        with pytest.raises(ItemNotFound):
            service.show(42)
        with pytest.raises(ItemNotFound):
            service.show_recurring(42)


class TestNotifications:
    def test_listing_does_not_write(self, service, store):
        item = service.add_entry("today at 9:20 notify 30m Call").item
        before = store.path.read_text()
        assert [i.id for i in service.notifications()] == [item.id]
        assert store.path.read_text() == before

    def test_acknowledge(self, service):
        item = service.add_entry("today at 9:20 notify 30m Call").item
        assert [i.id for i in service.acknowledge()] == [item.id]
        assert service.notifications() == []
        assert service.show(item.id).notified

    def test_completed_reminders_on_request(self, service):
        item = service.add_entry("today at 9:20 notify 30m Call").item
        service.complete(item.id)
        assert service.notifications() == []
        assert [i.id for i in service.notifications(include_completed=True)] == [item.id]
        assert [i.id for i in service.acknowledge(include_completed=True)] == [item.id]
        assert service.notifications(include_completed=True) == []

    def test_acknowledge_unknown_id(self, service):
        with pytest.raises(ItemNotFound):
            service.acknowledge([7])


class TestMutations:
    def test_delete(self, service):
        item = service.add_entry("today at 10 Call").item
        assert service.delete(item.id).id == item.id
        with pytest.raises(ItemNotFound):
            service.delete(item.id)

    def test_delete_occurrence_keeps_task(self, service):
        result = service.add_entry("recur 1d today at 8 Pills")
        service.delete(result.item.id)
        assert [t.id for t in service.list_recurring()] == [result.task.id]

    def test_delete_recurring_cascades(self, service, store, clock):
        result = service.add_entry("recur 1d today at 8 Pills")
        other = service.add_entry("today at 10 Call").item
        clock.now = datetime(2024, 3, 3, 9, 0)
        service.complete(other.id)

        service.delete_recurring(result.task.id)
        state = store.snapshot()
        assert state.tasks == []
        assert [i.id for i in state.items] == [other.id]
        assert service.list_items(include_completed=True) == state.items

    def test_delete_recurring_unknown(self, service):
        with pytest.raises(ItemNotFound):
            service.delete_recurring(3)

    def test_edit_keeps_identity(self, service):
        item = service.add_entry("today at 10 Call").item
        service.set_field(item.id, "room", "4B")
        edited = service.edit(item.id, "tomorrow at 9pm Bath")
        assert edited.id == item.id
        assert edited.detail == "Bath"
        assert edited.shape == InstantShape(date=date(2024, 3, 2), at=time(21, 0))
        assert edited.fields == {"room": "4B"}

    def test_edit_rejects_recurrence(self, service):
        item = service.add_entry("today at 10 Call").item
        with pytest.raises(ParseError):
            service.edit(item.id, "recur 1d today at 10 Call")

    def test_edit_recurring_replaces_schedule(self, service, store, clock):
        result = service.add_entry("recur 1d today at 8 Pills")
        edited = service.edit_recurring(result.task.id, "recur 2d tomorrow at 20 notify 15m Vitamins")
        assert edited.task.id == result.task.id
        assert edited.task.interval == Duration(days=2)
        assert edited.task.detail == "Vitamins"
        assert edited.item.shape == InstantShape(date=date(2024, 3, 2), at=time(20, 0))
        assert edited.item.sequence_index == 1
        assert edited.item.notify == Duration(minutes=15)
        # the occurrence that already started is kept as it was
        assert [(i.detail, i.sequence_index) for i in store.snapshot().items] == [("Pills", 0), ("Vitamins", 1)]

        clock.now = datetime(2024, 3, 4, 21, 0)
        assert [(i.date, i.sequence_index) for i in service.list_items()] == [
            (date(2024, 3, 1), 0),
            (date(2024, 3, 2), 1),
            (date(2024, 3, 4), 2),
        ]

    def test_edit_recurring_keeps_interval_without_recur(self, service):
        result = service.add_entry("recur 1w monday at 10 Standup")
        edited = service.edit_recurring(result.task.id, "monday at 11 Standup")
        assert edited.task.interval == Duration(weeks=1)
        assert edited.task.anchor_instant == datetime(2024, 3, 4, 11, 0)

    def test_edit_recurring_drops_future_occurrences(self, service, store):
        result = service.add_entry("recur 1w monday at 10 Standup")
        edited = service.edit_recurring(result.task.id, "tuesday at 10 Standup")
        assert [i.id for i in store.snapshot().items] == [edited.item.id]
        assert edited.item.id != result.item.id

    def test_edit_recurring_keeps_completed_occurrences(self, service, store):
        result = service.add_entry("recur 1w monday at 10 Standup")
        service.complete(result.item.id)
        service.edit_recurring(result.task.id, "tuesday at 10 Standup")
        assert [i.detail for i in store.snapshot().items] == ["Standup", "Standup"]
        assert store.snapshot().items[0].completed

    def test_edit_recurring_unknown(self, service, store):
        with pytest.raises(ItemNotFound):
            service.edit_recurring(9, "today at 10 Call")
        assert not store.path.exists()

    def test_edit_recurring_parse_error(self, service, store):
        result = service.add_entry("recur 1d today at 8 Pills")
        before = store.path.read_text()
        with pytest.raises(MissingShape):
            service.edit_recurring(result.task.id, "tomorrow Pills")
        assert store.path.read_text() == before

    def test_set_field_then_search(self, service):
        item = service.add_entry("today at 10 Call").item
        service.set_field(item.id, "room", "4B")
        assert [i.id for i in service.search("field key room value 4B")] == [item.id]
        assert service.search("field value 5C key room") == []
