"""Persistence for calendar items and recurring tasks."""

from almanac.stores.calendar import CalendarStore

__all__ = ["CalendarStore"]
