"""Shared test fixtures."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from almanac.api.dependencies import get_service
from almanac.main import app
from almanac.service import CalendarService
from almanac.settings import Preferences
from almanac.stores.calendar import CalendarStore

# A Friday morning
REFERENCE_NOW = datetime(2024, 3, 1, 9, 0)


class FakeClock:
    """Stands in for the wall clock; tests move it explicitly."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(REFERENCE_NOW)


@pytest.fixture
def store(tmp_path):
    return CalendarStore(tmp_path / "calendar.json")


@pytest.fixture
def service(store, clock):
    return CalendarService(store=store, preferences=Preferences(), clock=clock)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
