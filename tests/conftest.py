"""Shared fixtures for the schedule core tests."""
import pytest

from schedule_core import timezone_utils
from schedule_core.models import Event
from schedule_core.repository import EventRepository, LabelRepository
from schedule_core.storage import MemoryStorage


@pytest.fixture(autouse=True)
def utc_timezone():
    """Run every test with UTC as the local timezone."""
    timezone_utils.set_timezone("UTC")
    yield
    timezone_utils.set_timezone("UTC")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def event_repository(storage):
    return EventRepository(storage)


@pytest.fixture
def label_repository(storage, event_repository):
    return LabelRepository(storage, event_repository)


@pytest.fixture
def standup():
    return Event(title="Standup", date="2024-01-15T09:00:00.000Z", repeat="daily")
