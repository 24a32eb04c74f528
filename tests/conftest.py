"""Pytest configuration and shared fixtures."""

from decimal import Decimal

import pytest

from event_checkout.models import Event
from event_checkout.settings import get_config
from tests.support import FakeEventStore


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def meetup():
    return Event(id="E1", title="Meetup", description="Monthly meetup", price=Decimal("25.00"))


@pytest.fixture
def store(meetup):
    return FakeEventStore(events=[meetup], emails={"user-1": "user1@example.com"})
