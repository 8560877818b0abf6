"""Pytest configuration and fixtures for the SOS Guardian tests."""

import os

# Must be set before sos_guardian.config is imported
os.environ["DATABASE_URL"] = "sqlite://"

import asyncio
import pytest

from sos_guardian.database import database
from sos_guardian.models import models  # noqa: F401
from sos_guardian.utils.contacts import ContactRegistry
from sos_guardian.utils.emergency import EmergencyActivationEngine
from sos_guardian.utils.location import DeviceGeolocation, LocationProvider
from sos_guardian.utils.notifications import Notifier
from sos_guardian.utils.preferences import PersistedPreferences
from sos_guardian.utils.session import ActivationSession


async def settle(rounds: int = 20):
    """Let every ready task run until it blocks again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualTicker:
    """Countdown ticker released one tick at a time by the test."""

    def __init__(self):
        self._queue = asyncio.Queue()

    async def __call__(self):
        await self._queue.get()

    async def advance(self, ticks: int = 1):
        for _ in range(ticks):
            self._queue.put_nowait(None)
            await settle()


class RecordingDispatcher:
    """Dispatcher double; phone numbers in `fail_for` raise like an unreachable channel."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, alert, contact):
        if contact.phone_number in self.fail_for:
            raise ConnectionError(f"{contact.phone_number} unreachable")
        self.sent.append((alert, contact))


@pytest.fixture(autouse=True)
def db_tables():
    database.Base.metadata.create_all(bind=database.engine)
    yield
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def preferences():
    return PersistedPreferences(database.SessionLocal)


@pytest.fixture
def registry(preferences):
    return ContactRegistry(preferences)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def session():
    return ActivationSession()


@pytest.fixture
def geolocation():
    return DeviceGeolocation()


@pytest.fixture
def location_provider(geolocation):
    return LocationProvider(geolocation)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def engine(session, registry, location_provider, preferences, dispatcher, notifier, ticker):
    return EmergencyActivationEngine(
        session, registry, location_provider, preferences, dispatcher, notifier,
        countdown_seconds=3, ticker=ticker,
    )
