"""
Shared fixtures.

Sessions are built on an in-memory store with a fixed date, a fixed
export timestamp and a frozen id clock, so results are deterministic.
"""

from datetime import date, datetime, timezone

import pytest

from money_tracker.config import AppSettings
from money_tracker.ledger import TransactionIdGenerator
from money_tracker.orchestrator import MoneyTrackerSession
from money_tracker.services.storage import InMemoryStore, UserDataRepository


TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
START_MS = 1_709_600_000_000


class FrozenClock:
    """time.time_ns stand-in that only moves when told to."""

    def __init__(self, ms: int = START_MS):
        self.ms = ms

    def __call__(self) -> int:
        return self.ms * 1_000_000


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def app_settings():
    return AppSettings()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def alerts():
    return []


@pytest.fixture
def make_session(store, app_settings, alerts):
    """Build a session over the shared store (a second call simulates a restart)."""

    def _make(settings=None, target_store=None):
        return MoneyTrackerSession(
            UserDataRepository(target_store or store),
            settings=settings or app_settings,
            id_generator=TransactionIdGenerator(FrozenClock()),
            today=lambda: TODAY,
            now=lambda: NOW,
            alert=alerts.append,
        )

    return _make


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def alice(session):
    """Session with Alice (balance 1000) created, selected, and March 2024 chosen."""
    session.create_user("Alice", "1000")
    session.select_period(2024, 3)
    return session
