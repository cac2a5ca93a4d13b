"""Shared test fixtures."""
import os

# Settings are read at import time; must be set before any app import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENV", "test")

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import BusinessCalendar
from app.core.db import build_session_maker, init_db
from app.models.appointment import Appointment
from app.services.appointment_service import AppointmentManager
from app.services.appointment_store import AppointmentStore
from app.services.slot_service import SlotSearch

NOW = datetime(2024, 1, 1, 10, 0, 0)


class FixedClock:
    """Clock frozen at a given naive-UTC instant; tests move it explicitly."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def calendar() -> BusinessCalendar:
    return BusinessCalendar()


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(db_engine) -> AppointmentStore:
    return AppointmentStore(build_session_maker(db_engine))


@pytest.fixture
def search(store, calendar, clock) -> SlotSearch:
    return SlotSearch(store, calendar, clock)


@pytest.fixture
def manager(store, search, calendar, clock) -> AppointmentManager:
    return AppointmentManager(store, search, calendar, clock)


@pytest.fixture
def seed(store):
    """Insert appointments straight into the store, bypassing booking rules."""

    async def _seed(*slots: datetime, user_id: int = 99, status: str = "confirmed") -> list[Appointment]:
        return [
            await store.insert(Appointment(user_id=user_id, appointment_date=s, status=status))
            for s in slots
        ]

    return _seed
