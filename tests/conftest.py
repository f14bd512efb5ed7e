"""
Shared fixtures.

The app is pointed at a throwaway SQLite file and temp upload/data
directories before anything under `app` is imported, since settings are
cached on first use.
"""

import os
import tempfile
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

TEST_ROOT = tempfile.mkdtemp(prefix="restaurant-tests-")

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(TEST_ROOT, 'test.db')}"
os.environ["UPLOAD_DIRECTORY"] = os.path.join(TEST_ROOT, "uploads")
os.environ["DATA_DIRECTORY"] = os.path.join(TEST_ROOT, "data")
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["JWT_SECRET"] = "test-secret"

import httpx  # noqa: E402

import app.models  # noqa: E402,F401
from app import main  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.database import Base, async_session_maker, engine  # noqa: E402
from app.services import accounts, reservations  # noqa: E402
from app.services.notifications import MockNotificationService  # noqa: E402


@pytest.fixture(autouse=True)
async def database():
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session():
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def seeded(session):
    """Default config (30 seats, 60 min, max 10) and 10:00-22:00 every day."""
    await reservations.ensure_booking_defaults(session)
    admin = await accounts.ensure_admin_user(session)
    return admin


@pytest.fixture
def export_calls(monkeypatch):
    """Record Excel export jobs instead of sending them to Celery."""
    calls = []
    monkeypatch.setattr(main, "export_reservation_to_excel", SimpleNamespace(delay=calls.append))
    return calls


@pytest.fixture
def notifier(monkeypatch):
    service = MockNotificationService(failure_rate=0, min_latency=0, max_latency=0)
    monkeypatch.setattr(main, "get_notification_service", lambda: service)
    return service


@pytest.fixture
async def client(seeded, export_calls, notifier):
    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers(seeded):
    token = create_access_token(seeded.id, seeded.email)
    return {"Authorization": f"Bearer {token}"}


def next_weekday(day_of_week: int, start: date = None) -> date:
    """First date after `start` (default today) falling on a Sunday-first weekday."""
    day = (start or date.today()) + timedelta(days=1)
    while reservations.sunday_first_weekday(day) != day_of_week:
        day += timedelta(days=1)
    return day


def week_payload(closed_days=(), open_time="10:00", close_time="22:00"):
    return [
        {
            "dayOfWeek": day,
            "isClosed": day in closed_days,
            "openTime": None if day in closed_days else open_time,
            "closeTime": None if day in closed_days else close_time,
        }
        for day in range(7)
    ]
