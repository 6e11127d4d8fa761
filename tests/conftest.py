"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseKeeper tests.
Fixtures include the durable store, a controllable clock, a manual timer
backend, the scheduler, sample medications and the API test client.
"""

import os
import sys
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from typing import Callable, Generator, List
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import build_engine, drop_db, init_db
import models  # noqa: F401
from actions.reminder_engine import NotificationScheduler, TimerBackend
from exceptions import StorageError
from services.dose_service import DoseService
from services.history_service import HistoryService
from services.medication_service import MedicationService
from services.storage_service import DurableStore
from tools.notification_service import InAppNotificationSurface
from tools.regimen import AsNeeded, FixedTimes, IntervalHours, Medication


# ==================== TIME FIXTURES ====================

@pytest.fixture
def tz():
    """Local zone for tests (no DST)"""
    return ZoneInfo("America/Sao_Paulo")


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def clock(tz) -> FakeClock:
    """Clock fixed at 2024-01-01 07:00 local"""
    return FakeClock(datetime(2024, 1, 1, 7, 0, tzinfo=tz))


# ==================== TIMER FIXTURES ====================

@dataclass
class ManualTimer:
    delay: float
    due_at: datetime
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self):
        self.cancelled = True


class ManualTimerBackend(TimerBackend):
    """Records armed timers; tests fire them explicitly"""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: List[ManualTimer] = []

    def call_later(self, delay_seconds, callback):
        timer = ManualTimer(
            delay=delay_seconds,
            due_at=self.clock() + timedelta(seconds=delay_seconds),
            callback=callback
        )
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire(self, timer: ManualTimer):
        """Move the clock to the timer's due time and run it"""
        if timer.due_at > self.clock.current:
            self.clock.current = timer.due_at
        timer.fired = True
        timer.callback()

    def fire_next(self) -> ManualTimer:
        timer = min(self.pending, key=lambda t: t.due_at)
        self.fire(timer)
        return timer


@pytest.fixture
def timer_backend(clock) -> ManualTimerBackend:
    return ManualTimerBackend(clock)


# ==================== STORAGE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)

    yield engine

    drop_db(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def store(session_factory) -> DurableStore:
    return DurableStore(session_factory)


@pytest.fixture
def failing_store() -> DurableStore:
    """Store whose reads return nothing and whose writes fail"""
    mock = MagicMock(spec=DurableStore)
    mock.get.return_value = None
    mock.get_json.side_effect = lambda key, default=None: default
    mock.set.side_effect = StorageError("disk full")
    mock.set_json.side_effect = StorageError("disk full")
    return mock


# ==================== SCHEDULER FIXTURES ====================

@pytest.fixture
def surface(clock) -> InAppNotificationSurface:
    return InAppNotificationSurface(permission_granted=True, actions_enabled=True, clock=clock)


@pytest.fixture
def scheduler(store, surface, timer_backend, clock, tz) -> NotificationScheduler:
    return NotificationScheduler(
        store,
        surface,
        timer_backend=timer_backend,
        clock=clock,
        tz=tz
    )


# ==================== SERVICE FIXTURES ====================

@pytest.fixture
def medication_service(store, clock, tz) -> MedicationService:
    return MedicationService(store, clock=clock, tz=tz)


@pytest.fixture
def history_service(store, medication_service, clock, tz) -> HistoryService:
    return HistoryService(store, medication_service, clock=clock, tz=tz)


@pytest.fixture
def dose_service(medication_service, history_service, clock, tz) -> DoseService:
    return DoseService(medication_service, history_service, clock=clock, tz=tz)


# ==================== SAMPLE DATA FIXTURES ====================

def make_medication(
    medication_id: str,
    frequency,
    name: str = None,
    start_date: date = date(2023, 12, 1),
    end_date: date = None
) -> Medication:
    return Medication(
        id=medication_id,
        name=name or medication_id.title(),
        frequency=frequency,
        start_date=start_date,
        end_date=end_date
    )


@pytest.fixture
def fixed_medication() -> Medication:
    return make_medication(
        "metformin",
        FixedTimes(times=("08:00", "20:00")),
        start_date=date(2024, 1, 1)
    )


@pytest.fixture
def interval_medication() -> Medication:
    return make_medication(
        "amoxicillin",
        IntervalHours(interval_hours=8, first_dose_time="06:00")
    )


@pytest.fixture
def as_needed_medication() -> Medication:
    return make_medication("ibuprofen", AsNeeded())


# ==================== API FIXTURES ====================

@pytest.fixture(scope="function")
def client(session_factory, surface, timer_backend, clock, tz) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the test store, clock and timers"""
    from app import create_app

    app = create_app(
        session_factory=session_factory,
        surface=surface,
        timer_backend=timer_backend,
        clock=clock,
        tz=tz
    )

    with TestClient(app) as test_client:
        yield test_client


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
