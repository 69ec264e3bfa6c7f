"""Shared fixtures for DailyGrow tests."""

import uuid
from datetime import date

import pytest
import pytz

from config import config
from core.database import DatabaseManager
from core.models import Habit

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """Pin the local timezone so day boundaries are deterministic."""
    monkeypatch.setattr(config, "timezone", pytz.utc)


@pytest.fixture
def make_habit():
    """Build a habit created on a given day with completed days."""

    def _make(title="Read", created="2026-01-01", days=(), habit_id=None):
        habit = Habit(
            habit_id=habit_id or str(uuid.uuid4()),
            title=title,
            created_at=f"{created}T08:00:00+00:00",
        )
        for day in days:
            habit.set_completion(day, True)
        return habit

    return _make


@pytest.fixture
def day():
    """Shortcut for January 2026 days: day(5) -> 2026-01-05."""

    def _day(n, month=1, year=2026):
        return date(year, month, n)

    return _day


@pytest.fixture
def db(tmp_path):
    """Database manager backed by a temporary directory."""
    return DatabaseManager(
        data_file=tmp_path / "data" / "dailygrow.json",
        backup_dir=tmp_path / "backups",
        max_backups=7,
    )
