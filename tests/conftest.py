from datetime import datetime, timedelta, timezone

import pytest

from mneme.application.config import SchedulerSettings
from mneme.application.scheduler import Scheduler
from mneme.domain.models import Card, State

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return T0


@pytest.fixture
def plain_scheduler():
    """Scheduler with fuzz disabled so intervals are exact."""
    return Scheduler(SchedulerSettings(enable_fuzz=False))


@pytest.fixture
def review_card():
    """A Review card last seen 10 days ago, due now, S=10, D=5."""
    return Card(
        due=T0,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=5.0,
        scheduled_days=10.0,
        reps=5,
        lapses=0,
        learning_steps=0,
        state=State.REVIEW,
        last_review=T0 - timedelta(days=10),
    )


@pytest.fixture
def mock_vault(tmp_path):
    """Creates a temporary notes directory."""
    d = tmp_path / "MyVault"
    d.mkdir()
    return d


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and environment overrides
    monkeypatch.setenv("HOME", str(home))
    for var in ("MNEME_VAULT_ROOT", "MNEME_STORE_PATH", "MNEME_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    return home
