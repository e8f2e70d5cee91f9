"""
Shared fixtures for the cohort engine test suite.

All tests are pure Python: no database, no network, no clock. Engagement
tests evaluate at the fixed instant NOW.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cohort_engine.engagement import ActivitySnapshot
from cohort_engine.matching import Profile

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "configs" / "config.yaml"

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_snapshot(**overrides) -> ActivitySnapshot:
    """
    Create a snapshot of a quiet but present participant.

    Defaults: logged in yesterday, talked to their partner yesterday, no
    counters. No rule fires on the defaults.
    """
    defaults = {
        "user_id": "user-1",
        "last_login": days_ago(1),
        "last_partner_interaction": days_ago(1),
    }
    defaults.update(overrides)
    return ActivitySnapshot(**defaults)


def make_profile(**overrides) -> Profile:
    """Create a fully filled-in profile."""
    defaults = {
        "person_id": "target",
        "experience_level": "senior",
        "industry": "Technology",
        "time_zone": "America/Chicago",
        "communication_style": "direct",
        "team_size": "6-15",
        "goals": "Delegate more and coach my managers",
    }
    defaults.update(overrides)
    return Profile(**defaults)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def config_path():
    return str(CONFIG_PATH)


@pytest.fixture
def full_profile():
    return make_profile()


@pytest.fixture
def empty_profile():
    return Profile()
