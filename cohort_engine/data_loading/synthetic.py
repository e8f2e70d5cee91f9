"""
Synthetic cohort data for demonstrations and smoke tests.

Generated data follows the column layout of the real exports so that it
can go through exactly the same loading and aggregation path.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Union

import numpy as np
import pandas as pd

from ..aggregation.snapshots import to_day
from ..matching.schema import Profile

logger = logging.getLogger(__name__)

EXPERIENCE_LEVELS = ["emerging", "mid", "senior", "executive"]
INDUSTRIES = ["Technology", "Healthcare", "Education", "Finance", "Nonprofit"]
TIME_ZONES = ["America/New_York", "America/Chicago", "America/Denver", "America/Los_Angeles"]
COMMUNICATION_STYLES = ["direct", "collaborative", "analytical", "supportive"]
TEAM_SIZES = ["1-5", "6-15", "16-50", "50+"]


def create_synthetic_profiles(n_profiles: int = 20, random_seed: int = 42) -> List[Profile]:
    """
    Create random matching profiles.

    Roughly one in five answers is left blank to mimic skipped onboarding
    questions.
    """
    rng = np.random.RandomState(random_seed)
    profiles = []

    def maybe(choices):
        return None if rng.rand() < 0.2 else str(rng.choice(choices))

    for i in range(n_profiles):
        profiles.append(Profile(
            person_id=f"user_{i:03d}",
            full_name=f"Participant {i:03d}",
            experience_level=maybe(EXPERIENCE_LEVELS),
            industry=maybe(INDUSTRIES),
            time_zone=maybe(TIME_ZONES),
            communication_style=maybe(COMMUNICATION_STYLES),
            team_size=maybe(TEAM_SIZES),
            goals=None if rng.rand() < 0.2 else "Grow as a leader",
        ))

    logger.info(f"Created synthetic profiles: {n_profiles}")
    return profiles


def create_synthetic_activity_log(
    n_users: int = 20,
    as_of: Union[date, datetime, str, None] = None,
    n_days: int = 14,
    random_seed: int = 42
) -> pd.DataFrame:
    """
    Create a random daily activity log ending on as_of.

    Each user gets an activity level that drives login probability and
    posting rate, so the log contains a mix of active, lurking and absent
    participants.
    """
    rng = np.random.RandomState(random_seed)
    end = to_day(as_of or datetime.now(timezone.utc))

    rows = []
    for i in range(n_users):
        user_id = f"user_{i:03d}"
        activity_level = rng.rand()
        posting_rate = rng.rand() * activity_level
        last_login = None
        last_partner = None

        for offset in range(n_days - 1, -1, -1):
            day = end - timedelta(days=offset)
            logged_in = rng.rand() < activity_level
            logins = int(rng.randint(1, 4)) if logged_in else 0
            posts = int(rng.poisson(posting_rate)) if logged_in else 0
            responses = int(rng.poisson(posting_rate * 1.5)) if logged_in else 0

            if logged_in:
                last_login = day + timedelta(hours=int(rng.randint(7, 22)))
                if rng.rand() < 0.3:
                    last_partner = last_login

            rows.append({
                "user_id": user_id,
                "snapshot_date": day.date().isoformat(),
                "logins_count": logins,
                "posts_count": posts,
                "responses_count": responses,
                "last_login": last_login.isoformat() if last_login is not None else None,
                "last_partner_interaction": (
                    last_partner.isoformat() if last_partner is not None else None
                ),
            })

    df = pd.DataFrame(rows)
    logger.info(f"Created synthetic activity log: {n_users} users x {n_days} days")
    return df
