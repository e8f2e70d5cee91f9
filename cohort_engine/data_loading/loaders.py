"""
Data loading functions for the cohort engine.

This module reads the exports of the host application (activity log,
participant list, matching profiles) from CSV files.
No aggregation is done here - that's handled by the aggregation module.
"""

import logging
from pathlib import Path
from typing import List

import pandas as pd

from ..matching.schema import Profile

logger = logging.getLogger(__name__)


def _read_csv(filepath: str, label: str, delimiter: str, **kwargs) -> pd.DataFrame:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"{label} file not found: {filepath}")

    logger.info(f"Loading {label} from {filepath} (delimiter: {repr(delimiter)})")
    df = pd.read_csv(filepath, sep=delimiter, **kwargs)

    if df.empty:
        raise ValueError(f"{label} file is empty: {filepath}")

    logger.info(f"Loaded {len(df)} rows with {len(df.columns)} columns")
    return df


def load_activity_log(filepath: str, delimiter: str = ",") -> pd.DataFrame:
    """
    Load the daily activity log.

    Expected columns: user_id, snapshot_date, logins_count, posts_count,
    responses_count, last_login, last_partner_interaction. Only user_id and
    snapshot_date are required.

    Args:
        filepath: Path to the activity CSV file
        delimiter: Field delimiter (default: comma)

    Returns:
        DataFrame with the raw activity log

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or lacks required columns
    """
    df = _read_csv(filepath, "Activity log", delimiter, dtype={"user_id": str})

    missing = [c for c in ["user_id", "snapshot_date"] if c not in df.columns]
    if missing:
        raise ValueError(f"Activity log is missing required columns: {missing}")

    return df


def load_users(filepath: str, delimiter: str = ",") -> pd.DataFrame:
    """
    Load the list of active participants.

    Expected columns: id, with optional full_name and email.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or has no id column
    """
    df = _read_csv(filepath, "Users", delimiter, dtype={"id": str})
    if "id" not in df.columns:
        raise ValueError(f"Users file has no 'id' column: {filepath}")
    return df


def load_profiles(filepath: str, delimiter: str = ",") -> List[Profile]:
    """
    Load matching profiles.

    Column names may be snake_case (experience_level) or camelCase
    (experienceLevel). Empty cells are treated as unanswered.

    Args:
        filepath: Path to the profiles CSV file
        delimiter: Field delimiter (default: comma)

    Returns:
        List of Profile objects in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty
    """
    df = _read_csv(filepath, "Profiles", delimiter, dtype=str)
    profiles = [Profile.from_dict(record) for record in df.to_dict("records")]

    incomplete = sum(1 for p in profiles if p.completeness() < 1.0)
    logger.info(f"Loaded {len(profiles)} profiles ({incomplete} incomplete)")
    return profiles
