"""
Build activity snapshots from a daily activity log.

The activity log has one row per participant per day:

    user_id, snapshot_date, logins_count, posts_count, responses_count,
    last_login, last_partner_interaction

Two consecutive windows of period_days days are cut from the log, ending
on as_of (inclusive):

    previous: (as_of - 2 * period_days, as_of - period_days]
    current:  (as_of - period_days, as_of]

Per window:
- logins are counted as days with at least one login
- posts and responses are summed

last_login and last_partner_interaction are timestamps rather than
counters, so the most recent value anywhere in the log up to as_of is used.
Rows dated after as_of are ignored.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

import pandas as pd

from ..engagement.schema import ActivitySnapshot

logger = logging.getLogger(__name__)

COUNT_COLUMNS = ["logins_count", "posts_count", "responses_count"]
TIMESTAMP_COLUMNS = ["last_login", "last_partner_interaction"]


def to_day(value: Union[date, datetime, str, pd.Timestamp]) -> pd.Timestamp:
    """Convert to a tz-naive UTC timestamp at midnight."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.normalize()


def _to_datetime_or_none(value) -> Optional[datetime]:
    if pd.isna(value):
        return None
    return value.to_pydatetime()


def prepare_activity_log(activity: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column types of a raw activity log.

    Missing count columns or values become 0; missing timestamp columns
    become NaT; snapshot_date is reduced to a calendar day.

    Args:
        activity: Raw activity log

    Returns:
        Normalized copy of the log

    Raises:
        ValueError: If user_id or snapshot_date columns are missing
    """
    missing = [c for c in ["user_id", "snapshot_date"] if c not in activity.columns]
    if missing:
        raise ValueError(f"Activity log is missing required columns: {missing}")

    df = activity.copy()
    df["user_id"] = df["user_id"].astype(str)
    df["snapshot_date"] = (
        pd.to_datetime(df["snapshot_date"].astype(object), utc=True, format="ISO8601")
        .dt.tz_localize(None)
        .dt.normalize()
    )

    for col in COUNT_COLUMNS:
        if col not in df.columns:
            df[col] = 0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)

    for col in TIMESTAMP_COLUMNS:
        if col not in df.columns:
            df[col] = None
        df[col] = pd.to_datetime(df[col].astype(object), utc=True, errors="coerce", format="ISO8601")

    return df


def build_snapshots(
    activity: pd.DataFrame,
    as_of: Union[date, datetime, str],
    period_days: int = 7,
    users: Optional[Union[pd.DataFrame, Iterable[str]]] = None
) -> List[ActivitySnapshot]:
    """
    Aggregate a daily activity log into one snapshot per participant.

    Args:
        activity: Daily activity log (see module docstring for columns)
        as_of: Last day of the current period
        period_days: Length of each period in days
        users: Participants to report on. Either an iterable of user ids or
            a DataFrame with an "id" column and optional "full_name" and
            "email" columns. Listed participants without activity get an
            all-zero snapshot. Defaults to every user in the log.

    Returns:
        Snapshots in the order of `users` (or first appearance in the log)
    """
    if period_days < 1:
        raise ValueError(f"period_days must be at least 1, got {period_days}")

    df = prepare_activity_log(activity)
    end = to_day(as_of)
    current_start = end - pd.Timedelta(days=period_days)
    previous_start = end - pd.Timedelta(days=2 * period_days)

    df = df[df["snapshot_date"] <= end]
    current = df[df["snapshot_date"] > current_start]
    previous = df[(df["snapshot_date"] > previous_start) &
                  (df["snapshot_date"] <= current_start)]

    logins_current = current[current["logins_count"] > 0].groupby("user_id")["snapshot_date"].nunique()
    logins_previous = previous[previous["logins_count"] > 0].groupby("user_id")["snapshot_date"].nunique()
    posts_current = current.groupby("user_id")["posts_count"].sum()
    posts_previous = previous.groupby("user_id")["posts_count"].sum()
    responses_current = current.groupby("user_id")["responses_count"].sum()
    last_login = df.groupby("user_id")["last_login"].max()
    last_partner = df.groupby("user_id")["last_partner_interaction"].max()

    names = {}
    emails = {}
    if users is None:
        user_ids = list(pd.unique(df["user_id"]))
    elif isinstance(users, pd.DataFrame):
        user_ids = [str(u) for u in users["id"]]
        if "full_name" in users.columns:
            names = dict(zip(user_ids, users["full_name"]))
        if "email" in users.columns:
            emails = dict(zip(user_ids, users["email"]))
    else:
        user_ids = [str(u) for u in users]

    snapshots = []
    for user_id in user_ids:
        name = names.get(user_id)
        name = None if pd.isna(name) else name
        email = emails.get(user_id)
        email = None if pd.isna(email) else email
        snapshots.append(ActivitySnapshot(
            user_id=user_id,
            logins_current=int(logins_current.get(user_id, 0)),
            logins_previous=int(logins_previous.get(user_id, 0)),
            posts_current=int(posts_current.get(user_id, 0)),
            posts_previous=int(posts_previous.get(user_id, 0)),
            responses_current=int(responses_current.get(user_id, 0)),
            last_login=_to_datetime_or_none(last_login.get(user_id)),
            last_partner_interaction=_to_datetime_or_none(last_partner.get(user_id)),
            user_name=name or email,
            email=email,
        ))

    logger.info(f"Built {len(snapshots)} snapshots as of {end.date()} "
               f"(period_days={period_days})")
    return snapshots
