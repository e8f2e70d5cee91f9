"""
Data structures for engagement analysis.

An ActivitySnapshot carries pre-aggregated counters for one participant
over two consecutive periods ("current" and "previous"). The caller owns
the period boundaries; the classifier only compares the counters.

Normalization rules (applied in ActivitySnapshot.__post_init__):
- a missing count (None, NaN or pd.NA) means no activity and becomes 0
- timestamps may be datetime, date or ISO-8601 strings; naive values are
  taken to be UTC
- a missing timestamp (None, NaN or NaT) becomes None and means "never observed"
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union

import pandas as pd

SECONDS_PER_DAY = 24 * 60 * 60

Timestamp = Union[datetime, date, str, None]


def is_missing(value: Any) -> bool:
    """True for None and for pandas null scalars (NaN, NaT, pd.NA)."""
    return value is None or (pd.api.types.is_scalar(value) and bool(pd.isna(value)))


class FlagType(str, Enum):
    """Severity of an engagement flag."""
    RED = "red"        # Attention required now
    YELLOW = "yellow"  # Monitor
    GREEN = "green"    # Celebrate


def to_utc(value: Timestamp) -> Optional[datetime]:
    """
    Convert a timestamp-like value to an aware UTC datetime.

    Args:
        value: datetime, date, ISO-8601 string or None

    Returns:
        Aware datetime in UTC, or None if the value is missing

    Raises:
        ValueError: If a string cannot be parsed
    """
    if is_missing(value):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    elif not isinstance(value, datetime) and isinstance(value, date):
        value = datetime(value.year, value.month, value.day)

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_since(timestamp: Optional[datetime], now: datetime) -> Optional[int]:
    """
    Whole days elapsed between a timestamp and now.

    Timestamps in the future (clock skew between the activity store and
    the job) are clamped to 0 days.

    Returns:
        Number of days, or None when the timestamp was never observed
    """
    timestamp = to_utc(timestamp)
    if timestamp is None:
        return None
    elapsed = (to_utc(now) - timestamp).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))


def _count(value: Any) -> int:
    if is_missing(value):
        return 0
    return int(value)


# Keys used by the original engagement payloads
_CAMEL_CASE_KEYS = {
    "userId": "user_id",
    "userName": "user_name",
    "loginsPastWeek": "logins_current",
    "loginsPreviousWeek": "logins_previous",
    "postsPastWeek": "posts_current",
    "postsPreviousWeek": "posts_previous",
    "responsesPastWeek": "responses_current",
    "lastLogin": "last_login",
    "lastPartnerInteraction": "last_partner_interaction",
}

_SNAPSHOT_FIELDS = {
    "user_id", "user_name", "email",
    "logins_current", "logins_previous",
    "posts_current", "posts_previous",
    "responses_current",
    "last_login", "last_partner_interaction",
}


@dataclass
class ActivitySnapshot:
    """
    Activity counters for one participant over two periods.

    Attributes:
        user_id: Participant identifier
        logins_current: Days with a login in the current period
        logins_previous: Days with a login in the previous period
        posts_current: Posts authored in the current period
        posts_previous: Posts authored in the previous period
        responses_current: Replies authored in the current period
        last_login: Most recent login, None if never seen
        last_partner_interaction: Most recent partner check-in, None if never seen
        user_name: Display name (informational)
        email: Contact address (informational)
    """
    user_id: str
    logins_current: int = 0
    logins_previous: int = 0
    posts_current: int = 0
    posts_previous: int = 0
    responses_current: int = 0
    last_login: Optional[datetime] = None
    last_partner_interaction: Optional[datetime] = None
    user_name: Optional[str] = None
    email: Optional[str] = None

    def __post_init__(self):
        for attr in ["logins_current", "logins_previous", "posts_current",
                     "posts_previous", "responses_current"]:
            setattr(self, attr, _count(getattr(self, attr)))
        self.last_login = to_utc(self.last_login)
        self.last_partner_interaction = to_utc(self.last_partner_interaction)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "email": self.email,
            "logins_current": self.logins_current,
            "logins_previous": self.logins_previous,
            "posts_current": self.posts_current,
            "posts_previous": self.posts_previous,
            "responses_current": self.responses_current,
            "last_login": _isoformat(self.last_login),
            "last_partner_interaction": _isoformat(self.last_partner_interaction),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivitySnapshot":
        """Create from a dictionary with snake_case or camelCase keys."""
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in _SNAPSHOT_FIELDS:
                kwargs[name] = value
        return cls(**kwargs)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Flag:
    """
    A categorized engagement signal for one participant.

    Attributes:
        user_id: Participant the flag is about
        flag_type: red, yellow or green
        reason_code: Stable identifier of the rule that fired
        reason: Human-readable reason
        context: Counters that triggered the flag
        recommended_action: What an administrator should do
    """
    user_id: str
    flag_type: FlagType
    reason_code: str
    reason: str
    context: Dict[str, Any] = field(default_factory=dict)
    recommended_action: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary shaped like a flags-table row."""
        return {
            "user_id": self.user_id,
            "flag_type": self.flag_type.value,
            "reason_code": self.reason_code,
            "flag_reason": self.reason,
            "context": dict(self.context),
            "recommended_action": self.recommended_action,
        }
