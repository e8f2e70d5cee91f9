"""
Input and output schema for partner compatibility scoring.

A Profile holds the six self-reported attributes used for matching
accountability partners. Every attribute is optional: participants often
skip onboarding questions, and a missing answer must lower the score of a
pairing rather than break it.

Normalization happens once, in Profile.__post_init__:
- surrounding whitespace is stripped
- blank strings and pandas nulls (NaN, NaT, pd.NA from an empty CSV cell) become None
- other scalars (e.g. an integer team size) are converted to strings
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List

import pandas as pd


PROFILE_FIELDS = [
    "experience_level",
    "industry",
    "time_zone",
    "communication_style",
    "team_size",
    "goals",
]

# Keys used by the web application's profile records
_CAMEL_CASE_KEYS = {
    "id": "person_id",
    "personId": "person_id",
    "fullName": "full_name",
    "partnerId": "partner_id",
    "experienceLevel": "experience_level",
    "timeZone": "time_zone",
    "communicationStyle": "communication_style",
    "teamSize": "team_size",
}


def normalize_field(value: Any) -> Optional[str]:
    """Normalize a raw profile value to a stripped string or None."""
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


@dataclass
class Profile:
    """
    One participant's matching attributes.

    Attributes:
        person_id: Identifier of the participant (not used for scoring)
        experience_level: Leadership experience bucket
        industry: Industry, compared case-insensitively
        time_zone: Time zone identifier (e.g. "America/Chicago")
        communication_style: Preferred communication style
        team_size: Team size bucket (e.g. "6-15")
        goals: Free-text goals; only presence is scored
        partner_id: Current accountability partner, if already paired
        full_name: Display name for reports
    """
    person_id: Optional[str] = None
    experience_level: Optional[str] = None
    industry: Optional[str] = None
    time_zone: Optional[str] = None
    communication_style: Optional[str] = None
    team_size: Optional[str] = None
    goals: Optional[str] = None
    partner_id: Optional[str] = None
    full_name: Optional[str] = None

    def __post_init__(self):
        for attr in PROFILE_FIELDS + ["person_id", "partner_id", "full_name"]:
            setattr(self, attr, normalize_field(getattr(self, attr)))

    @property
    def is_paired(self) -> bool:
        return self.partner_id is not None

    def completeness(self) -> float:
        """Fraction of the six matching attributes that are filled in."""
        filled = sum(1 for attr in PROFILE_FIELDS if getattr(self, attr) is not None)
        return filled / len(PROFILE_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """
        Create from a dictionary.

        Accepts snake_case keys as well as the camelCase keys used by the
        web application. Unknown keys are ignored.
        """
        kwargs = {}
        known = set(PROFILE_FIELDS) | {"person_id", "partner_id", "full_name"}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)


@dataclass
class DimensionScore:
    """Points earned on one scoring dimension."""
    name: str
    earned: int
    possible: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CompatibilityResult:
    """
    Result of compatibility scoring.

    Attributes:
        score: Final compatibility percentage in [0, 100]
        earned: Total points earned across dimensions
        possible: Total points available across dimensions
        breakdown: Per-dimension points for explainability
    """
    score: int
    earned: int
    possible: int
    breakdown: List[DimensionScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "earned": self.earned,
            "possible": self.possible,
            "breakdown": {d.name: d.to_dict() for d in self.breakdown},
        }
