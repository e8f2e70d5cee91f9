"""
Engagement rule table.

Each rule is an independent predicate over the same RuleContext. All rules
are evaluated for every snapshot; a rule that fires never suppresses
another. Rules are listed in the order their flags are emitted.

RED (attention required now):
    prolonged_absence      no login for absence_days or more (or never)
    sudden_silence         was posting, still logs in, stopped posting
    partner_disconnect     no partner interaction for partner_gap_days or
                           more (or never), while still logging in
YELLOW (monitor):
    lurker                 logs in often, no posts and no replies
    declining_engagement   logins dropped from a high level to 1..N
GREEN (celebrate):
    breakthrough           regular visitor who started posting
    consistent_engagement  logs in, posts and replies at a high level
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

from .schema import ActivitySnapshot, FlagType

logger = logging.getLogger(__name__)


@dataclass
class EngagementThresholds:
    """
    Thresholds for the engagement rules.

    Counts refer to the periods supplied in the snapshot, so they only keep
    their meaning if the caller uses the same period length (one week by
    default).
    """
    absence_days: int = 10
    silence_previous_posts: int = 3
    partner_gap_days: int = 14
    lurker_min_logins: int = 4
    declining_previous_logins: int = 4
    declining_current_max: int = 2
    breakthrough_min_posts: int = 2
    breakthrough_previous_logins: int = 3
    consistent_min_logins: int = 5
    consistent_min_posts: int = 2
    consistent_min_responses: int = 3

    def validate(self) -> None:
        """Validate threshold values."""
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.declining_current_max < 1:
            raise ValueError(
                f"declining_current_max must be at least 1, got {self.declining_current_max}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngagementThresholds":
        """Create from dictionary."""
        return cls(**d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EngagementThresholds":
        """Create from main config dictionary."""
        thresholds = config.get("engagement", {}).get("thresholds", {}) or {}
        defaults = cls()
        return cls(**{
            name: int(thresholds.get(name, default))
            for name, default in defaults.to_dict().items()
        })

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved engagement thresholds to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "EngagementThresholds":
        """Load from JSON file."""
        with open(filepath, "r") as f:
            d = json.load(f)
        return cls.from_dict(d)


@dataclass
class RuleContext:
    """Snapshot plus derived values shared by all rules."""
    snapshot: ActivitySnapshot
    days_since_login: Optional[int]
    days_since_partner_interaction: Optional[int]
    thresholds: EngagementThresholds


@dataclass(frozen=True)
class Rule:
    """One row of the rule table."""
    code: str
    flag_type: FlagType
    reason: str
    recommended_action: str
    applies: Callable[[RuleContext], bool]
    evidence: Callable[[RuleContext], Dict[str, Any]]

    def describe(self, ctx: RuleContext) -> str:
        """Reason text with the active thresholds filled in."""
        return self.reason.format(**ctx.thresholds.to_dict())


def _at_least(days: Optional[int], limit: int) -> bool:
    # Never observed counts as infinitely long ago
    return days is None or days >= limit


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


RULES: List[Rule] = [
    Rule(
        code="prolonged_absence",
        flag_type=FlagType.RED,
        reason="No login for {absence_days}+ days",
        recommended_action=(
            "Send personal check-in. They may have dropped out or be facing challenges."
        ),
        applies=lambda ctx: _at_least(ctx.days_since_login, ctx.thresholds.absence_days),
        evidence=lambda ctx: {
            "last_login": _iso(ctx.snapshot.last_login),
            "days_since_login": ctx.days_since_login,
            "previous_activity": "active" if ctx.snapshot.logins_previous > 0 else "inactive",
        },
    ),
    Rule(
        code="sudden_silence",
        flag_type=FlagType.RED,
        reason="Sudden silence after high activity",
        recommended_action=(
            "Something changed. Check in personally - they're still showing up "
            "but stopped contributing."
        ),
        applies=lambda ctx: (
            ctx.snapshot.posts_previous >= ctx.thresholds.silence_previous_posts
            and ctx.snapshot.posts_current == 0
            and ctx.snapshot.logins_current > 0
        ),
        evidence=lambda ctx: {
            "posts_previous": ctx.snapshot.posts_previous,
            "posts_current": ctx.snapshot.posts_current,
            "still_logging_in": True,
        },
    ),
    Rule(
        code="partner_disconnect",
        flag_type=FlagType.RED,
        reason="Partner relationship broken - {partner_gap_days}+ days no interaction",
        recommended_action=(
            "Partner relationship may have failed. Consider facilitating "
            "reconnection or re-pairing."
        ),
        applies=lambda ctx: (
            _at_least(ctx.days_since_partner_interaction, ctx.thresholds.partner_gap_days)
            and ctx.snapshot.logins_current > 0
        ),
        evidence=lambda ctx: {
            "last_partner_interaction": _iso(ctx.snapshot.last_partner_interaction),
            "days_since_interaction": ctx.days_since_partner_interaction,
        },
    ),
    Rule(
        code="lurker",
        flag_type=FlagType.YELLOW,
        reason="Lurker - consuming but not contributing",
        recommended_action=(
            "Invite them to share. They may need permission or encouragement to contribute."
        ),
        applies=lambda ctx: (
            ctx.snapshot.logins_current >= ctx.thresholds.lurker_min_logins
            and ctx.snapshot.posts_current == 0
            and ctx.snapshot.responses_current == 0
        ),
        evidence=lambda ctx: {
            "logins": ctx.snapshot.logins_current,
            "posts": ctx.snapshot.posts_current,
            "responses": ctx.snapshot.responses_current,
            "pattern": "consistent_lurking",
        },
    ),
    Rule(
        code="declining_engagement",
        flag_type=FlagType.YELLOW,
        reason="Declining engagement trend",
        recommended_action=(
            "Engagement is slipping. Gentle check-in before it becomes a red flag."
        ),
        applies=lambda ctx: (
            ctx.snapshot.logins_previous >= ctx.thresholds.declining_previous_logins
            and 0 < ctx.snapshot.logins_current <= ctx.thresholds.declining_current_max
        ),
        evidence=lambda ctx: {
            "previous_logins": ctx.snapshot.logins_previous,
            "current_logins": ctx.snapshot.logins_current,
            "trend": "declining",
        },
    ),
    Rule(
        code="breakthrough",
        flag_type=FlagType.GREEN,
        reason="Breakthrough - lurker became contributor",
        recommended_action=(
            "Celebrate this breakthrough. Acknowledge their contribution personally."
        ),
        applies=lambda ctx: (
            ctx.snapshot.posts_previous == 0
            and ctx.snapshot.posts_current >= ctx.thresholds.breakthrough_min_posts
            and ctx.snapshot.logins_previous >= ctx.thresholds.breakthrough_previous_logins
        ),
        evidence=lambda ctx: {
            "previous_posts": ctx.snapshot.posts_previous,
            "current_posts": ctx.snapshot.posts_current,
            "quality": "needs_review",
        },
    ),
    Rule(
        code="consistent_engagement",
        flag_type=FlagType.GREEN,
        reason="Consistent high-quality engagement",
        recommended_action=(
            "Community anchor. Consider highlighting their contributions or "
            "inviting them to mentor others."
        ),
        applies=lambda ctx: (
            ctx.snapshot.logins_current >= ctx.thresholds.consistent_min_logins
            and ctx.snapshot.posts_current >= ctx.thresholds.consistent_min_posts
            and ctx.snapshot.responses_current >= ctx.thresholds.consistent_min_responses
        ),
        evidence=lambda ctx: {
            "logins": ctx.snapshot.logins_current,
            "posts": ctx.snapshot.posts_current,
            "responses": ctx.snapshot.responses_current,
            "balance": "contributing and supporting",
        },
    ),
]

RULE_CODES = [rule.code for rule in RULES]
