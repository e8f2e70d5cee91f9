"""
Rule-based engagement classifier.

Turns activity snapshots into red/yellow/green flags. Classification is a
pure function of the snapshot and the evaluation time: the same inputs
always produce the same flags, in rule declaration order. Users are
classified independently, so a population can be processed in any order
or in parallel without changing the result.

Flags are not deduplicated or persisted here; that is up to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd

from .rules import RULES, EngagementThresholds, RuleContext
from .schema import ActivitySnapshot, Flag, FlagType, days_since, to_utc
from .nuance import NuanceAnalyzer, safe_analyze

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EngagementClassifier:
    """
    Evaluates the engagement rule table against activity snapshots.

    Attributes:
        thresholds: EngagementThresholds used by the rules
        clock: Callable returning the current time (UTC now by default)
    """

    def __init__(
        self,
        thresholds: Optional[EngagementThresholds] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.thresholds = thresholds or EngagementThresholds()
        self.thresholds.validate()
        self.clock = clock or _utc_now

    def classify(self, snapshot: ActivitySnapshot, now: Optional[datetime] = None) -> List[Flag]:
        """
        Classify one participant.

        Args:
            snapshot: Activity counters for the participant
            now: Evaluation time (defaults to the classifier clock)

        Returns:
            Flags for every rule that fired, in rule order (may be empty)
        """
        now = to_utc(now) if now is not None else to_utc(self.clock())
        ctx = RuleContext(
            snapshot=snapshot,
            days_since_login=days_since(snapshot.last_login, now),
            days_since_partner_interaction=days_since(snapshot.last_partner_interaction, now),
            thresholds=self.thresholds,
        )

        flags = []
        for rule in RULES:
            if rule.applies(ctx):
                flags.append(Flag(
                    user_id=snapshot.user_id,
                    flag_type=rule.flag_type,
                    reason_code=rule.code,
                    reason=rule.describe(ctx),
                    context=rule.evidence(ctx),
                    recommended_action=rule.recommended_action,
                ))
        return flags

    def classify_population(
        self,
        snapshots: Iterable[ActivitySnapshot],
        now: Optional[datetime] = None
    ) -> List[Flag]:
        """
        Classify every participant against a single evaluation time.

        Args:
            snapshots: Activity snapshots, one per participant
            now: Evaluation time shared by the whole batch

        Returns:
            Concatenated flags in input order
        """
        now = to_utc(now) if now is not None else to_utc(self.clock())
        flags = []
        n_users = 0
        for snapshot in snapshots:
            flags.extend(self.classify(snapshot, now=now))
            n_users += 1

        logger.info(f"Classified {n_users} users: {len(flags)} flags")
        return flags


def summarize(flags: Iterable[Flag]) -> Dict[str, int]:
    """
    Count flags per type.

    Returns:
        {"red": n, "yellow": n, "green": n, "total": n}
    """
    summary = {flag_type.value: 0 for flag_type in FlagType}
    for flag in flags:
        summary[flag.flag_type.value] += 1
    summary["total"] = sum(summary.values())
    return summary


def flags_frame(flags: Iterable[Flag]) -> pd.DataFrame:
    """Convert flags to a DataFrame, one row per flag."""
    columns = ["user_id", "flag_type", "reason_code", "flag_reason",
               "context", "recommended_action"]
    return pd.DataFrame([flag.to_dict() for flag in flags], columns=columns)


def analyze_engagement(
    snapshots: List[ActivitySnapshot],
    nuance: Optional[NuanceAnalyzer] = None,
    now: Optional[datetime] = None,
    classifier: Optional[EngagementClassifier] = None
) -> List[Flag]:
    """
    Analyze a population with the rule table and an optional nuance pass.

    The rule-based flags are always complete on their own. If a nuance
    analyzer is supplied its flags are appended after them; any failure of
    the analyzer contributes no flags.

    Args:
        snapshots: Activity snapshots for the population
        nuance: Optional supplementary analyzer
        now: Evaluation time
        classifier: Classifier to use (default thresholds if None)

    Returns:
        Rule-based flags followed by supplementary flags
    """
    classifier = classifier or EngagementClassifier()
    snapshots = list(snapshots)
    flags = classifier.classify_population(snapshots, now=now)

    if nuance is not None:
        extra = safe_analyze(nuance, snapshots)
        logger.info(f"Nuance analysis added {len(extra)} flags")
        flags.extend(extra)

    return flags
