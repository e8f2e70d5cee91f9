"""
Candidate ranking for accountability-partner matching.

Given one selected participant and the rest of the cohort, every eligible
candidate is scored against the participant and the list is sorted by
descending score. Python's sort is stable, so candidates with equal scores
keep the order in which they were supplied.

Eligibility:
- the selected participant is never its own candidate
- participants that already have a partner are skipped (optional)
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, Iterable, List, Optional

import numpy as np
import pandas as pd

from .schema import Profile
from .scorer import CompatibilityScorer

logger = logging.getLogger(__name__)


@dataclass
class TierThresholds:
    """Score cut-offs for labelling a suggested match."""
    strong: int = 70
    moderate: int = 50

    def validate(self) -> None:
        if not 0 <= self.moderate <= self.strong <= 100:
            raise ValueError(
                f"Tiers must satisfy 0 <= moderate <= strong <= 100, "
                f"got moderate={self.moderate}, strong={self.strong}"
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TierThresholds":
        tiers = config.get("ranking", {}).get("tiers", {}) or {}
        thresholds = cls(
            strong=int(tiers.get("strong", 70)),
            moderate=int(tiers.get("moderate", 50)),
        )
        thresholds.validate()
        return thresholds


def match_tier(score: int, thresholds: Optional[TierThresholds] = None) -> str:
    """
    Label a compatibility score.

    Returns:
        "strong", "moderate" or "weak"
    """
    thresholds = thresholds or TierThresholds()
    if score >= thresholds.strong:
        return "strong"
    if score >= thresholds.moderate:
        return "moderate"
    return "weak"


@dataclass
class RankedCandidate:
    """A scored candidate partner."""
    profile: Profile
    score: int
    tier: str
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "person_id": self.profile.person_id,
            "full_name": self.profile.full_name,
            "score": self.score,
            "tier": self.tier,
        }


def _is_same_person(target: Profile, candidate: Profile) -> bool:
    if candidate is target:
        return True
    return (target.person_id is not None and
            candidate.person_id == target.person_id)


def rank_candidates(
    target: Profile,
    candidates: Iterable[Profile],
    scorer: Optional[CompatibilityScorer] = None,
    top_n: Optional[int] = None,
    exclude_paired: bool = True,
    thresholds: Optional[TierThresholds] = None
) -> List[RankedCandidate]:
    """
    Rank candidate partners for one participant.

    Args:
        target: Participant looking for a partner
        candidates: Pool of participants (may include the target)
        scorer: Scorer to use (default weights if None)
        top_n: Keep only the best N candidates (all if None)
        exclude_paired: Skip candidates that already have a partner
        thresholds: Tier cut-offs for labelling

    Returns:
        Candidates sorted by descending score, ties in input order

    Raises:
        ValueError: If the tier thresholds are inconsistent
    """
    scorer = scorer or CompatibilityScorer()
    thresholds = thresholds or TierThresholds()
    thresholds.validate()

    eligible = [
        c for c in candidates
        if not _is_same_person(target, c) and not (exclude_paired and c.is_paired)
    ]
    scored = [(c, scorer.score(target, c)) for c in eligible]
    scored.sort(key=lambda item: item[1], reverse=True)

    if top_n is not None:
        scored = scored[:top_n]

    logger.debug(f"Ranked {len(eligible)} candidates for {target.person_id}")

    return [
        RankedCandidate(
            profile=profile,
            score=score,
            tier=match_tier(score, thresholds),
            rank=i + 1,
        )
        for i, (profile, score) in enumerate(scored)
    ]


def score_matrix(
    profiles: List[Profile],
    scorer: Optional[CompatibilityScorer] = None
) -> np.ndarray:
    """
    Compute pairwise scores for a whole cohort.

    Only the upper triangle is scored; the lower triangle is mirrored since
    scoring is symmetric. The diagonal is 0 because nobody is paired with
    themselves.

    Args:
        profiles: Cohort participants
        scorer: Scorer to use (default weights if None)

    Returns:
        Integer array of shape (n, n)
    """
    scorer = scorer or CompatibilityScorer()
    n = len(profiles)
    matrix = np.zeros((n, n), dtype=int)

    for i in range(n):
        for j in range(i + 1, n):
            matrix[i, j] = scorer.score(profiles[i], profiles[j])

    return matrix + matrix.T


def ranking_frame(ranked: List[RankedCandidate]) -> pd.DataFrame:
    """Convert ranked candidates to a DataFrame for reporting."""
    columns = ["rank", "person_id", "full_name", "score", "tier"]
    return pd.DataFrame([r.to_dict() for r in ranked], columns=columns)
