"""
Partner matching module.

Scores pairs of participants and ranks candidate accountability partners.
"""

from .schema import Profile, DimensionScore, CompatibilityResult
from .scorer import CompatibilityScorer, ScoringWeights, calculate_compatibility
from .ranking import (
    RankedCandidate,
    TierThresholds,
    match_tier,
    rank_candidates,
    score_matrix,
    ranking_frame,
)

__all__ = [
    "Profile",
    "DimensionScore",
    "CompatibilityResult",
    "CompatibilityScorer",
    "ScoringWeights",
    "calculate_compatibility",
    "RankedCandidate",
    "TierThresholds",
    "match_tier",
    "rank_candidates",
    "score_matrix",
    "ranking_frame",
]
