"""
Rule-based compatibility scoring for accountability partners.

Each dimension compares the same attribute of both participants and awards
points from a fixed budget. The final score is the share of available
points that were earned:

    score = round(earned / possible * 100)

Dimension rules (default weights):
    experience_level     20  equal -> 20, both filled but different -> 10
    industry             15  case-insensitive equal -> 15
    time_zone            25  equal -> 25, both filled but different -> 10
    communication_style  20  equal -> 20, both filled but different -> 12
    team_size            10  equal, including both unanswered -> 10
    goals                10  both filled in -> 10 (content is not compared)

Every rule is a symmetric comparison, so score(a, b) == score(b, a).
With the default weights possible is always 100, but it is still
accumulated per dimension so that custom weights stay calibrated.
"""

import json
import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional, List

from .schema import Profile, DimensionScore, CompatibilityResult

logger = logging.getLogger(__name__)


@dataclass
class ScoringWeights:
    """
    Points available per scoring dimension.

    The partial-credit values reward pairs where both participants answered
    but differently. They are heuristic and kept for compatibility with
    scores already shown to administrators.
    """
    experience: int = 20
    experience_partial: int = 10
    industry: int = 15
    time_zone: int = 25
    time_zone_partial: int = 10
    communication_style: int = 20
    communication_style_partial: int = 12
    team_size: int = 10
    goals: int = 10

    def validate(self) -> None:
        """Validate weight values."""
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        for dimension in ["experience", "time_zone", "communication_style"]:
            full = getattr(self, dimension)
            partial = getattr(self, f"{dimension}_partial")
            if partial > full:
                raise ValueError(
                    f"{dimension}_partial ({partial}) cannot exceed {dimension} ({full})"
                )
        if self.total == 0:
            raise ValueError("At least one dimension must carry points")

    @property
    def total(self) -> int:
        return (self.experience + self.industry + self.time_zone +
                self.communication_style + self.team_size + self.goals)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoringWeights":
        """Create from dictionary."""
        return cls(**d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ScoringWeights":
        """Create from main config dictionary."""
        weights = config.get("scoring", {}).get("weights", {}) or {}
        defaults = cls()
        return cls(**{
            name: int(weights.get(name, default))
            for name, default in defaults.to_dict().items()
        })

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved scoring weights to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "ScoringWeights":
        """Load from JSON file."""
        with open(filepath, "r") as f:
            d = json.load(f)
        return cls.from_dict(d)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CompatibilityScorer:
    """
    Weighted-dimension compatibility scorer.

    Stateless apart from its weights: instances can be shared between
    threads and reused for any number of pairs.

    Attributes:
        weights: ScoringWeights with points per dimension
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()
        self.weights.validate()

    def score(self, a: Profile, b: Profile) -> int:
        """
        Compute the compatibility percentage for two participants.

        Args:
            a: First participant
            b: Second participant

        Returns:
            Integer score in [0, 100]
        """
        return self.evaluate(a, b).score

    def evaluate(self, a: Profile, b: Profile) -> CompatibilityResult:
        """
        Compute the compatibility score with a per-dimension breakdown.

        Args:
            a: First participant
            b: Second participant

        Returns:
            CompatibilityResult with score, point totals and breakdown
        """
        breakdown = self._score_dimensions(a, b)
        earned = sum(d.earned for d in breakdown)
        possible = sum(d.possible for d in breakdown)

        if possible > 0:
            score = _round_half_up(earned / possible * 100)
        else:
            score = 0
        score = max(0, min(100, score))

        return CompatibilityResult(
            score=score,
            earned=earned,
            possible=possible,
            breakdown=breakdown,
        )

    def _score_dimensions(self, a: Profile, b: Profile) -> List[DimensionScore]:
        w = self.weights
        return [
            DimensionScore(
                "experience_level",
                _graded_match(a.experience_level, b.experience_level,
                              w.experience, w.experience_partial),
                w.experience,
            ),
            DimensionScore(
                "industry",
                _casefold_match(a.industry, b.industry, w.industry),
                w.industry,
            ),
            DimensionScore(
                "time_zone",
                _graded_match(a.time_zone, b.time_zone,
                              w.time_zone, w.time_zone_partial),
                w.time_zone,
            ),
            DimensionScore(
                "communication_style",
                _graded_match(a.communication_style, b.communication_style,
                              w.communication_style, w.communication_style_partial),
                w.communication_style,
            ),
            DimensionScore(
                "team_size",
                w.team_size if a.team_size == b.team_size else 0,
                w.team_size,
            ),
            DimensionScore(
                "goals",
                w.goals if a.goals and b.goals else 0,
                w.goals,
            ),
        ]


def _graded_match(x: Optional[str], y: Optional[str], full: int, partial: int) -> int:
    """Full points for equal answers, partial when both answered differently."""
    if x is None or y is None:
        return 0
    return full if x == y else partial


def _casefold_match(x: Optional[str], y: Optional[str], full: int) -> int:
    if x is None or y is None:
        return 0
    return full if x.casefold() == y.casefold() else 0


_default_scorer = CompatibilityScorer()


def calculate_compatibility(a: Profile, b: Profile) -> int:
    """Score two participants with the default weights."""
    return _default_scorer.score(a, b)
