"""
Engagement analysis module.

Classifies participant activity into red/yellow/green flags.
"""

from .schema import ActivitySnapshot, Flag, FlagType, days_since
from .rules import EngagementThresholds, RULES, RULE_CODES
from .nuance import (
    NuanceAnalyzer,
    NuanceResponseError,
    TextGenerationNuanceAnalyzer,
    parse_flag_response,
    safe_analyze,
)
from .classifier import EngagementClassifier, analyze_engagement, summarize, flags_frame

__all__ = [
    "ActivitySnapshot",
    "Flag",
    "FlagType",
    "days_since",
    "EngagementThresholds",
    "RULES",
    "RULE_CODES",
    "NuanceAnalyzer",
    "NuanceResponseError",
    "TextGenerationNuanceAnalyzer",
    "parse_flag_response",
    "safe_analyze",
    "EngagementClassifier",
    "analyze_engagement",
    "summarize",
    "flags_frame",
]
