"""
Optional text-generation pass for nuanced engagement flags.

The rule table only sees counters. A text-generation service can spot
softer patterns (strain in a partnership, signs of struggle in posts) and
return extra flags. That service is slow, costly and non-deterministic,
so it is strictly supplementary:

- the model call is injected as a plain callable; this package never talks
  to a hosted service itself
- any failure (timeout, service error, malformed response) yields no flags
- rule-based results never depend on it
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from .schema import ActivitySnapshot, Flag, FlagType

logger = logging.getLogger(__name__)

NUANCE_REASON_CODE = "ai_nuance"

ENGAGEMENT_ANALYSIS_SYSTEM_PROMPT = """You are analyzing user engagement patterns in a leadership cohort to identify who needs attention.

Flag types:
RED (immediate attention needed):
- No login for 10+ days
- Sudden silence after high activity
- Partner relationship breakdown (14+ days no interaction)
- Signs of struggle or crisis in posts

YELLOW (monitor):
- Lurking pattern (high consumption, zero contribution)
- Module rushing without engagement
- Declining engagement trend
- Partner relationship showing strain

GREEN (celebrate):
- Breakthrough moment (lurker -> contributor)
- High-quality contributions sparking deep discussion
- Strong partner relationship
- Consistent meaningful engagement

For each flag, provide:
- Flag type (red/yellow/green)
- Specific reason
- Context (relevant data points)
- Recommended action (what the human admin should do)

Return ONLY valid JSON:
[
  {
    "user_id": "uuid",
    "flag_type": "red|yellow|green",
    "reason": "Specific pattern observed",
    "context": {
      "relevant": "data points"
    },
    "recommended_action": "What to do about it"
  }
]"""

_RESPONSE_SHAPE = """Return JSON array of flags:
[
  {
    "user_id": "uuid",
    "flag_type": "red|yellow|green",
    "reason": "Specific pattern observed",
    "context": {},
    "recommended_action": "What to do"
  }
]"""

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class NuanceResponseError(ValueError):
    """Raised when a text-generation response holds no usable flag array."""


class NuanceAnalyzer(ABC):
    """Supplementary source of engagement flags."""

    @abstractmethod
    def analyze(self, snapshots: Sequence[ActivitySnapshot]) -> List[Flag]:
        """Return extra flags for the population. May raise."""


class TextGenerationNuanceAnalyzer(NuanceAnalyzer):
    """
    Nuance analyzer backed by a text-generation callable.

    Attributes:
        complete: Callable taking (system_prompt, user_prompt) and returning
            the generated text
        max_users: Cap on the number of users sent in one request
        system_prompt: Instructions sent with every request
    """

    def __init__(
        self,
        complete: Callable[[str, str], str],
        max_users: Optional[int] = None,
        system_prompt: str = ENGAGEMENT_ANALYSIS_SYSTEM_PROMPT
    ):
        self.complete = complete
        self.max_users = max_users
        self.system_prompt = system_prompt

    def build_prompt(self, snapshots: Sequence[ActivitySnapshot]) -> str:
        """Build the user prompt with the serialized population."""
        users = list(snapshots)
        if self.max_users is not None:
            users = users[:self.max_users]
        payload = json.dumps([s.to_dict() for s in users], indent=2)
        return (
            "Analyze these user engagement patterns and identify flags:\n\n"
            f"{payload}\n\n{_RESPONSE_SHAPE}"
        )

    def analyze(self, snapshots: Sequence[ActivitySnapshot]) -> List[Flag]:
        if not snapshots:
            return []
        text = self.complete(self.system_prompt, self.build_prompt(snapshots))
        return parse_flag_response(text)


def _first(entry: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def parse_flag_response(text: str) -> List[Flag]:
    """
    Parse flags from generated text.

    The first JSON array found in the text is decoded. Entries with a
    missing user id or an unknown flag type are skipped.

    Args:
        text: Raw generated text

    Returns:
        List of flags with reason_code "ai_nuance"

    Raises:
        NuanceResponseError: If no JSON array can be decoded
    """
    match = _JSON_ARRAY.search(text or "")
    if match is None:
        raise NuanceResponseError("No JSON array found in response")

    try:
        entries = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise NuanceResponseError(f"Malformed JSON in response: {e}") from e

    flags = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning(f"Skipping non-object flag entry: {entry!r}")
            continue

        user_id = _first(entry, "user_id", "userId")
        raw_type = _first(entry, "flag_type", "flagType")
        try:
            flag_type = FlagType(str(raw_type).lower())
        except ValueError:
            logger.warning(f"Skipping flag with unknown type {raw_type!r}")
            continue
        if not user_id:
            logger.warning("Skipping flag without user id")
            continue

        context = entry.get("context")
        flags.append(Flag(
            user_id=str(user_id),
            flag_type=flag_type,
            reason_code=NUANCE_REASON_CODE,
            reason=str(entry.get("reason") or ""),
            context=context if isinstance(context, dict) else {},
            recommended_action=str(
                _first(entry, "recommended_action", "recommendedAction") or ""
            ),
        ))
    return flags


def safe_analyze(analyzer: NuanceAnalyzer, snapshots: Sequence[ActivitySnapshot]) -> List[Flag]:
    """
    Run a nuance analyzer, turning any failure into an empty result.

    Args:
        analyzer: Supplementary analyzer
        snapshots: Activity snapshots for the population

    Returns:
        The analyzer's flags, or [] if it failed
    """
    try:
        return list(analyzer.analyze(snapshots))
    except Exception as e:
        logger.error(f"Nuance analysis failed, continuing without it: {e}")
        return []
