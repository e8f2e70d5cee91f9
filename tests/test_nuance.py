"""
Tests for the optional text-generation nuance layer.

The text-generation service is replaced by plain callables; nothing here
touches the network.
"""

import json

import pytest

from cohort_engine.engagement import (
    ActivitySnapshot,
    EngagementClassifier,
    FlagType,
    NuanceAnalyzer,
    NuanceResponseError,
    TextGenerationNuanceAnalyzer,
    analyze_engagement,
    parse_flag_response,
    safe_analyze,
)
from conftest import NOW, make_snapshot

RESPONSE = """Here is what I found:
[
  {
    "user_id": "u1",
    "flag_type": "yellow",
    "reason": "Partner relationship showing strain",
    "context": {"checkins": 1},
    "recommended_action": "Ask both partners how the pairing is going"
  },
  {
    "userId": "u2",
    "flagType": "GREEN",
    "reason": "Strong partner relationship",
    "recommendedAction": "Celebrate them"
  }
]
Let me know if you need more."""


class FailingAnalyzer(NuanceAnalyzer):
    def analyze(self, snapshots):
        raise TimeoutError("service timed out")


class StaticAnalyzer(NuanceAnalyzer):
    def __init__(self, flags):
        self.flags = flags

    def analyze(self, snapshots):
        return self.flags


# =============================================================================
# Response parsing
# =============================================================================


class TestParseFlagResponse:

    def test_extracts_array_from_prose(self):
        flags = parse_flag_response(RESPONSE)

        assert [f.user_id for f in flags] == ["u1", "u2"]
        assert flags[0].flag_type == FlagType.YELLOW
        assert flags[0].context == {"checkins": 1}
        assert flags[0].reason_code == "ai_nuance"
        assert flags[1].flag_type == FlagType.GREEN
        assert flags[1].recommended_action == "Celebrate them"
        assert flags[1].context == {}

    def test_skips_invalid_entries(self):
        text = json.dumps([
            {"user_id": "u1", "flag_type": "purple", "reason": "?"},
            {"flag_type": "red", "reason": "no user"},
            "not an object",
            {"user_id": "u3", "flag_type": "red", "reason": "Crisis", "context": "bad"},
        ])
        flags = parse_flag_response(text)
        assert [(f.user_id, f.flag_type) for f in flags] == [("u3", FlagType.RED)]
        assert flags[0].context == {}

    def test_empty_array(self):
        assert parse_flag_response("[]") == []

    def test_no_array_raises(self):
        with pytest.raises(NuanceResponseError):
            parse_flag_response("I could not find any patterns.")

    def test_malformed_json_raises(self):
        with pytest.raises(NuanceResponseError):
            parse_flag_response('[{"user_id": "u1", ]')

    def test_none_raises(self):
        with pytest.raises(NuanceResponseError):
            parse_flag_response(None)


# =============================================================================
# Analyzer
# =============================================================================


class TestTextGenerationNuanceAnalyzer:

    def test_sends_population_and_parses_reply(self):
        calls = []

        def complete(system_prompt, user_prompt):
            calls.append((system_prompt, user_prompt))
            return RESPONSE

        analyzer = TextGenerationNuanceAnalyzer(complete)
        flags = analyzer.analyze([make_snapshot(user_id="u1"), make_snapshot(user_id="u2")])

        assert len(flags) == 2
        assert len(calls) == 1
        system_prompt, user_prompt = calls[0]
        assert "leadership cohort" in system_prompt
        assert '"user_id": "u1"' in user_prompt
        assert '"user_id": "u2"' in user_prompt

    def test_max_users(self):
        analyzer = TextGenerationNuanceAnalyzer(lambda s, u: "[]", max_users=1)
        prompt = analyzer.build_prompt([make_snapshot(user_id="u1"), make_snapshot(user_id="u2")])
        assert '"user_id": "u1"' in prompt
        assert '"user_id": "u2"' not in prompt

    def test_empty_population_skips_call(self):
        def complete(system_prompt, user_prompt):
            raise AssertionError("should not be called")

        assert TextGenerationNuanceAnalyzer(complete).analyze([]) == []


# =============================================================================
# Failure containment
# =============================================================================


def test_safe_analyze_swallows_service_errors():
    assert safe_analyze(FailingAnalyzer(), [make_snapshot()]) == []


def test_safe_analyze_swallows_malformed_responses():
    analyzer = TextGenerationNuanceAnalyzer(lambda s, u: "no json here")
    assert safe_analyze(analyzer, [make_snapshot()]) == []


def test_analyze_engagement_without_nuance():
    snapshots = [ActivitySnapshot(user_id="gone")]
    flags = analyze_engagement(snapshots, now=NOW)
    assert [f.reason_code for f in flags] == ["prolonged_absence"]


def test_analyze_engagement_failing_nuance_keeps_rule_flags():
    snapshots = [ActivitySnapshot(user_id="gone")]
    flags = analyze_engagement(snapshots, nuance=FailingAnalyzer(), now=NOW)
    assert [f.reason_code for f in flags] == ["prolonged_absence"]


def test_analyze_engagement_appends_nuance_flags():
    extra = parse_flag_response(RESPONSE)
    snapshots = [ActivitySnapshot(user_id="gone")]
    flags = analyze_engagement(
        snapshots,
        nuance=StaticAnalyzer(extra),
        now=NOW,
        classifier=EngagementClassifier(),
    )
    assert [f.reason_code for f in flags] == ["prolonged_absence", "ai_nuance", "ai_nuance"]


def test_analyze_engagement_accepts_generator():
    class RecordingAnalyzer(NuanceAnalyzer):
        def analyze(self, snapshots):
            self.seen = [s.user_id for s in snapshots]
            return []

    analyzer = RecordingAnalyzer()
    snapshots = (ActivitySnapshot(user_id=uid) for uid in ["a", "b"])
    flags = analyze_engagement(snapshots, nuance=analyzer, now=NOW)

    assert [f.user_id for f in flags] == ["a", "b"]
    assert analyzer.seen == ["a", "b"]
