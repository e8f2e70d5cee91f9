"""
Tests for the rule-based EngagementClassifier.

Every snapshot is evaluated at the fixed instant NOW. The make_snapshot
defaults describe a participant on whom no rule fires, so each test only
sets the counters relevant to the rule under test.
"""

from datetime import timedelta

import pandas as pd
import pytest

from cohort_engine.engagement import (
    ActivitySnapshot,
    EngagementClassifier,
    EngagementThresholds,
    FlagType,
    RULE_CODES,
    days_since,
    flags_frame,
    summarize,
)
from conftest import NOW, days_ago, make_snapshot


@pytest.fixture
def classifier():
    return EngagementClassifier(clock=lambda: NOW)


def codes(flags):
    return [f.reason_code for f in flags]


def test_quiet_participant_has_no_flags(classifier):
    assert classifier.classify(make_snapshot()) == []


# =============================================================================
# Scenarios
# =============================================================================


def test_prolonged_absence(classifier):
    snapshot = make_snapshot(last_login=days_ago(15), logins_current=0,
                             last_partner_interaction=None)
    flags = classifier.classify(snapshot)

    assert len(flags) == 1
    flag = flags[0]
    assert flag.flag_type == FlagType.RED
    assert flag.reason_code == "prolonged_absence"
    assert flag.reason == "No login for 10+ days"
    assert flag.context["days_since_login"] == 15
    assert flag.context["previous_activity"] == "inactive"
    assert flag.user_id == "user-1"


def test_never_logged_in_counts_as_absent(classifier):
    flags = classifier.classify(ActivitySnapshot(user_id="new"))
    assert codes(flags) == ["prolonged_absence"]
    assert flags[0].context["days_since_login"] is None
    assert flags[0].context["last_login"] is None


@pytest.mark.parametrize("missing", [None, float("nan"), pd.NaT, pd.NA])
def test_pandas_nulls_count_as_never(classifier, missing):
    snapshot = ActivitySnapshot(user_id="u", last_login=missing, logins_current=missing,
                                last_partner_interaction=missing)
    assert snapshot.last_login is None
    assert snapshot.logins_current == 0
    assert codes(classifier.classify(snapshot)) == ["prolonged_absence"]
    assert days_since(missing, NOW) is None


def test_sudden_silence(classifier):
    snapshot = make_snapshot(posts_previous=4, posts_current=0, logins_current=2,
                             last_login=days_ago(2))
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["sudden_silence"]
    assert flags[0].flag_type == FlagType.RED
    assert flags[0].context == {"posts_previous": 4, "posts_current": 0,
                                "still_logging_in": True}


def test_sudden_silence_needs_presence(classifier):
    snapshot = make_snapshot(posts_previous=4, posts_current=0, logins_current=0)
    assert "sudden_silence" not in codes(classifier.classify(snapshot))


def test_breakthrough(classifier):
    snapshot = make_snapshot(posts_previous=0, posts_current=3, logins_previous=5,
                             logins_current=3)
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["breakthrough"]
    assert flags[0].flag_type == FlagType.GREEN
    assert not any(f.flag_type == FlagType.YELLOW for f in flags)


def test_partner_disconnect(classifier):
    snapshot = make_snapshot(logins_current=3, posts_current=1,
                             last_partner_interaction=days_ago(20))
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["partner_disconnect"]
    assert flags[0].context["days_since_interaction"] == 20


def test_partner_never_seen_while_active(classifier):
    snapshot = make_snapshot(logins_current=3, posts_current=1,
                             last_partner_interaction=None)
    assert codes(classifier.classify(snapshot)) == ["partner_disconnect"]


def test_partner_disconnect_not_raised_for_absent_user(classifier):
    snapshot = make_snapshot(logins_current=0, last_login=days_ago(15),
                             last_partner_interaction=days_ago(30))
    assert codes(classifier.classify(snapshot)) == ["prolonged_absence"]


def test_lurker(classifier):
    snapshot = make_snapshot(logins_current=5, posts_current=0, responses_current=0)
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["lurker"]
    assert flags[0].flag_type == FlagType.YELLOW
    assert flags[0].context["pattern"] == "consistent_lurking"


def test_replies_are_not_lurking(classifier):
    snapshot = make_snapshot(logins_current=5, posts_current=0, responses_current=1)
    assert classifier.classify(snapshot) == []


def test_declining_engagement(classifier):
    snapshot = make_snapshot(logins_previous=5, logins_current=2, posts_current=1)
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["declining_engagement"]
    assert flags[0].context == {"previous_logins": 5, "current_logins": 2,
                                "trend": "declining"}


def test_declining_needs_at_least_one_login(classifier):
    snapshot = make_snapshot(logins_previous=5, logins_current=0)
    assert "declining_engagement" not in codes(classifier.classify(snapshot))


def test_consistent_engagement(classifier):
    snapshot = make_snapshot(logins_current=6, posts_current=2, responses_current=3,
                             posts_previous=1)
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["consistent_engagement"]
    assert flags[0].flag_type == FlagType.GREEN


# =============================================================================
# Independence, order, determinism
# =============================================================================


def test_rules_do_not_suppress_each_other(classifier):
    # Stale last_login with current-period logins is inconsistent data, but
    # both rules must still fire.
    snapshot = make_snapshot(last_login=days_ago(12), logins_current=5,
                             posts_current=0, responses_current=0)
    assert codes(classifier.classify(snapshot)) == ["prolonged_absence", "lurker"]


def test_flags_follow_rule_order(classifier):
    snapshot = make_snapshot(last_login=days_ago(12), logins_current=5,
                             posts_previous=4, posts_current=0, responses_current=0,
                             last_partner_interaction=None)
    flags = classifier.classify(snapshot)

    assert codes(flags) == ["prolonged_absence", "sudden_silence",
                            "partner_disconnect", "lurker"]
    assert codes(flags) == [c for c in RULE_CODES if c in codes(flags)]


def test_deterministic(classifier):
    snapshot = make_snapshot(last_login=days_ago(12), logins_current=5)
    first = classifier.classify(snapshot)
    second = classifier.classify(snapshot)

    assert first == second
    assert [f.to_dict() for f in first] == [f.to_dict() for f in second]


def test_explicit_now_overrides_clock(classifier):
    snapshot = make_snapshot(last_login=days_ago(5))
    assert classifier.classify(snapshot) == []
    later = NOW + timedelta(days=5)
    assert codes(classifier.classify(snapshot, now=later)) == ["prolonged_absence"]


# =============================================================================
# Day arithmetic
# =============================================================================


class TestDaysSince:

    def test_absence_boundary(self, classifier):
        exactly = make_snapshot(last_login=days_ago(10))
        almost = make_snapshot(last_login=days_ago(10) + timedelta(minutes=1))
        assert codes(classifier.classify(exactly)) == ["prolonged_absence"]
        assert classifier.classify(almost) == []

    def test_floor(self):
        assert days_since(days_ago(2.9), NOW) == 2

    def test_clock_skew_clamped(self, classifier):
        assert days_since(NOW + timedelta(days=3), NOW) == 0
        snapshot = make_snapshot(last_login=NOW + timedelta(days=3))
        assert classifier.classify(snapshot) == []

    def test_never_observed(self):
        assert days_since(None, NOW) is None

    def test_iso_strings_and_naive_datetimes(self):
        snapshot = ActivitySnapshot(user_id="u", last_login="2026-03-01T12:00:00Z",
                                    last_partner_interaction=NOW.replace(tzinfo=None))
        assert days_since(snapshot.last_login, NOW) == 14
        assert days_since(snapshot.last_partner_interaction, NOW) == 0


# =============================================================================
# Snapshot normalization
# =============================================================================


def test_missing_counts_are_zero():
    snapshot = ActivitySnapshot(user_id="u", logins_current=None,
                                posts_previous=float("nan"))
    assert snapshot.logins_current == 0
    assert snapshot.posts_previous == 0


def test_from_dict_accepts_original_keys():
    snapshot = ActivitySnapshot.from_dict({
        "userId": "u9",
        "userName": "Sam",
        "email": "sam@example.com",
        "lastLogin": None,
        "loginsPastWeek": 4,
        "loginsPreviousWeek": 6,
        "postsPastWeek": 0,
        "postsPreviousWeek": 2,
        "responsesPastWeek": 1,
        "lastPartnerInteraction": "2026-03-10T08:00:00+00:00",
    })
    assert snapshot.user_id == "u9"
    assert snapshot.logins_current == 4
    assert snapshot.logins_previous == 6
    assert snapshot.posts_previous == 2
    assert snapshot.responses_current == 1
    assert snapshot.last_login is None
    assert snapshot.last_partner_interaction.day == 10


# =============================================================================
# Population helpers
# =============================================================================


def test_classify_population_keeps_input_order(classifier):
    snapshots = [
        make_snapshot(user_id="a", logins_current=5),
        make_snapshot(user_id="b"),
        ActivitySnapshot(user_id="c"),
    ]
    flags = classifier.classify_population(snapshots)
    assert [(f.user_id, f.reason_code) for f in flags] == [
        ("a", "lurker"),
        ("c", "prolonged_absence"),
    ]


def test_summarize():
    classifier = EngagementClassifier(clock=lambda: NOW)
    flags = classifier.classify_population([
        ActivitySnapshot(user_id="a"),
        make_snapshot(user_id="b", logins_current=5),
        make_snapshot(user_id="c", logins_current=6, posts_current=2,
                      responses_current=3, posts_previous=1),
    ])
    assert summarize(flags) == {"red": 1, "yellow": 1, "green": 1, "total": 3}
    assert summarize([]) == {"red": 0, "yellow": 0, "green": 0, "total": 0}


def test_flags_frame(classifier):
    frame = flags_frame(classifier.classify(ActivitySnapshot(user_id="a")))
    assert frame.loc[0, "flag_type"] == "red"
    assert frame.loc[0, "flag_reason"] == "No login for 10+ days"


# =============================================================================
# Thresholds
# =============================================================================


class TestThresholds:

    def test_from_config(self):
        config = {"engagement": {"thresholds": {"absence_days": 3}}}
        thresholds = EngagementThresholds.from_config(config)
        assert thresholds.absence_days == 3
        assert thresholds.partner_gap_days == 14

        classifier = EngagementClassifier(thresholds, clock=lambda: NOW)
        flags = classifier.classify(make_snapshot(last_login=days_ago(4)))
        assert codes(flags) == ["prolonged_absence"]
        assert flags[0].reason == "No login for 3+ days"

    def test_partner_gap_in_reason(self):
        thresholds = EngagementThresholds(partner_gap_days=5)
        classifier = EngagementClassifier(thresholds, clock=lambda: NOW)
        flags = classifier.classify(make_snapshot(
            logins_current=1, last_partner_interaction=days_ago(6)))
        assert codes(flags) == ["partner_disconnect"]
        assert flags[0].reason == "Partner relationship broken - 5+ days no interaction"

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="lurker_min_logins"):
            EngagementClassifier(EngagementThresholds(lurker_min_logins=-1))

    def test_declining_max_must_allow_a_login(self):
        with pytest.raises(ValueError):
            EngagementThresholds(declining_current_max=0).validate()
