"""Aggregation of daily activity logs into engagement snapshots and streaks."""

from .snapshots import build_snapshots, prepare_activity_log
from .streaks import StreakStats, compute_streaks

__all__ = ["build_snapshots", "prepare_activity_log", "StreakStats", "compute_streaks"]
