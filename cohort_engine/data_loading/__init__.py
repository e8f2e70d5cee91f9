"""Data loading module for activity logs, participants and profiles."""

from .loaders import load_activity_log, load_users, load_profiles
from .synthetic import create_synthetic_activity_log, create_synthetic_profiles

__all__ = [
    "load_activity_log",
    "load_users",
    "load_profiles",
    "create_synthetic_activity_log",
    "create_synthetic_profiles",
]
