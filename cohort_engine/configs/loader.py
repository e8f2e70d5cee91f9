"""
Configuration loading and validation.

This module handles loading of YAML configuration files and
validates that the scoring and engagement sections are coherent.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List

import yaml

logger = logging.getLogger(__name__)


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        filepath: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the file is empty
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Loading configuration from {filepath}")
    with open(filepath, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    for section in ["global", "scoring", "ranking", "engagement"]:
        if section not in config:
            issues.append(f"Missing section: {section} (defaults will be used)")

    # Partial credit must never exceed the full credit of its dimension
    weights = get_config_value(config, "scoring.weights", {}) or {}
    for dimension in ["experience", "time_zone", "communication_style"]:
        full = weights.get(dimension)
        partial = weights.get(f"{dimension}_partial")
        if full is not None and partial is not None and partial > full:
            issues.append(
                f"scoring.weights.{dimension}_partial ({partial}) exceeds "
                f"scoring.weights.{dimension} ({full})"
            )
    negative = [k for k, v in weights.items() if isinstance(v, (int, float)) and v < 0]
    if negative:
        issues.append(f"Negative scoring weights: {sorted(negative)}")

    tiers = get_config_value(config, "ranking.tiers", {}) or {}
    strong = tiers.get("strong", 70)
    moderate = tiers.get("moderate", 50)
    if not 0 <= moderate <= strong <= 100:
        issues.append(f"Ranking tiers must satisfy 0 <= moderate <= strong <= 100, "
                      f"got moderate={moderate}, strong={strong}")

    period_days = get_config_value(config, "engagement.period_days", 7)
    if not isinstance(period_days, int) or period_days < 1:
        issues.append(f"engagement.period_days must be a positive integer, got {period_days}")

    thresholds = get_config_value(config, "engagement.thresholds", {}) or {}
    negative = [k for k, v in thresholds.items() if isinstance(v, (int, float)) and v < 0]
    if negative:
        issues.append(f"Negative engagement thresholds: {sorted(negative)}")

    return issues


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "engagement.thresholds.absence_days")
        default: Default value if path doesn't exist

    Returns:
        Configuration value or default
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
