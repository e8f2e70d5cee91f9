"""
Batch runner for the cohort engine.

This is the entrypoint used by the scheduled engagement job and for ad-hoc
partner rankings.

Usage:
    python -m cohort_engine.run --config configs/config.yaml \
        --activity activity.csv --users users.csv --as-of 2024-03-01
    python -m cohort_engine.run --config configs/config.yaml \
        --profiles profiles.csv --target user_007

Without --activity the engagement step runs on synthetic data.

The runner performs the following steps:
1. Load and validate configuration
2. Build activity snapshots from the activity log
3. Classify engagement and write flags (JSON + CSV)
4. Optionally rank candidate partners for one participant
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging level from config."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)


def run_engine(
    config_path: str,
    activity_path: Optional[str] = None,
    users_path: Optional[str] = None,
    profiles_path: Optional[str] = None,
    target_id: Optional[str] = None,
    as_of: Optional[str] = None,
    output_dir: Optional[str] = None
) -> Dict[str, Any]:
    """
    Run engagement analysis and, optionally, partner ranking.

    Args:
        config_path: Path to the configuration YAML file
        activity_path: Daily activity log CSV (synthetic data if None)
        users_path: Active participants CSV (defaults to users in the log)
        profiles_path: Matching profiles CSV
        target_id: Participant to rank partners for (requires profiles_path)
        as_of: Last day of the current period (YYYY-MM-DD, default today UTC)
        output_dir: If provided, write artifacts here instead of config default

    Returns:
        Dictionary with success flag, summaries and artifact paths
    """
    from .configs import load_config, validate_config, get_config_value
    from .data_loading import (
        load_activity_log,
        load_users,
        load_profiles,
        create_synthetic_activity_log,
    )
    from .aggregation import build_snapshots
    from .engagement import EngagementClassifier, EngagementThresholds, summarize, flags_frame
    from .matching import (
        CompatibilityScorer,
        ScoringWeights,
        TierThresholds,
        rank_candidates,
        ranking_frame,
    )

    # =========================================================================
    # 1. Load and validate configuration
    # =========================================================================
    logger.info("=" * 60)
    logger.info("COHORT ENGINE")
    logger.info("=" * 60)

    config = load_config(config_path)
    issues = validate_config(config)
    for issue in issues:
        logger.warning(f"Config issue: {issue}")

    setup_logging(get_config_value(config, "global.log_level", "INFO"))

    out_dir = Path(output_dir or get_config_value(config, "global.output_dir", "artifacts"))
    out_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now(timezone.utc)
    as_of_day = date.fromisoformat(as_of) if as_of else now.date()
    # Evaluate "days since" at the end of the as-of day
    evaluated_at = datetime(as_of_day.year, as_of_day.month, as_of_day.day,
                            23, 59, 59, tzinfo=timezone.utc)
    if evaluated_at > now:
        evaluated_at = now

    results = {"success": True, "artifacts": {}}

    # =========================================================================
    # 2. Build snapshots
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("STEP 1: Building Activity Snapshots")
    logger.info("=" * 60)

    period_days = get_config_value(config, "engagement.period_days", 7)

    if activity_path:
        activity = load_activity_log(activity_path)
    else:
        logger.info("No activity log given, using synthetic data for demonstration...")
        activity = create_synthetic_activity_log(as_of=as_of_day)

    users = load_users(users_path) if users_path else None
    snapshots = build_snapshots(activity, as_of=as_of_day,
                                period_days=period_days, users=users)

    # =========================================================================
    # 3. Classify engagement
    # =========================================================================
    logger.info("\n" + "=" * 60)
    logger.info("STEP 2: Classifying Engagement")
    logger.info("=" * 60)

    classifier = EngagementClassifier(EngagementThresholds.from_config(config))
    flags = classifier.classify_population(snapshots, now=evaluated_at)
    summary = summarize(flags)
    logger.info(f"Flags: {summary['red']} red, {summary['yellow']} yellow, "
               f"{summary['green']} green")

    flags_json = out_dir / "flags.json"
    with open(flags_json, "w") as f:
        json.dump({
            "evaluated_at": evaluated_at.isoformat(),
            "users_analyzed": len(snapshots),
            "summary": summary,
            "flags": [flag.to_dict() for flag in flags],
        }, f, indent=2)
    flags_csv = out_dir / "flags.csv"
    flags_frame(flags).to_csv(flags_csv, index=False)
    logger.info(f"Saved flags to {flags_json} and {flags_csv}")

    results["engagement"] = {"users_analyzed": len(snapshots), "summary": summary}
    results["artifacts"]["flags_json"] = str(flags_json)
    results["artifacts"]["flags_csv"] = str(flags_csv)

    # =========================================================================
    # 4. Rank partners
    # =========================================================================
    if profiles_path and target_id:
        logger.info("\n" + "=" * 60)
        logger.info("STEP 3: Ranking Partner Candidates")
        logger.info("=" * 60)

        profiles = load_profiles(profiles_path)
        target = next((p for p in profiles if p.person_id == target_id), None)
        if target is None:
            logger.error(f"Target participant not found in profiles: {target_id}")
            results["success"] = False
            return results

        scorer = CompatibilityScorer(ScoringWeights.from_config(config))
        ranked = rank_candidates(
            target,
            profiles,
            scorer=scorer,
            top_n=get_config_value(config, "ranking.top_n", None),
            thresholds=TierThresholds.from_config(config),
        )
        rankings_csv = out_dir / "rankings.csv"
        ranking_frame(ranked).to_csv(rankings_csv, index=False)

        for candidate in ranked:
            logger.info(f"  #{candidate.rank} {candidate.profile.person_id}: "
                       f"{candidate.score}% ({candidate.tier})")
        logger.info(f"Saved rankings to {rankings_csv}")

        results["ranking"] = {"target": target_id, "candidates": len(ranked)}
        results["artifacts"]["rankings_csv"] = str(rankings_csv)
    elif profiles_path or target_id:
        logger.warning("Partner ranking needs both --profiles and --target, skipping")

    return results


def main():
    """Main entry point for the cohort engine."""
    parser = argparse.ArgumentParser(
        description="Run engagement analysis and partner ranking for a cohort"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument("--activity", type=str, default=None,
                        help="Daily activity log CSV (synthetic data if omitted)")
    parser.add_argument("--users", type=str, default=None,
                        help="Active participants CSV (id, full_name, email)")
    parser.add_argument("--profiles", type=str, default=None,
                        help="Matching profiles CSV")
    parser.add_argument("--target", type=str, default=None,
                        help="Participant id to rank partners for")
    parser.add_argument("--as-of", type=str, default=None,
                        help="Last day of the current period (YYYY-MM-DD)")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory for artifacts (overrides config)"
    )

    args = parser.parse_args()

    try:
        result = run_engine(
            args.config,
            activity_path=args.activity,
            users_path=args.users,
            profiles_path=args.profiles,
            target_id=args.target,
            as_of=args.as_of,
            output_dir=args.output_dir,
        )
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cohort engine failed: {e}")
        return 1

    if result["success"]:
        logger.info("\nCohort engine completed successfully!")
        return 0
    logger.error("\nCohort engine failed!")
    return 1


if __name__ == "__main__":
    sys.exit(main())
