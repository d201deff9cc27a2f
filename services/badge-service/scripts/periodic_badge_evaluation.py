#!/usr/bin/env python3
"""
Periodic badge evaluation

Evaluates every athlete with skill data against the badge catalog and awards
newly earned badges. Intended for a scheduled job (cron / ECS scheduled task).

This script is IDEMPOTENT - held badges are never awarded twice, so a failed
or partial run can simply be re-run.

Usage:
    python scripts/periodic_badge_evaluation.py [--batch-size 8] [--athlete-id ID]
"""
import asyncio
import argparse
import logging
import sys
from pathlib import Path

# Allow running from a source checkout without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from badge_engine.config import configure_logging, get_settings
from badge_engine.errors import AthleteNotFoundError
from badge_engine.logic.badge_service import BadgeEvaluationService
from badge_engine.logic.batch_runner import evaluate_all

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type: integer >= 1"""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got: {value}")
    return number


def evaluate_single(service: BadgeEvaluationService, athlete_id: str) -> int:
    """Evaluate one athlete and log the outcome; returns the exit status"""
    try:
        result = service.evaluate_athlete(athlete_id)
    except AthleteNotFoundError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Athlete {athlete_id}: {len(result.earned)} earned, {len(result.newly_awarded)} new")
    for report in result.progress:
        status = "EARNED" if report.earned else f"{report.progress}%"
        logger.info(f"  [{report.level}] {report.badge_name}: {status}")
    return 0


async def main(batch_size: int, athlete_id: str = None) -> int:
    service = BadgeEvaluationService()

    if athlete_id:
        return evaluate_single(service, athlete_id)

    logger.info("=" * 80)
    logger.info("PERIODIC BADGE EVALUATION")
    logger.info("=" * 80)

    summary = await evaluate_all(service=service, batch_size=batch_size)

    logger.info("=" * 80)
    logger.info(f"Athletes evaluated: {summary.evaluated_count}")
    logger.info(f"New badges awarded: {summary.new_award_count}")
    logger.info(f"Athletes skipped (no skills data): {summary.skipped_count}")
    logger.info(f"Errors: {len(summary.errors)}")
    for error in summary.errors:
        logger.error(f"  {error}")
    logger.info("=" * 80)

    return 1 if summary.errors else 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Evaluate badges for all athletes')
    parser.add_argument(
        '--batch-size',
        type=positive_int,
        default=get_settings().BADGE_BATCH_SIZE,
        help='Number of athletes evaluated in parallel'
    )
    parser.add_argument(
        '--athlete-id',
        default=None,
        help='Evaluate a single athlete instead of everyone'
    )
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(main(batch_size=args.batch_size, athlete_id=args.athlete_id)))
