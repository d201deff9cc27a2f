"""
Batch Runner

Evaluates every athlete with skill data. Athletes are processed in batches;
each evaluation runs in a worker thread and a batch is awaited with
asyncio.gather(return_exceptions=True), so one athlete's failure is recorded
and never stops the run. Each athlete is independent, so a partial run is
still meaningful and the job is safe to re-run.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from badge_engine import dynamo
from badge_engine.logic.badge_service import BadgeEvaluationService
from badge_engine.schemas_badges import BatchSummary

logger = logging.getLogger(__name__)


async def evaluate_all(
    service: Optional[BadgeEvaluationService] = None,
    batch_size: Optional[int] = None
) -> BatchSummary:
    """
    Evaluate badges for all athletes.

    Returns:
        BatchSummary with evaluated/new-award/skipped counts and per-athlete
        error strings

    Raises:
        ValueError: batch_size below 1
    """
    service = service or BadgeEvaluationService()
    if batch_size is None:
        batch_size = service.db.settings.BADGE_BATCH_SIZE
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got: {batch_size}")
    start_time = datetime.utcnow()

    summary = BatchSummary()
    athletes = dynamo.list_evaluable_athletes(service.db)

    evaluable = []
    for athlete in athletes:
        if athlete['has_skills']:
            evaluable.append(athlete)
        else:
            logger.info(f"Skipping athlete {athlete['name'] or athlete['athlete_id']} - no skills data")
            summary.skipped_count += 1

    total = len(evaluable)
    total_batches = (total + batch_size - 1) // batch_size
    logger.info(f"Starting badge evaluation of {total} athletes in {total_batches} batches of {batch_size}")

    for i in range(0, total, batch_size):
        batch = evaluable[i:i + batch_size]
        batch_num = (i // batch_size) + 1

        tasks = [
            asyncio.to_thread(service.evaluate_athlete, athlete['athlete_id'])
            for athlete in batch
        ]
        batch_results = await asyncio.gather(*tasks, return_exceptions=True)

        for athlete, result in zip(batch, batch_results):
            label = athlete['name'] or athlete['athlete_id']
            if isinstance(result, Exception):
                error = f"Error evaluating athlete {label}: {result}"
                logger.error(error)
                summary.errors.append(error)
                continue

            summary.evaluated_count += 1
            summary.new_award_count += len(result.newly_awarded)
            if result.newly_awarded:
                logger.info(f"Awarded {len(result.newly_awarded)} new badges to {label}")

        logger.info(f"Batch {batch_num}/{total_batches} complete: {len(batch)} athletes")

    duration = (datetime.utcnow() - start_time).total_seconds()
    logger.info(
        f"Badge evaluation complete in {duration:.2f}s: evaluated={summary.evaluated_count}, "
        f"new_awards={summary.new_award_count}, skipped={summary.skipped_count}, "
        f"errors={len(summary.errors)}"
    )
    return summary
