"""
Badge Scorer

Aggregates the rules of one badge into a weighted progress percentage and an
earned verdict:

- badge with required rules: earned when every required rule passes
  (optional rules only move the displayed progress)
- badge without required rules: earned at 100% progress
"""
import logging
import math

from badge_engine.logic.rule_evaluator import evaluate_rule
from badge_engine.schemas import AthleteDataBundle
from badge_engine.schemas_badges import Badge, BadgeScore

logger = logging.getLogger(__name__)


def progress_percent(score: float, max_score: float) -> int:
    """Weighted completion rounded half-up to a whole percent (0 if no weight)"""
    if max_score <= 0:
        return 0
    return min(100, int(math.floor(score / max_score * 100 + 0.5)))


def score_badge(badge: Badge, bundle: AthleteDataBundle) -> BadgeScore:
    score = 0.0
    max_score = 0.0
    required_passed = 0
    total_required = 0

    for rule in badge.rules:
        max_score += rule.weight
        if rule.is_required:
            total_required += 1

        if evaluate_rule(rule, bundle):
            score += rule.weight
            if rule.is_required:
                required_passed += 1

    progress = progress_percent(score, max_score)
    if total_required > 0:
        earned = required_passed == total_required
    else:
        earned = progress >= 100

    logger.debug(
        f"Badge {badge.badge_id} ({badge.name}): score={score}/{max_score}, "
        f"required={required_passed}/{total_required}, progress={progress}, earned={earned}"
    )
    return BadgeScore(
        earned=earned,
        progress=progress,
        score=score,
        required_passed=required_passed,
        total_required=total_required,
    )
