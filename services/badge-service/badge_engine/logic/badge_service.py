"""
Badge Service - Evaluation Orchestrator

For one athlete:
1. Assemble the AthleteDataBundle (profile, skill snapshot, recent history)
2. Load the catalog, keep active badges of the athlete's sport (or ALL) that
   are visible to them (system badges, or badges owned by their own coach)
3. Badges already held (non-revoked) are reported as earned, never re-scored
4. Score the rest; insert exactly one award per newly earned badge
5. Return newly awarded ids plus a progress report for every visible badge
"""

from typing import List, Optional
import logging

from badge_engine import dynamo, dynamo_badges
from badge_engine.errors import AthleteNotFoundError
from badge_engine.logic.badge_scorer import score_badge
from badge_engine.schemas import ANY_SPORT, AthleteDataBundle, AthleteProfile
from badge_engine.schemas_badges import (
    AwardedBadge,
    Badge,
    EvaluationResult,
    ProgressReport,
)

logger = logging.getLogger(__name__)


def badge_visible_to(badge: Badge, profile: AthleteProfile) -> bool:
    """Active, same sport (or ALL), and system-owned or owned by the athlete's coach"""
    if not badge.is_active:
        return False
    if badge.sport not in (ANY_SPORT, profile.sport):
        return False
    if badge.owner_id is None:
        return True
    return profile.coach_id is not None and badge.owner_id == profile.coach_id


def _report(badge: Badge, progress: int, earned: bool, earned_at=None) -> ProgressReport:
    return ProgressReport(
        badge_id=badge.badge_id,
        badge_name=badge.name,
        level=badge.level,
        category=badge.category,
        progress=progress,
        description=badge.description,
        motivational_text=badge.motivational_text,
        icon=badge.icon,
        earned=earned,
        earned_at=earned_at,
    )


class BadgeEvaluationService:
    """Evaluates the badge catalog against one athlete at a time."""

    def __init__(self, db: Optional[dynamo.DynamoDBClient] = None):
        self.db = db or dynamo.db_client

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------

    def load_bundle(self, athlete_id: str) -> AthleteDataBundle:
        """
        Raises:
            AthleteNotFoundError: no profile exists for athlete_id
        """
        profile = dynamo.get_athlete_profile(self.db, athlete_id)
        if profile is None:
            logger.warning(f"Athlete not found: {athlete_id}")
            raise AthleteNotFoundError(athlete_id)

        return AthleteDataBundle(
            profile=profile,
            skills=dynamo.get_skill_snapshot(self.db, athlete_id) or {},
            matches=dynamo.get_match_performances(self.db, athlete_id),
            wellness=dynamo.get_wellness_entries(self.db, athlete_id),
        )

    def visible_badges(self, profile: AthleteProfile) -> List[Badge]:
        badges = [
            badge for badge in dynamo_badges.get_badge_catalog(self.db)
            if badge_visible_to(badge, profile)
        ]
        badges.sort(key=lambda badge: (badge.level_rank, badge.name))
        return badges

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate_athlete(self, athlete_id: str) -> EvaluationResult:
        """
        Evaluate every visible badge for one athlete, awarding newly earned ones.

        Re-evaluation is idempotent: held badges are reported as earned with
        their original award time and are never awarded twice.
        """
        bundle = self.load_bundle(athlete_id)
        profile = bundle.profile
        badges = self.visible_badges(profile)
        held = dynamo_badges.get_active_awards(self.db, athlete_id)

        logger.info(
            f"Evaluating {len(badges)} badges for athlete {athlete_id} "
            f"(sport={profile.sport}, held={len(held)}, skills={'yes' if bundle.has_skills else 'no'})"
        )

        result = EvaluationResult(athlete_id=athlete_id)
        for badge in badges:
            existing = held.get(badge.badge_id)
            if existing is not None:
                result.progress.append(_report(badge, 100, True, existing.awarded_at))
                continue

            verdict = score_badge(badge, bundle)
            if not verdict.earned:
                result.progress.append(_report(badge, verdict.progress, False))
                continue

            try:
                award = dynamo_badges.assign_badge(self.db, athlete_id, badge.badge_id, verdict.score)
            except Exception as e:
                logger.error(
                    f"Failed to persist award of badge {badge.badge_id} to athlete {athlete_id}: {e}",
                    exc_info=True
                )
                result.progress.append(_report(badge, verdict.progress, False))
                continue

            if award.newly_earned:
                result.newly_awarded.append(badge.badge_id)
                result.progress.append(_report(badge, 100, True, award.awarded_at))
            else:
                # Lost a race with a concurrent evaluation: already awarded
                result.progress.append(_report(badge, 100, True, self._awarded_at(athlete_id, badge.badge_id)))

        if result.newly_awarded:
            logger.info(f"Athlete {athlete_id} earned {len(result.newly_awarded)} new badges: {result.newly_awarded}")
        else:
            logger.debug(f"No new badges for athlete {athlete_id}")

        return result

    def get_badge_progress(self, athlete_id: str) -> List[ProgressReport]:
        """Progress for every visible badge (awards newly earned badges as a side effect)"""
        return self.evaluate_athlete(athlete_id).progress

    def get_athlete_badges(self, athlete_id: str) -> List[AwardedBadge]:
        """Non-revoked awards, most recent first"""
        return dynamo_badges.get_athlete_badges(self.db, athlete_id)

    def revoke_badge(
        self,
        athlete_id: str,
        badge_id: str,
        revoked_by: str,
        reason: str
    ) -> Optional[AwardedBadge]:
        """Revoke an award; the badge may be earned again by a later evaluation"""
        return dynamo_badges.revoke_award(self.db, athlete_id, badge_id, revoked_by, reason)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _awarded_at(self, athlete_id: str, badge_id: str):
        award = dynamo_badges.get_active_awards(self.db, athlete_id).get(badge_id)
        return award.awarded_at if award else None
