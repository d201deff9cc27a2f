#!/usr/bin/env python3
"""
Seed the badge catalog for local development

Creates the athlete table when it does not exist (LocalStack) and writes a
starter catalog of rookie / amateur / pro badges covering every rule type.

This script is IDEMPOTENT - badges are written by id, re-running replaces
them in place.

Usage:
    DYNAMODB_ENDPOINT=http://localhost:4566 python scripts/seed_badge_catalog.py
"""
import logging
import sys
from pathlib import Path

# Allow running from a source checkout without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from botocore.exceptions import ClientError

from badge_engine import dynamo
from badge_engine.config import configure_logging
from badge_engine.dynamo_badges import put_badge
from badge_engine.schemas_badges import Badge

logger = logging.getLogger(__name__)


def _rule(rule_type, field_name, operator, value, weight=1, required=True, description=None):
    return {
        'rule_type': rule_type,
        'field_name': field_name,
        'operator': operator,
        'target_value': value,
        'weight': weight,
        'is_required': required,
        'description': description,
    }


STARTER_BADGES = [
    # ROOKIE
    {
        'badge_id': 'first-steps', 'name': 'First Steps', 'level': 'ROOKIE', 'category': 'Physical Fitness',
        'icon': '🏃', 'description': 'Complete your first fitness assessment',
        'motivational_text': 'Every champion starts with a single step!',
        'rules': [_rule('SKILLS_METRIC', 'pushupScore', 'GTE', '1')],
    },
    {
        'badge_id': 'push-it', 'name': 'Push It', 'level': 'ROOKIE', 'category': 'Physical Fitness',
        'icon': '💪', 'description': 'Achieve 10 push-ups in a single set',
        'motivational_text': 'Building strength one push-up at a time!',
        'rules': [_rule('SKILLS_METRIC', 'pushupScore', 'GTE', '10')],
    },
    {
        'badge_id': 'hydration-hero', 'name': 'Hydration Hero', 'level': 'ROOKIE', 'category': 'Wellness & Nutrition',
        'icon': '💧', 'description': 'Log 2L+ water intake for 3 consecutive days',
        'motivational_text': 'Stay hydrated, stay sharp!',
        'rules': [_rule('WELLNESS_STREAK', 'waterIntake', 'GTE', '2', description='3 days')],
    },
    {
        'badge_id': 'first-match', 'name': 'First Match', 'level': 'ROOKIE', 'category': 'Match Performance',
        'icon': '🏏', 'description': 'Complete your first match entry',
        'motivational_text': 'Welcome to the field!',
        'rules': [_rule('MATCH_COUNT', 'matchesPlayed', 'GTE', '1')],
    },
    {
        'badge_id': 'debut-score', 'name': 'Debut Score', 'level': 'ROOKIE', 'category': 'Match Performance',
        'icon': '🏏', 'description': 'Score your first runs in a match',
        'motivational_text': 'Off the mark!',
        'rules': [_rule('MATCH_STAT', 'runsScored', 'GTE', '1')],
    },
    # AMATEUR
    {
        'badge_id': 'batting-technique', 'name': 'Batting Technique', 'level': 'AMATEUR', 'category': 'Technical Skills',
        'icon': '🏏', 'description': 'Achieve 8/10 in 5 different batting skills',
        'motivational_text': 'Technique wins matches!',
        'rules': [
            _rule('SKILLS_METRIC', field, 'GTE', '8', weight=0.2, required=False)
            for field in ('battingStance', 'battingGrip', 'battingBalance', 'backLift', 'topHandDominance')
        ],
    },
    {
        'badge_id': 'all-rounder', 'name': 'All-Rounder', 'level': 'AMATEUR', 'category': 'Technical Skills',
        'icon': '🎯', 'description': 'Average 7/10 across your technical skills',
        'motivational_text': 'Good at everything!',
        'rules': [_rule('SKILLS_AVERAGE', 'technicalAverage', 'GTE', '7')],
    },
    {
        'badge_id': 'consistent-performer', 'name': 'Consistent Performer', 'level': 'AMATEUR', 'category': 'Consistency',
        'icon': '🎯', 'description': 'Match rating of 6+ in 5 consecutive matches',
        'motivational_text': 'Consistency is the mark of a pro!',
        'rules': [_rule('MATCH_STREAK', 'matchRating', 'GTE', '6', description='5 matches')],
    },
    {
        'badge_id': 'wellness-warrior', 'name': 'Wellness Warrior', 'level': 'AMATEUR', 'category': 'Wellness & Nutrition',
        'icon': '❤️', 'description': 'Log every wellness metric for 14 consecutive days',
        'motivational_text': 'A healthy body is a winning body!',
        'rules': [_rule('WELLNESS_STREAK', 'allMetrics', 'GTE', '1', description='14 days')],
    },
    {
        'badge_id': 'match-winner', 'name': 'Match Winner', 'level': 'AMATEUR', 'category': 'Match Performance',
        'icon': '🏆', 'description': 'Win 10 matches',
        'motivational_text': 'Winning is a habit!',
        'rules': [_rule('MATCH_COUNT', 'matchesWon', 'GTE', '10')],
    },
    # PRO
    {
        'badge_id': 'perfect-ten', 'name': 'Perfect Ten', 'level': 'PRO', 'category': 'Technical Skills',
        'icon': '🌟', 'description': 'Score a perfect 10 in any technical skill',
        'motivational_text': 'Perfection achieved!',
        'rules': [_rule('SKILLS_ANY', 'anySkill', 'EQ', '10')],
    },
    {
        'badge_id': 'elite-athlete', 'name': 'Elite Athlete', 'level': 'PRO', 'category': 'Physical Fitness',
        'icon': '💪', 'description': 'Reach the top 10% fitness band',
        'motivational_text': 'Built different!',
        'rules': [_rule('FITNESS_PERCENTILE', 'allFitness', 'GTE', '90')],
    },
    {
        'badge_id': 'match-maestro', 'name': 'Match Maestro', 'level': 'PRO', 'category': 'Match Performance',
        'icon': '🏆', 'description': 'Average match rating of 8+ over 10 matches',
        'motivational_text': 'Class is permanent!',
        'rules': [_rule('MATCH_AVERAGE', 'matchRating', 'GTE', '8', description='10 matches')],
    },
    {
        'badge_id': 'peak-performer', 'name': 'Peak Performer', 'level': 'PRO', 'category': 'Consistency',
        'icon': '🚀', 'description': 'Reach the top 5% PeakScore band',
        'motivational_text': 'You are at your peak!',
        'rules': [_rule('PEAKSCORE_PERCENTILE', 'peakScore', 'GTE', '95')],
    },
    {
        'badge_id': 'ideal-weight-zone', 'name': 'Ideal Weight Zone', 'level': 'PRO', 'category': 'Wellness & Nutrition',
        'icon': '⚖️', 'description': 'Keep daily calories between 2200 and 2800 for 7 days',
        'motivational_text': 'Fuel right, play right!',
        'rules': [_rule('WELLNESS_STREAK', 'totalCalories', 'BETWEEN', '2200,2800', description='7 days')],
    },
]


def ensure_table(db: dynamo.DynamoDBClient) -> None:
    """Create the single athlete table if it does not exist yet"""
    table_name = db.settings.DYNAMODB_ATHLETE_TABLE
    try:
        db.dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {'AttributeName': 'PK', 'KeyType': 'HASH'},
                {'AttributeName': 'SK', 'KeyType': 'RANGE'},
            ],
            AttributeDefinitions=[
                {'AttributeName': 'PK', 'AttributeType': 'S'},
                {'AttributeName': 'SK', 'AttributeType': 'S'},
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        logger.info(f"✓ Created table: {table_name}")
    except ClientError as e:
        if e.response['Error']['Code'] == 'ResourceInUseException':
            logger.info(f"⚠ Table already exists: {table_name}")
        else:
            raise


def seed(db: dynamo.DynamoDBClient) -> int:
    for data in STARTER_BADGES:
        badge = Badge(**data)
        put_badge(db, badge)
        logger.info(f"✓ [{badge.level}] {badge.name}")
    return len(STARTER_BADGES)


if __name__ == '__main__':
    configure_logging()
    db = dynamo.db_client
    ensure_table(db)
    count = seed(db)
    logger.info(f"Seeded {count} badges into {db.settings.DYNAMODB_ATHLETE_TABLE}")
