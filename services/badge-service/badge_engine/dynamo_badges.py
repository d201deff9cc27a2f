"""
Badge catalog and awards - DynamoDB Operations

DESIGN PRINCIPLES:
1. Each active award = separate item (PK=ATHLETE#{id}, SK=AWARD#{badgeId})
2. The active-award key IS the uniqueness constraint: conditional PUT only
3. Revocation moves the award to history (REVOKED#...) and frees the key
4. Catalog items are read-only for the engine
"""

from datetime import datetime
from typing import Dict, Any, List, Optional
import logging
import uuid

from badge_engine.dynamo import (
    CATALOG_PK,
    DynamoDBClient,
    athlete_pk,
    badge_sk,
    dynamodb_dict,
    python_dict,
    query_partition,
)
from badge_engine.schemas_badges import AwardedBadge, AwardResult, Badge

logger = logging.getLogger(__name__)

COACH_MARKER = "|||COACH_CREATED:"


def award_sk(badge_id: str) -> str:
    return f"AWARD#{badge_id}"


def revoked_sk(badge_id: str, award_id: str) -> str:
    return f"REVOKED#{badge_id}#{award_id}"


# ============================================================================
# Item <-> model mapping
# ============================================================================

def _rule_from_item(item: Dict[str, Any]) -> Dict[str, Any]:
    rule = {
        'rule_type': item.get('ruleType'),
        'field_name': item.get('fieldName', ''),
        'operator': item.get('operator', 'GTE'),
        'target_value': item.get('value', ''),
        'weight': item.get('weight', 1),
        'is_required': item.get('isRequired', False),
        'description': item.get('description'),
    }
    for key in ('window', 'category'):
        if item.get(key) is not None:
            rule[key] = item[key]
    return rule


def _rule_to_item(rule) -> Dict[str, Any]:
    item = {
        'ruleType': rule.rule_type,
        'fieldName': rule.field_name,
        'operator': rule.operator,
        'value': rule.target_value,
        'weight': rule.weight,
        'isRequired': rule.is_required,
    }
    if rule.description:
        item['description'] = rule.description
    for key in ('window', 'category'):
        if getattr(rule, key, None) is not None:
            item[key] = getattr(rule, key)
    return item


def badge_from_item(item: Dict[str, Any]) -> Badge:
    """
    Build a Badge from a catalog item.

    Legacy items mark coach-created badges inside the description
    ("...|||COACH_CREATED:<coachId>"); those are promoted to owner_id.
    """
    description = item.get('description') or ''
    owner_id = item.get('ownerId')
    if COACH_MARKER in description:
        description, _, marker_owner = description.partition(COACH_MARKER)
        owner_id = owner_id or marker_owner.strip() or None

    return Badge(
        badge_id=item.get('badgeId') or item['SK'].split('#', 1)[1],
        name=item['name'],
        description=description.strip(),
        motivational_text=item.get('motivationalText') or '',
        icon=item.get('icon') or '',
        level=item.get('level', 'ROOKIE'),
        category=item.get('category'),
        sport=item.get('sport', 'ALL'),
        owner_id=owner_id,
        is_active=item.get('isActive', True),
        rules=[_rule_from_item(rule) for rule in item.get('rules', [])],
    )


def _award_from_item(athlete_id: str, item: Dict[str, Any]) -> AwardedBadge:
    return AwardedBadge(
        award_id=item['awardId'],
        athlete_id=athlete_id,
        badge_id=item['badgeId'],
        score=item.get('score', 0),
        progress=item.get('progress', 100),
        awarded_at=item['awardedAt'],
        is_revoked=item.get('isRevoked', False),
        revoked_at=item.get('revokedAt'),
        revoked_by=item.get('revokedBy'),
        revoke_reason=item.get('reason'),
    )


# ============================================================================
# Catalog
# ============================================================================

def get_badge_catalog(db: DynamoDBClient) -> List[Badge]:
    """
    Get every badge definition with its rules.

    A malformed catalog item (unknown level, missing name, ...) is skipped and
    logged at ERROR so one bad badge does not hide the rest of the catalog.
    """
    badges = []
    for item in query_partition(db, CATALOG_PK, 'BADGE#'):
        try:
            badges.append(badge_from_item(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Skipping malformed catalog item {item.get('SK')}: {e}")

    logger.debug(f"Loaded {len(badges)} badges from catalog")
    return badges


def put_badge(db: DynamoDBClient, badge: Badge) -> None:
    """Create or replace a catalog badge"""
    item = {
        'PK': CATALOG_PK,
        'SK': badge_sk(badge.badge_id),
        'badgeId': badge.badge_id,
        'name': badge.name,
        'description': badge.description,
        'motivationalText': badge.motivational_text,
        'icon': badge.icon,
        'level': badge.level,
        'sport': badge.sport,
        'isActive': badge.is_active,
        'rules': [_rule_to_item(rule) for rule in badge.rules],
    }
    if badge.category:
        item['category'] = badge.category
    if badge.owner_id:
        item['ownerId'] = badge.owner_id

    db.athlete_table.put_item(Item=dynamodb_dict(item))


# ============================================================================
# Awards
# ============================================================================

def get_active_awards(db: DynamoDBClient, athlete_id: str) -> Dict[str, AwardedBadge]:
    """Non-revoked awards held by the athlete, keyed by badge id"""
    items = query_partition(db, athlete_pk(athlete_id), 'AWARD#')
    awards = {}
    for item in items:
        award = _award_from_item(athlete_id, item)
        awards[award.badge_id] = award
    return awards


def get_athlete_badges(db: DynamoDBClient, athlete_id: str) -> List[AwardedBadge]:
    """Non-revoked awards, most recent first"""
    awards = list(get_active_awards(db, athlete_id).values())
    awards.sort(key=lambda award: award.awarded_at, reverse=True)
    return awards


def get_revoked_awards(db: DynamoDBClient, athlete_id: str) -> List[AwardedBadge]:
    """Revocation history, oldest award first"""
    items = query_partition(db, athlete_pk(athlete_id), 'REVOKED#')
    awards = [_award_from_item(athlete_id, item) for item in items]
    awards.sort(key=lambda award: award.awarded_at)
    return awards


def assign_badge(
    db: DynamoDBClient,
    athlete_id: str,
    badge_id: str,
    score: float
) -> AwardResult:
    """
    Insert the active award for (athlete, badge).

    Uses ConditionExpression so that two concurrent evaluations cannot both
    award the same badge: the second insert fails and is reported as
    newly_earned=False. Any other failure propagates.
    """
    now = datetime.utcnow()
    award_id = str(uuid.uuid4())

    try:
        db.athlete_table.put_item(
            Item=dynamodb_dict({
                'PK': athlete_pk(athlete_id),
                'SK': award_sk(badge_id),
                'awardId': award_id,
                'athleteId': athlete_id,
                'badgeId': badge_id,
                'score': float(score),
                'progress': 100,
                'awardedAt': now.isoformat(),
                'isRevoked': False,
            }),
            ConditionExpression="attribute_not_exists(PK)"
        )
    except db.exceptions.ConditionalCheckFailedException:
        logger.warning(f"Badge {badge_id} already awarded to athlete {athlete_id}, skipping insert")
        return AwardResult(badge_id=badge_id, newly_earned=False)

    logger.info(f"Badge {badge_id} awarded to athlete {athlete_id} (score={score})")
    return AwardResult(badge_id=badge_id, newly_earned=True, award_id=award_id, awarded_at=now)


def revoke_award(
    db: DynamoDBClient,
    athlete_id: str,
    badge_id: str,
    revoked_by: str,
    reason: str
) -> Optional[AwardedBadge]:
    """
    Revoke the athlete's active award for a badge.

    The award is copied to revocation history before the active item is
    deleted, so history survives and the badge can be earned again.

    Returns:
        The revoked award, or None if the athlete does not hold the badge
    """
    key = {'PK': athlete_pk(athlete_id), 'SK': award_sk(badge_id)}
    response = db.athlete_table.get_item(Key=key)
    if 'Item' not in response:
        logger.info(f"Athlete {athlete_id} holds no active award for badge {badge_id}")
        return None

    item = python_dict(response['Item'])
    now = datetime.utcnow()
    history = {
        **item,
        'SK': revoked_sk(badge_id, item['awardId']),
        'isRevoked': True,
        'revokedAt': now.isoformat(),
        'revokedBy': revoked_by,
        'reason': reason,
    }
    db.athlete_table.put_item(Item=dynamodb_dict(history))
    db.athlete_table.delete_item(
        Key=key,
        ConditionExpression="awardId = :award_id",
        ExpressionAttributeValues={':award_id': item['awardId']}
    )

    logger.info(f"Badge {badge_id} revoked for athlete {athlete_id} by {revoked_by}: {reason}")
    return _award_from_item(athlete_id, history)
