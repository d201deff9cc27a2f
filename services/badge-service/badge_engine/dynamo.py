"""
DynamoDB access for badge-service

Single-table design (table: DYNAMODB_ATHLETE_TABLE):

    PK                  SK
    ATHLETE#{id}        PROFILE                          name, sport, coachId
    ATHLETE#{id}        SKILLS                           skills (map of numbers)
    ATHLETE#{id}        MATCH#{date}#{matchId}           played, result, rating, stats
    ATHLETE#{id}        WELLNESS#{date}                  metrics (map of numbers)
    ATHLETE#{id}        AWARD#{badgeId}                  active (non-revoked) award
    ATHLETE#{id}        REVOKED#{badgeId}#{awardId}      revoked award history
    CATALOG             BADGE#{badgeId}                  badge definition + rules

Athlete reads and writes live here; catalog and award operations live in
dynamo_badges.
"""
import boto3
import threading
from boto3.dynamodb.conditions import Attr, Key
from typing import Optional, Dict, Any, List
from datetime import date, datetime
from decimal import Decimal
import logging

from badge_engine.config import Settings, get_settings
from badge_engine.schemas import (
    AthleteProfile,
    MatchPerformance,
    WellnessEntry,
)

logger = logging.getLogger(__name__)

CATALOG_PK = "CATALOG"


class DynamoDBClient:
    """
    DynamoDB client with lazy initialization

    boto3 resources are not thread-safe, so each thread gets its own
    session, resource and Table (batch evaluation runs athletes in worker
    threads).
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._local = threading.local()

    @property
    def dynamodb(self):
        """Lazy initialization of this thread's DynamoDB resource"""
        resource = getattr(self._local, 'dynamodb', None)
        if resource is None:
            kwargs = {
                'region_name': self.settings.AWS_REGION,
            }

            # Only use endpoint_url for LocalStack
            if self.settings.DYNAMODB_ENDPOINT:
                kwargs['endpoint_url'] = self.settings.DYNAMODB_ENDPOINT

            # Explicit credentials only in LocalStack mode, otherwise boto3 uses the IAM role
            if self.settings.DYNAMODB_ENDPOINT and self.settings.AWS_ACCESS_KEY_ID:
                kwargs['aws_access_key_id'] = self.settings.AWS_ACCESS_KEY_ID
                kwargs['aws_secret_access_key'] = self.settings.AWS_SECRET_ACCESS_KEY
                logger.debug("Using explicit AWS credentials (LocalStack mode)")
            else:
                logger.debug("Using IAM role credentials (AWS/ECS mode)")

            resource = boto3.session.Session().resource('dynamodb', **kwargs)
            self._local.dynamodb = resource
        return resource

    @property
    def athlete_table(self):
        table = getattr(self._local, 'athlete_table', None)
        if table is None:
            table = self.dynamodb.Table(self.settings.DYNAMODB_ATHLETE_TABLE)
            self._local.athlete_table = table
        return table

    @property
    def exceptions(self):
        """Modeled client exceptions (ConditionalCheckFailedException, ...)"""
        return self.dynamodb.meta.client.exceptions


# Global instance
db_client = DynamoDBClient()


# ============= KEY HELPERS =============

def athlete_pk(athlete_id: str) -> str:
    return f"ATHLETE#{athlete_id}"


def match_sk(played_at: date, match_id: str) -> str:
    return f"MATCH#{played_at.isoformat()}#{match_id}"


def wellness_sk(entry_date: date) -> str:
    return f"WELLNESS#{entry_date.isoformat()}"


def badge_sk(badge_id: str) -> str:
    return f"BADGE#{badge_id}"


# ============= HELPER FUNCTIONS =============

def dynamodb_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert Python dict to DynamoDB compatible dict (handles Decimal)"""
    return {k: dynamodb_value(v) for k, v in data.items()}


def dynamodb_value(value: Any) -> Any:
    """Convert Python value to DynamoDB compatible value"""
    if isinstance(value, bool):
        return value
    elif isinstance(value, float):
        return Decimal(str(value))
    elif isinstance(value, dict):
        return {k: dynamodb_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [dynamodb_value(item) for item in value]
    return value


def python_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert DynamoDB dict to Python dict (handles Decimal)"""
    return {k: python_value(v) for k, v in data.items()}


def python_value(value: Any) -> Any:
    """Convert DynamoDB value to Python value"""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    elif isinstance(value, dict):
        return {k: python_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [python_value(item) for item in value]
    return value


def query_partition(
    db: DynamoDBClient,
    pk: str,
    sk_prefix: Optional[str] = None,
    newest_first: bool = False,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Query items of one partition, optionally restricted to an SK prefix.

    Follows LastEvaluatedKey until `limit` items are collected (or the
    partition is exhausted). Items are returned converted to plain Python.
    """
    condition = Key('PK').eq(pk)
    if sk_prefix:
        condition = condition & Key('SK').begins_with(sk_prefix)

    kwargs: Dict[str, Any] = {
        'KeyConditionExpression': condition,
        'ScanIndexForward': not newest_first,
    }
    if limit:
        kwargs['Limit'] = limit

    items: List[Dict[str, Any]] = []
    while True:
        response = db.athlete_table.query(**kwargs)
        items.extend(python_dict(item) for item in response.get('Items', []))

        if limit and len(items) >= limit:
            return items[:limit]
        if 'LastEvaluatedKey' not in response:
            return items
        kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']


# ============= ATHLETE READ OPERATIONS =============

def get_athlete_profile(db: DynamoDBClient, athlete_id: str) -> Optional[AthleteProfile]:
    """
    Get athlete profile (name, sport, responsible coach)

    Returns:
        AthleteProfile or None if the athlete does not exist
    """
    response = db.athlete_table.get_item(
        Key={'PK': athlete_pk(athlete_id), 'SK': 'PROFILE'}
    )
    if 'Item' not in response:
        return None

    item = python_dict(response['Item'])
    return AthleteProfile(
        athlete_id=athlete_id,
        name=item.get('name'),
        sport=item.get('sport', 'ALL'),
        coach_id=item.get('coachId'),
    )


def get_skill_snapshot(db: DynamoDBClient, athlete_id: str) -> Optional[Dict[str, Any]]:
    """Current skill snapshot as a flat map, or None if never recorded"""
    response = db.athlete_table.get_item(
        Key={'PK': athlete_pk(athlete_id), 'SK': 'SKILLS'}
    )
    if 'Item' not in response:
        return None
    return python_value(response['Item'].get('skills', {}))


def get_match_performances(
    db: DynamoDBClient,
    athlete_id: str,
    limit: Optional[int] = None
) -> List[MatchPerformance]:
    """Most recent match performances, newest first"""
    limit = limit or db.settings.MATCH_HISTORY_LIMIT
    items = query_partition(db, athlete_pk(athlete_id), 'MATCH#', newest_first=True, limit=limit)

    matches = []
    for item in items:
        matches.append(MatchPerformance(
            match_id=item.get('matchId') or item['SK'].rsplit('#', 1)[-1],
            played_at=item.get('playedAt') or item['SK'].split('#')[1],
            played=item.get('played', True),
            result=item.get('result'),
            rating=item.get('rating'),
            stats=item.get('stats'),
        ))
    return matches


def get_wellness_entries(
    db: DynamoDBClient,
    athlete_id: str,
    limit: Optional[int] = None
) -> List[WellnessEntry]:
    """Most recent wellness / skill-history entries, newest first"""
    limit = limit or db.settings.WELLNESS_HISTORY_LIMIT
    items = query_partition(db, athlete_pk(athlete_id), 'WELLNESS#', newest_first=True, limit=limit)

    return [
        WellnessEntry(
            entry_date=item.get('entryDate') or item['SK'].split('#', 1)[1],
            metrics=item.get('metrics', {}),
        )
        for item in items
    ]


def list_evaluable_athletes(db: DynamoDBClient) -> List[Dict[str, Any]]:
    """
    Scan every athlete profile, flagging whether a skill snapshot exists.

    Returns:
        [{'athlete_id': str, 'name': Optional[str], 'has_skills': bool}, ...]
    """
    profiles: Dict[str, Dict[str, Any]] = {}
    with_skills = set()

    kwargs: Dict[str, Any] = {
        'FilterExpression': Attr('PK').begins_with('ATHLETE#') & Attr('SK').is_in(['PROFILE', 'SKILLS'])
    }
    while True:
        response = db.athlete_table.scan(**kwargs)
        for item in response.get('Items', []):
            athlete_id = item['PK'].split('#', 1)[1]
            if item['SK'] == 'PROFILE':
                profiles[athlete_id] = {'athlete_id': athlete_id, 'name': item.get('name')}
            else:
                with_skills.add(athlete_id)

        if 'LastEvaluatedKey' not in response:
            break
        kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']

    athletes = [
        {**profile, 'has_skills': athlete_id in with_skills}
        for athlete_id, profile in sorted(profiles.items())
    ]
    logger.info(f"Found {len(athletes)} athletes ({len(with_skills)} with skill data)")
    return athletes


# ============= ATHLETE WRITE OPERATIONS =============

def put_athlete_profile(db: DynamoDBClient, profile: AthleteProfile) -> None:
    item = {
        'PK': athlete_pk(profile.athlete_id),
        'SK': 'PROFILE',
        'athleteId': profile.athlete_id,
        'sport': profile.sport,
    }
    if profile.name:
        item['name'] = profile.name
    if profile.coach_id:
        item['coachId'] = profile.coach_id
    db.athlete_table.put_item(Item=item)


def put_skill_snapshot(db: DynamoDBClient, athlete_id: str, skills: Dict[str, Any]) -> None:
    db.athlete_table.put_item(Item={
        'PK': athlete_pk(athlete_id),
        'SK': 'SKILLS',
        'skills': dynamodb_value({k: v for k, v in skills.items() if v is not None}),
        'updatedAt': datetime.utcnow().isoformat(),
    })


def put_match_performance(db: DynamoDBClient, athlete_id: str, match: MatchPerformance) -> None:
    item = {
        'PK': athlete_pk(athlete_id),
        'SK': match_sk(match.played_at, match.match_id),
        'matchId': match.match_id,
        'playedAt': match.played_at.isoformat(),
        'played': match.played,
    }
    if match.result:
        item['result'] = match.result
    if match.rating is not None:
        item['rating'] = dynamodb_value(float(match.rating))
    if match.stats is not None:
        item['stats'] = match.stats
    db.athlete_table.put_item(Item=item)


def put_wellness_entry(db: DynamoDBClient, athlete_id: str, entry: WellnessEntry) -> None:
    db.athlete_table.put_item(Item={
        'PK': athlete_pk(athlete_id),
        'SK': wellness_sk(entry.entry_date),
        'entryDate': entry.entry_date.isoformat(),
        'metrics': dynamodb_value({k: v for k, v in entry.metrics.items() if v is not None}),
    })
