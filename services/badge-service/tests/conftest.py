"""
Shared fixtures: moto-backed DynamoDB table and athlete bundle builders
"""
from datetime import date, timedelta

import boto3
import pytest
from moto import mock_aws

from badge_engine.config import Settings
from badge_engine.dynamo import DynamoDBClient
from badge_engine.schemas import (
    AthleteDataBundle,
    AthleteProfile,
    MatchPerformance,
    WellnessEntry,
)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def settings():
    return Settings(
        AWS_REGION="us-east-1",
        DYNAMODB_ENDPOINT=None,
        DYNAMODB_ATHLETE_TABLE="test-athlete-data",
    )


@pytest.fixture
def db(aws_credentials, settings):
    """DynamoDBClient bound to a mock single table"""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        dynamodb.create_table(
            TableName=settings.DYNAMODB_ATHLETE_TABLE,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"}
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"}
            ],
            BillingMode="PAY_PER_REQUEST"
        )
        yield DynamoDBClient(settings)


@pytest.fixture
def make_bundle():
    """
    Build an AthleteDataBundle.

    `matches` / `wellness` are given newest first; dates are assigned
    backwards from today.
    """
    def _make(skills=None, matches=None, wellness=None, sport="CRICKET", coach_id=None):
        today = date.today()
        return AthleteDataBundle(
            profile=AthleteProfile(athlete_id="athlete-1", name="Test Athlete", sport=sport, coach_id=coach_id),
            skills=skills or {},
            matches=[
                MatchPerformance(match_id=f"m{i}", played_at=today - timedelta(days=i), **match)
                for i, match in enumerate(matches or [])
            ],
            wellness=[
                WellnessEntry(entry_date=today - timedelta(days=i), metrics=metrics)
                for i, metrics in enumerate(wellness or [])
            ],
        )
    return _make
