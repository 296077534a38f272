"""
Shared fixtures: moto-backed DynamoDB tables and a controllable clock
"""
from datetime import datetime, timedelta, timezone

import boto3
import pytest
from moto import mock_aws

from progress_service.config import Settings
from progress_service.dynamo import DynamoDBClient, table_definitions


class FakeClock:
    """Callable returning a fixed UTC time that tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0):
        self.now = self.now + timedelta(days=days, hours=hours)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def settings():
    return Settings(AWS_REGION="us-east-1", DYNAMODB_ENDPOINT=None)


@pytest.fixture
def dynamodb_tables(aws_credentials, settings):
    """Create every progress-service table in moto"""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="us-east-1")
        for definition in table_definitions(settings):
            client.create_table(**definition)
        yield client


@pytest.fixture
def db(dynamodb_tables, settings):
    return DynamoDBClient(settings)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 11, 18, 12, 0, tzinfo=timezone.utc))
