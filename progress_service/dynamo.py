"""
DynamoDB access for progress-service

Lazy boto3 resource plus one Table handle per store:
- Users (profile, owned by the identity subsystem)
- SolvedProblems (solve ledger)
- SolveOutbox (pending effects of a solve)
- UserStreaks (streak state)
- DailySolved (per-day aggregates)
"""
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional, Dict, Any, List
from decimal import Decimal
import logging

from progress_service.config import Settings, get_settings
from progress_service.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

# Error codes meaning "a condition on the write did not hold"
CONDITION_FAILURE_CODES = (
    "ConditionalCheckFailedException",
    "TransactionCanceledException",
)


class DynamoDBClient:
    """DynamoDB client with lazy initialization"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._dynamodb = None
        self._users_table = None
        self._solved_problems_table = None
        self._solve_outbox_table = None
        self._streaks_table = None
        self._daily_solved_table = None

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource"""
        if self._dynamodb is None:
            kwargs = {
                'region_name': self.settings.AWS_REGION,
            }

            # Only use endpoint_url for LocalStack
            if self.settings.DYNAMODB_ENDPOINT:
                kwargs['endpoint_url'] = self.settings.DYNAMODB_ENDPOINT

            # Only pass explicit credentials if we're in LocalStack mode (endpoint set)
            # In ECS, boto3 automatically uses the IAM role
            if self.settings.DYNAMODB_ENDPOINT and self.settings.AWS_ACCESS_KEY_ID:
                kwargs['aws_access_key_id'] = self.settings.AWS_ACCESS_KEY_ID
                kwargs['aws_secret_access_key'] = self.settings.AWS_SECRET_ACCESS_KEY
                logger.info("Using explicit AWS credentials (LocalStack mode)")
            else:
                logger.info("Using IAM role credentials (AWS/ECS mode)")

            self._dynamodb = boto3.resource('dynamodb', **kwargs)
        return self._dynamodb

    @property
    def client(self):
        """Low-level client sharing the resource's type serializer (used for transactions)"""
        return self.dynamodb.meta.client

    @property
    def users_table(self):
        if self._users_table is None:
            self._users_table = self.dynamodb.Table(self.settings.DYNAMODB_USERS_TABLE)
        return self._users_table

    @property
    def solved_problems_table(self):
        if self._solved_problems_table is None:
            self._solved_problems_table = self.dynamodb.Table(self.settings.DYNAMODB_SOLVED_PROBLEMS_TABLE)
        return self._solved_problems_table

    @property
    def solve_outbox_table(self):
        if self._solve_outbox_table is None:
            self._solve_outbox_table = self.dynamodb.Table(self.settings.DYNAMODB_SOLVE_OUTBOX_TABLE)
        return self._solve_outbox_table

    @property
    def streaks_table(self):
        if self._streaks_table is None:
            self._streaks_table = self.dynamodb.Table(self.settings.DYNAMODB_USER_STREAKS_TABLE)
        return self._streaks_table

    @property
    def daily_solved_table(self):
        if self._daily_solved_table is None:
            self._daily_solved_table = self.dynamodb.Table(self.settings.DYNAMODB_DAILY_SOLVED_TABLE)
        return self._daily_solved_table

    def transact_write(self, items: List[Dict[str, Any]]) -> None:
        """Run TransactWriteItems; items use plain Python values"""
        self.client.transact_write_items(TransactItems=items)


# ============= TABLE DEFINITIONS =============

def table_definitions(settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
    """CreateTable parameters for every table the service reads or writes"""
    settings = settings or get_settings()
    return [
        # Users: profile owned by the identity subsystem
        {
            'TableName': settings.DYNAMODB_USERS_TABLE,
            'KeySchema': [
                {'AttributeName': 'userId', 'KeyType': 'HASH'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'userId', 'AttributeType': 'S'}
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        },
        # SolvedProblems: key on the pair, LSI for newest-first listing
        {
            'TableName': settings.DYNAMODB_SOLVED_PROBLEMS_TABLE,
            'KeySchema': [
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'problemId', 'KeyType': 'RANGE'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'problemId', 'AttributeType': 'S'},
                {'AttributeName': 'solvedAt', 'AttributeType': 'N'}
            ],
            'LocalSecondaryIndexes': [
                {
                    'IndexName': 'SolvedAtIndex',
                    'KeySchema': [
                        {'AttributeName': 'userId', 'KeyType': 'HASH'},
                        {'AttributeName': 'solvedAt', 'KeyType': 'RANGE'}
                    ],
                    'Projection': {'ProjectionType': 'ALL'}
                }
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        },
        # SolveOutbox: pending effects, same key as the solve
        {
            'TableName': settings.DYNAMODB_SOLVE_OUTBOX_TABLE,
            'KeySchema': [
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'problemId', 'KeyType': 'RANGE'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'problemId', 'AttributeType': 'S'}
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        },
        # UserStreaks: one item per user
        {
            'TableName': settings.DYNAMODB_USER_STREAKS_TABLE,
            'KeySchema': [
                {'AttributeName': 'userId', 'KeyType': 'HASH'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'userId', 'AttributeType': 'S'}
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        },
        # DailySolved: one item per user per day, date sorts chronologically
        {
            'TableName': settings.DYNAMODB_DAILY_SOLVED_TABLE,
            'KeySchema': [
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'date', 'KeyType': 'RANGE'}
            ],
            'AttributeDefinitions': [
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'date', 'AttributeType': 'S'}
            ],
            'BillingMode': 'PAY_PER_REQUEST'
        },
    ]


# ============= HELPER FUNCTIONS =============

def python_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert DynamoDB dict to Python dict (handles Decimal)"""
    return {k: python_value(v) for k, v in data.items()}


def python_value(value: Any) -> Any:
    """Convert DynamoDB value to Python value"""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    elif isinstance(value, dict):
        return {k: python_value(v) for k, v in value.items()}
    elif isinstance(value, (list, set)):
        return [python_value(item) for item in value]
    return value


def error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def is_condition_failure(error: Exception) -> bool:
    """True when a conditional write or transaction was rejected"""
    return isinstance(error, ClientError) and error_code(error) in CONDITION_FAILURE_CODES


def storage_error(action: str, error: Exception) -> StorageUnavailableError:
    """Wrap a boto error so callers only see StorageUnavailableError"""
    if isinstance(error, ClientError):
        detail = f"{error_code(error)}: {error.response.get('Error', {}).get('Message', '')}"
    else:
        detail = str(error)
    logger.error(f"DynamoDB failure while {action}: {detail}")
    return StorageUnavailableError(f"Storage unavailable while {action}")


STORAGE_ERRORS = (ClientError, BotoCoreError)
