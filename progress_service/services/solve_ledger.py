"""
Solve Ledger - append-only record of solved problems

The SolvedProblems table is keyed on (userId, problemId), so a conditional
put is enough to record each pair at most once, even under concurrent
submissions. Listing goes through the SolvedAtIndex LSI to return the newest
solves first.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
import logging

from boto3.dynamodb.conditions import Attr, Key
from pydantic import ValidationError

from progress_service.dynamo import (
    DynamoDBClient,
    STORAGE_ERRORS,
    is_condition_failure,
    python_dict,
    storage_error,
)
from progress_service.exceptions import DuplicateSolveError, SolveValidationError
from progress_service.logic.gamification import Difficulty, normalize_difficulty
from progress_service.schemas import SolveEvent, SolveStats

logger = logging.getLogger(__name__)

SOLVED_AT_INDEX = "SolvedAtIndex"
DEFAULT_PLATFORM = "CodeBattle"


def make_solve_event(
    user_id: str,
    problem_id: str,
    problem_title: str,
    difficulty: Any,
    xp_earned: int,
    platform: Optional[str] = None,
    submission_url: Optional[str] = None,
    solved_at: Optional[int] = None
) -> SolveEvent:
    """
    Build a validated SolveEvent

    Raises:
        SolveValidationError: If identifiers, difficulty or XP are missing/invalid
    """
    if not user_id:
        raise SolveValidationError("userId is required")
    if not problem_id:
        raise SolveValidationError("problemId is required")
    if xp_earned is None:
        raise SolveValidationError("xpEarned is required")

    try:
        return SolveEvent(
            userId=user_id,
            problemId=problem_id,
            problemTitle=problem_title or "",
            difficulty=normalize_difficulty(difficulty),
            solvedAt=solved_at if solved_at is not None else int(datetime.now(timezone.utc).timestamp() * 1000),
            xpEarned=xp_earned,
            platform=platform or DEFAULT_PLATFORM,
            submissionUrl=submission_url,
        )
    except ValidationError as e:
        raise SolveValidationError(f"Invalid solve event: {e.errors()[0]['msg']}")


class SolveLedger:
    """Owns SolveEvent records in the SolvedProblems table."""

    def __init__(self, db: DynamoDBClient):
        self.db = db

    @property
    def table(self):
        return self.db.solved_problems_table

    def record_solve(self, event: SolveEvent) -> SolveEvent:
        """
        Persist a solve event if the pair was never recorded

        Raises:
            DuplicateSolveError: The (userId, problemId) pair already exists
            StorageUnavailableError: Any other DynamoDB failure
        """
        try:
            self.table.put_item(**self._put_params(event))
        except STORAGE_ERRORS as e:
            if is_condition_failure(e):
                logger.warning(f"Problem {event.problemId} already solved by user {event.userId}")
                raise DuplicateSolveError(event.userId, event.problemId)
            raise storage_error(f"saving solved problem {event.problemId}", e)

        logger.info(f"Solved problem saved: {event.problemId} for user {event.userId}")
        return event

    def record_solve_with_outbox(self, event: SolveEvent, outbox_entry: Dict[str, Any]) -> SolveEvent:
        """
        Persist the event and an outbox entry in one transaction

        Args:
            event: Solve to record
            outbox_entry: TransactWriteItems entry written alongside the event

        Raises:
            DuplicateSolveError: The pair already exists, nothing written
            StorageUnavailableError: Any other failure, nothing written
        """
        try:
            self.db.transact_write([self.transact_put(event), outbox_entry])
        except STORAGE_ERRORS as e:
            if is_condition_failure(e) and self.has_solved(event.userId, event.problemId):
                logger.warning(f"Problem {event.problemId} already solved by user {event.userId}")
                raise DuplicateSolveError(event.userId, event.problemId)
            raise storage_error(f"saving solved problem {event.problemId}", e)

        logger.info(f"Solved problem saved with outbox: {event.problemId} for user {event.userId}")
        return event

    def transact_put(self, event: SolveEvent) -> Dict[str, Any]:
        """TransactWriteItems entry inserting the event only if absent"""
        params = self._put_params(event)
        params['TableName'] = self.table.name
        return {'Put': params}

    def _put_params(self, event: SolveEvent) -> Dict[str, Any]:
        return {
            'Item': event.model_dump(mode='json'),
            'ConditionExpression': 'attribute_not_exists(problemId)',
        }

    def get_solve(self, user_id: str, problem_id: str) -> Optional[SolveEvent]:
        try:
            response = self.table.get_item(
                Key={'userId': user_id, 'problemId': problem_id},
                ConsistentRead=True
            )
        except STORAGE_ERRORS as e:
            raise storage_error(f"reading solved problem {problem_id}", e)

        item = response.get('Item')
        return SolveEvent(**python_dict(item)) if item else None

    def has_solved(self, user_id: str, problem_id: str) -> bool:
        return self.get_solve(user_id, problem_id) is not None

    def list_solves(self, user_id: str, difficulty: Optional[Any] = None) -> List[SolveEvent]:
        """
        All solve events for a user, most recent first

        Args:
            user_id: User identifier
            difficulty: Optional filter, either vocabulary

        Returns:
            List of SolveEvent sorted by solvedAt descending
        """
        query_kwargs: Dict[str, Any] = {
            'IndexName': SOLVED_AT_INDEX,
            'KeyConditionExpression': Key('userId').eq(user_id),
            'ScanIndexForward': False,
        }
        if difficulty is not None:
            query_kwargs['FilterExpression'] = Attr('difficulty').eq(normalize_difficulty(difficulty).value)

        items = []
        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except STORAGE_ERRORS as e:
            raise storage_error(f"listing solved problems for user {user_id}", e)

        logger.info(f"Retrieved {len(items)} solved problems for user {user_id}")
        return [SolveEvent(**python_dict(item)) for item in items]

    def solve_stats(self, user_id: str) -> SolveStats:
        """Solved count per difficulty plus total XP earned"""
        solves = self.list_solves(user_id)
        counts = {d: 0 for d in Difficulty}
        for solve in solves:
            counts[solve.difficulty] += 1

        return SolveStats(
            total=len(solves),
            easy=counts[Difficulty.EASY],
            moderate=counts[Difficulty.MODERATE],
            hard=counts[Difficulty.HARD],
            difficult=counts[Difficulty.DIFFICULT],
            totalXp=sum(solve.xpEarned for solve in solves),
        )
