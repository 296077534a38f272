"""Daily Aggregator - per user per day rollup of solved problems"""
from typing import Optional, Dict, Any, List
import logging

from boto3.dynamodb.conditions import Key

from progress_service.dynamo import (
    DynamoDBClient,
    STORAGE_ERRORS,
    is_condition_failure,
    python_dict,
    storage_error,
)
from progress_service.exceptions import SolveValidationError
from progress_service.logic.gamification import Difficulty, normalize_difficulty, xp_for_counts
from progress_service.logic.streak_service import parse_day
from progress_service.schemas import DailyAggregate, DifficultyProgressEntry, StreakHistoryEntry

logger = logging.getLogger(__name__)

# Condition keeping each problem counted once per day
NOT_YET_COUNTED = "attribute_not_exists(solvedProblemIds) OR NOT contains(solvedProblemIds, :pid)"


def count_attribute(difficulty: Difficulty) -> str:
    """easy -> easyCount"""
    return f"{difficulty.value}Count"


class DailyAggregator:
    """Owns DailyAggregate items in the DailySolved table."""

    def __init__(self, db: DynamoDBClient):
        self.db = db

    @property
    def table(self):
        return self.db.daily_solved_table

    def get_aggregate(self, user_id: str, date: str) -> Optional[DailyAggregate]:
        try:
            response = self.table.get_item(Key={'userId': user_id, 'date': date}, ConsistentRead=True)
        except STORAGE_ERRORS as e:
            raise storage_error(f"reading daily solved for user {user_id} on {date}", e)

        item = response.get('Item')
        return DailyAggregate(**python_dict(item)) if item else None

    def record_daily_solve(
        self,
        user_id: str,
        date: str,
        problem_id: str,
        difficulty: Any
    ) -> DailyAggregate:
        """
        Count a solved problem towards the user's day (idempotent per problemId)

        Creates the day's aggregate on the first solve. If problem_id is
        already in the day's aggregate, nothing is written and the stored
        aggregate is returned unchanged.

        Raises:
            SolveValidationError: Missing problem_id, bad date or difficulty
            StorageUnavailableError: DynamoDB failure
        """
        params = self._update_params(user_id, date, problem_id, difficulty)
        params['ReturnValues'] = 'ALL_NEW'

        try:
            response = self.table.update_item(**params)
        except STORAGE_ERRORS as e:
            if is_condition_failure(e):
                logger.info(f"Problem {problem_id} already counted for user {user_id} on {date}")
                return self.get_aggregate(user_id, date)
            raise storage_error(f"updating daily solved for user {user_id} on {date}", e)

        logger.info(f"Daily solved updated: {user_id} {date} +{problem_id}")
        return DailyAggregate(**python_dict(response['Attributes']))

    def transact_update(
        self,
        user_id: str,
        date: str,
        problem_id: str,
        difficulty: Any
    ) -> Dict[str, Any]:
        """TransactWriteItems entry for record_daily_solve"""
        params = self._update_params(user_id, date, problem_id, difficulty)
        params['TableName'] = self.table.name
        return {'Update': params}

    def _update_params(
        self,
        user_id: str,
        date: str,
        problem_id: str,
        difficulty: Any
    ) -> Dict[str, Any]:
        if not problem_id:
            raise SolveValidationError("problemId is required")
        parse_day(date)
        difficulty = normalize_difficulty(difficulty)

        # The matching counter is incremented with ADD; the others only get
        # initialized so every aggregate has all four counters.
        set_parts = [
            "solvedProblemIds = list_append(if_not_exists(solvedProblemIds, :empty), :pid_list)"
        ]
        for other in Difficulty:
            if other != difficulty:
                attr = count_attribute(other)
                set_parts.append(f"{attr} = if_not_exists({attr}, :zero)")

        update_expression = (
            "SET " + ", ".join(set_parts)
            + f" ADD totalCount :one, {count_attribute(difficulty)} :one"
        )

        return {
            'Key': {'userId': user_id, 'date': date},
            'UpdateExpression': update_expression,
            'ConditionExpression': NOT_YET_COUNTED,
            'ExpressionAttributeValues': {
                ':empty': [],
                ':pid_list': [problem_id],
                ':pid': problem_id,
                ':zero': 0,
                ':one': 1,
            },
        }

    def recent_activity(self, user_id: str, max_days: int = 30) -> List[DailyAggregate]:
        """
        Most recent daily aggregates, newest first

        Capped by number of rows, not by calendar range: days without solves
        have no row, so the result can reach further back than max_days.
        """
        if max_days <= 0:
            return []

        try:
            response = self.table.query(
                KeyConditionExpression=Key('userId').eq(user_id),
                ScanIndexForward=False,
                Limit=max_days
            )
        except STORAGE_ERRORS as e:
            raise storage_error(f"fetching recent activity for user {user_id}", e)

        items = response.get('Items', [])
        logger.info(f"Retrieved {len(items)} days of activity for user {user_id}")
        return [DailyAggregate(**python_dict(item)) for item in items]

    def history(self, user_id: str, max_days: int = 30) -> List[StreakHistoryEntry]:
        """Recent activity as problems completed and XP earned per day"""
        return [
            StreakHistoryEntry(
                date=day.date,
                problemsCompleted=day.totalCount,
                xpEarned=xp_for_counts(day.counts_by_difficulty()),
            )
            for day in self.recent_activity(user_id, max_days)
        ]

    def difficulty_progress(self, user_id: str, max_days: int = 30) -> List[DifficultyProgressEntry]:
        return [
            DifficultyProgressEntry(
                date=day.date,
                easy=day.easyCount,
                moderate=day.moderateCount,
                hard=day.hardCount,
                difficult=day.difficultCount,
            )
            for day in self.recent_activity(user_id, max_days)
        ]
