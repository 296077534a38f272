"""Streak Tracker - persistence of StreakState in the UserStreaks table"""
from typing import Optional, Dict, Any, List, Callable
import logging

from progress_service.dynamo import (
    DynamoDBClient,
    STORAGE_ERRORS,
    is_condition_failure,
    python_dict,
    storage_error,
)
from progress_service.exceptions import OutOfOrderActivityError, StorageUnavailableError
from progress_service.logic.streak_service import advance_streak
from progress_service.schemas import StreakState

logger = logging.getLogger(__name__)


class StreakTracker:
    """Owns StreakState; one item per user, guarded by an optimistic version."""

    def __init__(self, db: DynamoDBClient, max_retries: int = 3):
        self.db = db
        self.max_retries = max_retries

    @property
    def table(self):
        return self.db.streaks_table

    def get_streak(self, user_id: str) -> StreakState:
        """
        Current streak, or a zero state if the user never solved anything.

        The zero state is not persisted until the first touch.
        """
        try:
            response = self.table.get_item(Key={'userId': user_id}, ConsistentRead=True)
        except STORAGE_ERRORS as e:
            raise storage_error(f"reading streak for user {user_id}", e)

        item = response.get('Item')
        if not item:
            return StreakState(userId=user_id)
        return StreakState(**python_dict(item))

    def touch(
        self,
        user_id: str,
        activity_day: str,
        extra_items: Optional[Callable[[StreakState], List[Dict[str, Any]]]] = None,
        already_applied: Optional[Callable[[], bool]] = None,
        keep_out_of_order: bool = False,
        now: Optional[str] = None
    ) -> StreakState:
        """
        Record a day of activity for the user.

        Same-day calls are no-ops. A concurrent writer makes the conditional
        write fail; the state is then re-read and the transition recomputed.

        Args:
            user_id: Streak owner
            activity_day: Day of the activity (YYYY-MM-DD)
            extra_items: Builds further TransactWriteItems entries from the
                resulting state; they are written in one transaction with it
            already_applied: Consulted after a rejected write; when it returns
                True the stored state is returned without retrying
            keep_out_of_order: Leave the streak unchanged instead of raising
                when activity_day is before the last activity
            now: Timestamp stored as updatedAt

        Raises:
            OutOfOrderActivityError: activity_day is before the last activity
            StorageUnavailableError: DynamoDB failure or retries exhausted
        """
        for attempt in range(1, self.max_retries + 1):
            state = self.get_streak(user_id)
            try:
                new_state, changed = advance_streak(state, activity_day, now=now)
            except OutOfOrderActivityError:
                if not keep_out_of_order:
                    raise
                logger.warning(
                    f"Activity on {activity_day} for user {user_id} is older than "
                    f"last activity {state.lastActivityDate}; streak left unchanged"
                )
                new_state, changed = state, False

            items = extra_items(new_state) if extra_items else []
            if not changed and not items:
                return state

            try:
                self._write(new_state, state.version, changed, items)
            except STORAGE_ERRORS as e:
                if not is_condition_failure(e):
                    raise storage_error(f"writing streak for user {user_id}", e)
                if already_applied is not None and already_applied():
                    return self.get_streak(user_id)
                logger.warning(
                    f"Streak for user {user_id} modified concurrently "
                    f"(attempt {attempt}/{self.max_retries}), retrying"
                )
                continue

            if changed:
                logger.info(
                    f"Streak updated for user {user_id}: current={new_state.currentStreak}, "
                    f"best={new_state.bestStreak}"
                )
            return new_state

        raise StorageUnavailableError(
            f"Concurrent modification of streak for user {user_id}. Please retry."
        )

    def _write(
        self,
        new_state: StreakState,
        expected_version: int,
        changed: bool,
        extra_items: List[Dict[str, Any]]
    ) -> None:
        if not extra_items:
            self.table.put_item(**self._put_params(new_state, expected_version))
            return

        items = [self.transact_put(new_state, expected_version)] if changed else []
        self.db.transact_write(items + extra_items)

    def transact_put(self, new_state: StreakState, expected_version: int) -> Dict[str, Any]:
        """TransactWriteItems entry writing new_state if nobody else did first"""
        params = self._put_params(new_state, expected_version)
        params['TableName'] = self.table.name
        return {'Put': params}

    def _put_params(self, new_state: StreakState, expected_version: int) -> Dict[str, Any]:
        params = {'Item': new_state.model_dump()}
        if expected_version == 0:
            params['ConditionExpression'] = 'attribute_not_exists(userId)'
        else:
            params['ConditionExpression'] = 'version = :expected_version'
            params['ExpressionAttributeValues'] = {':expected_version': expected_version}
        return params

    def streak_leaderboard(self, limit: int = 10) -> List[StreakState]:
        """Users ordered by current streak, longest first"""
        items = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                scan_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except STORAGE_ERRORS as e:
            raise storage_error("scanning streaks", e)

        streaks = [StreakState(**python_dict(item)) for item in items]
        streaks.sort(key=lambda s: (s.currentStreak, s.bestStreak), reverse=True)
        return streaks[:limit]
