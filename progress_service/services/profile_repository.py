"""
Profile Repository - XP and streak fields of the Users table

The profile itself belongs to the identity subsystem; this repository only
issues increments and streak mirrors against it and reads it back for
leaderboards.

The orchestrator writes through the transact_* builders so profile changes
commit with their outbox marks. increment_stats and update_streak are the
standalone versions of the same updates, built from the same parameters.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
import logging

from progress_service.dynamo import DynamoDBClient, STORAGE_ERRORS, python_dict, storage_error
from progress_service.logic.gamification import level_for_xp
from progress_service.schemas import UserProfile

logger = logging.getLogger(__name__)


def to_profile(item: Dict[str, Any]) -> UserProfile:
    """Build a UserProfile from a Users item, deriving the level label"""
    data = python_dict(item)
    data['level'] = level_for_xp(data.get('xp', 0))
    return UserProfile(**data)


class ProfileRepository:
    """Write/read side of the externally owned user profile."""

    def __init__(self, db: DynamoDBClient):
        self.db = db

    @property
    def table(self):
        return self.db.users_table

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            response = self.table.get_item(Key={'userId': user_id})
        except STORAGE_ERRORS as e:
            raise storage_error(f"getting user {user_id}", e)

        item = response.get('Item')
        return to_profile(item) if item else None

    def increment_stats(self, user_id: str, xp: int) -> UserProfile:
        """Add XP and one solved problem to the profile"""
        params = self._increment_params(user_id, xp)
        params['ReturnValues'] = 'ALL_NEW'
        try:
            response = self.table.update_item(**params)
        except STORAGE_ERRORS as e:
            raise storage_error(f"incrementing stats for user {user_id}", e)

        profile = to_profile(response['Attributes'])
        logger.info(f"Added {xp} XP to user {user_id}. New XP: {profile.xp}, Level: {profile.level}")
        return profile

    def transact_increment(self, user_id: str, xp: int) -> Dict[str, Any]:
        params = self._increment_params(user_id, xp)
        params['TableName'] = self.table.name
        return {'Update': params}

    def _increment_params(self, user_id: str, xp: int) -> Dict[str, Any]:
        # ADD treats missing attributes as 0, so older profiles without
        # counters are initialized on their first solve.
        return {
            'Key': {'userId': user_id},
            'UpdateExpression': 'ADD xp :xp, totalProblemsSolved :one SET updatedAt = :now',
            'ExpressionAttributeValues': {
                ':xp': xp,
                ':one': 1,
                ':now': datetime.now(timezone.utc).isoformat(),
            },
        }

    def update_streak(self, user_id: str, current_streak: int, best_streak: int) -> UserProfile:
        """Mirror streak values onto the profile"""
        params = self._streak_params(user_id, current_streak, best_streak)
        params['ReturnValues'] = 'ALL_NEW'
        try:
            response = self.table.update_item(**params)
        except STORAGE_ERRORS as e:
            raise storage_error(f"updating streak for user {user_id}", e)
        return to_profile(response['Attributes'])

    def transact_update_streak(self, user_id: str, current_streak: int, best_streak: int) -> Dict[str, Any]:
        params = self._streak_params(user_id, current_streak, best_streak)
        params['TableName'] = self.table.name
        return {'Update': params}

    def _streak_params(self, user_id: str, current_streak: int, best_streak: int) -> Dict[str, Any]:
        return {
            'Key': {'userId': user_id},
            'UpdateExpression': 'SET currentStreak = :current, bestStreak = :best, updatedAt = :now',
            'ExpressionAttributeValues': {
                ':current': current_streak,
                ':best': best_streak,
                ':now': datetime.now(timezone.utc).isoformat(),
            },
        }

    def leaderboard(self, limit: int = 100) -> List[UserProfile]:
        """Profiles ordered by XP, highest first"""
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
            raise storage_error("scanning users", e)

        profiles = [to_profile(item) for item in items]
        profiles.sort(key=lambda p: p.xp, reverse=True)
        logger.info(f"Leaderboard built from {len(profiles)} users")
        return profiles[:limit]
