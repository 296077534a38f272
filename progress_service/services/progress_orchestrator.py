"""
Progress Orchestrator - applies one "user solved problem X" event

The solve event and an outbox record listing its pending effects are written
in a single DynamoDB transaction. Each effect (profile XP, streak, daily
aggregate) is then applied in its own transaction together with flipping
its outbox entry from PENDING to APPLIED, conditioned on it still being
PENDING. A crash or storage error between effects leaves the outbox PENDING;
the next completion request for the same problem, or resume_pending(), picks
up where it stopped without applying anything twice.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Callable
import logging

from boto3.dynamodb.conditions import Attr, Key

from progress_service.dynamo import (
    DynamoDBClient,
    STORAGE_ERRORS,
    is_condition_failure,
    python_dict,
    storage_error,
)
from progress_service.exceptions import DuplicateSolveError, OutOfOrderActivityError
from progress_service.logic.gamification import normalize_difficulty, xp_for, level_for_xp, xp_progress
from progress_service.logic.streak_service import get_user_day
from progress_service.schemas import CompletionResult, ProgressStats, StreakState
from progress_service.services.daily_aggregator import DailyAggregator
from progress_service.services.profile_repository import ProfileRepository
from progress_service.services.solve_ledger import SolveLedger, make_solve_event
from progress_service.services.streak_tracker import StreakTracker

logger = logging.getLogger(__name__)

EFFECT_PROFILE = "profile"
EFFECT_STREAK = "streak"
EFFECT_DAILY = "daily"
EFFECT_ORDER = (EFFECT_PROFILE, EFFECT_STREAK, EFFECT_DAILY)

PENDING = "PENDING"
APPLIED = "APPLIED"
COMPLETE = "COMPLETE"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressOrchestrator:
    """Sequences ledger write -> profile XP -> streak -> daily aggregate."""

    def __init__(
        self,
        db: DynamoDBClient,
        ledger: Optional[SolveLedger] = None,
        aggregator: Optional[DailyAggregator] = None,
        streaks: Optional[StreakTracker] = None,
        profiles: Optional[ProfileRepository] = None,
        clock: Callable[[], datetime] = utc_now,
        streak_timezone: str = "UTC",
        max_retries: int = 3
    ):
        self.db = db
        self.ledger = ledger or SolveLedger(db)
        self.aggregator = aggregator or DailyAggregator(db)
        self.streaks = streaks or StreakTracker(db, max_retries=max_retries)
        self.profiles = profiles or ProfileRepository(db)
        self.clock = clock
        self.streak_timezone = streak_timezone

    @property
    def outbox_table(self):
        return self.db.solve_outbox_table

    def today(self) -> str:
        return get_user_day(self.streak_timezone, self.clock())

    # ============= ENTRY POINTS =============

    def complete_solve(
        self,
        user_id: str,
        problem_id: str,
        problem_title: str,
        difficulty: Any,
        submission_url: Optional[str] = None,
        platform: Optional[str] = None
    ) -> CompletionResult:
        """
        Record a verified solve and apply its rewards (MAIN ENTRY POINT)

        Returns:
            CompletionResult with XP earned and the resulting streak. For a
            problem the user already solved, alreadyCompleted is True and
            xpEarned is 0 unless this call finished a previously interrupted
            XP award.

        Raises:
            SolveValidationError: Bad identifiers or difficulty, nothing written
            OutOfOrderActivityError: Today is earlier than the user's last
                activity day (clock skew or a timezone change), nothing written
            StorageUnavailableError: Ledger write failed (nothing written) or an
                effect failed (solve recorded, remaining effects pending)
        """
        difficulty = normalize_difficulty(difficulty)
        xp = xp_for(difficulty)
        event = make_solve_event(
            user_id=user_id,
            problem_id=problem_id,
            problem_title=problem_title,
            difficulty=difficulty,
            xp_earned=xp,
            platform=platform,
            submission_url=submission_url,
            solved_at=int(self.clock().timestamp() * 1000),
        )
        outbox = self._new_outbox(event.userId, event.problemId, event.problemTitle, difficulty.value, xp)
        self._check_activity_order(user_id, problem_id, outbox['activityDate'])

        outbox_put = {
            'Put': {
                'TableName': self.outbox_table.name,
                'Item': outbox,
                'ConditionExpression': 'attribute_not_exists(problemId)',
            }
        }
        try:
            self.ledger.record_solve_with_outbox(event, outbox_put)
        except DuplicateSolveError:
            return self._resume_existing(user_id, problem_id)

        logger.info(f"Solve recorded: user {user_id}, problem {problem_id}, {xp} XP pending")
        return self._apply_effects(outbox, already_completed=False)

    def resume_pending(self, user_id: str) -> List[CompletionResult]:
        """Finish every solve of the user whose effects were interrupted"""
        results = []
        for outbox in self.pending_outbox(user_id):
            logger.info(f"Resuming pending effects for user {user_id}, problem {outbox['problemId']}")
            results.append(self._apply_effects(outbox, already_completed=True))
        return results

    def progress_stats(self, user_id: str) -> ProgressStats:
        """Dashboard view: profile XP, solved counts and streak"""
        profile = self.profiles.get_profile(user_id)
        streak = self.streaks.get_streak(user_id)
        xp = profile.xp if profile else 0

        return ProgressStats(
            userId=user_id,
            xp=xp,
            level=level_for_xp(xp),
            xpProgress=xp_progress(xp),
            totalProblemsSolved=profile.totalProblemsSolved if profile else 0,
            currentStreak=streak.currentStreak,
            bestStreak=streak.bestStreak,
            solved=self.ledger.solve_stats(user_id),
        )

    def _check_activity_order(self, user_id: str, problem_id: str, activity_day: str) -> None:
        last_day = self.streaks.get_streak(user_id).lastActivityDate
        if not last_day or activity_day >= last_day:
            return
        # Repeats of an already recorded solve still resolve as duplicates
        if self.ledger.has_solved(user_id, problem_id):
            return
        logger.warning(
            f"Rejecting solve of {problem_id} by user {user_id}: day {activity_day} "
            f"is before last activity {last_day}"
        )
        raise OutOfOrderActivityError(user_id, activity_day, last_day)

    # ============= OUTBOX =============

    def _new_outbox(
        self,
        user_id: str,
        problem_id: str,
        problem_title: str,
        difficulty: str,
        xp: int
    ) -> Dict[str, Any]:
        now = self.clock().isoformat()
        return {
            'userId': user_id,
            'problemId': problem_id,
            'problemTitle': problem_title,
            'difficulty': difficulty,
            'xp': xp,
            'activityDate': self.today(),
            'status': PENDING,
            'effects': {effect: PENDING for effect in EFFECT_ORDER},
            'createdAt': now,
            'updatedAt': now,
        }

    def get_outbox(self, user_id: str, problem_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.outbox_table.get_item(
                Key={'userId': user_id, 'problemId': problem_id},
                ConsistentRead=True
            )
        except STORAGE_ERRORS as e:
            raise storage_error(f"reading outbox for problem {problem_id}", e)

        item = response.get('Item')
        return python_dict(item) if item else None

    def pending_outbox(self, user_id: str) -> List[Dict[str, Any]]:
        query_kwargs: Dict[str, Any] = {
            'KeyConditionExpression': Key('userId').eq(user_id),
            'FilterExpression': Attr('status').eq(PENDING),
            'ConsistentRead': True,
        }
        items = []
        try:
            while True:
                response = self.outbox_table.query(**query_kwargs)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except STORAGE_ERRORS as e:
            raise storage_error(f"querying pending outbox for user {user_id}", e)

        return [python_dict(item) for item in items]

    def _effect_pending(self, outbox: Dict[str, Any], effect: str) -> bool:
        current = self.get_outbox(outbox['userId'], outbox['problemId'])
        return bool(current) and current['effects'].get(effect) == PENDING

    def _mark_applied_item(self, outbox: Dict[str, Any], effect: str) -> Dict[str, Any]:
        return {
            'Update': {
                'TableName': self.outbox_table.name,
                'Key': {'userId': outbox['userId'], 'problemId': outbox['problemId']},
                'UpdateExpression': 'SET effects.#effect = :applied, updatedAt = :now',
                'ConditionExpression': 'effects.#effect = :pending',
                'ExpressionAttributeNames': {'#effect': effect},
                'ExpressionAttributeValues': {
                    ':applied': APPLIED,
                    ':pending': PENDING,
                    ':now': self.clock().isoformat(),
                },
            }
        }

    def _mark_complete(self, outbox: Dict[str, Any]) -> None:
        try:
            self.outbox_table.update_item(
                Key={'userId': outbox['userId'], 'problemId': outbox['problemId']},
                UpdateExpression='SET #status = :complete, updatedAt = :now',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':complete': COMPLETE,
                    ':now': self.clock().isoformat(),
                }
            )
        except STORAGE_ERRORS as e:
            raise storage_error(f"completing outbox for problem {outbox['problemId']}", e)

    # ============= EFFECTS =============

    def _resume_existing(self, user_id: str, problem_id: str) -> CompletionResult:
        outbox = self.get_outbox(user_id, problem_id)
        if outbox is None or outbox.get('status') == COMPLETE:
            streak = self.streaks.get_streak(user_id)
            return CompletionResult(
                xpEarned=0,
                currentStreak=streak.currentStreak,
                bestStreak=streak.bestStreak,
                alreadyCompleted=True,
                message="Question already completed",
            )
        return self._apply_effects(outbox, already_completed=True)

    def _apply_effects(self, outbox: Dict[str, Any], already_completed: bool) -> CompletionResult:
        user_id = outbox['userId']
        xp_awarded = 0
        streak: Optional[StreakState] = None

        for effect in EFFECT_ORDER:
            if outbox['effects'].get(effect) != PENDING:
                continue
            if effect == EFFECT_PROFILE:
                if self._apply_profile(outbox):
                    xp_awarded = outbox['xp']
            elif effect == EFFECT_STREAK:
                streak = self._apply_streak(outbox, replay=already_completed)
            elif effect == EFFECT_DAILY:
                self._apply_daily(outbox)

        self._mark_complete(outbox)

        if streak is None:
            streak = self.streaks.get_streak(user_id)

        message = "Question already completed" if already_completed else "Question marked as completed"
        return CompletionResult(
            xpEarned=xp_awarded,
            currentStreak=streak.currentStreak,
            bestStreak=streak.bestStreak,
            alreadyCompleted=already_completed,
            message=message,
        )

    def _run_effect(self, outbox: Dict[str, Any], effect: str, items: List[Dict[str, Any]]) -> bool:
        """
        Apply items and mark the effect applied, atomically

        Returns:
            True if applied now, False if it had already been applied
        """
        try:
            self.db.transact_write(items + [self._mark_applied_item(outbox, effect)])
        except STORAGE_ERRORS as e:
            if is_condition_failure(e) and not self._effect_pending(outbox, effect):
                logger.info(f"Effect {effect} for problem {outbox['problemId']} was already applied")
                return False
            raise storage_error(
                f"applying {effect} effect for user {outbox['userId']}, problem {outbox['problemId']}", e
            )
        return True

    def _apply_profile(self, outbox: Dict[str, Any]) -> bool:
        user_id = outbox['userId']
        applied = self._run_effect(
            outbox,
            EFFECT_PROFILE,
            [self.profiles.transact_increment(user_id, outbox['xp'])]
        )
        if applied:
            logger.info(f"Awarded {outbox['xp']} XP to user {user_id} for problem {outbox['problemId']}")
        return applied

    def _apply_streak(self, outbox: Dict[str, Any], replay: bool) -> StreakState:
        user_id = outbox['userId']

        def mirror_and_mark(state: StreakState) -> List[Dict[str, Any]]:
            return [
                self.profiles.transact_update_streak(user_id, state.currentStreak, state.bestStreak),
                self._mark_applied_item(outbox, EFFECT_STREAK),
            ]

        # A replay may run after a later day already advanced the streak
        return self.streaks.touch(
            user_id,
            outbox['activityDate'],
            extra_items=mirror_and_mark,
            already_applied=lambda: not self._effect_pending(outbox, EFFECT_STREAK),
            keep_out_of_order=replay,
            now=self.clock().isoformat(),
        )

    def _apply_daily(self, outbox: Dict[str, Any]) -> None:
        user_id = outbox['userId']
        problem_id = outbox['problemId']
        day = outbox['activityDate']

        aggregate = self.aggregator.get_aggregate(user_id, day)
        if aggregate is not None and problem_id in aggregate.solvedProblemIds:
            logger.info(f"Problem {problem_id} already in daily aggregate for {day}")
            self._run_effect(outbox, EFFECT_DAILY, [])
            return

        item = self.aggregator.transact_update(user_id, day, problem_id, outbox['difficulty'])
        self._run_effect(outbox, EFFECT_DAILY, [item])
