"""
Streak Service - pure state machine for daily solve streaks

Handles:
- Calendar day resolution with timezone awareness
- Streak transitions (first activity, same day, consecutive, broken)
- Rejection of out-of-order activity dates

No I/O here; persistence lives in services/streak_tracker.py
"""
from datetime import date, datetime, timezone as dt_timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from progress_service.exceptions import OutOfOrderActivityError, SolveValidationError
from progress_service.schemas import StreakState

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def get_user_day(timezone: str, now_utc: Optional[datetime] = None) -> str:
    """
    Convert UTC time to the local calendar date

    Args:
        timezone: IANA timezone (e.g., "Asia/Kolkata")
        now_utc: Current UTC time (defaults to now)

    Returns:
        Date string in YYYY-MM-DD format in that timezone

    Example:
        >>> get_user_day("Asia/Kolkata", datetime(2025, 11, 18, 20, 0))  # 8 PM UTC
        "2025-11-19"  # Already Nov 19 in India (UTC+5:30)
    """
    if now_utc is None:
        now_utc = datetime.now(dt_timezone.utc)
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=dt_timezone.utc)

    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Invalid timezone {timezone}, falling back to UTC: {e}")
        tz = dt_timezone.utc

    return now_utc.astimezone(tz).strftime(DATE_FORMAT)


def parse_day(value: str) -> date:
    """Parse YYYY-MM-DD, raising SolveValidationError on anything else"""
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise SolveValidationError(f"Invalid date '{value}', expected YYYY-MM-DD")


def days_between(last_day: str, current_day: str) -> int:
    """
    Whole calendar days from last_day to current_day

    Examples:
        >>> days_between("2025-11-18", "2025-11-19")
        1
        >>> days_between("2025-11-19", "2025-11-18")
        -1
    """
    return (parse_day(current_day) - parse_day(last_day)).days


def advance_streak(
    state: StreakState,
    activity_day: str,
    now: Optional[str] = None
) -> Tuple[StreakState, bool]:
    """
    Apply one day of activity to a streak

    Args:
        state: Current streak state
        activity_day: Day of the solve (YYYY-MM-DD)
        now: Timestamp to store as updatedAt (defaults to current UTC time)

    Returns:
        Tuple of (new_state, changed). When changed is False the state is
        returned untouched.

    Raises:
        OutOfOrderActivityError: If activity_day is before lastActivityDate
        SolveValidationError: If activity_day is not a valid date

    Logic:
        - No previous activity: streak starts at 1
        - Same day: no-op
        - Next day: streak +1, best = max(best, current)
        - Gap of 2+ days: streak resets to 1, best unchanged
    """
    parse_day(activity_day)
    last_day = state.lastActivityDate

    if not last_day:
        logger.info(f"First activity ever for user {state.userId}, starting streak at 1")
        new_current = 1
    else:
        gap = days_between(last_day, activity_day)

        if gap == 0:
            logger.info(f"Activity on same day {activity_day}, streak maintained at {state.currentStreak}")
            return state, False

        if gap < 0:
            logger.warning(
                f"Out-of-order activity for user {state.userId}: {activity_day} < {last_day}"
            )
            raise OutOfOrderActivityError(state.userId, activity_day, last_day)

        if gap == 1:
            new_current = state.currentStreak + 1
            logger.info(
                f"Consecutive day activity: streak incremented from {state.currentStreak} to {new_current}"
            )
        else:
            new_current = 1
            logger.info(f"Streak broken: last activity {last_day}, current day {activity_day}")

    new_state = state.model_copy(update={
        'currentStreak': new_current,
        'bestStreak': max(state.bestStreak, new_current),
        'lastActivityDate': activity_day,
        'totalSolved': state.totalSolved + 1,
        'version': state.version + 1,
        'updatedAt': now or datetime.now(dt_timezone.utc).isoformat(),
    })
    return new_state, True
