"""
FastAPI dependencies for progress-service

Services are built once per process and shared across requests; tests swap
them through app.dependency_overrides.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from progress_service.codeforces_client import CodeforcesClient, select_daily_problems
from progress_service.config import get_settings
from progress_service.dynamo import DynamoDBClient
from progress_service.logic.streak_service import get_user_day
from progress_service.services.daily_aggregator import DailyAggregator
from progress_service.services.daily_challenge_cache import DailyChallengeCache
from progress_service.services.profile_repository import ProfileRepository
from progress_service.services.progress_orchestrator import ProgressOrchestrator
from progress_service.services.solve_ledger import SolveLedger
from progress_service.services.streak_tracker import StreakTracker


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID")
) -> str:
    """
    User id verified upstream by the API gateway

    Raises:
        HTTPException 401: If the header is missing or empty
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header"
        )
    return x_user_id


def today() -> str:
    """Current calendar day in the configured streak timezone"""
    return get_user_day(get_settings().STREAK_TIMEZONE)


@lru_cache()
def get_db() -> DynamoDBClient:
    return DynamoDBClient(get_settings())


def get_solve_ledger(db: DynamoDBClient = Depends(get_db)) -> SolveLedger:
    return SolveLedger(db)


def get_daily_aggregator(db: DynamoDBClient = Depends(get_db)) -> DailyAggregator:
    return DailyAggregator(db)


def get_streak_tracker(db: DynamoDBClient = Depends(get_db)) -> StreakTracker:
    return StreakTracker(db, max_retries=get_settings().STREAK_MAX_RETRIES)


def get_profile_repository(db: DynamoDBClient = Depends(get_db)) -> ProfileRepository:
    return ProfileRepository(db)


def get_orchestrator(db: DynamoDBClient = Depends(get_db)) -> ProgressOrchestrator:
    settings = get_settings()
    return ProgressOrchestrator(
        db,
        streak_timezone=settings.STREAK_TIMEZONE,
        max_retries=settings.STREAK_MAX_RETRIES
    )


@lru_cache()
def get_codeforces_client() -> CodeforcesClient:
    return CodeforcesClient(get_settings())


async def load_daily_problems():
    problems = await get_codeforces_client().get_problems()
    return select_daily_problems(problems)


@lru_cache()
def get_daily_challenge_cache() -> DailyChallengeCache:
    return DailyChallengeCache(loader=load_daily_problems, today=today)
