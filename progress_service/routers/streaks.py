"""
Streak API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from progress_service.dependencies import get_current_user_id, get_daily_aggregator, get_streak_tracker
from progress_service.exceptions import StorageUnavailableError
from progress_service.schemas import StreakHistoryEntry, StreakLeaderboardEntry, StreakStatusResponse
from progress_service.services.daily_aggregator import DailyAggregator
from progress_service.services.streak_tracker import StreakTracker

router = APIRouter(prefix="/streaks", tags=["Streaks"])


@router.get("/me", response_model=StreakStatusResponse)
async def get_my_streak(
    user_id: str = Depends(get_current_user_id),
    streaks: StreakTracker = Depends(get_streak_tracker)
):
    """Get current streak status for the user."""
    try:
        streak = streaks.get_streak(user_id)
        return StreakStatusResponse(
            currentStreak=streak.currentStreak,
            bestStreak=streak.bestStreak,
            lastActivityDate=streak.lastActivityDate,
            totalSolved=streak.totalSolved,
        )
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/history", response_model=List[StreakHistoryEntry])
async def get_streak_history(
    days: int = Query(30, ge=1, le=365, description="Number of active days to retrieve"),
    user_id: str = Depends(get_current_user_id),
    aggregator: DailyAggregator = Depends(get_daily_aggregator)
):
    """Problems completed and XP earned per active day, newest first."""
    try:
        return aggregator.history(user_id, max_days=days)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/leaderboard", response_model=List[StreakLeaderboardEntry])
async def get_streak_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    streaks: StreakTracker = Depends(get_streak_tracker)
):
    try:
        return [
            StreakLeaderboardEntry(
                rank=rank,
                userId=streak.userId,
                currentStreak=streak.currentStreak,
                bestStreak=streak.bestStreak,
            )
            for rank, streak in enumerate(streaks.streak_leaderboard(limit), start=1)
        ]
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
