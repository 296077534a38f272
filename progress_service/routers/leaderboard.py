"""
Leaderboard API endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from progress_service.config import get_settings
from progress_service.dependencies import get_current_user_id, get_profile_repository
from progress_service.exceptions import StorageUnavailableError
from progress_service.schemas import LeaderboardEntry
from progress_service.services.profile_repository import ProfileRepository

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


def build_leaderboard(profiles: ProfileRepository, limit: Optional[int]) -> List[LeaderboardEntry]:
    limit = limit or get_settings().LEADERBOARD_LIMIT
    return [
        LeaderboardEntry(
            rank=rank,
            userId=profile.userId,
            name=profile.name,
            college=profile.college or "Unknown",
            level=profile.level,
            xp=profile.xp,
            totalProblemsSolved=profile.totalProblemsSolved,
            currentStreak=profile.currentStreak,
            bestStreak=profile.bestStreak,
        )
        for rank, profile in enumerate(profiles.leaderboard(limit), start=1)
    ]


@router.get("/alltime", response_model=List[LeaderboardEntry])
async def get_alltime_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileRepository = Depends(get_profile_repository)
):
    try:
        return build_leaderboard(profiles, limit)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/weekly", response_model=List[LeaderboardEntry])
async def get_weekly_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileRepository = Depends(get_profile_repository)
):
    """Ranked by total XP; no per-week XP is tracked."""
    try:
        return build_leaderboard(profiles, limit)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
