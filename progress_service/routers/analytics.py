"""
Analytics API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from progress_service.dependencies import get_current_user_id, get_daily_aggregator
from progress_service.exceptions import StorageUnavailableError
from progress_service.schemas import DifficultyProgressEntry
from progress_service.services.daily_aggregator import DailyAggregator

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/difficulty-progress", response_model=List[DifficultyProgressEntry])
async def get_difficulty_progress(
    days: int = Query(30, ge=1, le=365),
    user_id: str = Depends(get_current_user_id),
    aggregator: DailyAggregator = Depends(get_daily_aggregator)
):
    """Solved count per difficulty for each active day, newest first."""
    try:
        return aggregator.difficulty_progress(user_id, max_days=days)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
