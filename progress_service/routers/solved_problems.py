"""
Solved problems API endpoints (direct access to the solve ledger)
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from progress_service.dependencies import get_current_user_id, get_solve_ledger
from progress_service.exceptions import DuplicateSolveError, SolveValidationError, StorageUnavailableError
from progress_service.logic.gamification import normalize_difficulty
from progress_service.schemas import (
    SaveSolvedProblemRequest,
    SaveSolvedProblemResponse,
    SolvedProblemsResponse,
    SolveStatsResponse,
)
from progress_service.services.solve_ledger import SolveLedger, make_solve_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/solved-problems", tags=["Solved Problems"])


@router.get("", response_model=SolvedProblemsResponse)
async def get_solved_problems(
    difficulty: Optional[str] = Query(None, description="Easy/Medium/Hard or easy/moderate/hard/difficult"),
    user_id: str = Depends(get_current_user_id),
    ledger: SolveLedger = Depends(get_solve_ledger)
):
    try:
        if difficulty is not None:
            difficulty = normalize_difficulty(difficulty)
        problems = ledger.list_solves(user_id, difficulty=difficulty)
        return SolvedProblemsResponse(count=len(problems), problems=problems)
    except SolveValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/stats", response_model=SolveStatsResponse)
async def get_solved_stats(
    user_id: str = Depends(get_current_user_id),
    ledger: SolveLedger = Depends(get_solve_ledger)
):
    try:
        return SolveStatsResponse(stats=ledger.solve_stats(user_id))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=SaveSolvedProblemResponse, status_code=status.HTTP_201_CREATED)
async def save_solved_problem(
    request: SaveSolvedProblemRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: SolveLedger = Depends(get_solve_ledger)
):
    """Record a solve without awarding XP or touching the streak."""
    try:
        event = make_solve_event(
            user_id=user_id,
            problem_id=request.problemId,
            problem_title=request.problemTitle,
            difficulty=request.difficulty,
            xp_earned=request.xpEarned,
            platform=request.platform,
            submission_url=request.submissionUrl,
        )
        problem = ledger.record_solve(event)
        return SaveSolvedProblemResponse(message="Problem saved successfully", problem=problem)
    except SolveValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateSolveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
