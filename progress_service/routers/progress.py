"""
Progress API endpoints

- POST /progress/{problem_id}/complete  record a solve and award XP/streak
- GET  /progress                        XP, level, solved counts, streak
- GET  /progress/history                solved problems, newest first
- POST /progress/resume                 finish interrupted solves
"""
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from progress_service.dependencies import get_current_user_id, get_orchestrator, get_solve_ledger
from progress_service.exceptions import OutOfOrderActivityError, SolveValidationError, StorageUnavailableError
from progress_service.schemas import (
    CompleteSolveRequest,
    CompletionResult,
    ProgressStats,
    ResumeResponse,
    SolveEvent,
)
from progress_service.services.progress_orchestrator import ProgressOrchestrator
from progress_service.services.solve_ledger import SolveLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["Progress"])


@router.post("/{problem_id}/complete", response_model=CompletionResult, status_code=status.HTTP_201_CREATED)
async def complete_problem(
    problem_id: str,
    request: CompleteSolveRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    orchestrator: ProgressOrchestrator = Depends(get_orchestrator)
):
    """Mark a problem as completed; repeated calls for the same problem award nothing."""
    try:
        result = orchestrator.complete_solve(
            user_id=user_id,
            problem_id=problem_id,
            problem_title=request.problemTitle,
            difficulty=request.difficulty,
            submission_url=request.submissionUrl,
            platform=request.platform,
        )
        if result.alreadyCompleted:
            response.status_code = status.HTTP_200_OK
        return result
    except SolveValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OutOfOrderActivityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error completing problem {problem_id} for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update progress")


@router.get("", response_model=ProgressStats)
async def get_progress(
    user_id: str = Depends(get_current_user_id),
    orchestrator: ProgressOrchestrator = Depends(get_orchestrator)
):
    try:
        return orchestrator.progress_stats(user_id)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/history", response_model=List[SolveEvent])
async def get_progress_history(
    user_id: str = Depends(get_current_user_id),
    ledger: SolveLedger = Depends(get_solve_ledger)
):
    try:
        return ledger.list_solves(user_id)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/resume", response_model=ResumeResponse)
async def resume_progress(
    user_id: str = Depends(get_current_user_id),
    orchestrator: ProgressOrchestrator = Depends(get_orchestrator)
):
    """Apply any XP, streak or daily updates left pending by a failed completion."""
    try:
        results = orchestrator.resume_pending(user_id)
        return ResumeResponse(resumed=len(results), results=results)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
