"""
Codeforces daily challenge endpoints

- GET  /codeforces/daily               today's shared problem set
- POST /codeforces/verify/{problem_id}  check an accepted submission and
                                        complete the problem
"""
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException

from progress_service.codeforces_client import (
    CodeforcesClient,
    find_accepted_submission,
    parse_problem_id,
    submission_url,
)
from progress_service.dependencies import (
    get_codeforces_client,
    get_current_user_id,
    get_daily_challenge_cache,
    get_orchestrator,
    get_solve_ledger,
)
from progress_service.exceptions import (
    CodeforcesError,
    OutOfOrderActivityError,
    SolveValidationError,
    StorageUnavailableError,
)
from progress_service.schemas import DailyChallengeStatus, VerifyProblemRequest, VerifyProblemResponse
from progress_service.services.daily_challenge_cache import DailyChallengeCache
from progress_service.services.progress_orchestrator import ProgressOrchestrator
from progress_service.services.solve_ledger import SolveLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/codeforces", tags=["Codeforces"])

PLATFORM = "Codeforces"


@router.get("/daily", response_model=List[DailyChallengeStatus])
async def get_daily_problems(
    user_id: str = Depends(get_current_user_id),
    cache: DailyChallengeCache = Depends(get_daily_challenge_cache),
    ledger: SolveLedger = Depends(get_solve_ledger)
):
    """Today's problems (same for all users) with this user's completion flag."""
    try:
        problems = await cache.get()
        result = [
            DailyChallengeStatus(**problem.model_dump(), completed=ledger.has_solved(user_id, problem.problemId))
            for problem in problems
        ]
        logger.info(
            f"Daily problems sent to user {user_id}, completed: {sum(1 for p in result if p.completed)}"
        )
        return result
    except CodeforcesError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/verify/{problem_id}", response_model=VerifyProblemResponse)
async def verify_problem(
    problem_id: str,
    request: VerifyProblemRequest,
    user_id: str = Depends(get_current_user_id),
    cache: DailyChallengeCache = Depends(get_daily_challenge_cache),
    client: CodeforcesClient = Depends(get_codeforces_client),
    orchestrator: ProgressOrchestrator = Depends(get_orchestrator)
):
    """Complete a daily problem once Codeforces shows an accepted submission."""
    if not request.codeforcesHandle:
        raise HTTPException(status_code=400, detail="Codeforces handle is required")

    try:
        contest_id, index = parse_problem_id(problem_id)

        problem = await cache.find(problem_id)
        if problem is None:
            raise HTTPException(status_code=404, detail="Problem not found in today's problems")

        logger.info(f"Verifying problem {problem_id} for handle {request.codeforcesHandle}")
        submissions = await client.get_user_submissions(request.codeforcesHandle)
        accepted = find_accepted_submission(submissions, contest_id, index)
        if accepted is None:
            return VerifyProblemResponse(
                verified=False,
                message="No successful submission found for this problem",
            )

        result = orchestrator.complete_solve(
            user_id=user_id,
            problem_id=problem_id,
            problem_title=problem.title,
            difficulty=problem.difficulty,
            submission_url=submission_url(contest_id, accepted["id"]),
            platform=PLATFORM,
        )
        return VerifyProblemResponse(
            verified=True,
            message=result.message if result.alreadyCompleted else "Problem verified successfully!",
            xpEarned=result.xpEarned,
            currentStreak=result.currentStreak,
            bestStreak=result.bestStreak,
            alreadyCompleted=result.alreadyCompleted,
            submissionId=accepted["id"],
        )
    except HTTPException:
        raise
    except SolveValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OutOfOrderActivityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CodeforcesError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except StorageUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
