"""
Client for the Codeforces public API

Provides the problemset used to build the daily challenge set and the
submission list used to verify that a user actually solved a problem.
"""
import random
import httpx
import logging
from typing import Optional, Dict, Any, List, Tuple

from progress_service.config import Settings, get_settings
from progress_service.exceptions import CodeforcesError, SolveValidationError
from progress_service.logic.gamification import difficulty_for_rating, to_three_tier, xp_for
from progress_service.schemas import DailyChallenge

logger = logging.getLogger(__name__)

PROBLEM_URL = "https://codeforces.com/problemset/problem/{contest_id}/{index}"
SUBMISSION_URL = "https://codeforces.com/contest/{contest_id}/submission/{submission_id}"

# (min rating inclusive, max rating exclusive, how many to pick)
DAILY_SELECTION = [
    (800, 1000, 2),   # Easy
    (1000, 1300, 2),  # Medium
    (1300, 1600, 1),  # Hard
]


class CodeforcesClient:
    """Async wrapper around https://codeforces.com/api"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = settings or get_settings()
        self.base_url = settings.CODEFORCES_API_URL.rstrip("/")
        self.timeout = settings.CODEFORCES_TIMEOUT_SECONDS
        self.transport = transport

    async def _request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call an API method and unwrap its result

        Raises:
            CodeforcesError: HTTP failure or status FAILED
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/{method}", params=params)
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error calling Codeforces {method}: {str(e)}")
            raise CodeforcesError(f"Codeforces API unavailable: {str(e)}")

        if data.get("status") != "OK":
            comment = data.get("comment") or f"HTTP {response.status_code}"
            logger.error(f"Codeforces {method} failed: {comment}")
            raise CodeforcesError(f"Codeforces API Error: {comment}")

        return data.get("result")

    async def get_problems(self, tags: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """All problems of the problemset, optionally filtered by tags"""
        params = {"tags": ";".join(tags)} if tags else None
        result = await self._request("problemset.problems", params)
        problems = result.get("problems", [])
        logger.info(f"Retrieved {len(problems)} problems from Codeforces")
        return problems

    async def get_user_submissions(self, handle: str, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """Submissions of a handle, newest first"""
        params: Dict[str, Any] = {"handle": handle}
        if count is not None:
            params["count"] = count
        submissions = await self._request("user.status", params)
        logger.info(f"Retrieved {len(submissions)} submissions for handle {handle}")
        return submissions


def to_daily_challenge(problem: Dict[str, Any], position: int) -> DailyChallenge:
    contest_id = problem["contestId"]
    index = problem["index"]
    difficulty = difficulty_for_rating(problem.get("rating"))
    return DailyChallenge(
        id=position,
        problemId=f"CF-{contest_id}-{index}",
        contestId=contest_id,
        problemIndex=index,
        title=problem.get("name", ""),
        difficulty=to_three_tier(difficulty),
        problemUrl=PROBLEM_URL.format(contest_id=contest_id, index=index),
        xpReward=xp_for(difficulty),
        rating=problem.get("rating"),
        tags=problem.get("tags", []),
    )


def select_daily_problems(
    problems: List[Dict[str, Any]],
    rng: Optional[random.Random] = None
) -> List[DailyChallenge]:
    """
    Pick today's set: 2 easy, 2 medium and 1 hard problem

    Problems without a rating or contest are skipped. A band with fewer
    candidates than requested contributes what it has.
    """
    rng = rng or random.Random()
    selected = []
    for min_rating, max_rating, count in DAILY_SELECTION:
        candidates = [
            p for p in problems
            if p.get("contestId") and p.get("rating") and min_rating <= p["rating"] < max_rating
        ]
        selected.extend(rng.sample(candidates, min(count, len(candidates))))

    return [to_daily_challenge(problem, i + 1) for i, problem in enumerate(selected)]


def parse_problem_id(problem_id: str) -> Tuple[int, str]:
    """
    Split CF-<contestId>-<index>

    Raises:
        SolveValidationError: If the id is not in that format
    """
    parts = problem_id.split("-")
    if len(parts) != 3 or parts[0] != "CF" or not parts[1].isdigit() or not parts[2]:
        raise SolveValidationError("Invalid problem ID format")
    return int(parts[1]), parts[2]


def find_accepted_submission(
    submissions: List[Dict[str, Any]],
    contest_id: int,
    index: str
) -> Optional[Dict[str, Any]]:
    """First submission with verdict OK for the given problem"""
    for submission in submissions:
        problem = submission.get("problem", {})
        if (
            problem.get("contestId") == contest_id
            and problem.get("index") == index
            and submission.get("verdict") == "OK"
        ):
            return submission
    return None


def submission_url(contest_id: int, submission_id: int) -> str:
    return SUBMISSION_URL.format(contest_id=contest_id, submission_id=submission_id)
