"""
Daily Challenge Cache - one shared problem set per calendar day

Holds a single entry keyed by date. The set is rebuilt on the first request
of a new day (or while it is empty); concurrent requests wait on the same
refresh instead of each calling Codeforces.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from progress_service.schemas import DailyChallenge

logger = logging.getLogger(__name__)


class DailyChallengeCache:

    def __init__(
        self,
        loader: Callable[[], Awaitable[List[DailyChallenge]]],
        today: Callable[[], str]
    ):
        self.loader = loader
        self.today = today
        self._date: Optional[str] = None
        self._problems: List[DailyChallenge] = []
        self._lock = asyncio.Lock()

    @property
    def cached_date(self) -> Optional[str]:
        return self._date

    def _is_fresh(self, day: str) -> bool:
        return self._date == day and len(self._problems) > 0

    async def get(self) -> List[DailyChallenge]:
        """Today's problem set, loading it if the cache is stale or empty"""
        day = self.today()
        if self._is_fresh(day):
            return list(self._problems)

        async with self._lock:
            if not self._is_fresh(day):
                logger.info(f"Fetching new daily problems for {day}")
                problems = await self.loader()
                self._problems = list(problems)
                self._date = day
                logger.info(f"Daily problems cached for {day}: {len(self._problems)} problems")
            return list(self._problems)

    async def find(self, problem_id: str) -> Optional[DailyChallenge]:
        for problem in await self.get():
            if problem.problemId == problem_id:
                return problem
        return None

    def invalidate(self) -> None:
        self._date = None
        self._problems = []
