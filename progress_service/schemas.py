"""
Pydantic schemas for progress-service

All schemas use Pydantic v2 syntax with ConfigDict
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List

from progress_service.logic.gamification import Difficulty, normalize_difficulty


# ============= CORE RECORDS =============

class SolveEvent(BaseModel):
    """A user completed a problem; immutable once recorded"""
    userId: str = Field(..., min_length=1)
    problemId: str = Field(..., min_length=1)
    problemTitle: str = ""
    difficulty: Difficulty
    solvedAt: int = Field(..., description="Unix timestamp in milliseconds")
    xpEarned: int = Field(..., ge=0)
    platform: str = "CodeBattle"
    submissionUrl: Optional[str] = None

    @field_validator('difficulty', mode='before')
    @classmethod
    def validate_difficulty(cls, v: Any) -> Difficulty:
        return normalize_difficulty(v)

    model_config = ConfigDict(frozen=True, use_enum_values=False)


class DailyAggregate(BaseModel):
    """Per user per day rollup of solved problems"""
    userId: str
    date: str = Field(..., description="YYYY-MM-DD")
    solvedProblemIds: List[str] = Field(default_factory=list)
    totalCount: int = 0
    easyCount: int = 0
    moderateCount: int = 0
    hardCount: int = 0
    difficultCount: int = 0

    def counts_by_difficulty(self) -> Dict[str, int]:
        return {
            Difficulty.EASY.value: self.easyCount,
            Difficulty.MODERATE.value: self.moderateCount,
            Difficulty.HARD.value: self.hardCount,
            Difficulty.DIFFICULT.value: self.difficultCount,
        }


class StreakState(BaseModel):
    """Consecutive-day streak for a user"""
    userId: str
    currentStreak: int = Field(default=0, ge=0)
    bestStreak: int = Field(default=0, ge=0)
    lastActivityDate: Optional[str] = None
    totalSolved: int = 0
    version: int = 0
    updatedAt: Optional[str] = None


class UserProfile(BaseModel):
    """Profile fields the progress engine reads and writes"""
    userId: str
    name: Optional[str] = None
    college: Optional[str] = None
    xp: int = Field(default=0, ge=0)
    totalProblemsSolved: int = 0
    currentStreak: int = 0
    bestStreak: int = 0
    level: str = "Bronze I"


class CompletionResult(BaseModel):
    """Net effect of one completeSolve call"""
    xpEarned: int
    currentStreak: int
    bestStreak: int
    alreadyCompleted: bool = False
    message: str = ""


# ============= REQUESTS =============

class CompleteSolveRequest(BaseModel):
    """Body of POST /progress/{problem_id}/complete"""
    problemTitle: str = Field(..., min_length=1)
    difficulty: str = Field(..., description="Easy/Medium/Hard or easy/moderate/hard/difficult")
    submissionUrl: Optional[str] = None
    platform: Optional[str] = None


class SaveSolvedProblemRequest(BaseModel):
    """Body of POST /solved-problems"""
    problemId: str = Field(..., min_length=1)
    problemTitle: str = Field(..., min_length=1)
    difficulty: str
    xpEarned: int = Field(..., ge=0)
    platform: Optional[str] = None
    submissionUrl: Optional[str] = None


class VerifyProblemRequest(BaseModel):
    """Body of POST /codeforces/verify/{problem_id}"""
    codeforcesHandle: Optional[str] = None


# ============= RESPONSES =============

class SolvedProblemsResponse(BaseModel):
    success: bool = True
    count: int
    problems: List[SolveEvent]


class SaveSolvedProblemResponse(BaseModel):
    success: bool = True
    message: str
    problem: SolveEvent


class SolveStats(BaseModel):
    total: int = 0
    easy: int = 0
    moderate: int = 0
    hard: int = 0
    difficult: int = 0
    totalXp: int = 0


class SolveStatsResponse(BaseModel):
    success: bool = True
    stats: SolveStats


class ProgressStats(BaseModel):
    """Overall progress for the dashboard"""
    userId: str
    xp: int
    level: str
    xpProgress: Dict[str, Any]
    totalProblemsSolved: int
    currentStreak: int
    bestStreak: int
    solved: SolveStats


class StreakStatusResponse(BaseModel):
    currentStreak: int
    bestStreak: int
    lastActivityDate: Optional[str] = None
    totalSolved: int = 0


class StreakHistoryEntry(BaseModel):
    date: str
    problemsCompleted: int
    xpEarned: int


class DifficultyProgressEntry(BaseModel):
    date: str
    easy: int
    moderate: int
    hard: int
    difficult: int


class StreakLeaderboardEntry(BaseModel):
    rank: int
    userId: str
    currentStreak: int
    bestStreak: int


class LeaderboardEntry(BaseModel):
    rank: int
    userId: str
    name: Optional[str] = None
    college: str = "Unknown"
    level: str
    xp: int
    totalProblemsSolved: int = 0
    currentStreak: int = 0
    bestStreak: int = 0


class ResumeResponse(BaseModel):
    resumed: int
    results: List[CompletionResult]


class DailyChallenge(BaseModel):
    """A Codeforces problem in today's shared set"""
    id: int
    problemId: str
    contestId: int
    problemIndex: str
    title: str
    difficulty: str = Field(..., description="Easy/Medium/Hard")
    platform: str = "Codeforces"
    problemUrl: str
    xpReward: int
    rating: Optional[int] = None
    tags: List[str] = Field(default_factory=list)


class DailyChallengeStatus(DailyChallenge):
    completed: bool = False


class VerifyProblemResponse(BaseModel):
    verified: bool
    message: str
    xpEarned: int = 0
    currentStreak: Optional[int] = None
    bestStreak: Optional[int] = None
    alreadyCompleted: bool = False
    submissionId: Optional[int] = None
