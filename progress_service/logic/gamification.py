"""
Gamification logic for progress-service

Implements:
- Difficulty normalization across the question bank (Easy/Medium/Hard)
  and the 4-tier vocabulary (easy/moderate/hard/difficult)
- XP reward per difficulty
- Level labels derived from total XP
"""
from enum import Enum
from typing import Dict, Any, Optional
import logging

from progress_service.config import get_settings
from progress_service.exceptions import SolveValidationError

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    """Internal difficulty scale; every boundary translates to this"""
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    DIFFICULT = "difficult"


# ============= DIFFICULTY VOCABULARIES =============

# Lowercased input -> internal difficulty
_DIFFICULTY_ALIASES = {
    "easy": Difficulty.EASY,
    "moderate": Difficulty.MODERATE,
    "medium": Difficulty.MODERATE,
    "hard": Difficulty.HARD,
    "difficult": Difficulty.DIFFICULT,
}

# Internal difficulty -> 3-tier label used by SolvedProblems and Codeforces
_THREE_TIER_LABELS = {
    Difficulty.EASY: "Easy",
    Difficulty.MODERATE: "Medium",
    Difficulty.HARD: "Hard",
    Difficulty.DIFFICULT: "Hard",
}

XP_REWARDS = {
    Difficulty.EASY: 50,
    Difficulty.MODERATE: 100,
    Difficulty.HARD: 150,
    Difficulty.DIFFICULT: 200,
}

LEVEL_TIERS = ["Bronze", "Silver", "Gold", "Platinum", "Diamond"]
LEVEL_DIVISIONS = ["I", "II", "III"]


def normalize_difficulty(value: Any) -> Difficulty:
    """
    Map either difficulty vocabulary onto the internal enum

    Args:
        value: "Easy", "Medium", "Hard", "easy", "moderate", "hard",
            "difficult" (case-insensitive) or a Difficulty

    Returns:
        Internal Difficulty

    Raises:
        SolveValidationError: If value is empty or unknown
    """
    if isinstance(value, Difficulty):
        return value
    if not value or not isinstance(value, str):
        raise SolveValidationError("Difficulty is required")

    difficulty = _DIFFICULTY_ALIASES.get(value.strip().lower())
    if difficulty is None:
        raise SolveValidationError(
            f"Invalid difficulty '{value}'. Must be one of: Easy, Medium, Hard, "
            f"easy, moderate, hard, difficult"
        )
    return difficulty


def to_three_tier(difficulty: Any) -> str:
    """Translate to the Easy/Medium/Hard vocabulary"""
    return _THREE_TIER_LABELS[normalize_difficulty(difficulty)]


def difficulty_for_rating(rating: Optional[int]) -> Difficulty:
    """
    Grade a Codeforces problem by rating

    Unrated problems count as 1000 (Medium).
    """
    rating = rating or 1000
    if rating < 1000:
        return Difficulty.EASY
    if rating < 1300:
        return Difficulty.MODERATE
    return Difficulty.HARD


# ============= XP AND LEVELING =============

def xp_for(difficulty: Any) -> int:
    """
    XP awarded for solving a problem

    Examples:
        >>> xp_for("easy"), xp_for("Medium"), xp_for("difficult")
        (50, 100, 200)
    """
    return XP_REWARDS[normalize_difficulty(difficulty)]


def xp_for_counts(counts: Dict[str, int]) -> int:
    """XP represented by a mapping of difficulty -> solve count"""
    return sum(xp_for(difficulty) * count for difficulty, count in counts.items())


def level_index(xp: int) -> int:
    """Zero-based division index, capped at the last division"""
    if xp < 0:
        return 0
    max_index = len(LEVEL_TIERS) * len(LEVEL_DIVISIONS) - 1
    return min(xp // get_settings().XP_PER_LEVEL, max_index)


def level_for_xp(xp: int) -> str:
    """
    Display label for total XP

    Formula: one division per XP_PER_LEVEL, three divisions per tier.
    A new user (0 XP) is "Bronze I".
    """
    tier, division = divmod(level_index(xp), len(LEVEL_DIVISIONS))
    return f"{LEVEL_TIERS[tier]} {LEVEL_DIVISIONS[division]}"


def xp_progress(xp: int) -> Dict[str, Any]:
    """
    Progress within the current level division

    Returns:
        Dict with level, xpInLevel, xpNeededForNext (0 at the top division)
    """
    xp_per_level = get_settings().XP_PER_LEVEL
    index = level_index(xp)
    xp = max(xp, 0)
    xp_in_level = xp - index * xp_per_level
    is_max = index == len(LEVEL_TIERS) * len(LEVEL_DIVISIONS) - 1

    return {
        'level': level_for_xp(xp),
        'xpInLevel': xp_in_level,
        'xpNeededForNext': 0 if is_max else xp_per_level - xp_in_level,
        'xpPerLevel': xp_per_level,
    }
