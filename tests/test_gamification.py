"""
Tests for difficulty normalization, XP rewards and level labels
"""
import pytest

from progress_service.exceptions import SolveValidationError
from progress_service.logic.gamification import (
    Difficulty,
    difficulty_for_rating,
    level_for_xp,
    normalize_difficulty,
    to_three_tier,
    xp_for,
    xp_for_counts,
    xp_progress,
)


@pytest.mark.parametrize("value,expected", [
    ("Easy", Difficulty.EASY),
    ("Medium", Difficulty.MODERATE),
    ("Hard", Difficulty.HARD),
    ("moderate", Difficulty.MODERATE),
    ("difficult", Difficulty.DIFFICULT),
    ("  HARD ", Difficulty.HARD),
])
def test_normalize_difficulty_accepts_both_vocabularies(value, expected):
    assert normalize_difficulty(value) == expected


@pytest.mark.parametrize("value", ["", None, "insane", 3])
def test_normalize_difficulty_rejects_unknown(value):
    with pytest.raises(SolveValidationError):
        normalize_difficulty(value)


def test_xp_rewards():
    assert xp_for("easy") == 50
    assert xp_for("moderate") == 100
    assert xp_for("hard") == 150
    assert xp_for("difficult") == 200


def test_xp_is_same_in_both_vocabularies():
    assert xp_for("Easy") == xp_for("easy")
    assert xp_for("Medium") == xp_for("moderate")
    assert xp_for("Hard") == xp_for("hard")


def test_three_tier_labels():
    assert to_three_tier("moderate") == "Medium"
    assert to_three_tier(Difficulty.DIFFICULT) == "Hard"
    assert to_three_tier("easy") == "Easy"


def test_xp_for_counts():
    assert xp_for_counts({"easy": 2, "hard": 1, "difficult": 0}) == 250
    assert xp_for_counts({}) == 0


def test_difficulty_for_rating():
    assert difficulty_for_rating(800) == Difficulty.EASY
    assert difficulty_for_rating(999) == Difficulty.EASY
    assert difficulty_for_rating(1000) == Difficulty.MODERATE
    assert difficulty_for_rating(1299) == Difficulty.MODERATE
    assert difficulty_for_rating(1300) == Difficulty.HARD
    assert difficulty_for_rating(None) == Difficulty.MODERATE


def test_level_labels():
    assert level_for_xp(0) == "Bronze I"
    assert level_for_xp(499) == "Bronze I"
    assert level_for_xp(500) == "Bronze II"
    assert level_for_xp(1500) == "Silver I"
    assert level_for_xp(10_000_000) == "Diamond III"


def test_xp_progress_within_level():
    progress = xp_progress(650)
    assert progress["level"] == "Bronze II"
    assert progress["xpInLevel"] == 150
    assert progress["xpNeededForNext"] == 350


def test_xp_progress_at_top_level():
    progress = xp_progress(10_000_000)
    assert progress["level"] == "Diamond III"
    assert progress["xpNeededForNext"] == 0
