"""
Tests for profile XP increments, streak mirror and the XP leaderboard
"""
from progress_service.services.profile_repository import ProfileRepository


def test_missing_profile(db):
    assert ProfileRepository(db).get_profile("ghost") is None


def test_increment_initializes_counters(db):
    profiles = ProfileRepository(db)
    db.users_table.put_item(Item={"userId": "u1", "name": "Grace", "email": "grace@example.com"})

    profile = profiles.increment_stats("u1", 150)
    assert profile.xp == 150
    assert profile.totalProblemsSolved == 1
    assert profile.name == "Grace"

    profile = profiles.increment_stats("u1", 400)
    assert profile.xp == 550
    assert profile.totalProblemsSolved == 2
    assert profile.level == "Bronze II"


def test_update_streak_mirror(db):
    profiles = ProfileRepository(db)
    profiles.increment_stats("u1", 50)

    profile = profiles.update_streak("u1", 3, 5)
    assert (profile.currentStreak, profile.bestStreak) == (3, 5)
    assert profile.xp == 50


def test_leaderboard_sorted_by_xp(db):
    profiles = ProfileRepository(db)
    profiles.increment_stats("low", 50)
    profiles.increment_stats("high", 200)
    profiles.increment_stats("mid", 100)

    board = profiles.leaderboard(limit=2)
    assert [p.userId for p in board] == ["high", "mid"]


def test_transaction_entries_match_standalone_updates(db):
    profiles = ProfileRepository(db)
    profiles.increment_stats("direct", 150)
    profiles.update_streak("direct", 2, 4)

    db.transact_write([
        profiles.transact_increment("batched", 150),
        profiles.transact_update_streak("batched", 2, 4),
    ])

    direct = profiles.get_profile("direct")
    batched = profiles.get_profile("batched")
    for field in ("xp", "totalProblemsSolved", "currentStreak", "bestStreak", "level"):
        assert getattr(batched, field) == getattr(direct, field)
