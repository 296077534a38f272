"""
Tests for the solve ledger (SolvedProblems table)
"""
import pytest

from progress_service.exceptions import DuplicateSolveError, SolveValidationError
from progress_service.logic.gamification import Difficulty
from progress_service.services.solve_ledger import SolveLedger, make_solve_event


def solve(problem_id, difficulty="Easy", solved_at=1_700_000_000_000, user_id="u1", xp=50):
    return make_solve_event(
        user_id=user_id,
        problem_id=problem_id,
        problem_title=f"Problem {problem_id}",
        difficulty=difficulty,
        xp_earned=xp,
        solved_at=solved_at,
    )


class TestMakeSolveEvent:

    def test_defaults(self):
        event = solve("two-sum")
        assert event.platform == "CodeBattle"
        assert event.difficulty == Difficulty.EASY
        assert event.submissionUrl is None

    def test_missing_problem_id(self):
        with pytest.raises(SolveValidationError):
            solve("")

    def test_missing_user_id(self):
        with pytest.raises(SolveValidationError):
            solve("two-sum", user_id="")

    def test_bad_difficulty(self):
        with pytest.raises(SolveValidationError):
            solve("two-sum", difficulty="trivial")

    def test_negative_xp(self):
        with pytest.raises(SolveValidationError):
            solve("two-sum", xp=-1)


class TestSolveLedger:

    def test_record_and_read_back(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("two-sum", "Medium", xp=100))

        assert ledger.has_solved("u1", "two-sum") is True
        assert ledger.has_solved("u1", "three-sum") is False
        stored = ledger.get_solve("u1", "two-sum")
        assert stored.difficulty == Difficulty.MODERATE
        assert stored.xpEarned == 100

    def test_duplicate_rejected(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("two-sum"))

        with pytest.raises(DuplicateSolveError):
            ledger.record_solve(solve("two-sum", solved_at=1_800_000_000_000))

        assert len(ledger.list_solves("u1")) == 1

    def test_same_problem_different_users(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("two-sum", user_id="u1"))
        ledger.record_solve(solve("two-sum", user_id="u2"))
        assert ledger.has_solved("u2", "two-sum")

    def test_list_newest_first(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("a", solved_at=1000))
        ledger.record_solve(solve("b", solved_at=3000))
        ledger.record_solve(solve("c", solved_at=2000))

        assert [e.problemId for e in ledger.list_solves("u1")] == ["b", "c", "a"]
        assert ledger.list_solves("someone-else") == []

    def test_list_filtered_by_difficulty(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("a", "Easy", solved_at=1000))
        ledger.record_solve(solve("b", "Hard", solved_at=2000, xp=150))
        ledger.record_solve(solve("c", "hard", solved_at=3000, xp=150))

        hard = ledger.list_solves("u1", difficulty="Hard")
        assert [e.problemId for e in hard] == ["c", "b"]

    def test_solve_stats(self, db):
        ledger = SolveLedger(db)
        ledger.record_solve(solve("a", "Easy", solved_at=1000, xp=50))
        ledger.record_solve(solve("b", "Medium", solved_at=2000, xp=100))
        ledger.record_solve(solve("c", "difficult", solved_at=3000, xp=200))

        stats = ledger.solve_stats("u1")
        assert stats.total == 3
        assert stats.easy == 1
        assert stats.moderate == 1
        assert stats.difficult == 1
        assert stats.totalXp == 350

    def test_record_with_outbox_is_atomic(self, db, settings):
        ledger = SolveLedger(db)

        def outbox_entry(problem_id):
            return {
                'Put': {
                    'TableName': settings.DYNAMODB_SOLVE_OUTBOX_TABLE,
                    'Item': {'userId': 'u1', 'problemId': problem_id, 'status': 'PENDING'},
                }
            }

        ledger.record_solve_with_outbox(solve("two-sum"), outbox_entry("two-sum"))
        assert ledger.has_solved("u1", "two-sum")
        assert db.solve_outbox_table.get_item(Key={'userId': 'u1', 'problemId': 'two-sum'})['Item']

        db.solve_outbox_table.delete_item(Key={'userId': 'u1', 'problemId': 'two-sum'})
        with pytest.raises(DuplicateSolveError):
            ledger.record_solve_with_outbox(solve("two-sum"), outbox_entry("two-sum"))

        # The outbox put was rolled back with the rejected ledger write
        assert 'Item' not in db.solve_outbox_table.get_item(Key={'userId': 'u1', 'problemId': 'two-sum'})
