"""
Error kinds raised by the progress engine.

Route handlers map these onto HTTP statuses; nothing in the engine
swallows them.
"""


class ProgressError(Exception):
    """Base class for progress engine errors"""


class DuplicateSolveError(ProgressError):
    """A solve for this (user, problem) pair is already recorded"""

    def __init__(self, user_id: str, problem_id: str):
        self.user_id = user_id
        self.problem_id = problem_id
        super().__init__(f"Problem {problem_id} already solved by user {user_id}")


class SolveValidationError(ProgressError, ValueError):
    """Missing or invalid identifiers / difficulty, rejected before any write"""


class StorageUnavailableError(ProgressError):
    """DynamoDB call failed; the caller may retry the whole request"""


class OutOfOrderActivityError(ProgressError):
    """Activity date is earlier than the last recorded activity"""

    def __init__(self, user_id: str, activity_date: str, last_activity_date: str):
        self.user_id = user_id
        self.activity_date = activity_date
        self.last_activity_date = last_activity_date
        super().__init__(
            f"Activity on {activity_date} for user {user_id} is earlier than "
            f"last recorded activity {last_activity_date}"
        )


class CodeforcesError(ProgressError):
    """Codeforces API returned FAILED or could not be reached"""
