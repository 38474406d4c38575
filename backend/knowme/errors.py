"""Exceptions for conditions that are not business-rule violations.

Rule violations travel as ``Outcome`` failures. What is raised here is
either a broken internal invariant or a miss/conflict in the storage and
identity collaborators.
"""


class KnowMeError(Exception):
    """Base exception for the package."""
    pass


class SessionIntegrityError(KnowMeError):
    """A lookup that valid state guarantees to succeed did not."""
    pass


class SessionNotFoundError(KnowMeError):

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game session '{session_id}' not found")


class QuestionNotFoundError(KnowMeError):

    def __init__(self, session_id, question_id):
        self.session_id = session_id
        self.question_id = question_id
        super().__init__(f"Question '{question_id}' not found in session '{session_id}'")


class UserNotFoundError(KnowMeError):

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class ConcurrentUpdateError(KnowMeError):
    """Raised when a session was saved by someone else since it was loaded."""

    def __init__(self, session_id, expected_version, actual_version):
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Game session '{session_id}' was modified concurrently "
            f"(loaded version {expected_version}, stored version {actual_version})"
        )
