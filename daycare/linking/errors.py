"""
Error taxonomy for parent-child linking.

Redemption and repair raise these; the resolver never does. Routes map
``status_code`` onto the HTTP response.
"""

from typing import List, Optional


class LinkingError(Exception):
    """Base class for linking failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CodeNotFound(LinkingError):
    """No access code exists under the given key."""

    status_code = 404

    def __init__(self, code: str):
        super().__init__(f"Access code {code} not found")
        self.code = code


class CodeExpired(LinkingError):
    """The code is past its expiry timestamp."""

    status_code = 410

    def __init__(self, code: str):
        super().__init__(f"Access code {code} has expired")
        self.code = code


class CodeExhausted(LinkingError):
    """The code has no uses left."""

    status_code = 409

    def __init__(self, code: str):
        super().__init__(f"Access code {code} has already been used")
        self.code = code


class InvalidCode(LinkingError):
    """A staff-supplied code does not fit the code alphabet or length."""

    status_code = 400


class IssuanceFailed(LinkingError):
    """A unique code could not be persisted."""

    status_code = 503


class UserNotFound(LinkingError):
    """No parent account matches the given identity."""

    status_code = 404

    def __init__(self, email: str):
        super().__init__(f"No user with email {email}")
        self.email = email


class ChildNotFound(LinkingError):
    status_code = 404

    def __init__(self, child_id: str):
        super().__init__(f"Child {child_id} not found")
        self.child_id = child_id


class PartialFailure(LinkingError):
    """
    The access code was consumed but the child or user write failed.

    Recoverable with a repair run for the parent's email.
    """

    status_code = 502

    def __init__(self, child_id: str, user_id: str, failed_writes: List[str], cause: Optional[str] = None):
        message = (
            f"Access code consumed for child {child_id} but "
            f"{', '.join(failed_writes)} failed for user {user_id}"
        )
        if cause:
            message += f": {cause}"
        super().__init__(message)
        self.child_id = child_id
        self.user_id = user_id
        self.failed_writes = failed_writes


class StrategyFailure(Exception):
    """A resolver strategy raised or timed out. Recorded, never propagated."""

    def __init__(self, strategy: str, error: str):
        super().__init__(f"{strategy}: {error}")
        self.strategy = strategy
        self.error = error
