"""Exceptions raised by the engagement engine.

Duplicate community-request interest is not an error: it comes back as an
`InterestResult` with `already_interested=True`.
"""


class EngagementError(Exception):
    """Base class for all engagement engine errors."""


class ActivityValidationError(EngagementError, ValueError):
    """Malformed or missing activity input. Nothing was written."""


class ProfileNotFoundError(EngagementError, LookupError):
    """A referenced user record or cultural profile does not exist."""

    def __init__(self, user_id: str, what: str = "profile"):
        self.user_id = user_id
        super().__init__(f"User {what} not found: {user_id}")

    def __str__(self) -> str:
        return self.args[0]


class PersistenceError(EngagementError, RuntimeError):
    """Reading or writing the backing store failed; state was not committed."""
