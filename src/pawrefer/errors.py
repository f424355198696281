"""Domain exceptions shared by services and routers.

Services raise these; routers translate them into HTTP responses with
``to_http_exception``. Each class carries the status code it maps to.
"""

from fastapi import HTTPException, status


class PawReferError(Exception):
    """Base class for domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(PawReferError):
    """Request data is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateSubmissionError(ValidationError):
    """A submission with the same email and form type already exists."""

    def __init__(self, email: str, form_type: str):
        self.email = email
        self.form_type = form_type
        super().__init__("You have already submitted a form with this email address")


class NoRewardsAvailableError(ValidationError):
    """The user has no unclaimed rewards."""

    def __init__(self, rewards_earned: int, rewards_claimed: int):
        self.rewards_earned = rewards_earned
        self.rewards_claimed = rewards_claimed
        super().__init__("No rewards available to claim")


class NotFoundError(PawReferError):
    """Referenced user, submission or reward does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(PawReferError):
    """Missing, invalid or revoked credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(PawReferError):
    """Authenticated, but the stored role does not allow the action."""

    status_code = status.HTTP_403_FORBIDDEN


def to_http_exception(exc: PawReferError) -> HTTPException:
    """Convert a domain error to the HTTPException routers raise."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
