"""
Exception handling utilities.

Defines the domain error taxonomy and categorizes exceptions by handling
strategy (surface to caller vs. retry in the worker).
"""

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import OperationalError


class ReferralError(Exception):
    """
    Base class for referral domain errors.

    Carries a stable machine code and the HTTP status an outer surface
    should map it to.
    """

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Serializable error payload."""
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(ReferralError):
    """Unknown code, referral or reward."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(ReferralError):
    """Request is well-formed but not allowed in the current state."""

    status_code = 400
    code = "VALIDATION_ERROR"


class ForbiddenError(ReferralError):
    """Caller may not act on the resource."""

    status_code = 403
    code = "FORBIDDEN"


class ConflictError(ReferralError):
    """Unique key already taken at insert time."""

    status_code = 409
    code = "CONFLICT"


class CodeGenerationError(ReferralError):
    """No free referral code found within the attempt limit."""


# Exception categories based on handling strategy

# Deterministic: retrying cannot change the outcome
NON_RETRYABLE = (
    NotFoundError,
    ValidationError,
    ForbiddenError,
    ConflictError,
)

# Infrastructure hiccups: the worker retries these with backoff
TRANSIENT = (
    OperationalError,
    RedisConnectionError,
    RedisTimeoutError,
)


def is_retryable(exc: BaseException) -> bool:
    """
    Check if a failed job should be retried.

    Anything that is not a deterministic domain error is retried.

    Args:
        exc: Exception raised by the job

    Returns:
        True if the job should be retried
    """
    return not isinstance(exc, NON_RETRYABLE)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is an infrastructure failure.

    Args:
        exc: Exception to check

    Returns:
        True if exception is transient
    """
    return isinstance(exc, TRANSIENT)
