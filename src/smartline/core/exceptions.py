"""Standardized exception hierarchy for the trip engine."""

from enum import Enum
from typing import Any


class SmartlineError(Exception):
    """Base exception for all trip engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(SmartlineError):
    """Errors that may succeed on retry."""

    pass


class NetworkError(TransientError):
    """Network-related transient errors (timeout, connection refused)."""

    pass


class AttemptTimeoutError(NetworkError):
    """A single attempt exceeded the per-attempt timeout of a retry policy."""

    pass


class ServiceUnavailableError(TransientError):
    """Backend temporarily unavailable (5xx responses)."""

    pass


class PermanentError(SmartlineError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Missing or invalid input, reported inline."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class StateError(PermanentError):
    """Invalid trip status transition."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass


class AuthorizationError(PermanentError):
    """Expired or invalid session. The user must sign in again."""

    pass


class BusinessRuleError(PermanentError):
    """Request rejected by a business rule. Recoverable by a user retry."""

    pass


class PromoRejectedError(BusinessRuleError):
    """Promo code is unknown, expired, exhausted or could not be verified."""

    pass


class RouteUnavailableError(BusinessRuleError):
    """No route could be resolved after the retry policy was exhausted."""

    pass


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONNECTIVITY = "connectivity"
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    UNKNOWN = "unknown"


def classify_error(exc: BaseException) -> ErrorCategory:
    """Map an exception onto the user-facing error taxonomy."""
    if isinstance(exc, ValidationError):
        return ErrorCategory.VALIDATION
    if isinstance(exc, AuthorizationError):
        return ErrorCategory.AUTHORIZATION
    if isinstance(exc, TransientError):
        return ErrorCategory.CONNECTIVITY
    if isinstance(exc, BusinessRuleError | NotFoundError):
        return ErrorCategory.BUSINESS_RULE
    return ErrorCategory.UNKNOWN


_GENERIC_MESSAGES = {
    ErrorCategory.CONNECTIVITY: "Connection error. Please check your network and try again.",
    ErrorCategory.AUTHORIZATION: "Your session has expired. Please log in again.",
    ErrorCategory.UNKNOWN: "Something went wrong. Please try again.",
}


def user_message(exc: BaseException) -> str:
    """User-facing message for an exception.

    Validation and business-rule errors carry their own message; connectivity,
    authorization and unknown failures get a fixed text so a connection problem
    is never presented as a generic failure.
    """
    category = classify_error(exc)
    if category in _GENERIC_MESSAGES:
        return _GENERIC_MESSAGES[category]
    if isinstance(exc, SmartlineError):
        return exc.message
    return str(exc)
