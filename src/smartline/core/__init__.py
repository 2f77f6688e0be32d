"""Core utilities for the trip engine."""

from .exceptions import (
    AttemptTimeoutError,
    AuthorizationError,
    BusinessRuleError,
    ConfigurationError,
    ErrorCategory,
    NetworkError,
    NotFoundError,
    PermanentError,
    PromoRejectedError,
    RouteUnavailableError,
    ServiceUnavailableError,
    SmartlineError,
    StateError,
    TransientError,
    ValidationError,
    classify_error,
    user_message,
)
from .retry import RetryConfig, with_retry
from .scope import Discarded, FlowScope

__all__ = [
    "SmartlineError",
    "TransientError",
    "NetworkError",
    "AttemptTimeoutError",
    "ServiceUnavailableError",
    "PermanentError",
    "ValidationError",
    "NotFoundError",
    "StateError",
    "ConfigurationError",
    "AuthorizationError",
    "BusinessRuleError",
    "PromoRejectedError",
    "RouteUnavailableError",
    "ErrorCategory",
    "classify_error",
    "user_message",
    "RetryConfig",
    "with_retry",
    "Discarded",
    "FlowScope",
]
