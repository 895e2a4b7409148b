"""Typed application errors and retry helpers."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AppError(Exception):
    """Base class for errors surfaced to the dashboard user."""

    default_code = "APP_ERROR"
    default_context: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
        context: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details) if details else None
        self.context = context or self.default_context
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }


class NetworkError(AppError):
    default_code = "NETWORK_ERROR"
    default_context = "network"


class RequestTimeoutError(AppError):
    default_code = "TIMEOUT_ERROR"
    default_context = "timeout"


class ValidationError(AppError):
    default_code = "VALIDATION_ERROR"
    default_context = "validation"


class AuthenticationError(AppError):
    default_code = "AUTH_ERROR"
    default_context = "authentication"


class AuthorizationError(AppError):
    default_code = "AUTHORIZATION_ERROR"
    default_context = "authorization"


class NotFoundError(AppError):
    default_code = "NOT_FOUND"


class APIError(AppError):
    """Raised when the fleet API returns an error response."""

    default_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        code: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
        context: Optional[str] = None,
    ) -> None:
        if code is None and status_code is not None:
            code = str(status_code)
        super().__init__(
            message,
            code=code,
            details=details,
            context=context,
            status_code=status_code,
        )


_NON_RETRIABLE = (ValidationError, AuthenticationError, AuthorizationError, NotFoundError)


def is_retriable(error: BaseException) -> bool:
    """Return whether ``error`` is worth another attempt."""
    if isinstance(error, (NetworkError, RequestTimeoutError)):
        return True
    if isinstance(error, _NON_RETRIABLE):
        return False
    if isinstance(error, APIError):
        status = error.status_code
        return status is not None and (status == 429 or status >= 500)
    return True


def with_retry(
    operation: Callable[[], T],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    backoff_factor: float = 2.0,
    retry_condition: Callable[[BaseException], bool] = is_retriable,
) -> T:
    """Run ``operation`` and retry it with capped exponential backoff.

    The delay before attempt ``n + 1`` is
    ``min(base_delay * backoff_factor ** (n - 1), max_delay)``. The last
    error is re-raised when attempts run out or ``retry_condition`` rejects it.
    """
    attempt = 1
    while True:
        try:
            return operation()
        except Exception as exc:
            if attempt >= max_attempts or not retry_condition(exc):
                raise
            delay = min(base_delay * backoff_factor ** (attempt - 1), max_delay)
            logger.warning(
                "Operation failed (%s). Retrying in %.2fs (attempt %d/%d)",
                type(exc).__name__,
                delay,
                attempt,
                max_attempts,
            )
            time.sleep(delay)
            attempt += 1


def error_message(exc: BaseException, fallback: str) -> str:
    """Return the user-facing text for ``exc``."""
    if isinstance(exc, AppError) and exc.message:
        return exc.message
    text = str(exc)
    return text or fallback
