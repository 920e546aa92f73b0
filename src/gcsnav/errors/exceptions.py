"""Exception hierarchy and HTTP error mapping for gcsnav."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GcsNavError(Exception):
    """
    Base exception for gcsnav.

    Attributes:
        details: Optional structured information (e.g., HTTP status, reason).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status code of the failed request, if the error came from one."""
        value = self.details.get("status_code")
        return value if isinstance(value, int) else None


class InvalidStateError(GcsNavError):
    """Raised when the provider is used in an invalid state (e.g., after close)."""


class AuthError(GcsNavError):
    """Raised when credentials cannot be obtained or are rejected (HTTP 401)."""


class PermissionError(GcsNavError):
    """Raised when access is denied (HTTP 403 non-quota)."""


class InvalidArgumentError(GcsNavError):
    """Raised when a path, option or request argument is invalid (HTTP 400, etc.)."""


class NotFoundError(GcsNavError):
    """Raised when a bucket or object is not found (HTTP 404)."""


class ConflictError(GcsNavError):
    """Raised when a conflict occurs (HTTP 409/412, e.g. deleting a non-empty bucket)."""


class RateLimitError(GcsNavError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(GcsNavError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(GcsNavError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(GcsNavError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to gcsnav exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


# 403 reasons Cloud Storage uses for short-term throttling.
_RATE_LIMIT_REASONS: frozenset[str] = frozenset(
    {"ratelimitexceeded", "userratelimitexceeded"}
)

_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "dailyLimitExceeded",
    "usageLimits",
)


def _is_rate_limit_reason(reason: str | None) -> bool:
    return bool(reason) and reason.lower() in _RATE_LIMIT_REASONS


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GcsNavError:
    """
    Map an HTTP error to a gcsnav exception.

    Policy:
        - 401 -> AuthError
        - 403 -> PermissionError (default), RateLimitError for rate-limit
          reasons, QuotaExceededError for other quota reasons
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - 400 -> InvalidArgumentError
        - 5xx -> ApiError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _is_rate_limit_reason(info.reason):
            return RateLimitError(message, details=details, cause=cause)
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
