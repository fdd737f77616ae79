"""Backend-agnostic error taxonomy.

This module defines the exceptions raised by the transport layer:
- AuthenticationError: credentials rejected (401/403, GraphQL "unauthorized")
- NotFoundError: resource missing (404, GraphQL "not found")
- RateLimitError: backend throttled the caller (429)
- ApiError: generic catch-all carrying the original failure and status
- ValidationError: request rejected as malformed (400/422, GraphQL errors)

Connection setup raises:
- CredentialValidationError: required credential keys are missing
"""

from __future__ import annotations

from typing import Any, ClassVar

from trackerwire.utils.errors import ExitCode, TrackerWireError


class AuthenticationError(TrackerWireError):
    """Raised when the backend rejects the configured credentials."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.AUTHENTICATION_FAILED


class NotFoundError(TrackerWireError):
    """Raised when the requested resource does not exist."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.NOT_FOUND


class RateLimitError(TrackerWireError):
    """Raised when the backend rate limit is exceeded.

    Attributes:
        retry_after: Raw ``Retry-After`` header value, if the backend sent one
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.RATE_LIMITED

    def __init__(self, message: str = "", retry_after: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    @property
    def retry_after_seconds(self) -> float | None:
        """``retry_after`` as seconds when it is numeric, else None."""
        if self.retry_after is None:
            return None
        try:
            return float(self.retry_after)
        except ValueError:
            return None


class ApiError(TrackerWireError):
    """Raised for API failures that have no more specific classification.

    Attributes:
        original_error: The underlying exception, if any
        status_code: HTTP status code, or None for transport failures
        response_body: Raw response body text, if any
    """

    def __init__(
        self,
        message: str = "",
        original_error: BaseException | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.original_error = original_error
        self.status_code = status_code
        self.response_body = response_body


class ValidationError(ApiError):
    """Raised when the backend rejects the request contents.

    Attributes:
        errors: Field errors mapping, or the raw GraphQL error objects
    """

    def __init__(
        self,
        message: str = "",
        errors: Any = None,
        original_error: BaseException | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(
            message,
            original_error=original_error,
            status_code=status_code,
            response_body=response_body,
        )
        self.errors = errors if errors is not None else {}


class CredentialValidationError(TrackerWireError):
    """Raised when a connection is built without its required credentials.

    Attributes:
        platform_name: Name of the platform (e.g., "Jira", "Trello")
        missing_keys: Set of credential keys that are missing
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.CONFIGURATION_ERROR

    def __init__(
        self,
        platform_name: str,
        missing_keys: set[str] | frozenset[str],
        message: str | None = None,
    ) -> None:
        self.platform_name = platform_name
        self.missing_keys = missing_keys
        if message is None:
            message = (
                f"{platform_name} connection missing required credentials: "
                f"{sorted(missing_keys)}"
            )
        super().__init__(message)


__all__ = [
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ApiError",
    "ValidationError",
    "CredentialValidationError",
]
