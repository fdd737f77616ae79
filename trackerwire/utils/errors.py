"""Base exception and exit codes for trackerwire.

Every exception raised by the package derives from TrackerWireError, so
callers can catch the whole family at one seam. Each exception type has
an associated exit code used by the CLI.
"""

from enum import IntEnum
from typing import ClassVar


class ExitCode(IntEnum):
    """Process exit codes used by the trackerwire CLI."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIGURATION_ERROR = 2
    AUTHENTICATION_FAILED = 3
    NOT_FOUND = 4
    RATE_LIMITED = 5


class TrackerWireError(Exception):
    """Base exception for trackerwire errors."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.GENERAL_ERROR

    def __init__(self, message: str = "", exit_code: ExitCode | None = None) -> None:
        super().__init__(message)
        self._exit_code = exit_code

    @property
    def message(self) -> str:
        return str(self)

    @property
    def exit_code(self) -> ExitCode:
        """Get the exit code for this exception."""
        if self._exit_code is not None:
            return self._exit_code
        return self.__class__._default_exit_code


class ConfigValidationError(TrackerWireError):
    """Raised when backend configuration is invalid.

    This exception is raised for fail-fast behavior when:
    - Required credential fields are missing or malformed
    - Retry options are not positive numbers
    - A status mapping targets an unknown canonical status
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.CONFIGURATION_ERROR


__all__ = [
    "ExitCode",
    "TrackerWireError",
    "ConfigValidationError",
]
