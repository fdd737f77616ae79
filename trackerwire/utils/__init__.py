"""Utility modules for trackerwire.

This package contains:
- console: Rich-based terminal output for the CLI
- env_utils: Environment variable expansion for backend options
- logging: Logging configuration
"""

from trackerwire.utils.env_utils import (
    SENSITIVE_KEY_PATTERNS,
    EnvVarExpansionError,
    expand_env_vars,
    is_sensitive_key,
    redact_options,
)
from trackerwire.utils.logging import get_logger, log_message, setup_logging

__all__ = [
    # Env Utils
    "EnvVarExpansionError",
    "SENSITIVE_KEY_PATTERNS",
    "expand_env_vars",
    "is_sensitive_key",
    "redact_options",
    # Logging
    "setup_logging",
    "get_logger",
    "log_message",
]
