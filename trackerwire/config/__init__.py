"""Backend configuration: platforms, credentials, retry and status options."""

from trackerwire.config.backend_config import (
    CREDENTIAL_ALIASES,
    PLATFORM_REQUIRED_CREDENTIALS,
    BackendConfig,
    Platform,
    canonicalize_credentials,
    parse_platform,
    parse_retry_options,
    validate_credentials,
)

__all__ = [
    "CREDENTIAL_ALIASES",
    "PLATFORM_REQUIRED_CREDENTIALS",
    "BackendConfig",
    "Platform",
    "canonicalize_credentials",
    "parse_platform",
    "parse_retry_options",
    "validate_credentials",
]
