"""Backend configuration for trackerwire connections.

This module turns a raw options mapping (as loaded from a settings file or
built in code) into an immutable BackendConfig with named, validated
fields:

    config = BackendConfig.from_mapping("jira", {
        "site_url": "https://acme.atlassian.net",
        "username": "bot@acme.test",
        "api_token": "${JIRA_API_TOKEN}",
        "retry_options": {"max": 5, "interval": 1, "backoff_factor": 2},
        "status_mappings": {"Ready for QA": "in_progress"},
    })

Validation:
    - Credential aliases are canonicalized before required keys are checked
    - ``${VAR}`` references are expanded; unexpanded credentials are errors
    - Retry options and timeouts must be positive numbers
    - Status mapping targets must be canonical statuses
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from trackerwire.status.mapper import parse_status_mappings
from trackerwire.transport.config import DEFAULT_TIMEOUT_SECONDS
from trackerwire.transport.retry import DEFAULT_RETRYABLE_STATUSES, RetryPolicy
from trackerwire.utils.env_utils import EnvVarExpansionError, expand_env_vars, redact_options
from trackerwire.utils.errors import ConfigValidationError


class Platform(Enum):
    """Supported project-management backends."""

    JIRA = "jira"
    TRELLO = "trello"
    GITHUB_REPO = "github_repo"
    GITHUB_PROJECT = "github_project"
    BASECAMP = "basecamp"
    FIZZY = "fizzy"


# Alternative platform names accepted by parse_platform
PLATFORM_ALIASES: dict[str, Platform] = {
    "github": Platform.GITHUB_REPO,
    "github_projects": Platform.GITHUB_PROJECT,
}

PLATFORM_REQUIRED_CREDENTIALS: dict[Platform, frozenset[str]] = {
    Platform.JIRA: frozenset({"site_url", "username", "api_token"}),
    Platform.TRELLO: frozenset({"api_key", "api_token"}),
    Platform.GITHUB_REPO: frozenset({"owner", "repo", "access_token"}),
    Platform.GITHUB_PROJECT: frozenset({"access_token"}),
    Platform.BASECAMP: frozenset({"account_id", "access_token"}),
    Platform.FIZZY: frozenset({"account_slug", "access_token"}),
}

# Credential key aliases, alias -> canonical name per platform
CREDENTIAL_ALIASES: dict[Platform, dict[str, str]] = {
    Platform.JIRA: {
        "site": "site_url",
        "url": "site_url",
        "base_url": "site_url",
        "email": "username",
        "token": "api_token",
    },
    Platform.TRELLO: {"key": "api_key", "token": "api_token"},
    Platform.GITHUB_REPO: {"token": "access_token"},
    Platform.GITHUB_PROJECT: {"token": "access_token"},
    Platform.BASECAMP: {"token": "access_token"},
    Platform.FIZZY: {"token": "access_token"},
}

RETRY_OPTION_KEYS = frozenset({"max", "interval", "backoff_factor", "statuses", "methods"})

_UNEXPANDED_ENV_VAR_PATTERN = re.compile(r"\$\{[^}]+\}")

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def parse_platform(value: str | Platform, context: str = "") -> Platform:
    """Safely parse a Platform from a string value.

    Args:
        value: Platform name (e.g. "jira", "github_repo") or a Platform
        context: Context string for error messages

    Raises:
        ConfigValidationError: If value is not a supported platform
    """
    if isinstance(value, Platform):
        return value
    value_lower = str(value).strip().lower()
    if value_lower in PLATFORM_ALIASES:
        return PLATFORM_ALIASES[value_lower]
    try:
        return Platform(value_lower)
    except ValueError:
        context_msg = f" in {context}" if context else ""
        valid_values = [p.value for p in Platform]
        raise ConfigValidationError(
            f"Invalid platform '{value}'{context_msg}. Allowed values: {', '.join(valid_values)}"
        ) from None


def canonicalize_credentials(platform: Platform, options: Mapping[str, Any]) -> dict[str, Any]:
    """Replace aliased option keys with their canonical names.

    Keys are lower-cased. An explicitly canonical key wins over its alias.

    Example:
        >>> canonicalize_credentials(Platform.TRELLO, {"key": "k", "token": "t"})
        {'api_key': 'k', 'api_token': 't'}
    """
    aliases = CREDENTIAL_ALIASES.get(platform, {})
    canonicalized: dict[str, Any] = {}
    for key, value in options.items():
        key_lower = str(key).lower()
        canonical_key = aliases.get(key_lower, key_lower)
        if canonical_key != key_lower and canonical_key in canonicalized:
            continue
        canonicalized[canonical_key] = value
    return canonicalized


def _contains_unexpanded_env_var(value: str) -> bool:
    return bool(_UNEXPANDED_ENV_VAR_PATTERN.search(value))


def validate_credentials(
    platform: Platform,
    options: Mapping[str, Any],
    strict: bool = True,
) -> list[str]:
    """Check that every required credential for ``platform`` is present and set.

    Args:
        platform: Backend platform
        options: Canonicalized, env-expanded options
        strict: Raise instead of returning the problems

    Returns:
        List of validation messages (empty when valid)

    Raises:
        ConfigValidationError: If strict and validation fails
    """
    errors: list[str] = []
    required_fields = PLATFORM_REQUIRED_CREDENTIALS[platform]

    missing_fields = required_fields - set(options.keys())
    if missing_fields:
        errors.append(
            f"Missing required credential fields for '{platform.value}': "
            f"{', '.join(sorted(missing_fields))}"
        )

    for field_name in sorted(required_fields & set(options.keys())):
        value = options[field_name]
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"Credential field '{field_name}' for '{platform.value}' is empty")
        elif isinstance(value, str) and _contains_unexpanded_env_var(value):
            errors.append(
                f"Credential field '{field_name}' for '{platform.value}' contains "
                f"unexpanded environment variable"
            )

    if strict and errors:
        raise ConfigValidationError("; ".join(errors))
    return errors


def _positive_number(options: Mapping[str, Any], key: str, default: float) -> float:
    value = options.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigValidationError(
            f"Retry option '{key}' must be a positive number, got {value!r}"
        )
    return float(value)


def parse_retry_options(raw: Mapping[str, Any] | None) -> RetryPolicy:
    """Build a RetryPolicy from the ``retry_options`` surface.

    Recognized keys: ``max`` (positive int), ``interval`` (positive seconds),
    ``backoff_factor`` (positive number), ``statuses`` (list of HTTP status
    codes) and ``methods`` (HTTP verbs eligible for retry; all when omitted).

    Raises:
        ConfigValidationError: For unknown keys or invalid values
    """
    if raw is None:
        return RetryPolicy()
    if not isinstance(raw, Mapping):
        raise ConfigValidationError(
            f"retry_options must be a mapping, got {type(raw).__name__}"
        )

    unknown = set(raw) - RETRY_OPTION_KEYS
    if unknown:
        raise ConfigValidationError(
            f"Unknown retry option(s): {', '.join(sorted(map(str, unknown)))}. "
            f"Allowed keys: {', '.join(sorted(RETRY_OPTION_KEYS))}"
        )

    defaults = RetryPolicy()
    max_attempts = raw.get("max", defaults.max_attempts)
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise ConfigValidationError(
            f"Retry option 'max' must be a positive integer, got {max_attempts!r}"
        )

    statuses = raw.get("statuses", DEFAULT_RETRYABLE_STATUSES)
    if not isinstance(statuses, _SEQUENCE_TYPES) or not all(
        isinstance(code, int) and not isinstance(code, bool) for code in statuses
    ):
        raise ConfigValidationError(
            f"Retry option 'statuses' must be a list of status codes, got {statuses!r}"
        )

    methods = raw.get("methods")
    if methods is not None and (
        not isinstance(methods, _SEQUENCE_TYPES) or not all(isinstance(m, str) for m in methods)
    ):
        raise ConfigValidationError(
            f"Retry option 'methods' must be a list of HTTP verbs, got {methods!r}"
        )

    return RetryPolicy(
        max_attempts=max_attempts,
        initial_interval=_positive_number(raw, "interval", defaults.initial_interval),
        backoff_factor=_positive_number(raw, "backoff_factor", defaults.backoff_factor),
        retryable_statuses=frozenset(statuses),
        retry_methods=frozenset(methods) if methods is not None else None,
    )


def _parse_timeout(value: Any) -> float:
    if value is None:
        return DEFAULT_TIMEOUT_SECONDS
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigValidationError(f"timeout must be a positive number, got {value!r}")
    return float(value)


@dataclass(frozen=True, repr=False)
class BackendConfig:
    """Validated configuration for one backend connection.

    Attributes:
        platform: Backend platform
        options: Canonicalized credentials and backend settings
        retry: Retry policy for the connection's HttpClient
        status_mappings: Raw status mapping option (validated)
        webhook_secret: Shared webhook secret; None disables verification
        timeout: Per-attempt timeout in seconds
        user_agent: User-Agent override
    """

    platform: Platform
    options: Mapping[str, Any] = field(default_factory=dict)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    status_mappings: Mapping[str, Any] = field(default_factory=dict)
    webhook_secret: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))
        object.__setattr__(self, "status_mappings", MappingProxyType(dict(self.status_mappings)))

    @classmethod
    def from_mapping(
        cls,
        platform: str | Platform,
        options: Mapping[str, Any],
        strict_env: bool = False,
    ) -> BackendConfig:
        """Build and validate a BackendConfig from raw options.

        Args:
            platform: Platform name or enum
            options: Credentials, backend settings and the reserved keys
                ``retry_options``, ``status_mappings``, ``webhook_secret``,
                ``timeout`` and ``user_agent``
            strict_env: Fail on any unset ``${VAR}`` reference, not only
                those in required credentials

        Raises:
            ConfigValidationError: If any option is missing or invalid
        """
        resolved = parse_platform(platform, context="backend configuration")
        try:
            expanded = expand_env_vars(dict(options), strict=strict_env, context=resolved.value)
        except EnvVarExpansionError as e:
            raise ConfigValidationError(str(e)) from e

        settings = canonicalize_credentials(resolved, expanded)
        retry = parse_retry_options(settings.pop("retry_options", None))
        status_mappings = settings.pop("status_mappings", None) or {}
        if not isinstance(status_mappings, Mapping):
            raise ConfigValidationError(
                f"status_mappings must be a mapping, got {type(status_mappings).__name__}"
            )
        parse_status_mappings(status_mappings)
        webhook_secret = settings.pop("webhook_secret", None) or None
        timeout = _parse_timeout(settings.pop("timeout", None))
        user_agent = settings.pop("user_agent", None)
        settings.pop("platform", None)

        validate_credentials(resolved, settings)

        return cls(
            platform=resolved,
            options=settings,
            retry=retry,
            status_mappings=status_mappings,
            webhook_secret=webhook_secret,
            timeout=timeout,
            user_agent=user_agent,
        )

    def option(self, key: str, default: Any = None) -> Any:
        """Return a backend option, or ``default`` when unset."""
        return self.options.get(key, default)

    def __repr__(self) -> str:
        return (
            f"BackendConfig(platform={self.platform.value!r}, "
            f"options={redact_options(self.options)!r}, retry={self.retry!r}, "
            f"webhook_secret={'***' if self.webhook_secret else None!r}, "
            f"timeout={self.timeout!r})"
        )


__all__ = [
    "CREDENTIAL_ALIASES",
    "PLATFORM_ALIASES",
    "PLATFORM_REQUIRED_CREDENTIALS",
    "BackendConfig",
    "Platform",
    "canonicalize_credentials",
    "parse_platform",
    "parse_retry_options",
    "validate_credentials",
]
