"""Environment variable helpers for backend options.

Backend options usually reference secrets indirectly (``${JIRA_TOKEN}``)
so that configuration files can be committed. This module expands those
references and keeps secret values out of log output.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from typing import Any

# Option names containing these substrings hold secrets and must not be logged
SENSITIVE_KEY_PATTERNS = ("TOKEN", "KEY", "SECRET", "PASSWORD", "CREDENTIAL")

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")

logger = logging.getLogger(__name__)


class EnvVarExpansionError(Exception):
    """Raised when a referenced environment variable is not set in strict mode."""

    pass


def is_sensitive_key(key: str) -> bool:
    """Check if an option name refers to a secret value."""
    key_upper = key.upper()
    return any(pattern in key_upper for pattern in SENSITIVE_KEY_PATTERNS)


def expand_env_vars(value: Any, strict: bool = False, context: str = "") -> Any:
    """Recursively expand ``${VAR}`` references in strings, dicts and lists.

    Args:
        value: The value to expand
        strict: Raise EnvVarExpansionError for unset variables instead of
            leaving the ``${VAR}`` reference in place
        context: Dotted option path used in messages. Omitted from messages
            when it names a sensitive option.

    Returns:
        The value with references replaced by environment values

    Raises:
        EnvVarExpansionError: If strict and a referenced variable is unset
    """
    if isinstance(value, str):
        missing: list[str] = []

        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            env_value = os.environ.get(name)
            if env_value is None:
                missing.append(name)
                return match.group(0)
            return env_value

        result = _ENV_REFERENCE.sub(replace, value)
        if missing:
            where = f" in {context}" if context and not is_sensitive_key(context) else ""
            if strict:
                raise EnvVarExpansionError(
                    f"Missing environment variable(s): {', '.join(missing)}{where}"
                )
            logger.warning(f"Environment variable(s) not set{where}: {', '.join(missing)}")
        return result
    if isinstance(value, Mapping):
        return {
            k: expand_env_vars(v, strict=strict, context=f"{context}.{k}" if context else str(k))
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [
            expand_env_vars(v, strict=strict, context=f"{context}[{i}]")
            for i, v in enumerate(value)
        ]
    return value


def redact_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``options`` safe to log, with secret values masked."""
    return {
        key: "***" if is_sensitive_key(str(key)) and value else value
        for key, value in options.items()
    }


__all__ = [
    "EnvVarExpansionError",
    "SENSITIVE_KEY_PATTERNS",
    "expand_env_vars",
    "is_sensitive_key",
    "redact_options",
]
