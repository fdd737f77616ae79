"""Bidirectional mapping between backend status tokens and canonical statuses.

This module defines:
- CanonicalStatus: the closed, backend-agnostic lifecycle vocabulary
- DEFAULT_PATTERNS: ordered regex families used when no mapping matches
- StatusMapper: per-context custom mappings with pattern-matching fallback

Custom mappings come from backend configuration. Top-level string values
form the global mapping; top-level mapping values are scoped to a context
key such as a project or board id:

    {
        "Ready for QA": "in_progress",
        "board-42": {"Shipped": "closed", "Icebox": "on_hold"},
    }
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from trackerwire.utils.errors import ConfigValidationError

if TYPE_CHECKING:
    from trackerwire.config.backend_config import BackendConfig


class CanonicalStatus(str, Enum):
    """Normalized lifecycle states shared by every backend."""

    OPEN = "open"  # New, unstarted work
    IN_PROGRESS = "in_progress"  # Currently being worked on
    BLOCKED = "blocked"  # Waiting on an external dependency
    ON_HOLD = "on_hold"  # Temporarily paused
    CLOSED = "closed"  # Completed or resolved


CANONICAL_VALUES: frozenset[str] = frozenset(status.value for status in CanonicalStatus)

# Evaluated in this order, first match wins
DEFAULT_PATTERNS: tuple[tuple[re.Pattern[str], CanonicalStatus], ...] = (
    (
        re.compile(r"^(new|open|to[ _-]?do|backlog|ready|created)$", re.IGNORECASE),
        CanonicalStatus.OPEN,
    ),
    (
        re.compile(r"^(in[ _-]progress|active|working|started|doing)$", re.IGNORECASE),
        CanonicalStatus.IN_PROGRESS,
    ),
    (
        re.compile(r"^(blocked|waiting|pending|on[ _-]hold|paused)$", re.IGNORECASE),
        CanonicalStatus.BLOCKED,
    ),
    (
        re.compile(r"^(done|closed|completed|finished|resolved|fixed)$", re.IGNORECASE),
        CanonicalStatus.CLOSED,
    ),
)

_FALLBACK_SEPARATORS = re.compile(r"[ -]")

StatusLike = CanonicalStatus | str


def _token(status: StatusLike) -> str:
    # CanonicalStatus hashes by member name, so lookups use the plain value
    return status.value if isinstance(status, CanonicalStatus) else str(status)


def as_canonical(status: StatusLike | None) -> CanonicalStatus | None:
    """Return the CanonicalStatus equal to ``status``, or None."""
    if status is None:
        return None
    token = _token(status)
    return CanonicalStatus(token) if token in CANONICAL_VALUES else None


def fallback_token(status: str) -> str:
    """Lossy backend-specific symbol: lower-cased, spaces and dashes as ``_``.

    Surrounding whitespace is kept, so ``" Foo "`` becomes ``"_foo_"``.
    """
    return _FALLBACK_SEPARATORS.sub("_", status.lower())


def match_default_pattern(status: str) -> CanonicalStatus | None:
    """Return the first pattern family ``status`` belongs to, or None."""
    token = status.strip()
    for pattern, canonical in DEFAULT_PATTERNS:
        if pattern.match(token):
            return canonical
    return None


def parse_status_mappings(
    raw: Mapping[str, Any] | None,
) -> tuple[dict[str, CanonicalStatus], dict[str, dict[str, CanonicalStatus]]]:
    """Split a raw mapping option into global and per-context tables.

    Returns:
        ``(global_mapping, context_mappings)`` with every target coerced to
        a CanonicalStatus

    Raises:
        ConfigValidationError: If a target is not a canonical status or a
            context entry is neither a string nor a mapping
    """
    global_mapping: dict[str, CanonicalStatus] = {}
    context_mappings: dict[str, dict[str, CanonicalStatus]] = {}

    for key, value in (raw or {}).items():
        if isinstance(value, Mapping):
            context_mappings[str(key)] = {
                str(native): _validated_target(target, f"{key}.{native}")
                for native, target in value.items()
            }
        elif isinstance(value, str):
            global_mapping[str(key)] = _validated_target(value, str(key))
        else:
            raise ConfigValidationError(
                f"Invalid status mapping for '{key}': expected a status name or a "
                f"mapping of status names, got {type(value).__name__}"
            )
    return global_mapping, context_mappings


def _validated_target(target: Any, where: str) -> CanonicalStatus:
    canonical = as_canonical(target) if isinstance(target, str) else None
    if canonical is None:
        raise ConfigValidationError(
            f"Invalid status mapping target '{target}' for '{where}'. "
            f"Allowed values: {', '.join(status.value for status in CanonicalStatus)}"
        )
    return canonical


class StatusMapper:
    """Normalizes backend status strings to CanonicalStatus and back.

    Lookups consult the context-specific mapping first, then the global
    mapping, then DEFAULT_PATTERNS. Mappings are read-only after
    construction.

    Example:
        >>> mapper = StatusMapper("trello", {"board-1": {"Shipped": "closed"}})
        >>> mapper.normalize("Shipped", context="board-1")
        <CanonicalStatus.CLOSED: 'closed'>
        >>> mapper.denormalize("closed", context="board-1")
        'Shipped'
    """

    def __init__(self, adapter_type: str, custom_mappings: Mapping[str, Any] | None = None) -> None:
        """Initialize the mapper.

        Args:
            adapter_type: Platform the statuses come from (e.g. "jira")
            custom_mappings: Raw mapping option, see the module docstring

        Raises:
            ConfigValidationError: If a mapping target is not canonical
        """
        self.adapter_type = adapter_type
        global_mapping, context_mappings = parse_status_mappings(custom_mappings)
        self._global = MappingProxyType(global_mapping)
        self._contexts = MappingProxyType(
            {key: MappingProxyType(table) for key, table in context_mappings.items()}
        )

    @classmethod
    def from_config(cls, config: BackendConfig) -> StatusMapper:
        """Create a mapper from a backend's configured status mappings."""
        return cls(config.platform.value, config.status_mappings)

    @property
    def global_mappings(self) -> Mapping[str, CanonicalStatus]:
        return self._global

    def context_mappings(self, context: Any) -> Mapping[str, CanonicalStatus]:
        """Mapping scoped to ``context``, empty when none is configured."""
        if context is None:
            return MappingProxyType({})
        return self._contexts.get(str(context), MappingProxyType({}))

    def _lookup(self, native: str, context: Any) -> CanonicalStatus | None:
        scoped = self.context_mappings(context)
        if native in scoped:
            return scoped[native]
        return self._global.get(native)

    def _scoped_items(self, context: Any) -> list[tuple[str, CanonicalStatus]]:
        # Context entries first so reverse lookups prefer them
        items = list(self.context_mappings(context).items())
        seen = {native for native, _ in items}
        items.extend(
            (native, target) for native, target in self._global.items() if native not in seen
        )
        return items

    def normalize(self, status: StatusLike, context: Any = None) -> StatusLike:
        """Convert a backend status to its canonical form.

        Args:
            status: Backend-native status token, or a canonical status
            context: Optional project/board key selecting scoped mappings

        Returns:
            A CanonicalStatus, or the lossy fallback token (lower-cased,
            spaces and dashes replaced by ``_``) when nothing matches.
            The fallback is backend-specific and may not be canonical.
        """
        canonical = as_canonical(status)
        if canonical is not None:
            return canonical

        native = _token(status)
        mapped = self._lookup(native, context)
        if mapped is not None:
            return mapped

        matched = match_default_pattern(native)
        if matched is not None:
            return matched
        return fallback_token(native)

    def denormalize(self, status: StatusLike, context: Any = None) -> StatusLike:
        """Convert a canonical status back to a backend-native token.

        Returns the first native token whose mapping targets ``status``,
        searching the context mapping before the global one. Without a
        match ``status`` is returned unchanged for the caller to handle.
        """
        target = _token(status)
        for native, mapped in self._scoped_items(context):
            if mapped.value == target:
                return native
        return status

    def status_known(self, status: StatusLike | None, context: Any = None) -> bool:
        """True for canonical statuses, mapped tokens and default-pattern matches."""
        if status is None:
            return False
        if as_canonical(status) is not None:
            return True
        native = _token(status)
        if self._lookup(native, context) is not None:
            return True
        return match_default_pattern(native) is not None

    def valid_statuses(self, context: Any = None) -> set[str]:
        """Canonical values plus the mapped and fallback forms of custom tokens."""
        statuses = set(CANONICAL_VALUES)
        for native, mapped in self._scoped_items(context):
            statuses.add(mapped.value)
            statuses.add(fallback_token(native))
        return statuses

    def __repr__(self) -> str:
        return (
            f"StatusMapper(adapter_type={self.adapter_type!r}, "
            f"global={len(self._global)}, contexts={sorted(self._contexts)!r})"
        )


__all__ = [
    "CANONICAL_VALUES",
    "DEFAULT_PATTERNS",
    "CanonicalStatus",
    "StatusMapper",
    "as_canonical",
    "fallback_token",
    "match_default_pattern",
    "parse_status_mappings",
]
