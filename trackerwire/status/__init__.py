"""Status normalization between backend vocabularies and canonical statuses."""

from trackerwire.status.mapper import (
    CANONICAL_VALUES,
    DEFAULT_PATTERNS,
    CanonicalStatus,
    StatusMapper,
    parse_status_mappings,
)

__all__ = [
    "CANONICAL_VALUES",
    "DEFAULT_PATTERNS",
    "CanonicalStatus",
    "StatusMapper",
    "parse_status_mappings",
]
