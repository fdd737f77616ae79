"""Transport layer shared by every backend connection.

This package provides:
- HttpClient: request executor with retry/backoff and error translation
- LinkPaginator: RFC 5988 Link-header pagination
- GraphQLClient: GraphQL execution with partial-success semantics and
  Relay cursor pagination
- DeprecationTrackingClient: GraphQL wrapper recording id deprecations
- The error taxonomy raised by all of the above
"""

from trackerwire.transport.auth import AuthStrategy, BasicAuth, BearerAuth, NoAuth, QueryAuth
from trackerwire.transport.client import ApiResponse, HttpClient
from trackerwire.transport.config import ConnectionConfig
from trackerwire.transport.errors import extract_message, reclassify_invalid_id, translate_error
from trackerwire.transport.exceptions import (
    ApiError,
    AuthenticationError,
    CredentialValidationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from trackerwire.transport.graphql import DeprecationTrackingClient, GraphQLClient
from trackerwire.transport.pagination import LinkPaginator, parse_link_header
from trackerwire.transport.retry import FailureKind, RetryPolicy

__all__ = [
    # Auth
    "AuthStrategy",
    "BasicAuth",
    "BearerAuth",
    "NoAuth",
    "QueryAuth",
    # Client
    "ApiResponse",
    "ConnectionConfig",
    "HttpClient",
    "FailureKind",
    "RetryPolicy",
    # Pagination
    "LinkPaginator",
    "parse_link_header",
    # GraphQL
    "GraphQLClient",
    "DeprecationTrackingClient",
    # Errors
    "ApiError",
    "AuthenticationError",
    "CredentialValidationError",
    "NotFoundError",
    "RateLimitError",
    "ValidationError",
    "extract_message",
    "reclassify_invalid_id",
    "translate_error",
]
