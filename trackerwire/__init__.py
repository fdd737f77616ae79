"""trackerwire - one request/response model for project-management backends.

This package provides the transport and normalization layer shared by
issue tracker and kanban board adapters: the HTTP/GraphQL client, the
error taxonomy, status normalization and webhook ingestion.
"""

__version__ = "0.3.0"
SCRIPT_NAME = "trackerwire"
USER_AGENT = f"trackerwire/{__version__}"

__all__ = [
    "__version__",
    "SCRIPT_NAME",
    "USER_AGENT",
]
