"""Translation of failed responses into the error taxonomy.

The mapping is backend-agnostic. Connections that need to reinterpret a
specific error instance layer an override (see reclassify_invalid_id)
after translate_error rather than changing the generic contract.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from trackerwire.transport.exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerWireError,
    ValidationError,
)

_INVALID_ID = re.compile(r"invalid id", re.IGNORECASE)

AUTHENTICATION_STATUSES = frozenset({401, 403})
VALIDATION_STATUSES = frozenset({400, 422})


def extract_message(body: str | bytes | None) -> str:
    """Pull a human-readable message out of an error response body.

    Looks for a ``message`` field, then an ``error`` field (either a string
    or an object with its own ``message``). Falls back to the raw body
    text when the body is not a JSON object or has neither field.
    """
    if body is None:
        return ""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        parsed: Any = json.loads(text)
    except ValueError:
        return text
    if not isinstance(parsed, dict):
        return text

    message = parsed.get("message")
    if isinstance(message, str) and message:
        return message
    error = parsed.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return str(error["message"])
    return text


def translate_error(
    status_code: int | None,
    body: str | bytes | None,
    headers: Mapping[str, str] | None = None,
    original_error: BaseException | None = None,
) -> TrackerWireError:
    """Map a failed response to one exception of the taxonomy.

    Args:
        status_code: HTTP status, or None when no response was received
        body: Raw response body
        headers: Response headers, used for the ``Retry-After`` hint
        original_error: Underlying transport exception, if any

    Returns:
        The exception to raise (not raised here)
    """
    body_text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    message = extract_message(body_text)
    if not message and original_error is not None:
        message = str(original_error)

    if status_code in AUTHENTICATION_STATUSES:
        return AuthenticationError(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 429:
        retry_after = headers.get("Retry-After") if headers is not None else None
        return RateLimitError(message, retry_after=retry_after)
    if status_code in VALIDATION_STATUSES:
        return ValidationError(message, status_code=status_code, response_body=body_text)
    return ApiError(
        f"HTTP {status_code if status_code is not None else 'N/A'}: {message}",
        original_error=original_error,
        status_code=status_code,
        response_body=body_text,
    )


def reclassify_invalid_id(error: TrackerWireError) -> TrackerWireError:
    """Turn a 400 "invalid id" ValidationError into a NotFoundError.

    Trello signals a missing or malformed resource id with HTTP 400 and the
    text ``invalid id`` instead of a 404. Any other error is returned as is.
    """
    if not isinstance(error, ValidationError):
        return error
    if error.status_code not in (None, 400):
        return error
    if _INVALID_ID.search(str(error)) or _INVALID_ID.search(error.response_body or ""):
        return NotFoundError(str(error))
    return error


__all__ = [
    "AUTHENTICATION_STATUSES",
    "VALIDATION_STATUSES",
    "extract_message",
    "reclassify_invalid_id",
    "translate_error",
]
