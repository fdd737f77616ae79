"""HMAC signature verification for inbound webhooks.

Backends sign the exact request bytes with a shared secret and send the
result as ``X-Hub-Signature-256: sha256=<hexdigest>``. Verification must
run over the raw body as received; re-serializing parsed JSON changes the
bytes and breaks the signature.

SECURITY: a verifier built without a secret accepts every request. This
keeps local development working, but production receivers must always be
configured with a secret.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_ALGORITHM = "sha256"


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def secure_compare(a: str | bytes, b: str | bytes) -> bool:
    """Constant-time equality check.

    Lengths are compared first. Equal-length inputs are compared by
    XOR-accumulating every byte pair, so the running time does not depend
    on the position of the first mismatch.
    """
    left = _to_bytes(a)
    right = _to_bytes(b)
    if len(left) != len(right):
        return False

    result = 0
    for x, y in zip(left, right):
        result |= x ^ y
    return result == 0


def compute_signature(secret: str | bytes, raw_body: str | bytes) -> str:
    """Return the ``sha256=<hexdigest>`` header value for ``raw_body``."""
    digest = hmac.new(_to_bytes(secret), _to_bytes(raw_body), hashlib.sha256).hexdigest()
    return f"{SIGNATURE_ALGORITHM}={digest}"


class WebhookVerifier:
    """Checks webhook signatures against a shared secret.

    Verification failures are reported as False, never raised, so the
    receiving endpoint decides how to reject the request.
    """

    def __init__(self, secret: str | bytes | None = None) -> None:
        """Initialize the verifier.

        Args:
            secret: Shared webhook secret. None or empty disables
                verification entirely (every request is accepted).
        """
        self._secret = _to_bytes(secret) if secret else None
        self._warned_disabled = False

    @property
    def enabled(self) -> bool:
        """True when a secret is configured and signatures are checked."""
        return self._secret is not None

    def verify(self, raw_body: str | bytes, signature_header: str | None) -> bool:
        """Check ``signature_header`` against the HMAC of ``raw_body``.

        Args:
            raw_body: Exact request body bytes. Strings are UTF-8 encoded.
            signature_header: Value of the signature header, or None when
                the request carried none

        Returns:
            True when no secret is configured or the signature matches
        """
        if self._secret is None:
            if not self._warned_disabled:
                logger.warning(
                    "Webhook signature verification is disabled (no secret configured); "
                    "accepting unsigned requests"
                )
                self._warned_disabled = True
            return True

        if not signature_header:
            logger.warning(f"Rejected webhook: missing {SIGNATURE_HEADER} header")
            return False

        algorithm, sep, provided = signature_header.strip().partition("=")
        if not sep or algorithm != SIGNATURE_ALGORITHM or not provided:
            logger.warning(
                f"Rejected webhook: unsupported signature format (algorithm {algorithm!r})"
            )
            return False

        expected = hmac.new(self._secret, _to_bytes(raw_body), hashlib.sha256).hexdigest()
        if not secure_compare(provided, expected):
            logger.warning("Rejected webhook: signature mismatch")
            return False
        return True

    def __repr__(self) -> str:
        return f"WebhookVerifier(enabled={self.enabled})"


__all__ = [
    "SIGNATURE_ALGORITHM",
    "SIGNATURE_HEADER",
    "WebhookVerifier",
    "compute_signature",
    "secure_compare",
]
