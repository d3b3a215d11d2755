"""Verification of Slack request signatures."""

import hashlib
import hmac
import logging
import time
from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"
SIGNATURE_VERSION = "v0"


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that also works for plain dicts."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class SignatureVerifier:
    """Checks that a webhook request was signed by Slack and is recent."""

    def __init__(
        self,
        signing_secret: str | None,
        max_age_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the verifier.

        Args:
            signing_secret: Slack app signing secret; ``None`` rejects everything
            max_age_seconds: Replay window for the request timestamp
            clock: Source of the current Unix time
        """
        self.signing_secret = signing_secret
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    def compute_signature(self, timestamp: str, raw_body: bytes) -> str:
        """Return the ``v0=<hex>`` signature Slack would send for this request."""
        base_string = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + raw_body
        digest = hmac.new(
            self.signing_secret.encode("utf-8"),
            base_string,
            hashlib.sha256,
        ).hexdigest()
        return f"{SIGNATURE_VERSION}={digest}"

    def verify(self, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        """Validate the signature and freshness of a request.

        Args:
            raw_body: Request body exactly as received
            headers: Request headers

        Returns:
            True only if the request is signed with our secret and fresh
        """
        if not self.signing_secret:
            logger.error("Slack signing secret not configured - rejecting request")
            return False

        timestamp = _get_header(headers, TIMESTAMP_HEADER)
        if not timestamp:
            logger.warning(f"Missing {TIMESTAMP_HEADER} header")
            return False

        try:
            request_time = int(timestamp)
        except ValueError:
            logger.warning(f"Unparsable request timestamp: {timestamp!r}")
            return False

        if abs(self._clock() - request_time) > self.max_age_seconds:
            logger.warning("Request timestamp outside replay window")
            return False

        received = _get_header(headers, SIGNATURE_HEADER)
        if not received:
            logger.warning(f"Missing {SIGNATURE_HEADER} header")
            return False

        expected = self.compute_signature(timestamp, raw_body)
        if not hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8")):
            logger.warning("Slack signature mismatch")
            return False

        return True
