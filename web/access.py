"""Access gate: one shared token unlocks search and audio resolution.

This is a capability check, not authentication. There is no identity,
session or expiry; anyone holding the token has full access.
"""

import hmac
import logging
from typing import Optional

from errors import InternalError, Unauthorized

logger = logging.getLogger(__name__)


class AccessGate:
    """Compares a supplied token to the configured one in constant time."""

    def __init__(self, expected_token: str, api_key: str = ""):
        self._expected = (expected_token or "").encode()
        self._api_key = api_key or ""

    def check(self, supplied_token: Optional[str]) -> None:
        """Raise Unauthorized unless the supplied token matches exactly."""
        if not self._expected or not supplied_token:
            raise Unauthorized("Invalid access token")
        if not hmac.compare_digest(supplied_token.encode(), self._expected):
            logger.info("Rejected request with invalid access token")
            raise Unauthorized("Invalid access token")

    def authorize(self, supplied_token: Optional[str]) -> str:
        """Check the token and hand back the upstream API key."""
        self.check(supplied_token)
        if not self._api_key:
            logger.error("Search requested but no YouTube API key is configured")
            raise InternalError("YouTube API key not configured")
        return self._api_key
