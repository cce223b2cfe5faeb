"""Shared web infrastructure: slowapi rate limiter and route limits.

Neutral module with no imports from web.*, safe for all web modules to import.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

SEARCH_LIMIT = "30/minute"
AUDIO_LIMIT = "30/minute"
STREAM_LIMIT = "60/minute"

# Every router is mounted at its bare path and again under this prefix
API_PREFIX = "/api/v1"
