"""Error taxonomy for TubeRelay.

Every failure that reaches the HTTP boundary is a GatewayError subclass; the
web layer turns it into a JSON body with the class's status code.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class: carries an HTTP status and a stable machine-readable code."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "", **extra):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        body.update({k: v for k, v in self.extra.items() if v is not None})
        return body


class BadRequest(GatewayError):
    status_code = 400
    code = "bad_request"


class Unauthorized(GatewayError):
    status_code = 401
    code = "unauthorized"


class NotFound(GatewayError):
    status_code = 404
    code = "not_found"


class VideoUnavailable(NotFound):
    """Private, removed, region-blocked or nonexistent video."""
    code = "video_unavailable"


class Conflict(GatewayError):
    status_code = 409
    code = "conflict"


class UpstreamError(GatewayError):
    """Upstream API or extraction library failure, including malformed payloads."""

    status_code = 502
    code = "upstream_error"

    def __init__(self, message: str = "", upstream_status: Optional[int] = None,
                 timeout: bool = False, **extra):
        super().__init__(message, upstreamStatus=upstream_status, **extra)
        self.upstream_status = upstream_status
        if timeout:
            self.status_code = 504
            self.code = "upstream_timeout"


class InternalError(GatewayError):
    """Store, connectivity or configuration failure on our side."""
