"""
Application error taxonomy for the Tubely backend.

Every failure raised by the upload pipeline and the record endpoints is a
subclass of TubelyError. Each class carries the HTTP status it maps to and a
stable machine-readable error code; the exception handler registered in
tubely.main renders them as:

    {"error": "<code>", "message": "<human readable text>"}
"""

from typing import Any


class TubelyError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error into the JSON body returned to clients."""
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ===== 4xx: client errors =====


class InvalidIdentifier(TubelyError):
    """The target video id is not a well-formed UUID."""

    status_code = 400
    error_code = "invalid_id"
    default_message = "Invalid ID"


class InvalidUpload(TubelyError):
    """The multipart body is missing the expected file part or is unreadable."""

    status_code = 400
    error_code = "invalid_upload"
    default_message = "Unable to read uploaded file"


class UnsupportedMediaType(TubelyError):
    """The declared content type is not accepted for this upload."""

    status_code = 400
    error_code = "unsupported_media_type"
    default_message = "Unsupported media type"


class Unauthorized(TubelyError):
    """Missing or invalid credentials, or the caller does not own the record."""

    status_code = 401
    error_code = "unauthorized"
    default_message = "Unauthorized"


class VideoNotFound(TubelyError):
    status_code = 404
    error_code = "not_found"
    default_message = "Video not found"


class PayloadTooLarge(TubelyError):
    """Request body exceeds the configured ceiling for the endpoint."""

    status_code = 413
    error_code = "payload_too_large"
    default_message = "Request body too large"


# ===== 5xx: server-side failures =====


class ProbeFailed(TubelyError):
    """ffprobe could not run, failed, or produced unusable output."""

    error_code = "probe_failed"
    default_message = "Unable to inspect video"


class RemuxFailed(TubelyError):
    """ffmpeg could not rewrite the container for fast start."""

    error_code = "remux_failed"
    default_message = "Unable to process video for fast start"


class MalformedLocator(TubelyError):
    """A persisted storage locator does not decode to a bucket and key."""

    error_code = "malformed_locator"
    default_message = "Stored video location is malformed"


class InternalError(TubelyError):
    """Temp file I/O, storage or record persistence failure."""
