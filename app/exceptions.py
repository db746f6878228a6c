"""Domain errors raised by services. app.main maps them to HTTP responses."""
from fastapi import status


class ClipShareError(Exception):
    """Base error; status_code is used by the HTTP exception handler."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ClipShareError):
    """Ownership or admin gate failed. Never says whether the target exists."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not found or access denied"


class NotFound(ClipShareError):
    """No active share matches the code."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "This video is no longer available"


class ExhaustedRetries(ClipShareError):
    """Share code kept colliding with existing codes."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Could not generate a unique share code"


class ConstraintViolation(ClipShareError):
    """A storage-level invariant rejected the write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Constraint violation"


class UpstreamUnavailable(ClipShareError):
    """Blob storage or the database could not be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage temporarily unavailable"
