"""
Error taxonomy for video ingestion.

Every failure carries a stable category, a human readable message and the
pipeline state the run was in when it failed. The API layer maps categories
to HTTP status codes; nothing here is retried automatically.
"""
import enum
from typing import Optional


class ErrorCategory(str, enum.Enum):
    """Stable error categories reported to callers."""
    VALIDATION = "validation"
    IO = "io"
    PROBE = "probe"
    TRANSCODE = "transcode"
    UPLOAD = "upload"
    PERSIST = "persist"
    SIGN = "sign"


class VideoIngestError(Exception):
    """Base class for all ingestion and playback errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION
    retryable: bool = False

    def __init__(self, message: str, state: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.state = state

    def to_dict(self) -> dict:
        return {"category": self.category.value, "message": self.message}


class ValidationError(VideoIngestError):
    """Request rejected before any resource was touched."""
    category = ErrorCategory.VALIDATION


class InvalidVideoIdError(ValidationError):
    pass


class VideoNotFoundError(ValidationError):
    pass


class UnauthorizedError(ValidationError):
    pass


class UnsupportedMediaTypeError(ValidationError):
    pass


class PayloadTooLargeError(ValidationError):
    pass


class StagingError(VideoIngestError):
    """Local disk failure while buffering the upload."""
    category = ErrorCategory.IO


class ProbeError(VideoIngestError):
    """ffprobe failed or reported something unusable."""
    category = ErrorCategory.PROBE


class TranscodeError(VideoIngestError):
    """ffmpeg failed or produced no output."""
    category = ErrorCategory.TRANSCODE


class UploadError(VideoIngestError):
    """
    Object store rejected the upload.

    No partial remote object exists after this error, so the caller may
    retry the whole request.
    """
    category = ErrorCategory.UPLOAD
    retryable = True


class PersistError(VideoIngestError):
    """
    The video record could not be saved after a successful upload.

    The object at bucket/key now exists without a matching record and must
    be reconciled by the orphan sweep.
    """
    category = ErrorCategory.PERSIST

    def __init__(
        self,
        message: str,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        state: Optional[str] = None
    ):
        super().__init__(message, state=state)
        self.bucket = bucket
        self.key = key


class SignError(VideoIngestError):
    """A signed playback URL could not be generated."""
    category = ErrorCategory.SIGN
