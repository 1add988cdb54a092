"""
Mapping from ingestion errors to HTTP responses.
"""
from fastapi import HTTPException, status

from tubely.exceptions import (
    InvalidVideoIdError,
    PayloadTooLargeError,
    PersistError,
    ProbeError,
    SignError,
    StagingError,
    TranscodeError,
    UnauthorizedError,
    UnsupportedMediaTypeError,
    UploadError,
    VideoIngestError,
    VideoNotFoundError,
)

ERROR_STATUS_CODES = {
    InvalidVideoIdError: status.HTTP_400_BAD_REQUEST,
    VideoNotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    UnsupportedMediaTypeError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    PayloadTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    StagingError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ProbeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TranscodeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UploadError: status.HTTP_502_BAD_GATEWAY,
    PersistError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    SignError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(error: VideoIngestError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    # Generic validation failures
    return status.HTTP_400_BAD_REQUEST


def to_http_exception(error: VideoIngestError) -> HTTPException:
    """Convert an ingestion error to an HTTPException with a structured detail."""
    return HTTPException(status_code=status_code_for(error), detail=error.to_dict())
