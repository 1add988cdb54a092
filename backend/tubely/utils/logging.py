"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- video_id
- user_id
- duration_ms

Usage:
    from tubely.utils.logging import configure_logging, log_ingest_started

    configure_logging('tubely-api', 'INFO')
    log_ingest_started(logger, video_id='123', user_id='456', media_type='video/mp4')
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (tubely-api, tubely-sweep)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    video_id: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        video_id: Optional video ID
        user_id: Optional user ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if video_id:
        extra["video_id"] = video_id
    if user_id:
        extra["user_id"] = user_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Video record events

def log_video_created(
    logger: logging.Logger,
    video_id: str,
    user_id: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log creation of a draft video record."""
    extra = _build_log_extra(
        event="video_created",
        video_id=video_id,
        user_id=user_id,
        duration_ms=duration_ms,
        **kwargs
    )
    logger.info(f"Video created: {video_id}", extra=extra)


# Ingestion events

def log_ingest_started(
    logger: logging.Logger,
    video_id: str,
    user_id: str,
    media_type: Optional[str] = None,
    **kwargs
):
    """
    Log the start of a video ingestion run.

    Args:
        logger: Logger instance
        video_id: Video ID (required)
        user_id: Caller identity (required)
        media_type: Declared media type of the upload
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="ingest_started",
        video_id=video_id,
        user_id=user_id,
        **kwargs
    )
    if media_type:
        extra["media_type"] = media_type

    logger.info(f"Ingest started: {video_id}", extra=extra)


def log_ingest_completed(
    logger: logging.Logger,
    video_id: str,
    user_id: str,
    duration_ms: float,
    key: Optional[str] = None,
    aspect: Optional[str] = None,
    **kwargs
):
    """
    Log a successful ingestion run.

    Args:
        logger: Logger instance
        video_id: Video ID (required)
        user_id: Caller identity (required)
        duration_ms: Duration in milliseconds (required)
        key: Object key the video was stored under
        aspect: Aspect classification
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="ingest_completed",
        video_id=video_id,
        user_id=user_id,
        duration_ms=duration_ms,
        **kwargs
    )
    if key:
        extra["key"] = key
    if aspect:
        extra["aspect"] = aspect

    logger.info(f"Ingest completed: {video_id}", extra=extra)


def log_ingest_failed(
    logger: logging.Logger,
    video_id: str,
    user_id: str,
    category: str,
    state: Optional[str] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
    include_traceback: bool = True,
    **kwargs
):
    """
    Log a failed ingestion run.

    Args:
        logger: Logger instance
        video_id: Video ID (required)
        user_id: Caller identity (required)
        category: Error category (validation, io, probe, ...)
        state: Pipeline state the run failed in
        duration_ms: Optional duration in milliseconds
        error: Error message
        include_traceback: Whether to include stack trace (default: True for errors)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="ingest_failed",
        video_id=video_id,
        user_id=user_id,
        duration_ms=duration_ms,
        category=category,
        **kwargs
    )
    if state:
        extra["state"] = state
    if error:
        extra["error"] = str(error)

    message = f"Ingest failed: {video_id} [{category}]"
    if error:
        message += f" - {error}"

    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
        else:
            logger.error(message, extra=extra)
    else:
        logger.warning(message, extra=extra)


# External tool events

def log_tool_invocation(
    logger: logging.Logger,
    tool: str,
    path: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a completed external tool run (ffprobe, ffmpeg)."""
    extra = _build_log_extra(
        event="tool_invocation",
        duration_ms=duration_ms,
        tool=tool,
        path=path,
        **kwargs
    )
    logger.info(f"Tool invocation: {tool} {path}", extra=extra)


def log_tool_failure(
    logger: logging.Logger,
    tool: str,
    path: str,
    error: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a failed external tool run. Stack traces are not included."""
    extra = _build_log_extra(
        event="tool_failure",
        duration_ms=duration_ms,
        tool=tool,
        path=path,
        error=str(error),
        **kwargs
    )
    logger.error(f"Tool failure: {tool} {path} - {error}", extra=extra)


# Object storage events

def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    bucket: str,
    key: str,
    error: str,
    **kwargs
):
    """Log a failed object store call (upload, presign, delete)."""
    extra = _build_log_extra(
        event="storage_failure",
        operation=operation,
        bucket=bucket,
        key=key,
        error=str(error),
        **kwargs
    )
    logger.error(f"Storage failure: {operation} {bucket}/{key} - {error}", extra=extra)


# Convenience alias
def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
