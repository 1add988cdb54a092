"""
Video ingestion pipeline.

Turns an uploaded byte stream into a persisted, streamable video:

    received -> validated -> staged -> classified -> transcoded
             -> uploaded -> persisted

Any step may fail; the run then ends in "failed" and the raised error
records the state it failed in. Local files (staged upload and fast-start
output) are removed before ingest() returns on every path.
"""
import asyncio
import enum
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Optional

from tubely.config import settings
from tubely.exceptions import (
    PayloadTooLargeError,
    PersistError,
    StagingError,
    UnauthorizedError,
    UnsupportedMediaTypeError,
    VideoIngestError,
    VideoNotFoundError,
)
from tubely.media.aspect import AspectClass
from tubely.media.base import MediaProbe, MediaTranscoder
from tubely.models.video import StorageRef, Video
from tubely.repositories.video_repository import VideoRepository
from tubely.storage.keys import AssetKeyAllocator
from tubely.storage.s3_client import S3Client
from tubely.utils.logging import (
    log_ingest_completed,
    log_ingest_failed,
    log_ingest_started,
    log_storage_failure,
)
from tubely.utils.metrics import video_ingest_duration_seconds, video_ingest_total

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024  # 1 MiB
STAGING_PREFIX = "tubely-upload-"


class IngestState(str, enum.Enum):
    """Pipeline states, in order. FAILED is reachable from any of them."""
    RECEIVED = "received"
    VALIDATED = "validated"
    STAGED = "staged"
    CLASSIFIED = "classified"
    TRANSCODED = "transcoded"
    UPLOADED = "uploaded"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass
class IngestResult:
    """Outcome of a successful ingestion run."""
    video: Video
    bucket: str
    key: str
    aspect: AspectClass
    state: IngestState = IngestState.PERSISTED


def copy_capped(source: BinaryIO, dest: BinaryIO, limit: int) -> int:
    """
    Copy a stream in 1 MiB chunks, refusing to go past limit bytes.

    Args:
        source: Readable binary stream (single pass)
        dest: Writable binary file
        limit: Maximum number of bytes accepted

    Returns:
        Number of bytes copied

    Raises:
        PayloadTooLargeError: If the stream holds more than limit bytes
        OSError: If reading or writing fails
    """
    copied = 0
    while True:
        chunk = source.read(COPY_CHUNK_SIZE)
        if not chunk:
            return copied
        copied += len(chunk)
        if copied > limit:
            raise PayloadTooLargeError(f"Upload exceeds the {limit} byte limit")
        dest.write(chunk)


def normalize_media_type(content_type: Optional[str]) -> str:
    """Strip parameters and lowercase: 'Video/MP4; codecs=x' -> 'video/mp4'."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class VideoIngestService:
    """
    Orchestrates validation, staging, probing, transcoding, upload and
    persistence of one uploaded video.

    All collaborators are injected; one instance serves one request.
    """

    def __init__(
        self,
        videos: VideoRepository,
        object_store: S3Client,
        probe: MediaProbe,
        transcoder: MediaTranscoder,
        bucket: Optional[str] = None,
        staging_dir: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
        allowed_media_types: Optional[Iterable[str]] = None
    ):
        self.videos = videos
        self.object_store = object_store
        self.probe = probe
        self.transcoder = transcoder
        self.bucket = bucket or object_store.bucket
        self.staging_dir = staging_dir if staging_dir is not None else settings.staging_dir
        self.max_upload_bytes = max_upload_bytes or settings.max_video_upload_bytes
        self.allowed_media_types = set(allowed_media_types or settings.allowed_video_types)

    async def ingest(
        self,
        video_id: str,
        user_id: str,
        stream: BinaryIO,
        media_type: str,
        size: Optional[int] = None
    ) -> IngestResult:
        """
        Run the full pipeline for one upload.

        Args:
            video_id: Target video record ID
            user_id: Caller identity
            stream: Upload body, read once
            media_type: Declared media type of the body
            size: Declared body size, when known

        Returns:
            IngestResult with the updated record and storage reference

        Raises:
            VideoIngestError: A subclass naming the failure category; its
                state attribute holds the state the run failed in
        """
        start_time = time.time()
        state = IngestState.RECEIVED
        media_type = normalize_media_type(media_type)
        log_ingest_started(logger, video_id, user_id, media_type=media_type)

        staging = None
        processed_path = None
        try:
            video = await self._validate(video_id, user_id, media_type, size)
            state = IngestState.VALIDATED

            # Assigned before the copy so cancellation still reaches the cleanup below
            staging = self._open_staging()
            await self._stage(stream, staging)
            state = IngestState.STAGED

            aspect = await asyncio.to_thread(self.probe.classify, staging.name)
            state = IngestState.CLASSIFIED

            key = AssetKeyAllocator.allocate(aspect.value, media_type)
            processed_path = self.transcoder.output_path_for(staging.name)
            processed_path = await asyncio.to_thread(self.transcoder.transcode, staging.name)
            state = IngestState.TRANSCODED

            await asyncio.to_thread(
                self.object_store.upload_file,
                self.bucket,
                key,
                processed_path,
                media_type
            )
            state = IngestState.UPLOADED

            await self._persist(video, video_id, self.bucket, key)
            state = IngestState.PERSISTED

        except VideoIngestError as e:
            e.state = state.value
            self._record_failure(video_id, user_id, e, start_time)
            raise
        finally:
            self._cleanup(staging, processed_path)

        duration = time.time() - start_time
        video_ingest_total.labels(outcome=state.value).inc()
        video_ingest_duration_seconds.labels(outcome=state.value).observe(duration)
        log_ingest_completed(
            logger,
            video_id,
            user_id,
            duration_ms=duration * 1000,
            key=key,
            aspect=aspect.value
        )
        return IngestResult(video=video, bucket=self.bucket, key=key, aspect=aspect, state=state)

    async def _validate(
        self,
        video_id: str,
        user_id: str,
        media_type: str,
        size: Optional[int]
    ) -> Video:
        # Ownership is checked before any local file is created
        video = await self.videos.get(video_id)
        if video is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        if video.user_id != user_id:
            raise UnauthorizedError("Not authorized to update this video")

        if media_type not in self.allowed_media_types:
            raise UnsupportedMediaTypeError(f"Unsupported media type: {media_type or 'none'}")

        if size is not None and size > self.max_upload_bytes:
            raise PayloadTooLargeError(f"Upload exceeds the {self.max_upload_bytes} byte limit")

        return video

    def _open_staging(self):
        try:
            return tempfile.NamedTemporaryFile(
                mode="w+b",
                delete=False,
                dir=self.staging_dir,
                prefix=STAGING_PREFIX,
                suffix=".mp4"
            )
        except OSError as e:
            raise StagingError(f"Could not create staging file: {e}") from e

    async def _stage(self, stream: BinaryIO, staging):
        """Copy the body into the staging file and rewind it. The caller removes the file."""
        try:
            copied = await asyncio.to_thread(copy_capped, stream, staging, self.max_upload_bytes)
            staging.flush()
            staging.seek(0)
        except OSError as e:
            raise StagingError(f"Could not stage upload: {e}") from e

        logger.debug(f"Staged {copied} bytes at {staging.name}")

    async def _persist(self, video: Video, video_id: str, bucket: str, key: str):
        video.set_storage_ref(StorageRef(bucket=bucket, key=key))
        try:
            await self.videos.update(video)
        except Exception as e:
            # The rollback expired the instance; only plain values are read from here on.
            # The object is already in the bucket; the sweep reclaims it
            log_storage_failure(
                logger,
                operation="persist",
                bucket=bucket,
                key=key,
                error=str(e),
                video_id=video_id,
                orphaned=True
            )
            raise PersistError(
                f"Could not save video record: {e}",
                bucket=bucket,
                key=key
            ) from e

    def _record_failure(self, video_id: str, user_id: str, error: VideoIngestError, start_time: float):
        duration = time.time() - start_time
        category = error.category.value
        video_ingest_total.labels(outcome=category).inc()
        video_ingest_duration_seconds.labels(outcome=category).observe(duration)
        log_ingest_failed(
            logger,
            video_id,
            user_id,
            category=category,
            state=error.state,
            duration_ms=duration * 1000,
            error=error.message,
            # Caller mistakes are warnings, not stack traces
            include_traceback=category != "validation"
        )

    @staticmethod
    def _cleanup(staging, processed_path: Optional[str]):
        paths = []
        if staging is not None:
            try:
                staging.close()
            except OSError as e:
                logger.warning(f"Failed to close staging file {staging.name}: {e}")
            paths.append(staging.name)
        if processed_path:
            paths.append(processed_path)

        for path in paths:
            if os.path.exists(path):
                try:
                    os.remove(path)
                except OSError as e:
                    logger.warning(f"Failed to delete temp file {path}: {e}")
