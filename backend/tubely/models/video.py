"""
Video model.

Stores the metadata of an uploaded video. The video bytes live in object
storage; the record keeps a structured reference (bucket + key), never a
URL. Playback URLs are signed on every read and never persisted.

Lifecycle:
1. Client creates a draft record (no storage reference)
2. Client uploads the video -> video_bucket / video_key set once
3. Reads sign a fresh URL from the stored reference
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Text, DateTime, Index

from tubely.models.base import Base, generate_uuid


@dataclass(frozen=True)
class StorageRef:
    """Canonical locator of a stored object."""
    bucket: str
    key: str


class Video(Base):
    """
    Video metadata model.

    Attributes:
        id: Unique identifier (UUID)
        user_id: Owner identity (Firebase uid)
        title: Display title
        description: Optional description
        video_bucket: Bucket holding the processed video (set on upload)
        video_key: Object key of the processed video (set on upload)
        thumbnail_url: Public URL of the thumbnail asset
        created_at / updated_at: Timestamps
    """
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(128), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Example: tubely-videos / landscape/<43 chars>.mp4
    video_bucket = Column(String(255), nullable=True)
    video_key = Column(String(512), nullable=True, unique=True)

    thumbnail_url = Column(String(1024), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_videos_user_created', 'user_id', 'created_at'),
    )

    @property
    def storage_ref(self) -> Optional[StorageRef]:
        """Structured reference to the stored video, or None before upload."""
        if not self.video_bucket or not self.video_key:
            return None
        return StorageRef(bucket=self.video_bucket, key=self.video_key)

    def set_storage_ref(self, ref: StorageRef):
        self.video_bucket = ref.bucket
        self.video_key = ref.key

    def __repr__(self):
        return f"<Video(id={self.id}, user_id={self.user_id}, key={self.video_key})>"
