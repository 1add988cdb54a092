"""
Repository for video records.
Wraps one database session; the services never build queries themselves.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional, Set

from tubely.models.video import Video


class VideoRepository:
    """Repository for video database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: str,
        title: str,
        description: Optional[str] = None
    ) -> Video:
        """
        Create a draft video record with no storage reference.

        Args:
            user_id: Owner identity
            title: Display title
            description: Optional description

        Returns:
            Created Video instance
        """
        video = Video(user_id=user_id, title=title, description=description)
        self.db.add(video)
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def get(self, video_id: str) -> Optional[Video]:
        result = await self.db.execute(select(Video).where(Video.id == video_id))
        return result.scalar_one_or_none()

    async def update(self, video: Video) -> Video:
        """
        Persist changes made to a video record.

        Rolls the transaction back and re-raises on failure.
        """
        try:
            self.db.add(video)
            await self.db.commit()
            await self.db.refresh(video)
        except Exception:
            await self.db.rollback()
            raise
        return video

    async def list_for_user(self, user_id: str, limit: int = 100) -> List[Video]:
        """List a user's videos, newest first."""
        result = await self.db.execute(
            select(Video)
            .where(Video.user_id == user_id)
            .order_by(Video.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_video_keys(self, bucket: str) -> Set[str]:
        """All object keys referenced by records in the given bucket."""
        result = await self.db.execute(
            select(Video.video_key).where(
                Video.video_bucket == bucket,
                Video.video_key.is_not(None)
            )
        )
        return {row[0] for row in result.all()}
