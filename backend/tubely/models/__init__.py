"""
Database models package.
"""
from tubely.models.base import Base
from tubely.models.video import Video, StorageRef

__all__ = [
    "Base",
    "Video",
    "StorageRef",
]
