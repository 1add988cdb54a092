"""
Repository layer for database operations.
"""
from tubely.repositories.video_repository import VideoRepository

__all__ = ["VideoRepository"]
