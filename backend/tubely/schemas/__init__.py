"""
Pydantic schemas for API requests and responses.
"""
from tubely.schemas.video import VideoCreate, VideoResponse

__all__ = ["VideoCreate", "VideoResponse"]
