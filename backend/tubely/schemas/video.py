"""
Pydantic schemas for video endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class VideoCreate(BaseModel):
    """Schema for creating a draft video."""
    title: str = Field(..., min_length=1, max_length=255, description="Display title")
    description: Optional[str] = Field(None, description="Optional description")


class VideoResponse(BaseModel):
    """
    Schema for video response.

    video_url is a freshly signed playback URL, never the stored reference.
    """
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
