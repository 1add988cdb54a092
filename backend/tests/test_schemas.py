"""
Tests for Pydantic schemas validation.
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from tubely.models.video import Video
from tubely.schemas.video import VideoCreate, VideoResponse


class TestVideoSchemas:
    """Tests for video schemas."""

    def test_video_create_valid(self):
        schema = VideoCreate(title="Boots demo", description="Walking tour")
        assert schema.title == "Boots demo"
        assert schema.description == "Walking tour"

    def test_video_create_description_optional(self):
        assert VideoCreate(title="Boots demo").description is None

    def test_video_create_missing_title(self):
        """Test video creation without title raises error."""
        with pytest.raises(ValidationError):
            VideoCreate()

    def test_video_create_empty_title(self):
        with pytest.raises(ValidationError):
            VideoCreate(title="")

    def test_video_response_from_model(self):
        """Storage columns never leak into the response."""
        now = datetime.utcnow()
        video = Video(
            id="0b6f4c8e-8d3f-4d7a-9a51-2f7d5c1e4a10",
            user_id="user-uid",
            title="Boots demo",
            video_bucket="tubely-videos",
            video_key="landscape/abc.mp4",
            created_at=now,
            updated_at=now,
        )

        schema = VideoResponse.model_validate(video)

        assert schema.video_url is None
        assert "video_key" not in schema.model_dump()
        assert schema.created_at == now
