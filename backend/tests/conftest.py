"""
Test configuration and fixtures.
Uses in-memory SQLite (aiosqlite) and fake media tools; no ffmpeg, no
network. Presigning runs offline against a real boto3 client.
"""
import os
import shutil
import tempfile
import uuid as uuid_module

# Set test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["ASSETS_ROOT"] = tempfile.mkdtemp(prefix="tubely-assets-")

import boto3
import pytest
from botocore.config import Config
from typing import AsyncGenerator, Optional, Tuple
from unittest.mock import MagicMock

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from tubely.config import settings
from tubely.exceptions import ProbeError, TranscodeError
from tubely.media.base import MediaProbe, MediaTranscoder
from tubely.models.base import Base
from tubely.models.video import Video
from tubely.repositories.video_repository import VideoRepository
from tubely.services.ingest_service import VideoIngestService
from tubely.storage.assets import LocalAssetStore
from tubely.storage.s3_client import S3Client

TEST_BUCKET = "test-videos"
TEST_USER_ID = "firebase-test-uid"
OTHER_USER_ID = "firebase-other-uid"


class FakeProbe(MediaProbe):
    """Returns fixed dimensions and records the paths it inspected."""

    def __init__(self, dimensions: Tuple[int, int] = (1920, 1080), error: Optional[str] = None):
        self.dimensions = dimensions
        self.error = error
        self.paths = []

    def probe(self, path: str) -> Tuple[int, int]:
        self.paths.append(path)
        if self.error:
            raise ProbeError(self.error)
        return self.dimensions


class FakeTranscoder(MediaTranscoder):
    """
    Copies the input to the output path.

    With fail=True it leaves a partial output behind and raises, so the
    pipeline's own cleanup is exercised.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.outputs = []

    def transcode(self, path: str) -> str:
        output_path = self.output_path_for(path)
        self.outputs.append(output_path)
        if self.fail:
            with open(output_path, "wb") as f:
                f.write(b"partial")
            raise TranscodeError("ffmpeg exited with status 1")
        shutil.copyfile(path, output_path)
        return output_path


def make_boto_client():
    """Real boto3 client with fake credentials; presigning needs no network."""
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def videos(db_session: AsyncSession) -> VideoRepository:
    return VideoRepository(db_session)


@pytest.fixture(scope="function")
async def test_video(videos: VideoRepository) -> Video:
    """Create a draft video owned by the test user."""
    return await videos.create(user_id=TEST_USER_ID, title="Boots demo", description="Walking tour")


@pytest.fixture
def uploaded_objects() -> dict:
    """(bucket, key) -> {"body": bytes, "content_type": str} for every put_object call."""
    return {}


@pytest.fixture
def boto_client(uploaded_objects: dict):
    """Offline boto3 client whose put_object records the body instead of sending it."""
    client = make_boto_client()

    def fake_put_object(Bucket, Key, Body, ContentType=None, **kwargs):
        uploaded_objects[(Bucket, Key)] = {"body": Body.read(), "content_type": ContentType}
        return {"ETag": '"fake"'}

    client.put_object = MagicMock(side_effect=fake_put_object)
    return client


@pytest.fixture
def object_store(boto_client) -> S3Client:
    return S3Client(client=boto_client, bucket=TEST_BUCKET)


@pytest.fixture
def staging_dir(tmp_path, monkeypatch) -> str:
    path = tmp_path / "staging"
    path.mkdir()
    monkeypatch.setattr(settings, "staging_dir", str(path))
    return str(path)


@pytest.fixture
def asset_store(tmp_path) -> LocalAssetStore:
    store = LocalAssetStore(root=str(tmp_path / "assets"), base_url="http://localhost:8091")
    store.ensure_dir()
    return store


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def ingest_service(videos, object_store, probe, transcoder, staging_dir) -> VideoIngestService:
    return VideoIngestService(
        videos=videos,
        object_store=object_store,
        probe=probe,
        transcoder=transcoder,
        staging_dir=staging_dir,
    )


def get_test_app(
    db_session: AsyncSession,
    user_id: str,
    object_store: S3Client,
    asset_store: LocalAssetStore,
    probe: MediaProbe,
    transcoder: MediaTranscoder
) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from tubely.main import app
    from tubely.database import get_db
    from tubely.auth.dependencies import get_current_user_id
    from tubely.api import dependencies

    async def override_get_db():
        yield db_session

    async def override_get_current_user_id():
        return user_id

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = override_get_current_user_id
    app.dependency_overrides[dependencies.get_object_store] = lambda: object_store
    app.dependency_overrides[dependencies.get_asset_store] = lambda: asset_store
    app.dependency_overrides[dependencies.get_media_probe] = lambda: probe
    app.dependency_overrides[dependencies.get_media_transcoder] = lambda: transcoder

    # ASGITransport does not run the lifespan
    app.state.object_store = object_store
    app.state.asset_store = asset_store

    return app


@pytest.fixture(scope="function")
async def client(
    db_session, object_store, asset_store, probe, transcoder, staging_dir
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(db_session, TEST_USER_ID, object_store, asset_store, probe, transcoder)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
def random_video_id() -> str:
    return str(uuid_module.uuid4())
