"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides:
- Test Settings pointing staging and asset directories at tmp_path
- An in-memory stand-in for the Motor videos collection
- A mocked StorageClient (no S3/MinIO needed)
- A scripted MediaProcessor (no ffmpeg/ffprobe needed)
- JWT fixtures and a FastAPI TestClient wired through dependency_overrides
"""

import copy
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure
from starlette.datastructures import Headers

from tubely.api.v1.upload import get_media_processor
from tubely.api.v1.videos import get_storage_service, get_video_service
from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.exceptions import ProbeFailed, RemuxFailed
from tubely.core.storage import StorageClient
from tubely.main import app
from tubely.models.video import VideoCreate
from tubely.services.media_service import MediaProcessor, VideoGeometry
from tubely.services.storage_service import StorageService
from tubely.services.video_service import VideoService


TEST_BUCKET = "test-bucket"


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: mark test as unit test")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    """Parent directory for request-scoped staging directories."""
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def mock_settings(tmp_path: Path, staging_root: Path) -> Settings:
    """
    Settings instance with test-specific configuration values.

    Staging and thumbnail directories live under tmp_path so tests can assert
    on what is left behind.
    """
    return Settings(
        app_env="testing",
        app_name="Tubely-Test",
        debug=False,
        secret_key="test-secret-key-for-jwt-signing-minimum-32-chars",
        mongodb_uri="mongodb://localhost:27017/test_tubely",
        mongodb_db_name="test_tubely",
        mongodb_min_pool_size=1,
        mongodb_max_pool_size=10,
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        s3_region="us-east-1",
        upload_temp_dir=str(staging_root),
        assets_root=str(tmp_path / "assets"),
        public_base_url="http://localhost:8091",
    )


# ==============================================================================
# Record Store Fixtures
# ==============================================================================


class FakeCursor:
    """Minimal async cursor supporting sort() and to_list()."""

    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._documents if length is None else self._documents[:length]


class FakeVideoCollection:
    """
    In-memory replacement for the Motor videos collection.

    Set fail_writes to make replace_one raise like a failing MongoDB write.
    """

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.fail_writes = False

    @staticmethod
    def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        self.documents[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents.values():
            if self._matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        return FakeCursor(
            [copy.deepcopy(doc) for doc in self.documents.values() if self._matches(doc, query)]
        )

    async def replace_one(self, query: Dict[str, Any], document: Dict[str, Any]) -> SimpleNamespace:
        if self.fail_writes:
            raise OperationFailure("write failed")
        for key, existing in self.documents.items():
            if self._matches(existing, query):
                self.documents[key] = copy.deepcopy(document)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query: Dict[str, Any]) -> SimpleNamespace:
        for key, existing in list(self.documents.items()):
            if self._matches(existing, query):
                del self.documents[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


@pytest.fixture
def video_collection() -> FakeVideoCollection:
    return FakeVideoCollection()


# ==============================================================================
# Storage Fixtures
# ==============================================================================


def _fake_presign(bucket: str, key: str, expires_in: int) -> str:
    return f"https://s3.example.com/{bucket}/{key}?X-Amz-Expires={expires_in}&X-Amz-Signature=test"


@pytest.fixture
def mock_storage_client() -> Mock:
    """
    Mocked StorageClient for testing without S3/MinIO.

    put_file records calls; presigned URLs embed bucket, key and expiry so
    tests can assert on them.
    """
    mock = Mock(spec=StorageClient)
    mock.bucket_name = TEST_BUCKET
    mock.put_file = Mock(return_value=None)
    mock.generate_presigned_download_url = Mock(side_effect=_fake_presign)
    return mock


@pytest.fixture
def storage_service(mock_storage_client: Mock) -> StorageService:
    return StorageService(mock_storage_client, bucket_name=TEST_BUCKET)


@pytest.fixture
def video_service(
    video_collection: FakeVideoCollection,
    storage_service: StorageService,
    mock_settings: Settings,
) -> VideoService:
    return VideoService(video_collection, storage_service, mock_settings)


# ==============================================================================
# Media Fixtures
# ==============================================================================


class FakeMediaProcessor(MediaProcessor):
    """
    Scripted MediaProcessor.

    analyze() returns `geometry` (or raises `probe_error`); remux() writes a
    sibling file (or raises `remux_error`). Every path seen is recorded.
    """

    def __init__(self, width: int = 1920, height: int = 1080) -> None:
        self.geometry = VideoGeometry(width=width, height=height)
        self.probe_error: Optional[Exception] = None
        self.remux_error: Optional[Exception] = None
        self.analyzed: List[Path] = []
        self.remuxed: List[Path] = []
        self.staged_bytes: Optional[bytes] = None

    def analyze(self, path: Path) -> VideoGeometry:
        self.analyzed.append(path)
        self.staged_bytes = path.read_bytes()
        if self.probe_error is not None:
            raise self.probe_error
        return self.geometry

    def remux(self, path: Path) -> Path:
        self.remuxed.append(path)
        if self.remux_error is not None:
            raise self.remux_error
        output = path.with_name(path.name + ".processing")
        output.write_bytes(b"faststart:" + path.read_bytes())
        return output


@pytest.fixture
def media_processor() -> FakeMediaProcessor:
    return FakeMediaProcessor()


@pytest.fixture
def failing_probe() -> ProbeFailed:
    return ProbeFailed("ffprobe could not read the video")


@pytest.fixture
def failing_remux() -> RemuxFailed:
    return RemuxFailed("ffmpeg could not process the video")


# ==============================================================================
# Upload Helpers
# ==============================================================================


def make_upload(
    data: bytes = b"\x00\x00\x00\x18ftypmp42 fake mp4 payload",
    content_type: str = "video/mp4",
    filename: str = "clip.mp4",
) -> UploadFile:
    """Build an UploadFile the way Starlette hands a multipart part to a route."""
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


# ==============================================================================
# Authentication Fixtures
# ==============================================================================


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def test_jwt_token(mock_settings: Settings, user_id: UUID) -> str:
    return create_access_token(user_id, mock_settings)


@pytest.fixture
def auth_headers(test_jwt_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {test_jwt_token}"}


# ==============================================================================
# Record Fixtures
# ==============================================================================


@pytest.fixture
async def draft_video(video_service: VideoService, user_id: UUID):
    """A video record owned by `user_id` with no uploaded file yet."""
    return await video_service.create_video(
        user_id, VideoCreate(title="Boots on the trail", description="Field test")
    )


# ==============================================================================
# HTTP Client Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    mock_settings: Settings,
    video_service: VideoService,
    storage_service: StorageService,
    media_processor: FakeMediaProcessor,
) -> Generator[TestClient, None, None]:
    """
    TestClient with settings, record store, storage and media overridden.

    The lifespan hook is not run, so no MongoDB connection is attempted.
    """
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_video_service] = lambda: video_service
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_media_processor] = lambda: media_processor

    yield TestClient(app)

    app.dependency_overrides.clear()
