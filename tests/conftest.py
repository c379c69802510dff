"""Shared fixtures: temp SQLite metadata store, moto-backed S3, and an in-memory blob store double."""
import boto3
import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from moto import mock_aws

from drive_api.config import Settings
from drive_api.core.security import create_access_token, hash_password
from drive_api.database import build_engine, build_session_maker, init_models
from drive_api.main import create_app
from drive_api.repositories.files import FileRepository
from drive_api.services.files import FileService

TEST_BUCKET_NAME = "test-drive-bucket"
TEST_OWNER_EMAIL = "owner@example.com"
TEST_OWNER_PASSWORD = "correct horse battery staple"


class InMemoryBlobStore:
    """Blob store double with switchable failures."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_put = False
        self.fail_delete = False
        self.fail_sign = False

    def put(self, *, key, data, content_type, metadata=None):
        if self.fail_put:
            raise ClientError({"Error": {"Code": "ServiceUnavailable", "Message": "put failed"}}, "PutObject")
        self.blobs[key] = data
        self.content_types[key] = content_type

    def signed_get_url(self, *, key, expires_in=3600, filename=None):
        if self.fail_sign:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "sign failed"}}, "GetObject")
        return f"https://blobs.test/{key}?expires={expires_in}"

    def delete(self, *, key):
        if self.fail_delete:
            raise ClientError({"Error": {"Code": "ServiceUnavailable", "Message": "delete failed"}}, "DeleteObject")
        self.blobs.pop(key, None)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'files.db'}",
        S3_BUCKET=TEST_BUCKET_NAME,
        S3_REGION="us-east-1",
        S3_ACCESS_KEY_ID="testing",
        S3_SECRET_ACCESS_KEY="testing",
        OWNER_EMAIL=TEST_OWNER_EMAIL,
        OWNER_PASSWORD_HASH=hash_password(TEST_OWNER_PASSWORD),
        SECRET_KEY="test-secret-key",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings.DATABASE_URL)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def service(engine, settings, blob_store):
    async with build_session_maker(engine)() as session:
        repo = FileRepository(session, recent_window_days=settings.RECENT_WINDOW_DAYS)
        yield FileService(repo, blob_store, settings)


@pytest.fixture
def mocked_aws(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket=TEST_BUCKET_NAME)
        yield


@pytest.fixture
def auth_headers(settings) -> dict[str, str]:
    token = create_access_token(settings, data={"sub": TEST_OWNER_EMAIL})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(settings, mocked_aws, auth_headers):
    app = create_app(settings)
    with TestClient(app) as test_client:
        test_client.headers.update(auth_headers)
        yield test_client
