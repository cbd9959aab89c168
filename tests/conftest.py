"""
Rollbook Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set BEFORE any rollbook import so the
       settings singleton, the engine, and the default AttachmentStore all
       point at a throwaway SQLite file and upload directory.

Fixtures:
    ├── db_tables:       creates/drops the schema around a test
    ├── db_session:      AsyncSession on the test database
    ├── store / service: AttachmentStore + StudentService on tmp_path
    ├── make_upload:     builds starlette UploadFile objects
    ├── sample_image_bytes
    ├── auth_headers:    valid bearer token header
    └── test_client:     HTTPX AsyncClient over ASGITransport
"""

import io
import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="rollbook_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from starlette.datastructures import Headers, UploadFile  # noqa: E402

import rollbook.models  # noqa: E402,F401
from rollbook.config import settings  # noqa: E402
from rollbook.database import Base, async_session_factory, engine  # noqa: E402
from rollbook.services.attachment_store import AttachmentStore  # noqa: E402
from rollbook.services.student_service import StudentService  # noqa: E402


@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema for each test; dropped afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(db_tables):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def store(tmp_path):
    """AttachmentStore on a per-test directory."""
    return AttachmentStore(upload_dir=tmp_path / "uploads")


@pytest.fixture
def service(store):
    return StudentService(store=store)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal PNG signature plus padding.

    Only the declared content type is checked, so any bytes will do;
    these look like a PNG for anyone inspecting the upload directory.
    """
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def make_upload(sample_image_bytes):
    """
    Factory for starlette UploadFile objects.

    Usage:
        upload = make_upload("face.png", content_type="image/png")
    """

    def _make(filename="face.png", content=None, content_type="image/png"):
        data = sample_image_bytes if content is None else content
        return UploadFile(
            io.BytesIO(data),
            size=len(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


@pytest.fixture
def student_fields():
    return {
        "first_name": "Anna",
        "last_name": "Smith",
        "email": "anna.smith@example.com",
        "phone": "555-0101",
        "gender": "female",
    }


def make_token(claims=None, secret=None):
    return jwt.encode(
        claims or {"sub": "test-user"},
        secret or settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False: the catch-all handler's 500 response is
    returned to the test instead of the exception being re-raised.
    """
    from rollbook.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
