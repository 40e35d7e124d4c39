"""Shared test fixtures for the FoldSnap test suite.

All tests use one in-memory SQLite database shared through a StaticPool.
Tables are created once and every row is deleted before each test, which
gives complete isolation without re-creating the schema.
"""

import os

# Force auth off and use an in-memory database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ["AUTH_ENABLED"] = "false"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from foldsnap.database import Base, SessionLocal, get_db, init_db
from foldsnap.main import app
from foldsnap.api.deps import build_folder_service
from foldsnap.core.token_factory import create_token
from foldsnap.core.config import settings
from foldsnap.repositories.media_repository import MediaRepository
from foldsnap.services.cache import MemoryCache

init_db()


@pytest.fixture(autouse=True)
def _clean_tables():
    """Delete all rows before each test for isolation.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def cache():
    """Fresh in-memory cache, shared by the service fixture and the app."""
    return MemoryCache()


@pytest.fixture()
def service(db, cache):
    """FolderService wired exactly as the API wires it."""
    return build_folder_service(db, cache)


@pytest.fixture()
def client(db, cache):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.state.cache = cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_media(db):
    """Factory creating committed media items.

    ``filesize`` lands in the attachment metadata blob; pass
    ``attachment_metadata`` to control the blob directly.
    """

    def _make(title: str = "photo", filesize=None, **overrides):
        metadata = overrides.pop("attachment_metadata", None)
        if metadata is None and filesize is not None:
            metadata = {"filesize": filesize, "width": 800, "height": 600}
        defaults = {
            "filename": f"{title}.jpg",
            "mime_type": "image/jpeg",
            "url": f"https://cdn.example.com/{title}.jpg",
            "thumbnail_url": f"https://cdn.example.com/{title}-150x150.jpg",
        }
        defaults.update(overrides)
        item = MediaRepository(db).create(title=title, attachment_metadata=metadata, **defaults)
        db.commit()
        return item

    return _make


def make_auth_headers(role: str = "editor", secret: str = None) -> dict:
    """Bearer headers for a token carrying *role*."""
    token = create_token(
        subject="test-user",
        role=role,
        secret=secret or settings.jwt_secret_key,
    )
    return {"Authorization": f"Bearer {token}"}
