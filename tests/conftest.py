# tests/conftest.py
import asyncio
import os
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TOKEN = "test-token"

# Settings are read once at import, so the environment goes first.
os.environ["TOKEN"] = TOKEN
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(), "boot.db")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp()
os.environ["STATIC_DIR"] = str(ROOT / "static")
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["STRICT_UPLOAD_READS"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from image_server import crud  # noqa: E402
from image_server.db.session import get_async_session, init_models  # noqa: E402
from image_server.main import app  # noqa: E402
from image_server.storage import BlobStore, get_blob_store  # noqa: E402


def _session_factory(path, create_tables=True):
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    if create_tables:
        asyncio.run(init_models(engine))
    return engine, async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


def _client(session_factory, store_factory):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_blob_store] = store_factory
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def token():
    return TOKEN


@pytest.fixture
def session_factory(tmp_path):
    engine, factory = _session_factory(tmp_path / "images.db")
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def blob_dir(tmp_path):
    return tmp_path / "uploaded"


@pytest.fixture
def client(session_factory, blob_dir):
    with _client(session_factory, lambda: BlobStore(blob_dir)) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client(tmp_path, blob_dir):
    """Client whose database has no images table, so every query fails."""
    engine, factory = _session_factory(tmp_path / "empty.db", create_tables=False)
    with _client(factory, lambda: BlobStore(blob_dir)) as c:
        yield c
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest.fixture
def stored_images(session_factory):
    def fetch():
        async def _fetch():
            async with session_factory() as session:
                return await crud.list_images(session)

        return asyncio.run(_fetch())

    return fetch


@pytest.fixture
def blobs(blob_dir):
    return lambda: sorted(blob_dir.glob("*"))


def jpeg_bytes(size=2048):
    return b"\xff\xd8\xff\xe0" + b"\x00" * (size - 4)


def png_bytes(size=1024):
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * (size - 8)


@pytest.fixture
def upload(client):
    def _upload(
        filename="cat.jpg",
        data=None,
        content_type="image/jpeg",
        auth=TOKEN,
        referer="http://testserver/index.html",
        field="imageFile",
    ):
        headers = {"Referer": referer} if referer else {}
        params = {"auth": auth} if auth is not None else None
        return client.post(
            "/file",
            params=params,
            headers=headers,
            files={field: (filename, jpeg_bytes() if data is None else data, content_type)},
        )

    return _upload


@pytest.fixture
def make_jpeg():
    return jpeg_bytes


@pytest.fixture
def make_png():
    return png_bytes
