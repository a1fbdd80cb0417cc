import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        upload_dir=tmp_path / "uploads",
        index_path=tmp_path / "movies.json",
        public_base_url="http://media.test",
        chunk_size=64,
        max_upload_bytes=4096,
        max_thumbnail_bytes=1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def upload(client):
    """Post an upload form; file/thumbnail are (name, bytes, content_type) tuples."""

    def _upload(title="Test", file=("clip.mp4", b"\x00" * 500, "video/mp4"), thumbnail=None):
        data = {} if title is None else {"title": title}
        files = {}
        if file is not None:
            files["file"] = file
        if thumbnail is not None:
            files["thumbnail"] = thumbnail
        return client.post("/api/movies/upload", data=data, files=files)

    return _upload


@pytest.fixture
def blobs_on_disk(settings):
    def _names():
        return sorted(p.name for p in settings.upload_dir.iterdir())

    return _names
