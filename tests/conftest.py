import pytest
from fastapi.testclient import TestClient

from musikmo.config import get_settings
from musikmo.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP3_BYTES = b"ID3\x03\x00\x00\x00" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("MUSIKMO_STORAGE_ROOT", str(tmp_path / "storage"))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def client(settings):
    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def upload_files():
    return {
        "cover": ("cover.png", PNG_BYTES, "image/png"),
        "song": ("track.mp3", MP3_BYTES, "audio/mpeg"),
    }
