import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional

from .config import get_settings
from .models import CatalogRead, HealthResponse, utc_timestamp

logger = logging.getLogger(__name__)

# One writer at a time for every read-modify-write of the catalog document.
_write_lock = threading.Lock()


class CatalogStorageError(Exception):
    """Raised when the catalog document cannot be read or written."""


def catalog_path() -> Path:
    return get_settings().catalog_path


def init_db():
    settings = get_settings()
    path = settings.catalog_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if settings.create_catalog and not path.exists():
        save_all([])
        logger.info("Created empty catalog at %s", path)


def _read_document(path: Path) -> list:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return data


def read_catalog() -> CatalogRead:
    """Read the catalog, keeping "no data" and "broken storage" apart."""
    path = catalog_path()
    if not path.exists():
        return CatalogRead(kind="empty")
    try:
        songs = _read_document(path)
    except (OSError, ValueError) as e:
        logger.error("Failed to read catalog %s: %s", path, e)
        return CatalogRead(kind="error", reason=str(e))
    return CatalogRead(kind="ok" if songs else "empty", songs=songs)


def load_all() -> List[dict]:
    """Return all songs; a missing or unreadable document reads as empty."""
    result = read_catalog()
    return result.songs if result.kind == "ok" else []


def save_all(songs: List[dict]):
    """Overwrite the catalog document via a temp file and rename."""
    path = catalog_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=str(path.parent), suffix=".tmp"
        ) as tmp:
            tmp_path = Path(tmp.name)
            json.dump(songs, tmp, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise CatalogStorageError(f"could not write {path.name}: {e}") from e


def next_id(songs: List[dict]) -> int:
    return max((int(s["id"]) for s in songs), default=0) + 1


def append_song(build: Callable[[int], dict]) -> dict:
    """Append the record returned by ``build(next_id)`` and persist it.

    Refuses to touch a document that exists but cannot be parsed.
    """
    with _write_lock:
        result = read_catalog()
        if result.kind == "error":
            raise CatalogStorageError(f"catalog is unreadable: {result.reason}")
        songs = result.songs
        song = build(next_id(songs))
        songs.append(song)
        save_all(songs)
        return song


def get_song(song_id: int) -> Optional[dict]:
    result = read_catalog()
    if result.kind == "error":
        raise CatalogStorageError(result.reason)
    for song in result.songs:
        if song.get("id") == song_id:
            return song
    return None


def list_songs() -> List[dict]:
    result = read_catalog()
    if result.kind == "error":
        raise CatalogStorageError(result.reason)
    return result.songs


def check_health() -> HealthResponse:
    path = catalog_path()
    now = utc_timestamp()
    if not path.exists():
        return HealthResponse(
            status="ERROR",
            message=f"{path.name} does not exist",
            timestamp=now,
            database="disconnected",
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            json.load(f)
    except (OSError, ValueError) as e:
        return HealthResponse(
            status="ERROR",
            message=f"Error reading {path.name}: {e}",
            timestamp=now,
            database="error",
        )
    return HealthResponse(
        status="OK",
        message=f"Server is running and {path.name} is available",
        timestamp=now,
        database="connected",
    )
