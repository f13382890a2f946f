import logging
import random
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Dict, NamedTuple, Optional

from .config import get_settings

logger = logging.getLogger(__name__)

# form field -> (required media type prefix, public URL prefix)
UPLOAD_FIELDS = {
    "cover": ("image/", "/covers"),
    "song": ("audio/", "/songs"),
}


class UploadRejected(Exception):
    """Raised when an upload part is missing or has the wrong media type."""


class UploadPart(NamedTuple):
    filename: Optional[str]
    content_type: Optional[str]
    file: BinaryIO


def ensure_dirs():
    settings = get_settings()
    settings.covers_dir.mkdir(parents=True, exist_ok=True)
    settings.songs_dir.mkdir(parents=True, exist_ok=True)


def field_dir(fieldname: str) -> Path:
    settings = get_settings()
    return {"cover": settings.covers_dir, "song": settings.songs_dir}[fieldname]


def unique_filename(fieldname: str, original: Optional[str]) -> str:
    """``<field>-<epoch millis>-<random>.<ext>``, keeping the original extension."""
    suffix = Path(original or "").suffix
    stamp = int(time.time() * 1000)
    return f"{fieldname}-{stamp}-{random.randint(0, 10**9)}{suffix}"


def validate_part(fieldname: str, part: Optional[UploadPart]):
    media_prefix, _ = UPLOAD_FIELDS[fieldname]
    if part is None or not part.filename:
        raise UploadRejected("Both cover and audio file are required")
    content_type = (part.content_type or "").lower()
    if not content_type.startswith(media_prefix):
        kind = "image" if fieldname == "cover" else "audio"
        raise UploadRejected(
            f"Only {kind} files are allowed for {fieldname} (got {part.content_type or 'unknown'})"
        )


def save_upload(fieldname: str, part: UploadPart) -> str:
    """Save an upload part into its directory, return its public URL path."""
    _, url_prefix = UPLOAD_FIELDS[fieldname]
    dest_dir = field_dir(fieldname)
    dest_dir.mkdir(parents=True, exist_ok=True)
    name = unique_filename(fieldname, part.filename)
    with open(dest_dir / name, "wb") as f:
        shutil.copyfileobj(part.file, f)
    logger.info("Stored %s upload %r as %s", fieldname, part.filename, name)
    return f"{url_prefix}/{name}"


def save_uploads(parts: Dict[str, Optional[UploadPart]]) -> Dict[str, str]:
    """Validate every part first, then write them. Returns field -> URL path."""
    for fieldname in UPLOAD_FIELDS:
        validate_part(fieldname, parts.get(fieldname))
    return {fieldname: save_upload(fieldname, parts[fieldname]) for fieldname in UPLOAD_FIELDS}


def asset_path(url_path: str) -> Path:
    """Map a stored ``/covers/x`` or ``/songs/x`` URL back to its file."""
    for fieldname, (_, url_prefix) in UPLOAD_FIELDS.items():
        if url_path.startswith(url_prefix + "/"):
            return field_dir(fieldname) / url_path[len(url_prefix) + 1:]
    raise ValueError(f"not an asset path: {url_path}")
