from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Song(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(gt=0)
    title: str = Field(min_length=1)
    artist: str = Field(min_length=1)
    cover_path: str = Field(alias="coverPath")
    song_path: str = Field(alias="songPath")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class SongListResponse(BaseModel):
    success: bool = True
    count: int
    songs: List[dict]


class SongResponse(BaseModel):
    success: bool = True
    song: dict


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class HealthResponse(BaseModel):
    status: Literal["OK", "ERROR"]
    message: str
    timestamp: str
    database: Literal["connected", "disconnected", "error"]

    @property
    def ok(self) -> bool:
        return self.status == "OK"


class CatalogRead(BaseModel):
    """Outcome of reading the store document.

    ``kind`` separates an empty catalog (no file, or ``[]``) from a broken
    one; ``reason`` is only set for ``error``.
    """

    kind: Literal["ok", "empty", "error"]
    songs: List[dict] = Field(default_factory=list)
    reason: Optional[str] = None
