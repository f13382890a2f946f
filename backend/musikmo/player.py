"""
Catalog view and audio player state, independent of any UI toolkit.

The browser page in ``static/app.js`` drives the same transitions from DOM
events; these classes let other front ends (and the tests) reuse them.
"""

import logging
import math
from typing import Iterable, List, Optional

from .client import CatalogClient, ClientError

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No songs yet. Try uploading one."


def filter_songs(songs: Iterable[dict], query: str) -> List[dict]:
    """Case-insensitive substring match on title or artist."""
    q = (query or "").strip().lower()
    return [
        s for s in songs
        if q in str(s.get("title", "")).lower() or q in str(s.get("artist", "")).lower()
    ]


def format_time(seconds: Optional[float]) -> str:
    """Render seconds as ``m:ss``."""
    if not seconds or math.isnan(seconds):
        seconds = 0
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


class CatalogView:
    """Idle -> Loading -> Ready | Error, plus search and the upload dialog."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"

    def __init__(self, client: CatalogClient):
        self.client = client
        self.state = self.IDLE
        self.songs: List[dict] = []
        self.query = ""
        self.error: Optional[str] = None
        self.dialog_open = False

    @property
    def visible(self) -> List[dict]:
        return filter_songs(self.songs, self.query)

    @property
    def placeholder(self) -> Optional[str]:
        return EMPTY_MESSAGE if self.state == self.READY and not self.visible else None

    def start(self):
        """Health check first; only a healthy server gets its catalog fetched."""
        self.state = self.LOADING
        self.error = None
        try:
            health = self.client.health()
        except ClientError as e:
            self.state = self.ERROR
            self.error = f"Could not connect to the server: {e}"
            return
        if health.get("status") != "OK":
            self.state = self.ERROR
            self.error = f"Server error: {health.get('message')}"
            return
        self.load()

    def load(self):
        previous = self.state
        self.state = self.LOADING
        self.error = None
        try:
            self.songs = self.client.list_songs()
        except ClientError as e:
            logger.warning("Catalog fetch failed: %s", e)
            self.error = str(e)
            self.state = self.READY if previous == self.READY else self.ERROR
            return
        self.state = self.READY

    def search(self, query: str) -> List[dict]:
        self.query = query
        return self.visible

    def add(self, song: dict):
        self.songs = [song] + self.songs

    def open_upload(self):
        self.dialog_open = True
        self.error = None

    def close_upload(self):
        self.dialog_open = False

    def submit_upload(self, title, artist, cover, song) -> Optional[dict]:
        """Post an upload. Failure keeps the dialog open with the error shown."""
        self.error = None
        try:
            created = self.client.create_song(title, artist, cover, song)
        except ClientError as e:
            self.error = f"Upload failed: {e}"
            return None
        self.add(created)
        self.dialog_open = False
        return created


class Player:
    """Stopped -> Playing <-> Paused -> Ended over a queue of songs."""

    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"

    def __init__(self, base_url: str = ""):
        self.base_url = base_url.rstrip("/")
        self.state = self.STOPPED
        self.queue: List[dict] = []
        self.index = -1
        self.source: Optional[str] = None
        self.position = 0.0
        self.duration = 0.0
        self.dragging = False

    @property
    def current(self) -> Optional[dict]:
        if 0 <= self.index < len(self.queue):
            return self.queue[self.index]
        return None

    @property
    def active_index(self) -> Optional[int]:
        return self.index if self.current is not None else None

    @property
    def seek_max(self) -> int:
        return int(self.duration or 0)

    @property
    def seek_value(self) -> int:
        return int(self.position or 0)

    @property
    def info(self) -> str:
        song = self.current
        return f"{song['title']} - {song['artist']}" if song else ""

    def play(self, index: int, queue: Optional[List[dict]] = None) -> bool:
        if queue is not None:
            self.queue = list(queue)
        if not 0 <= index < len(self.queue):
            return False
        self.index = index
        self.source = self.base_url + self.queue[index]["songPath"]
        self.position = 0.0
        self.duration = 0.0
        self.state = self.PLAYING
        return True

    def toggle(self):
        if self.source is None:
            return
        if self.state == self.PLAYING:
            self.state = self.PAUSED
        else:
            if self.state == self.ENDED:
                self.position = 0.0
            self.state = self.PLAYING

    def on_metadata(self, duration: float):
        self.duration = 0.0 if duration is None or math.isnan(duration) else float(duration)

    def on_time_update(self, current_time: float):
        # position only follows playback while the seek bar is not held
        if not self.dragging:
            self.position = float(current_time or 0)

    def begin_drag(self):
        self.dragging = True

    def seek(self, seconds: float):
        upper = self.duration if self.duration else float(seconds)
        self.position = min(max(0.0, float(seconds)), upper)

    def end_drag(self):
        self.dragging = False

    def on_ended(self):
        """Advance to the next song; after the last one playback stops."""
        if self.index < len(self.queue) - 1:
            self.play(self.index + 1)
        else:
            self.state = self.ENDED
