"""HTTP client for the catalog API."""

import logging
from typing import List, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

# (filename, content, media type), as accepted by httpx ``files=``
FilePart = Tuple[str, Union[bytes, object], str]


class ClientError(Exception):
    """Raised for transport failures and non-2xx responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogClient:
    def __init__(self, base_url: str = "http://localhost:3001", api_prefix: str = "/api",
                 http: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.api_prefix = api_prefix
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, ok=(200,), **kwargs) -> dict:
        try:
            resp = self.http.request(method, self.api_prefix + path, **kwargs)
        except httpx.HTTPError as e:
            raise ClientError(str(e)) from e
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code not in ok:
            message = data.get("message") if isinstance(data, dict) else None
            raise ClientError(message or resp.text or str(resp.status_code), resp.status_code)
        if not isinstance(data, dict):
            raise ClientError("Unexpected response from server", resp.status_code)
        return data

    def health(self) -> dict:
        """Return the health payload; a 503 is a valid answer, not an error."""
        return self._request("GET", "/health", ok=(200, 503))

    def list_songs(self) -> List[dict]:
        return self._request("GET", "/songs").get("songs") or []

    def get_song(self, song_id: int) -> dict:
        return self._request("GET", f"/songs/{song_id}")["song"]

    def create_song(self, title: str, artist: str, cover: FilePart, song: FilePart) -> dict:
        data = self._request(
            "POST", "/songs", ok=(201,),
            data={"title": title, "artist": artist},
            files={"cover": cover, "song": song},
        )
        if not data.get("success") or not data.get("song"):
            raise ClientError("Unexpected response from server", 201)
        logger.debug("Uploaded song %s", data["song"].get("id"))
        return data["song"]
