"""
Musik M-O backend - FastAPI application.
Serves the song catalog, accepts cover/audio uploads and exposes the files statically.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import db
from .config import get_settings
from .models import ErrorResponse, HealthResponse, Song, SongListResponse, SongResponse, utc_timestamp
from .storage import UploadPart, UploadRejected, asset_path, ensure_dirs, save_uploads

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent
templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))


class SongNotFound(Exception):
    def __init__(self, song_id):
        super().__init__(f"Song with id {song_id} was not found")
        self.song_id = song_id


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


# ─────────────────────────────────────────────────────────
# API Routes
# ─────────────────────────────────────────────────────────

api = APIRouter()


@api.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
def health():
    """Check that the catalog document exists and parses as JSON."""
    result = db.check_health()
    if not result.ok:
        logger.warning("Health check failed: %s", result.message)
    return JSONResponse(status_code=200 if result.ok else 503, content=result.model_dump())


@api.get("/songs", response_model=SongListResponse)
def get_songs():
    """List every song in append order."""
    try:
        songs = db.list_songs()
    except db.CatalogStorageError as e:
        return error_response(500, f"Error reading songs: {e}")
    return {"success": True, "count": len(songs), "songs": songs}


@api.get("/songs/{song_id}", response_model=SongResponse)
def get_song_detail(song_id: str):
    try:
        numeric_id = int(song_id)
    except ValueError:
        raise SongNotFound(song_id)
    try:
        song = db.get_song(numeric_id)
    except db.CatalogStorageError as e:
        return error_response(500, f"Error reading songs: {e}")
    if song is None:
        raise SongNotFound(song_id)
    return {"success": True, "song": song}


def _as_part(upload: Optional[UploadFile]) -> Optional[UploadPart]:
    if upload is None:
        return None
    return UploadPart(upload.filename, upload.content_type, upload.file)


@api.post("/songs", status_code=201, response_model=SongResponse)
def create_song(
    title: Optional[str] = Form(None),
    artist: Optional[str] = Form(None),
    cover: Optional[UploadFile] = File(None),
    song: Optional[UploadFile] = File(None),
):
    """Store the uploaded cover and audio file, then append the song to the catalog."""
    title = title or ""
    artist = artist or ""
    if not title.strip() or not artist.strip():
        raise UploadRejected("Title and artist are required")

    paths = save_uploads({"cover": _as_part(cover), "song": _as_part(song)})

    def build(new_id: int) -> dict:
        now = utc_timestamp()
        return Song(
            id=new_id,
            title=title,
            artist=artist,
            cover_path=paths["cover"],
            song_path=paths["song"],
            created_at=now,
            updated_at=now,
        ).to_record()

    try:
        created = db.append_song(build)
    except Exception as e:
        logger.warning(
            "Catalog append failed, orphaned uploads: %s",
            ", ".join(str(asset_path(p)) for p in paths.values()),
            exc_info=not isinstance(e, (db.CatalogStorageError, OSError)),
        )
        return error_response(500, f"Error creating song: {e}")

    logger.info("Created song %s: %s - %s", created["id"], artist, title)
    return {"success": True, "song": created}


# ─────────────────────────────────────────────────────────
# Error handlers
# ─────────────────────────────────────────────────────────

def register_error_handlers(app: FastAPI):
    @app.exception_handler(UploadRejected)
    async def upload_rejected(request: Request, exc: UploadRejected):
        logger.info("Rejected upload: %s", exc)
        return error_response(400, str(exc))

    @app.exception_handler(SongNotFound)
    async def song_not_found(request: Request, exc: SongNotFound):
        return error_response(404, str(exc))

    @app.exception_handler(db.CatalogStorageError)
    async def storage_error(request: Request, exc: db.CatalogStorageError):
        logger.error("Storage error on %s: %s", request.url.path, exc)
        return error_response(500, f"Storage error: {exc}")

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'request'}: {err['msg']}"
            for err in exc.errors()
        )
        return error_response(400, f"Invalid request: {problems}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return error_response(500, f"Internal server error: {exc}")


# ─────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_dirs()
    db.init_db()
    yield


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index(request: Request):
        return templates.TemplateResponse(request, "index.html", {"api_prefix": settings.api_prefix})

    app.include_router(api, prefix=settings.api_prefix, tags=["songs"])
    app.mount("/covers", StaticFiles(directory=str(settings.covers_dir), check_dir=False), name="covers")
    app.mount("/songs", StaticFiles(directory=str(settings.songs_dir), check_dir=False), name="songs")
    app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")
    return app


app = create_app()
