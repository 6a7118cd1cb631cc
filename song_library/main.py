"""
Song Library - Main Application

FastAPI application that serves:
- REST API endpoints for songs CRUD and paginated lyrics
- Health check endpoint

On startup the SQLite database is created or migrated and a SongService is
wired to the SQLite repository and the HTTP music info client.  Domain
errors raised by the service are mapped to HTTP status codes here.
"""

import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from song_library.config import (
    APP_ENV,
    APP_HOST,
    APP_PORT,
    APP_VERSION,
    DB_PATH,
    DEBUG,
    LOG_LEVEL,
    MUSIC_INFO_API_URL,
    MUSIC_INFO_TIMEOUT,
    ensure_directories,
)
from song_library.database import SqliteSongRepository, init_db
from song_library.errors import (
    DependencyError,
    NotFoundError,
    PersistenceError,
    SongLibraryError,
    ValidationError,
)
from song_library.routes.api import router as api_router
from song_library.services.music_info import HttpMusicInfoClient
from song_library.services.song_service import SongService

# ---------------------------------------------------------------------------
# Logging setup - stdout only
# ---------------------------------------------------------------------------
logger.remove()

logger.add(
    sys.stdout,
    level="DEBUG" if DEBUG else LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)

# Status code per error class; anything else derived from SongLibraryError
# is a 500.
_ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    DependencyError: 502,
    PersistenceError: 500,
}


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    On startup, unless a SongService was injected already:
        1. Create required directories
        2. Initialize / migrate the SQLite database
        3. Wire the SongService to SQLite and the music info provider
    """
    logger.info("🚀 Starting Song Library v{}", APP_VERSION)
    logger.info("📋 Environment: {} | Debug: {}", APP_ENV, DEBUG)

    if getattr(app.state, "song_service", None) is None:
        ensure_directories()

        try:
            init_db(DB_PATH)
        except Exception as e:
            logger.critical("❌ Database initialization failed: {}", e)
            raise

        app.state.song_service = SongService(
            SqliteSongRepository(DB_PATH),
            HttpMusicInfoClient(MUSIC_INFO_API_URL, MUSIC_INFO_TIMEOUT),
        )
        logger.info(
            "🔌 Music info provider: {} (timeout {}s)",
            MUSIC_INFO_API_URL,
            MUSIC_INFO_TIMEOUT,
        )
    else:
        logger.info("🔌 Using injected song service")

    logger.success("✅ Application ready, listening on {}:{}", APP_HOST, APP_PORT)

    yield

    logger.info("👋 Shutdown complete")


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
async def song_library_error_handler(request: Request, exc: SongLibraryError):
    """Translate a domain error into a JSON error response."""
    status = _ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.error(
            "❌ {} {} failed: {}", request.method, request.url.path, exc.message
        )
    else:
        logger.warning(
            "⚠️ {} {} rejected: {}", request.method, request.url.path, exc.message
        )

    # Store failures are logged in full but reported opaquely.
    detail = "internal storage error" if isinstance(exc, PersistenceError) else exc.message
    return JSONResponse(status_code=status, content={"error": detail})


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(song_service: SongService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing *song_service* skips the default wiring, which is how tests run
    the API against a temporary database and a fake music info provider.
    """

    app = FastAPI(
        title="Song Library",
        description=(
            "Catalogue of songs enriched with release date, lyrics and link "
            "from an external music info provider."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
    )
    app.state.song_service = song_service

    app.add_exception_handler(SongLibraryError, song_library_error_handler)

    # ------------------------------------------------------------------
    # Request logging middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every incoming HTTP request with timing information."""
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration = round(time.time() - start, 3)
            logger.error(
                "❌ {method} {path} - unhandled error after {duration}s: {exc}",
                method=request.method,
                path=request.url.path,
                duration=duration,
                exc=exc,
            )
            raise

        duration = round(time.time() - start, 3)
        status = response.status_code
        if status >= 500:
            log = logger.error
        elif status >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "📤 {method} {path} - {status} [{duration}s]",
            method=request.method,
            path=request.url.path,
            status=status,
            duration=duration,
        )
        return response

    app.include_router(api_router)  # /api/*  - JSON endpoints

    return app


# ---------------------------------------------------------------------------
# Create the app instance (used by Uvicorn)
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Direct execution (development)
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "song_library.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )
