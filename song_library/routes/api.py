"""
Song Library - JSON API Routes

Provides the REST API endpoints for:
- Songs CRUD (create with enrichment, list, get, update, delete)
- Paginated lyrics (one or more verses per page)
- Health check

Handlers only translate between HTTP and the SongService.  Domain errors
are turned into status codes by the exception handlers registered in
``song_library.main``.
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response
from pydantic import BaseModel, Field

from song_library.config import APP_VERSION, DB_PATH, DEFAULT_LIST_LIMIT
from song_library.database import SQLITE_MAX_INT, SQLITE_MIN_INT
from song_library.errors import ValidationError
from song_library.models import Song, SongFilter
from song_library.services.song_service import SongService

router = APIRouter(prefix="/api", tags=["API"])

# Track startup time for health check
_START_TIME = time.time()


def get_song_service(request: Request) -> SongService:
    """Return the SongService wired up at application startup."""
    return request.app.state.song_service


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------
class CreateSongRequest(BaseModel):
    group: str = ""
    song: str = ""


class UpdateSongRequest(BaseModel):
    group: str = ""
    song: str = ""
    release_date: str = Field("", alias="releaseDate")
    link: str = ""
    text: str = ""


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/health")
async def health_check():
    """Health check endpoint for the service."""
    uptime = round(time.time() - _START_TIME, 2)
    db_ok = DB_PATH.exists()

    return {
        "status": "ok" if db_ok else "degraded",
        "database": "ok" if db_ok else "missing",
        "uptime_seconds": uptime,
        "version": APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Songs CRUD
# ---------------------------------------------------------------------------
@router.post("/songs", status_code=201)
async def api_create_song(
    body: CreateSongRequest,
    service: SongService = Depends(get_song_service),
):
    """
    Create a new song.

    Calls the music info provider to fill in release date, lyrics and link
    before the song is stored.
    """
    group = body.group.strip()
    title = body.song.strip()
    if not group or not title:
        raise ValidationError("both 'group' and 'song' are required")

    song_id = await service.create_song(group, title)
    return {"id": song_id}


@router.get("/songs")
async def api_list_songs(
    group: Optional[str] = Query(None),
    title: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=0, le=SQLITE_MAX_INT),
    offset: int = Query(0, ge=0, le=SQLITE_MAX_INT),
    service: SongService = Depends(get_song_service),
):
    """List songs with optional group/title filters and pagination."""
    song_filter = SongFilter(group_name=group, title=title)
    total = await service.count_songs(song_filter)
    songs = await service.list_songs(song_filter, limit, offset)

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "songs": [s.to_dict() for s in songs],
    }


@router.get("/songs/{song_id}")
async def api_get_song(
    song_id: int = Path(..., ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    service: SongService = Depends(get_song_service),
):
    """Get a single song by ID."""
    song = await service.get_song(song_id)
    return {"song": song.to_dict()}


@router.put("/songs/{song_id}")
async def api_update_song(
    body: UpdateSongRequest,
    song_id: int = Path(..., ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    service: SongService = Depends(get_song_service),
):
    """
    Update a song's fields.

    Fields left out or sent empty keep their stored value.
    """
    await service.update_song(
        Song(
            id=song_id,
            group_name=body.group,
            title=body.song,
            release_date=body.release_date,
            link=body.link,
            text=body.text,
        )
    )
    return {"message": f"Song {song_id} updated successfully"}


@router.delete("/songs/{song_id}", status_code=204)
async def api_delete_song(
    song_id: int = Path(..., ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    service: SongService = Depends(get_song_service),
):
    """Delete a song from the library."""
    await service.delete_song(song_id)
    return Response(status_code=204)


@router.get("/songs/{song_id}/lyrics")
async def api_get_lyrics(
    song_id: int = Path(..., ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    page: int = Query(1),
    page_size: int = Query(1, alias="pageSize"),
    service: SongService = Depends(get_song_service),
):
    """
    Get a song's lyrics split into verses, paginated.

    ``page=1&pageSize=1`` returns the first verse.  Values below 1 are
    treated as 1.
    """
    verses, total = await service.get_lyrics(song_id, page, page_size)
    return {
        "lyrics": verses,
        "total": total,
        "page": max(page, 1),
        "pageSize": max(page_size, 1),
    }
