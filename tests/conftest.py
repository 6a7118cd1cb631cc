"""
Song Library - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- A temporary, initialised SQLite database and repository
- A fake music info provider that records its calls
- A SongService wired to both
- Sample lyric text
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from song_library.database import SqliteSongRepository, init_db
from song_library.errors import DependencyError
from song_library.models import Song, SongInfo
from song_library.services.song_service import SongService

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SAMPLE_LYRICS = "verse one\n\nverse two\n\nverse three"

SAMPLE_INFO = SongInfo(
    release_date="16.07.2006",
    text="Ooh baby, don't you know I suffer?\nOoh baby, can you hear me moan?\n\n"
    "You caught me under false pretenses\nHow long before you let me go?",
    link="https://www.youtube.com/watch?v=Xsp3_a-PMTw",
)


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeMusicInfoClient:
    """MusicInfoClient stand-in: returns a canned SongInfo or raises."""

    def __init__(
        self,
        info: Optional[SongInfo] = None,
        error: Optional[Exception] = None,
    ):
        self.info = info or SAMPLE_INFO
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    async def fetch_info(self, group_name: str, title: str) -> SongInfo:
        self.calls.append((group_name, title))
        if self.error is not None:
            raise self.error
        return self.info


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Provide a freshly initialised SQLite database file."""
    path = tmp_path / "songs.db"
    init_db(path)
    return path


@pytest.fixture
def repo(db_path: Path) -> SqliteSongRepository:
    return SqliteSongRepository(db_path)


def count_rows(db_path: Path) -> int:
    """Count rows in the songs table with a plain sqlite3 connection."""
    import sqlite3

    with sqlite3.connect(str(db_path)) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM songs").fetchone()
    return count


def add_song(repo: SqliteSongRepository, group_name: str, title: str, **fields) -> int:
    """Insert a song directly through the repository and return its id."""
    return run(repo.create(Song(group_name=group_name, title=title, **fields)))


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def music_client() -> FakeMusicInfoClient:
    return FakeMusicInfoClient()


@pytest.fixture
def failing_music_client() -> FakeMusicInfoClient:
    return FakeMusicInfoClient(error=DependencyError("expected 200, got 503"))


@pytest.fixture
def service(repo: SqliteSongRepository, music_client: FakeMusicInfoClient) -> SongService:
    return SongService(repo, music_client)
