"""
Song Library - Ports

Interfaces between the song service and the outside world.  The service is
written against these protocols only; the SQLite repository and the HTTP
music info client are the production implementations, and tests swap in
fakes.
"""

from typing import List, Optional, Protocol

from song_library.models import Song, SongFilter, SongInfo


class SongRepository(Protocol):
    """Durable storage for songs."""

    async def create(self, song: Song) -> int:
        """Insert *song* and return the id assigned by the store."""
        ...

    async def get_by_id(self, song_id: int) -> Optional[Song]:
        """Return the song, or ``None`` if no row has that id."""
        ...

    async def get_all(
        self, song_filter: SongFilter, limit: int, offset: int
    ) -> List[Song]:
        """Return matching songs, newest id first, windowed by limit/offset."""
        ...

    async def count(self, song_filter: SongFilter) -> int:
        ...

    async def update(self, song: Song) -> None:
        """Replace every mutable field of the row with ``song.id``."""
        ...

    async def delete(self, song_id: int) -> None:
        """Remove the row; a missing row is not an error."""
        ...


class MusicInfoClient(Protocol):
    """Lookup of canonical song metadata from an external provider."""

    async def fetch_info(self, group_name: str, title: str) -> SongInfo:
        ...
