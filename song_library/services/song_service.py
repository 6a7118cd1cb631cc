"""
Song Library - Song Service

Business rules for the song catalogue, written against the repository and
music info ports only:

- New songs are enriched from the music info provider *before* anything is
  written.  If the lookup fails the song is not created at all.
- Updates are merged onto the stored record: an empty incoming field keeps
  the stored value, so a field can never be cleared to empty.
- Update and delete check that the song exists and then act, in two
  separate store calls with no transaction between them.  A concurrent
  delete in that gap turns an update into a silent no-op and lets two
  deletes both succeed.
- Lyrics are served a verse at a time, paginated.

The service keeps no state of its own between calls.
"""

from dataclasses import replace
from typing import List, Tuple

from loguru import logger

from song_library.errors import DependencyError, NotFoundError, PersistenceError
from song_library.models import MUTABLE_FIELDS, Song, SongFilter
from song_library.ports import MusicInfoClient, SongRepository
from song_library.services.lyrics import paginate, split_verses


class SongService:
    def __init__(self, repo: SongRepository, client: MusicInfoClient):
        self.repo = repo
        self.client = client

    async def create_song(self, group_name: str, title: str) -> int:
        """
        Add a new song to the library.

        1. Fetch release date, lyrics and link from the music info provider.
        2. Insert the enriched record.
        3. Return the new id.

        Raises DependencyError when the lookup fails (nothing is stored) and
        PersistenceError when the insert fails.
        """
        logger.info("🎵 create_song: group='{}', title='{}'", group_name, title)

        try:
            info = await self.client.fetch_info(group_name, title)
        except DependencyError as e:
            raise DependencyError(
                f"failed to fetch external data for '{group_name} - {title}': {e.message}"
            ) from e

        song = Song(
            group_name=group_name,
            title=title,
            release_date=info.release_date,
            link=info.link,
            text=info.text,
        )
        try:
            song_id = await self.repo.create(song)
        except PersistenceError as e:
            raise PersistenceError(f"failed to create new song: {e.message}") from e

        logger.info("✅ Created song with id={}", song_id)
        return song_id

    async def get_song(self, song_id: int) -> Song:
        """Return the song with *song_id* or raise NotFoundError."""
        logger.debug("get_song: id={}", song_id)
        return await self._require_song(song_id)

    async def list_songs(
        self,
        song_filter: SongFilter,
        limit: int,
        offset: int,
    ) -> List[Song]:
        """List songs matching *song_filter*, newest first, paginated."""
        logger.debug(
            "list_songs: filter={}, limit={}, offset={}", song_filter, limit, offset
        )
        try:
            return await self.repo.get_all(song_filter, limit, offset)
        except PersistenceError as e:
            raise PersistenceError(f"failed to list songs: {e.message}") from e

    async def count_songs(self, song_filter: SongFilter) -> int:
        try:
            return await self.repo.count(song_filter)
        except PersistenceError as e:
            raise PersistenceError(f"failed to count songs: {e.message}") from e

    async def update_song(self, song: Song) -> None:
        """
        Merge *song* onto the stored record with the same id and save it.

        Only non-empty fields of *song* overwrite stored values.
        """
        logger.info("✏️ update_song: id={}", song.id)

        existing = await self._require_song(song.id)

        changes = {
            field: getattr(song, field)
            for field in MUTABLE_FIELDS
            if getattr(song, field)
        }
        merged = replace(existing, **changes)

        try:
            await self.repo.update(merged)
        except PersistenceError as e:
            raise PersistenceError(
                f"failed to update song id={song.id}: {e.message}"
            ) from e

    async def delete_song(self, song_id: int) -> None:
        """Remove the song with *song_id*; NotFoundError if it does not exist."""
        logger.info("🗑️ delete_song: id={}", song_id)

        await self._require_song(song_id)
        try:
            await self.repo.delete(song_id)
        except PersistenceError as e:
            raise PersistenceError(
                f"failed to delete song id={song_id}: {e.message}"
            ) from e

        logger.info("Song with id={} deleted", song_id)

    async def get_lyrics(
        self,
        song_id: int,
        page: int,
        page_size: int,
    ) -> Tuple[List[str], int]:
        """
        Return one page of the song's verses and the total verse count.

        ``page`` and ``page_size`` below 1 are treated as 1.  Pages past the
        last verse are empty rather than an error.
        """
        logger.debug(
            "get_lyrics: id={}, page={}, page_size={}", song_id, page, page_size
        )
        song = await self._require_song(song_id)
        return paginate(split_verses(song.text), page, page_size)

    async def _require_song(self, song_id: int) -> Song:
        try:
            song = await self.repo.get_by_id(song_id)
        except PersistenceError as e:
            raise PersistenceError(
                f"failed to retrieve song with id={song_id}: {e.message}"
            ) from e
        if song is None:
            raise NotFoundError(f"song with id={song_id} not found")
        return song
