"""
Song Library - SQLite Database

Embedded SQLite store for the song catalogue.  Uses aiosqlite for the async
repository the service talks to, and plain sqlite3 for the one-off schema
bootstrap at startup.

Every repository call opens its own connection, runs one statement, commits
and closes.  The database file is the only shared state between requests.

Timestamps are written by SQLite itself with millisecond resolution in a
fixed-width format, so comparing them as strings gives chronological order.
"""

import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import aiosqlite
from loguru import logger

from song_library.config import DB_PATH
from song_library.errors import PersistenceError
from song_library.models import Song, SongFilter

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS songs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_name TEXT NOT NULL,
    title TEXT NOT NULL,
    release_date TEXT NOT NULL DEFAULT '',
    link TEXT NOT NULL DEFAULT '',
    text TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);
"""

# Range of values SQLite can bind as an INTEGER.
SQLITE_MIN_INT = -(2**63)
SQLITE_MAX_INT = 2**63 - 1

_NOW_SQL = "strftime('%Y-%m-%d %H:%M:%f', 'now')"

# updated_at must move forward even when two writes land in the same
# millisecond.
_BUMP_UPDATED_AT_SQL = (
    f"MAX({_NOW_SQL}, strftime('%Y-%m-%d %H:%M:%f', updated_at, '+0.001 seconds'))"
)

_SONG_COLUMNS = (
    "id, group_name, title, release_date, link, text, created_at, updated_at"
)

# ---------------------------------------------------------------------------
# Migration helpers
# ---------------------------------------------------------------------------
_MIGRATIONS = [
    # Migration 1: Add link column (databases created before enrichment
    #              stored the provider link).
    {
        "check": "SELECT COUNT(*) FROM pragma_table_info('songs') WHERE name='link'",
        "apply": [
            "ALTER TABLE songs ADD COLUMN link TEXT NOT NULL DEFAULT ''",
        ],
        "description": "Add link column",
    },
]


def _run_migrations(conn: sqlite3.Connection) -> None:
    """Run any pending schema migrations."""
    for migration in _MIGRATIONS:
        cursor = conn.execute(str(migration["check"]))
        (count,) = cursor.fetchone()
        if count == 0:
            logger.info("🔄 Running migration: {}", migration["description"])
            for stmt in migration["apply"]:
                conn.execute(stmt)
            conn.commit()
            logger.success("✅ Migration applied: {}", migration["description"])


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------
def init_db(db_path: Union[str, Path, None] = None) -> None:
    """Initialize the SQLite database, create tables, and run migrations."""
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with sqlite3.connect(str(path)) as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
            _run_migrations(conn)
        logger.success(f"✅ Database initialized at {path}")
    except Exception as e:
        logger.critical(f"❌ Failed to initialize database: {e}")
        raise


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


# ---------------------------------------------------------------------------
# Async context manager
# ---------------------------------------------------------------------------
@asynccontextmanager
async def get_async_connection(db_path: Union[str, Path, None] = None):
    """Async context manager for an aiosqlite connection with row factory.

    Registers ``casefold()`` so filters can match case-insensitively beyond
    ASCII, which SQLite's own ``LIKE``/``lower()`` do not.
    """
    db = await aiosqlite.connect(str(db_path or DB_PATH))
    db.row_factory = aiosqlite.Row
    try:
        await db.create_function("casefold", 1, _casefold, deterministic=True)
        yield db
    finally:
        await db.close()


# ---------------------------------------------------------------------------
# Helper: convert aiosqlite.Row to plain dict
# ---------------------------------------------------------------------------
def row_to_dict(row) -> Dict[str, Any]:
    """Convert a database row to a plain dictionary."""
    if row is None:
        return {}
    return dict(row)


# ---------------------------------------------------------------------------
# Query building
# ---------------------------------------------------------------------------
def _like_pattern(value: str) -> str:
    """Wrap *value* for a literal, case-insensitive substring ``LIKE``."""
    escaped = (
        value.casefold()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


def build_song_filter(song_filter: SongFilter) -> Tuple[str, List[Any]]:
    """
    Translate a SongFilter into a ``WHERE`` clause and its parameters.

    Each present predicate adds one ``casefold(column) LIKE ?`` clause, the
    clauses are AND-ed together, and parameters follow filter-field order
    (group name, then title).  Filter values are only ever bound, never
    spliced into the SQL text.

    Returns ``("", [])`` when the filter places no constraint.
    """
    if song_filter.is_empty():
        return "", []

    clauses: List[str] = []
    params: List[Any] = []

    for column, value in (
        ("group_name", song_filter.group_name),
        ("title", song_filter.title),
    ):
        if value and value.strip():
            clauses.append(f"casefold({column}) LIKE ? ESCAPE '\\'")
            params.append(_like_pattern(value.strip()))

    return " WHERE " + " AND ".join(clauses), params


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------
class SqliteSongRepository:
    """Song repository backed by a SQLite file."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path or DB_PATH)

    async def create(self, song: Song) -> int:
        """Insert a song and return its id."""
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute(
                    f"""
                    INSERT INTO songs
                        (group_name, title, release_date, link, text, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, {_NOW_SQL}, {_NOW_SQL})
                    """,
                    (
                        song.group_name,
                        song.title,
                        song.release_date,
                        song.link,
                        song.text,
                    ),
                )
                await db.commit()
                song_id = cursor.lastrowid or 0
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to insert new song: {e}") from e

        logger.success(
            "✅ Song added (id={}): {} - {}", song_id, song.group_name, song.title
        )
        return song_id

    async def get_by_id(self, song_id: int) -> Optional[Song]:
        """Fetch a single song by its id, or None if there is no such row."""
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute(
                    f"SELECT {_SONG_COLUMNS} FROM songs WHERE id = ? LIMIT 1",
                    (song_id,),
                )
                row = await cursor.fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to get song by id: {e}") from e

        return Song.from_row(row_to_dict(row)) if row else None

    async def get_all(
        self,
        song_filter: SongFilter,
        limit: int,
        offset: int,
    ) -> List[Song]:
        """Fetch songs matching the filter, newest id first, with pagination."""
        where, params = build_song_filter(song_filter)
        query = (
            f"SELECT {_SONG_COLUMNS} FROM songs{where} "
            "ORDER BY id DESC LIMIT ? OFFSET ?"
        )
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute(query, [*params, limit, offset])
                rows = await cursor.fetchall()
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to query songs: {e}") from e

        return [Song.from_row(row_to_dict(r)) for r in rows]

    async def count(self, song_filter: SongFilter) -> int:
        """Return the number of songs matching the filter."""
        where, params = build_song_filter(song_filter)
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute(
                    f"SELECT COUNT(*) AS cnt FROM songs{where}", params
                )
                row = await cursor.fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to query song count: {e}") from e

        return row["cnt"] if row else 0

    async def update(self, song: Song) -> None:
        """Overwrite every mutable field of the song with ``song.id``."""
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute(
                    f"""
                    UPDATE songs
                    SET group_name   = ?,
                        title        = ?,
                        release_date = ?,
                        link         = ?,
                        text         = ?,
                        updated_at   = {_BUMP_UPDATED_AT_SQL}
                    WHERE id = ?
                    """,
                    (
                        song.group_name,
                        song.title,
                        song.release_date,
                        song.link,
                        song.text,
                        song.id,
                    ),
                )
                await db.commit()
                updated = cursor.rowcount > 0
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to write song id={song.id}: {e}") from e

        if updated:
            logger.info("✏️ Song id={} updated", song.id)
        else:
            logger.warning("⚠️ Song id={} not found for update", song.id)

    async def delete(self, song_id: int) -> None:
        """Delete a song by id.  Deleting a missing row is a no-op."""
        try:
            async with get_async_connection(self.db_path) as db:
                cursor = await db.execute("DELETE FROM songs WHERE id = ?", (song_id,))
                await db.commit()
                deleted = cursor.rowcount > 0
        except (sqlite3.Error, OverflowError) as e:
            raise PersistenceError(f"failed to remove song id={song_id}: {e}") from e

        if deleted:
            logger.info("🗑️ Song id={} deleted from database", song_id)
        else:
            logger.warning("⚠️ Song id={} not found for deletion", song_id)
