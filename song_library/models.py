"""
Song Library - Domain models

Plain dataclasses shared by the repository, the service and the HTTP layer.
Timestamps are kept as the strings the store hands back
(``YYYY-MM-DD HH:MM:SS.SSS``, UTC) and the release date is passed through
untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Fields a caller may change through an update; everything else is owned by
# the store.
MUTABLE_FIELDS = ("group_name", "title", "release_date", "link", "text")


@dataclass
class Song:
    id: int = 0
    group_name: str = ""
    title: str = ""
    release_date: str = ""
    link: str = ""
    text: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Song":
        """Build a Song from a ``songs`` table row converted to a dict."""
        return cls(
            id=row["id"],
            group_name=row["group_name"],
            title=row["title"],
            release_date=row["release_date"],
            link=row["link"],
            text=row["text"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape used by the HTTP API."""
        return {
            "id": self.id,
            "group": self.group_name,
            "song": self.title,
            "releaseDate": self.release_date,
            "link": self.link,
            "text": self.text,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class SongFilter:
    """Case-insensitive substring filters for listing songs.

    ``None``, empty and whitespace-only values place no constraint.
    """

    group_name: Optional[str] = None
    title: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            value and value.strip() for value in (self.group_name, self.title)
        )


@dataclass
class SongInfo:
    """Metadata returned by the music info provider for one song."""

    release_date: str = ""
    text: str = ""
    link: str = ""
