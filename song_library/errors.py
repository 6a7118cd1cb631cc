"""
Song Library - Error types

Every failure the service layer surfaces is one of these.  The HTTP layer
maps each class onto its own status code, so callers can tell "the song
does not exist" apart from "the metadata provider is down".
"""


class SongLibraryError(Exception):
    """Base class for all song library errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SongLibraryError):
    """The requested song does not exist."""


class DependencyError(SongLibraryError):
    """The music info provider failed, timed out or was unreachable."""


class PersistenceError(SongLibraryError):
    """A read or write against the song store failed."""


class ValidationError(SongLibraryError):
    """Malformed input rejected at the HTTP boundary."""
