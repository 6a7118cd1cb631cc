"""
Song Library - Configuration
All settings loaded from environment variables with sensible defaults.

The service keeps its catalogue in a single SQLite file and enriches new
songs from an external music-info API.  Both locations are configurable so
the same image can run against different stores and providers.
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8080"))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
DB_PATH = Path(
    os.getenv(
        "DB_PATH", os.path.join(tempfile.gettempdir(), "song_library", "songs.db")
    )
)

# ---------------------------------------------------------------------------
# Logging - stdout only
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Music info provider (song enrichment)
# ---------------------------------------------------------------------------
MUSIC_INFO_API_URL = os.getenv("MUSIC_INFO_API_URL", "http://localhost:3000")
# Upper bound for a single enrichment request, in seconds
MUSIC_INFO_TIMEOUT = float(os.getenv("MUSIC_INFO_TIMEOUT", "5.0"))

# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
DEFAULT_LIST_LIMIT = int(os.getenv("DEFAULT_LIST_LIMIT", "10"))


def ensure_directories() -> None:
    """Create the local directories the service writes to."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
