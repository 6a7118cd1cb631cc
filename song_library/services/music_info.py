"""
Song Library - Music Info Client

Looks up canonical song metadata (release date, lyrics, link) from the
external music info API:

    GET {base_url}/info?group=<group>&song=<title>

    200 {"releaseDate": "16.07.2006", "text": "...", "link": "https://..."}

Unlike a best-effort lookup, every failure here is raised as a
DependencyError: song creation depends on the result and must not go ahead
without it.  A single attempt is made; there is no retry.  The timeout caps
the whole exchange, body included, not each network step on its own.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from song_library.config import MUSIC_INFO_API_URL, MUSIC_INFO_TIMEOUT
from song_library.errors import DependencyError
from song_library.models import SongInfo


class HttpMusicInfoClient:
    """MusicInfoClient that talks to the provider over HTTP."""

    def __init__(
        self,
        base_url: str = MUSIC_INFO_API_URL,
        timeout: float = MUSIC_INFO_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def fetch_info(self, group_name: str, title: str) -> SongInfo:
        """Fetch release date, lyrics and link for one song."""
        url = f"{self.base_url}/info"
        params = {"group": group_name, "song": title}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await asyncio.wait_for(
                    client.get(url, params=params), timeout=self.timeout
                )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.warning(
                "⏱️ Music info lookup timed out for '{}' by '{}'", title, group_name
            )
            raise DependencyError(
                f"music info lookup timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("⚠️ Music info request failed: {}", e)
            raise DependencyError(f"music info request failed: {e}") from e

        if resp.status_code != 200:
            logger.warning(
                "⚠️ Music info HTTP error: {} {}",
                resp.status_code,
                resp.text[:200],
            )
            raise DependencyError(
                f"music info provider returned {resp.status_code}, expected 200"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise DependencyError("music info provider returned invalid JSON") from e

        if not isinstance(data, dict):
            raise DependencyError("music info provider returned an unexpected payload")

        info = _to_song_info(data)
        logger.info(
            "🔍 Music info match: '{}' by '{}' → releaseDate='{}'",
            title,
            group_name,
            info.release_date,
        )
        return info


def _to_song_info(data: Dict[str, Any]) -> SongInfo:
    return SongInfo(
        release_date=str(data.get("releaseDate") or ""),
        text=str(data.get("text") or ""),
        link=str(data.get("link") or ""),
    )
