"""YouTube Data API v3 client: keyword search + playlist listing."""
import html
import logging
from typing import Optional

import httpx

from .config import (
    YOUTUBE_API_KEY,
    YOUTUBE_API_HOST,
    YOUTUBE_TIMEOUT,
    SEARCH_MAX_RESULTS,
    PLAYLIST_PAGE_SIZE,
)
from .errors import SearchUnavailable, SearchFailed
from .models import SearchResultItem, PlaylistEntry

logger = logging.getLogger(__name__)

_THUMBNAIL_PREFERENCE = ("high", "medium", "default")


class YouTubeClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        host: str = YOUTUBE_API_HOST,
        timeout: float = YOUTUBE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = YOUTUBE_API_KEY if api_key is None else api_key
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str, max_results: int = SEARCH_MAX_RESULTS) -> list[SearchResultItem]:
        """GET /search: ranked video hits for ``query``."""
        data = await self._get("search", {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
        })
        try:
            results = []
            for item in data.get("items", []):
                video_id = item.get("id", {}).get("videoId")
                if not video_id:
                    continue
                snippet = item.get("snippet", {})
                results.append(SearchResultItem(
                    video_id=video_id,
                    title=html.unescape(snippet.get("title", "")),
                    thumbnail_url=_pick_thumbnail(snippet.get("thumbnails", {})),
                ))
            return results
        except (AttributeError, TypeError) as e:
            raise SearchFailed(f"unexpected search response: {e}") from e

    async def list_playlist(self, playlist_id: str, max_results: int = PLAYLIST_PAGE_SIZE) -> list[PlaylistEntry]:
        """GET /playlistItems: first page of a playlist, in playlist order.

        Deleted and private videos come back without a resourceId; they are skipped.
        """
        data = await self._get("playlistItems", {
            "part": "snippet",
            "playlistId": playlist_id,
            "maxResults": max_results,
        })
        try:
            entries = []
            for item in data.get("items", []):
                snippet = item.get("snippet", {})
                video_id = snippet.get("resourceId", {}).get("videoId")
                if not video_id:
                    continue
                entries.append(PlaylistEntry(
                    video_id=video_id,
                    title=html.unescape(snippet.get("title", "")),
                ))
            return entries
        except (AttributeError, TypeError) as e:
            raise SearchFailed(f"unexpected playlist response: {e}") from e

    async def _get(self, endpoint: str, params: dict) -> dict:
        if not self.configured:
            raise SearchUnavailable("YOUTUBE_API_KEY is not set")

        params = {**params, "key": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(f"{self.host}/{endpoint}", params=params)
                if r.status_code != 200:
                    raise SearchFailed(f"YouTube HTTP {r.status_code}: {r.text[:200]}")
                data = r.json()
        except httpx.TimeoutException as e:
            raise SearchFailed(f"YouTube {endpoint} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise SearchFailed(f"YouTube HTTP error: {e}") from e
        except ValueError as e:
            raise SearchFailed(f"YouTube returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SearchFailed("YouTube returned a non-object body")
        return data


def _pick_thumbnail(thumbnails: dict) -> str:
    for size in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""
