import asyncio
from typing import Optional

from songrelay.errors import SearchUnavailable
from songrelay.models import DefaultTrack, PlaylistEntry, SearchResultItem, TrackKind

FALLBACK = DefaultTrack(id="fallback001", kind=TrackKind.VIDEO, label="fallback")


class FakeYouTube:
    """Stands in for YouTubeClient; records calls, optionally sleeps or fails."""

    def __init__(
        self,
        configured: bool = True,
        results: Optional[dict] = None,
        playlists: Optional[dict] = None,
        delays: Optional[dict] = None,
        fail: Optional[Exception] = None,
    ):
        self.configured = configured
        self.results = results or {}
        self.playlists = playlists or {}
        self.delays = delays or {}
        self.fail = fail
        self.search_calls: list[str] = []
        self.playlist_calls: list[str] = []

    async def search(self, query: str, max_results: int = 3) -> list[SearchResultItem]:
        self.search_calls.append(query)
        if not self.configured:
            raise SearchUnavailable("no key")
        if self.fail:
            raise self.fail
        await asyncio.sleep(self.delays.get(query, 0))
        return list(self.results.get(query, []))[:max_results]

    async def list_playlist(self, playlist_id: str, max_results: int = 20) -> list[PlaylistEntry]:
        self.playlist_calls.append(playlist_id)
        if not self.configured:
            raise SearchUnavailable("no key")
        if self.fail:
            raise self.fail
        await asyncio.sleep(self.delays.get(playlist_id, 0))
        return list(self.playlists.get(playlist_id, []))[:max_results]


def drain(queue: asyncio.Queue) -> list[tuple]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


def hits(*pairs: tuple[str, str]) -> list[SearchResultItem]:
    return [
        SearchResultItem(video_id=vid, title=title, thumbnail_url=f"https://i.ytimg.com/vi/{vid}/hqdefault.jpg")
        for vid, title in pairs
    ]


def entries(*pairs: tuple[str, str]) -> list[PlaylistEntry]:
    return [PlaylistEntry(video_id=vid, title=title) for vid, title in pairs]
