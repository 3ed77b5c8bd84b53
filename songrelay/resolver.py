"""Video/playlist resolver: URL, bare id or keyword → something playable."""
import logging

from .errors import ResolutionNotFound
from .models import QueueRequest, Resolution, SearchResultItem, Source, TrackKind
from .utils import extract_video_id, extract_playlist_id
from .youtube import YouTubeClient

logger = logging.getLogger(__name__)


class Resolver:
    def __init__(self, youtube: YouTubeClient):
        self.youtube = youtube

    @property
    def search_configured(self) -> bool:
        return self.youtube.configured

    async def resolve_single(self, payload: str) -> Resolution:
        """
        Playlist link → playlist resolution.
        Embedded URL / bare id → video resolution, no API call, empty title.
        Anything else → first search hit (when a key is configured).
        Raises ResolutionNotFound, or SearchFailed if the search itself broke.
        """
        playlist_id = extract_playlist_id(payload)
        if playlist_id:
            return Resolution(id=playlist_id, kind=TrackKind.PLAYLIST, title="")

        video_id = extract_video_id(payload)
        if video_id:
            return Resolution(id=video_id, kind=TrackKind.VIDEO, title="")

        if self.search_configured and payload:
            items = await self.search(payload, max_results=1)
            if items:
                return Resolution(id=items[0].video_id, kind=TrackKind.VIDEO, title=items[0].title)

        raise ResolutionNotFound(payload)

    async def resolve_playlist(self, playlist_id: str, source: Source) -> list[QueueRequest]:
        """Expand a playlist into ordered queue requests. Empty list means nothing playable."""
        entries = await self.youtube.list_playlist(playlist_id)
        logger.info("Playlist %s expanded to %d entries", playlist_id, len(entries))
        return [QueueRequest(video_id=e.video_id, title=e.title, source=source) for e in entries]

    async def search(self, query: str, max_results: int | None = None) -> list[SearchResultItem]:
        if max_results is None:
            return await self.youtube.search(query)
        return await self.youtube.search(query, max_results=max_results)
