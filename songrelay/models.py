"""Value types shared by the resolver, engine and adapters."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TrackKind(str, Enum):
    VIDEO = "video"
    PLAYLIST = "playlist"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TrackKind":
        """Lenient parse: anything that isn't 'playlist' is a video."""
        if isinstance(value, str) and value.strip().lower() == cls.PLAYLIST.value:
            return cls.PLAYLIST
        return cls.VIDEO


class Origin(str, Enum):
    """Which inbound surface a request came from."""
    BOT = "bot"
    WEB = "web"


class Source(str, Enum):
    """Tag carried on every queue append so the player can show who asked."""
    BOT = "LINE"
    WEB = "PC"
    BOT_PLAYLIST = "LINE_PLAYLIST"
    WEB_PLAYLIST = "PC_PLAYLIST"
    FAVORITE = "FAVORITE"
    FAVORITE_PLAYLIST = "FAVORITE_PLAYLIST"

    @classmethod
    def for_request(cls, origin: Origin, playlist: bool = False, favorite: bool = False) -> "Source":
        if favorite:
            return cls.FAVORITE_PLAYLIST if playlist else cls.FAVORITE
        if origin == Origin.BOT:
            return cls.BOT_PLAYLIST if playlist else cls.BOT
        return cls.WEB_PLAYLIST if playlist else cls.WEB


@dataclass(frozen=True)
class DefaultTrack:
    id: str
    kind: TrackKind = TrackKind.VIDEO
    label: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "kind": self.kind.value, "label": self.label}


@dataclass(frozen=True)
class QueueRequest:
    video_id: str
    title: str
    source: Source

    def to_dict(self) -> dict:
        return {"videoId": self.video_id, "title": self.title, "source": self.source.value}


@dataclass(frozen=True)
class SearchResultItem:
    video_id: str
    title: str
    thumbnail_url: str = ""

    def to_dict(self) -> dict:
        return {"videoId": self.video_id, "title": self.title, "thumbnailUrl": self.thumbnail_url}


@dataclass(frozen=True)
class PlaylistEntry:
    video_id: str
    title: str


@dataclass(frozen=True)
class Resolution:
    """A concrete playable target produced by the resolver."""
    id: str
    kind: TrackKind
    title: str = ""


class OutcomeKind(str, Enum):
    QUEUED = "queued"
    RELAYED = "relayed"
    OVERLAY = "overlay"
    DEFAULT_SET = "default_set"
    DEFAULT_SHOWN = "default_shown"
    NOT_FOUND = "not_found"
    SEARCH_RESULTS = "search_results"
    SEARCH_UNAVAILABLE = "search_unavailable"
    SEARCH_FAILED = "search_failed"
    PLAYLIST_QUEUED = "playlist_queued"
    PLAYLIST_EMPTY = "playlist_empty"
    IGNORED = "ignored"


@dataclass
class Outcome:
    """What the engine did, so each adapter can answer the requester its own way."""
    kind: OutcomeKind
    title: str = ""
    items: list[SearchResultItem] = field(default_factory=list)
    track: Optional[DefaultTrack] = None
    count: int = 0
    for_default: bool = False
