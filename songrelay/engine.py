"""Core relay engine: classify, resolve, mutate, broadcast.

Both inbound adapters call into this. It never talks to a transport
directly; it broadcasts via RelayState and hands back an Outcome that the
adapter turns into a LINE reply or a WebSocket unicast.
"""
import logging

from .commands import Command, CommandKind, classify
from .errors import SearchUnavailable, SearchFailed, ResolutionNotFound, format_error
from .models import (
    DefaultTrack,
    Origin,
    Outcome,
    OutcomeKind,
    QueueRequest,
    Source,
    TrackKind,
)
from .resolver import Resolver
from .web.state import RelayState

logger = logging.getLogger(__name__)


class RelayEngine:
    def __init__(self, state: RelayState, resolver: Resolver):
        self.state = state
        self.resolver = resolver

    # ── Free text ────────────────────────────────────────────────────────────

    async def submit_text(self, text: str, origin: Origin) -> Outcome:
        command = classify(text)
        logger.debug("%s input classified as %s", origin.value, command.kind.value)

        if command.kind == CommandKind.DEFAULT:
            return await self.change_default(command.payload)
        if command.kind == CommandKind.OVERLAY:
            return await self._overlay(command)
        if command.kind == CommandKind.RELAY:
            await self.state.broadcast_chat_relay(command.payload)
            return Outcome(OutcomeKind.RELAYED, title=command.payload)
        if command.kind == CommandKind.PLAYLIST:
            return await self.expand_playlist(command.payload, Source.for_request(origin, playlist=True))
        return await self.search(command.payload)

    async def _overlay(self, command: Command) -> Outcome:
        if not command.payload.strip():
            return Outcome(OutcomeKind.IGNORED)
        await self.state.broadcast_overlay(command.payload)
        return Outcome(OutcomeKind.OVERLAY, title=command.payload)

    # ── Default track ────────────────────────────────────────────────────────

    async def change_default(self, payload: str) -> Outcome:
        """Resolve ``payload`` and make it the new default. Empty payload only reports."""
        if not payload:
            return Outcome(OutcomeKind.DEFAULT_SHOWN, track=self.state.default_track.get())

        try:
            resolution = await self.resolver.resolve_single(payload)
        except ResolutionNotFound:
            return Outcome(OutcomeKind.NOT_FOUND, title=payload)
        except SearchFailed as e:
            format_error("search", payload, raw=str(e))
            return Outcome(OutcomeKind.SEARCH_FAILED, title=payload)

        track = DefaultTrack(id=resolution.id, kind=resolution.kind, label=resolution.title or resolution.id)
        await self.state.set_default(track)
        return Outcome(OutcomeKind.DEFAULT_SET, title=track.label, track=track)

    async def select_default(self, video_id: str, title: str = "", kind: TrackKind = TrackKind.VIDEO) -> Outcome:
        """A picked search result / favorite becomes the default, no resolution needed."""
        if not video_id:
            return Outcome(OutcomeKind.IGNORED)
        track = DefaultTrack(id=video_id, kind=kind, label=title or video_id)
        await self.state.set_default(track)
        return Outcome(OutcomeKind.DEFAULT_SET, title=track.label, track=track)

    # ── Queue ────────────────────────────────────────────────────────────────

    async def select_video(
        self,
        video_id: str,
        title: str,
        origin: Origin,
        kind: TrackKind = TrackKind.VIDEO,
        favorite: bool = False,
    ) -> Outcome:
        if not video_id:
            return Outcome(OutcomeKind.IGNORED)
        if kind == TrackKind.PLAYLIST:
            source = Source.for_request(origin, playlist=True, favorite=favorite)
            return await self.expand_playlist(video_id, source)

        request = QueueRequest(
            video_id=video_id,
            title=title or video_id,
            source=Source.for_request(origin, favorite=favorite),
        )
        await self.state.broadcast_queue_append(request)
        return Outcome(OutcomeKind.QUEUED, title=request.title, count=1)

    async def expand_playlist(self, playlist_id: str, source: Source) -> Outcome:
        try:
            requests = await self.resolver.resolve_playlist(playlist_id, source)
        except SearchUnavailable:
            return Outcome(OutcomeKind.SEARCH_UNAVAILABLE, title=playlist_id)
        except SearchFailed as e:
            format_error("playlist", playlist_id, raw=str(e))
            return Outcome(OutcomeKind.SEARCH_FAILED, title=playlist_id)

        if not requests:
            return Outcome(OutcomeKind.PLAYLIST_EMPTY, title=playlist_id)

        for request in requests:
            await self.state.broadcast_queue_append(request)
        return Outcome(OutcomeKind.PLAYLIST_QUEUED, title=playlist_id, count=len(requests))

    # ── Search ───────────────────────────────────────────────────────────────

    async def search(self, query: str, for_default: bool = False) -> Outcome:
        if not query:
            return Outcome(OutcomeKind.IGNORED)
        try:
            items = await self.resolver.search(query)
        except SearchUnavailable:
            return Outcome(OutcomeKind.SEARCH_UNAVAILABLE, title=query, for_default=for_default)
        except SearchFailed as e:
            format_error("search", query, raw=str(e))
            return Outcome(OutcomeKind.SEARCH_FAILED, title=query, for_default=for_default)

        if not items:
            return Outcome(OutcomeKind.NOT_FOUND, title=query, for_default=for_default)
        return Outcome(OutcomeKind.SEARCH_RESULTS, title=query, items=items, for_default=for_default)
