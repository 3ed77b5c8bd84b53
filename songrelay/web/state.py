"""RelayState: default-track cell + event fan-out to WebSocket clients."""
import asyncio
import logging
from typing import Any, Iterable

from ..config import CLIENT_QUEUE_SIZE
from ..models import DefaultTrack, QueueRequest, SearchResultItem

logger = logging.getLogger(__name__)


class DefaultTrackCell:
    """Holds the one process-wide default track. Only RelayState writes to it."""

    def __init__(self, initial: DefaultTrack):
        self._track = initial

    def get(self) -> DefaultTrack:
        return self._track

    def replace(self, track: DefaultTrack) -> DefaultTrack:
        previous, self._track = self._track, track
        return previous


class RelayState:
    def __init__(self, initial_default: DefaultTrack, queue_size: int = CLIENT_QUEUE_SIZE):
        self.default_track = DefaultTrackCell(initial_default)
        self._queue_size = queue_size
        self._subscribers: dict[str, asyncio.Queue] = {}

    # ── Subscribers ──────────────────────────────────────────────────────────

    def subscribe(self, client_id: str) -> asyncio.Queue:
        """Register a new client. Returns a queue that receives (event, data) tuples."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[client_id] = q
        return q

    def unsubscribe(self, client_id: str):
        self._subscribers.pop(client_id, None)

    @property
    def client_count(self) -> int:
        return len(self._subscribers)

    # ── Low-level delivery ───────────────────────────────────────────────────

    async def broadcast(self, event: str, data: Any):
        """Push an event to all connected clients."""
        dead = []
        for cid in list(self._subscribers):
            if not self._offer(cid, event, data):
                dead.append(cid)
        for cid in dead:
            logger.warning("Dropping unresponsive client %s", cid)
            self._subscribers.pop(cid, None)

    async def send(self, client_id: str, event: str, data: Any):
        """Push an event to one client only."""
        if client_id not in self._subscribers:
            return
        if not self._offer(client_id, event, data):
            logger.warning("Dropping unresponsive client %s", client_id)
            self._subscribers.pop(client_id, None)

    def _offer(self, client_id: str, event: str, data: Any) -> bool:
        q = self._subscribers[client_id]
        try:
            q.put_nowait((event, data))
            return True
        except asyncio.QueueFull:
            # Client too slow; drop oldest
            try:
                q.get_nowait()
                q.put_nowait((event, data))
                return True
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                return False

    # ── Relay events ─────────────────────────────────────────────────────────

    async def broadcast_queue_append(self, request: QueueRequest):
        await self.broadcast("add-queue", request.to_dict())

    async def broadcast_chat_relay(self, text: str):
        await self.broadcast("chat-message", text)

    async def broadcast_overlay(self, text: str):
        await self.broadcast("flow-comment", text)

    async def broadcast_default_updated(self, track: DefaultTrack):
        await self.broadcast("update-default", track.to_dict())

    async def unicast_search_results(
        self,
        client_id: str,
        items: Iterable[SearchResultItem],
        for_default: bool = False,
    ):
        event = "search-results-for-default" if for_default else "search-results"
        await self.send(client_id, event, [item.to_dict() for item in items])

    async def send_initial_state(self, client_id: str):
        await self.send(client_id, "init-state", {"defaultTrack": self.default_track.get().to_dict()})

    async def notify(self, client_id: str, message: str):
        await self.send(client_id, "toast", {"message": message})

    async def set_default(self, track: DefaultTrack):
        """Replace the default track and tell everyone, with no await in between."""
        self.default_track.replace(track)
        logger.info("Default track → %s (%s)", track.id, track.kind.value)
        await self.broadcast_default_updated(track)
