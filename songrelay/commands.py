"""Command classifier: ordered matchers, first match wins, no I/O.

Every piece of chat text lands in exactly one bucket:

    default-change → overlay comment → URL / transport keyword →
    playlist link → keyword search

The order is the precedence. Each matcher returns a ``Command`` or ``None``;
the last one always matches, so ``classify`` never fails.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .utils import normalize_text, is_media_url, extract_playlist_id

COMMENT_MARKER = "#"

TRANSPORT_KEYWORDS = frozenset({
    "skip", "next", "back",
    "スキップ", "次", "次へ", "戻る",
})

_DEFAULT_RE = re.compile(
    r"^(?:default|デフォルト)"
    r"(?:\s*(?:\((?P<paren>.*)\)|\[(?P<square>.*)\]|【(?P<lenticular>.*)】|「(?P<corner>.*)」)"
    r"|\s+(?P<rest>.*))?$",
    re.IGNORECASE | re.DOTALL,
)


class CommandKind(str, Enum):
    DEFAULT = "default"
    OVERLAY = "overlay"
    RELAY = "relay"
    PLAYLIST = "playlist"
    SEARCH = "search"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    payload: str


def match_default(text: str) -> Optional[Command]:
    match = _DEFAULT_RE.match(text)
    if not match:
        return None
    inner = next((g for g in match.groups() if g is not None), "")
    return Command(CommandKind.DEFAULT, inner.strip())


def match_overlay(text: str) -> Optional[Command]:
    if text.startswith(COMMENT_MARKER):
        return Command(CommandKind.OVERLAY, text[len(COMMENT_MARKER):])
    return None


def match_relay(text: str) -> Optional[Command]:
    # Playlist links are also media URLs; they belong to the expansion matcher.
    if is_media_url(text) and not extract_playlist_id(text):
        return Command(CommandKind.RELAY, text)
    if text.lower() in TRANSPORT_KEYWORDS:
        return Command(CommandKind.RELAY, text)
    return None


def match_playlist(text: str) -> Optional[Command]:
    playlist_id = extract_playlist_id(text)
    if playlist_id:
        return Command(CommandKind.PLAYLIST, playlist_id)
    return None


def match_search(text: str) -> Optional[Command]:
    return Command(CommandKind.SEARCH, text)


MATCHERS: tuple[Callable[[str], Optional[Command]], ...] = (
    match_default,
    match_overlay,
    match_relay,
    match_playlist,
    match_search,
)


def classify(text: str) -> Command:
    """Normalize ``text`` and return the first matching command."""
    t = normalize_text(text)
    for matcher in MATCHERS:
        command = matcher(t)
        if command is not None:
            return command
    raise AssertionError("match_search always matches")  # pragma: no cover
