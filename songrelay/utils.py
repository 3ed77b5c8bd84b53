"""Text + URL helpers used by the classifier and resolver."""
import re
from typing import Optional

# Full-width ASCII block (！..～) sits exactly 0xFEE0 above its half-width twin.
_HALF_WIDTH = {code: code - 0xFEE0 for code in range(0xFF01, 0xFF5F)}
_HALF_WIDTH[0x3000] = ord(" ")

MEDIA_HOSTS = ("youtube.com", "youtu.be")

_VIDEO_ID_RE = re.compile(
    r"(?:[?&]v=|youtu\.be/|/embed/|/shorts/|/live/|/v/)([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
)
_BARE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PLAYLIST_ID_RE = re.compile(r"[?&]list=([A-Za-z0-9_-]+)")


def normalize_text(text: str) -> str:
    """Fold full-width letters, digits, symbols and spaces to half-width, then trim."""
    if not text:
        return ""
    return text.translate(_HALF_WIDTH).strip()


def is_media_url(text: str) -> bool:
    t = text.lower()
    return any(host in t for host in MEDIA_HOSTS)


def extract_video_id(text: str) -> Optional[str]:
    """Pull an 11-char video id out of a URL, or accept a bare id."""
    text = text.strip()
    match = _VIDEO_ID_RE.search(text)
    if match:
        return match.group(1)
    if _BARE_ID_RE.match(text):
        return text
    return None


def extract_playlist_id(text: str) -> Optional[str]:
    match = _PLAYLIST_ID_RE.search(text)
    return match.group(1) if match else None


def clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)] + "…"
