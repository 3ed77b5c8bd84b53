"""Config & constants, loaded once from the environment."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (one level up from songrelay/)
_ROOT = Path(__file__).parent.parent
load_dotenv(_ROOT / ".env")

# ─── Paths ────────────────────────────────────────────────────────────────────
ROOT_DIR = _ROOT
PUBLIC_DIR = ROOT_DIR / os.getenv("PUBLIC_DIR", "public")
OUTPUT_DIR = ROOT_DIR / os.getenv("OUTPUT_DIR", "output")
ERRORS_LOG = OUTPUT_DIR / "errors.log"

# ─── LINE Messaging API ───────────────────────────────────────────────────────
CHANNEL_ACCESS_TOKEN = os.getenv("CHANNEL_ACCESS_TOKEN", "").strip()
CHANNEL_SECRET = os.getenv("CHANNEL_SECRET", "").strip()
LINE_API_HOST = os.getenv("LINE_API_HOST", "https://api.line.me").rstrip("/")
LINE_TIMEOUT = float(os.getenv("LINE_TIMEOUT", "10"))

# ─── YouTube Data API ─────────────────────────────────────────────────────────
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "").strip()
YOUTUBE_API_HOST = os.getenv(
    "YOUTUBE_API_HOST", "https://www.googleapis.com/youtube/v3"
).rstrip("/")
YOUTUBE_TIMEOUT = float(os.getenv("YOUTUBE_TIMEOUT", "10"))
SEARCH_MAX_RESULTS = 3
PLAYLIST_PAGE_SIZE = 20

# ─── Default track (played when the queue is empty) ──────────────────────────
DEFAULT_TRACK_ID = os.getenv("DEFAULT_TRACK_ID", "jfKfPfyJRdk")
DEFAULT_TRACK_KIND = os.getenv("DEFAULT_TRACK_KIND", "video").strip().lower()
DEFAULT_TRACK_LABEL = os.getenv("DEFAULT_TRACK_LABEL", "lofi hip hop radio")

# ─── Web server ──────────────────────────────────────────────────────────────
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
CLIENT_QUEUE_SIZE = int(os.getenv("CLIENT_QUEUE_SIZE", "100"))

APP_VERSION = "0.3.0"

# ─── Logging / dev mode ──────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEV_MODE = os.getenv("DEV_MODE", "0").strip() in ("1", "true", "yes")
