"""Error taxonomy + structured error logging (JSON lines to errors.log)."""
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from .config import ERRORS_LOG, OUTPUT_DIR, DEV_MODE

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for failures that are reported back to the requester."""


class SearchUnavailable(RelayError):
    """No YouTube API key is configured."""


class SearchFailed(RelayError):
    """The YouTube API call errored, timed out or returned garbage."""


class ResolutionNotFound(RelayError):
    """Neither a direct video id nor a search hit could be found."""


_FRIENDLY_MESSAGES = {
    "search": "検索に失敗しました。URLを直接貼ってください。",
    "playlist": "プレイリストを読み込めませんでした。",
    "webhook_event": "エラーが発生しました。もう一度お試しください。",
    "ws_message": "エラーが発生しました。もう一度お試しください。",
    "line_reply": "Reply delivery failed.",
}


def format_error(
    stage: str,
    user_msg: str = "",
    params: Optional[dict] = None,
    raw: str = "",
) -> str:
    entry = {
        "timestamp": datetime.now().isoformat(),
        "stage": stage,
        "input": user_msg,
        "params": params,
        "error": raw,
        "python": sys.version.split()[0],
    }

    _append_to_log(entry)
    logger.error("Error at %s: %s", stage, raw)

    if DEV_MODE:
        return json.dumps(entry, indent=2, ensure_ascii=False)
    return _FRIENDLY_MESSAGES.get(stage, f"Something went wrong ({stage}).")


def _append_to_log(entry: dict):
    try:
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        with open(ERRORS_LOG, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError:
        pass
