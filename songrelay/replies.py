"""Reply formatting: Outcome → LINE message objects / short web notices."""
from typing import Optional
from urllib.parse import urlencode

from .models import Outcome, OutcomeKind, SearchResultItem
from .utils import clip

# LINE caps postback data at 300 chars and altText at 400.
POSTBACK_DATA_LIMIT = 300
BUTTON_COLOR = "#1DB446"


def reply_text(outcome: Outcome) -> Optional[str]:
    """Human-readable line for ``outcome``, or None when nothing should be said."""
    kind = outcome.kind
    if kind == OutcomeKind.QUEUED:
        return f"🎵 リクエスト予約: {outcome.title}"
    if kind == OutcomeKind.RELAYED:
        return "✅ 受け付けました"
    if kind == OutcomeKind.DEFAULT_SET:
        return f"📌 デフォルト曲を変更しました: {outcome.title}"
    if kind == OutcomeKind.DEFAULT_SHOWN:
        label = (outcome.track.label or outcome.track.id) if outcome.track else ""
        return f"📌 現在のデフォルト曲: {label}\n変更するには「default URL」と送ってください"
    if kind == OutcomeKind.NOT_FOUND:
        return "😢 見つかりませんでした"
    if kind == OutcomeKind.SEARCH_UNAVAILABLE:
        return "🙇 検索機能が使えません（サーバーの設定を確認してください）。URLを直接貼ってください"
    if kind == OutcomeKind.SEARCH_FAILED:
        return "🙇 検索に失敗しました。URLを直接貼ってください"
    if kind == OutcomeKind.PLAYLIST_QUEUED:
        return f"📃 プレイリストから{outcome.count}曲を予約しました"
    if kind == OutcomeKind.PLAYLIST_EMPTY:
        return "😢 再生できる動画が見つかりませんでした"
    # OVERLAY is never confirmed (rapid-fire comments), IGNORED has nothing to say
    return None


def line_messages(outcome: Outcome) -> list[dict]:
    """LINE reply payload for ``outcome``; empty list means don't reply."""
    if outcome.kind == OutcomeKind.SEARCH_RESULTS:
        return [search_carousel(outcome.items)]
    text = reply_text(outcome)
    if text is None:
        return []
    return [text_message(text)]


def text_message(text: str) -> dict:
    return {"type": "text", "text": text}


def postback_data(video_id: str, title: str, mode: Optional[str] = None) -> str:
    params = {"videoId": video_id}
    if mode:
        params["mode"] = mode
    title = clip(title, 60)
    while title:
        data = urlencode({**params, "title": title})
        if len(data) <= POSTBACK_DATA_LIMIT:
            return data
        title = title[:-5]
    return urlencode(params)


def search_carousel(items: list[SearchResultItem]) -> dict:
    return {
        "type": "flex",
        "altText": "検索結果",
        "contents": {
            "type": "carousel",
            "contents": [_result_bubble(item) for item in items],
        },
    }


def _result_bubble(item: SearchResultItem) -> dict:
    bubble = {
        "type": "bubble",
        "body": {
            "type": "box",
            "layout": "vertical",
            "contents": [{"type": "text", "text": item.title or item.video_id, "wrap": True}],
        },
        "footer": {
            "type": "box",
            "layout": "vertical",
            "spacing": "sm",
            "contents": [
                {
                    "type": "button",
                    "style": "primary",
                    "color": BUTTON_COLOR,
                    "action": {
                        "type": "postback",
                        "label": "これにする",
                        "data": postback_data(item.video_id, item.title),
                    },
                },
                {
                    "type": "button",
                    "style": "secondary",
                    "action": {
                        "type": "postback",
                        "label": "デフォルトにする",
                        "data": postback_data(item.video_id, item.title, mode="default"),
                    },
                },
            ],
        },
    }
    if item.thumbnail_url:
        bubble["hero"] = {
            "type": "image",
            "url": item.thumbnail_url,
            "size": "full",
            "aspectRatio": "16:9",
            "aspectMode": "cover",
        }
    return bubble
