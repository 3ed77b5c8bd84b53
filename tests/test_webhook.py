import json
import unittest
from typing import Any, Dict, List, Optional
from unittest import mock
from urllib.parse import urlencode

import httpx
from starlette.testclient import TestClient

from songrelay.line import LineClient, compute_signature, verify_signature
from songrelay.web.server import create_app

from helpers import FALLBACK, FakeYouTube, entries, hits

SECRET = "channel-secret"


def _message_event(text: str, token: str) -> Dict[str, Any]:
    return {
        "type": "message",
        "replyToken": token,
        "source": {"type": "user", "userId": "U1"},
        "message": {"type": "text", "id": "1", "text": text},
    }


def _postback_event(data: Dict[str, str], token: str) -> Dict[str, Any]:
    return {
        "type": "postback",
        "replyToken": token,
        "source": {"type": "user", "userId": "U1"},
        "postback": {"data": urlencode(data)},
    }


class SignatureTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        body = b'{"events":[]}'
        sig = compute_signature(SECRET, body)
        self.assertTrue(verify_signature(SECRET, body, sig))
        self.assertFalse(verify_signature(SECRET, body + b" ", sig))
        self.assertFalse(verify_signature(SECRET, body, None))

    def test_no_secret_means_unverified_mode(self) -> None:
        self.assertTrue(LineClient(access_token="t", channel_secret="").check_signature(b"{}", None))


class WebhookTests(unittest.TestCase):
    def setUp(self) -> None:
        self.replies: List[Dict[str, Any]] = []
        self.line_error: Optional[Exception] = None

        def line_api(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.headers["authorization"], "Bearer line-token")
            self.replies.append(json.loads(request.content))
            if self.line_error:
                raise self.line_error
            return httpx.Response(200, json={})

        self.youtube = FakeYouTube(
            results={"lofi": hits(("AAAAAAAAAAA", "lofi one"), ("BBBBBBBBBBB", "lofi two"))},
            playlists={"PL123": entries(("AAAAAAAAAAA", "One"), ("BBBBBBBBBBB", "Two"), ("CCCCCCCCCCC", "Three"))},
        )
        line = LineClient(
            access_token="line-token",
            channel_secret=SECRET,
            host="https://line.test",
            transport=httpx.MockTransport(line_api),
        )
        self.app = create_app(youtube=self.youtube, line=line, initial_default=FALLBACK, public_dir=None)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()

    def post_events(self, *events: Dict[str, Any], secret: str = SECRET) -> httpx.Response:
        body = json.dumps({"destination": "U0", "events": list(events)}).encode("utf-8")
        return self.client.post(
            "/callback",
            content=body,
            headers={"content-type": "application/json", "x-line-signature": compute_signature(secret, body)},
        )

    def reply_for(self, token: str) -> Dict[str, Any]:
        return next(r for r in self.replies if r["replyToken"] == token)

    def test_bad_signature_is_rejected(self) -> None:
        resp = self.post_events(_message_event("skip", "t1"), secret="wrong")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.replies, [])

    def test_empty_batch_is_ok(self) -> None:
        resp = self.post_events()
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"results": []})

    def test_skip_is_acknowledged(self) -> None:
        resp = self.post_events(_message_event("スキップ", "t1"))
        self.assertEqual(resp.json(), {"results": [{"status": "relayed"}]})
        self.assertEqual(self.reply_for("t1")["messages"], [{"type": "text", "text": "✅ 受け付けました"}])
        self.assertEqual(self.youtube.search_calls, [])

    def test_overlay_gets_no_reply(self) -> None:
        resp = self.post_events(_message_event("#わこつ", "t1"))
        self.assertEqual(resp.json(), {"results": [{"status": "overlay"}]})
        self.assertEqual(self.replies, [])

    def test_search_replies_with_carousel(self) -> None:
        self.post_events(_message_event("lofi", "t1"))
        (message,) = self.reply_for("t1")["messages"]
        self.assertEqual(message["type"], "flex")
        bubbles = message["contents"]["contents"]
        self.assertEqual(len(bubbles), 2)
        buttons = bubbles[0]["footer"]["contents"]
        self.assertEqual(buttons[0]["action"]["data"], "videoId=AAAAAAAAAAA&title=lofi+one")
        self.assertEqual(buttons[1]["action"]["data"], "videoId=AAAAAAAAAAA&mode=default&title=lofi+one")
        self.assertEqual(bubbles[0]["hero"]["url"], "https://i.ytimg.com/vi/AAAAAAAAAAA/hqdefault.jpg")

    def test_postback_enqueues(self) -> None:
        viewer = self.app.state.relay.subscribe("viewer")
        resp = self.post_events(_postback_event({"videoId": "AAAAAAAAAAA", "title": "lofi one"}, "t1"))
        self.assertEqual(resp.json(), {"results": [{"status": "queued"}]})
        self.assertEqual(viewer.get_nowait(), ("add-queue", {"videoId": "AAAAAAAAAAA", "title": "lofi one", "source": "LINE"}))
        self.assertEqual(self.reply_for("t1")["messages"][0]["text"], "🎵 リクエスト予約: lofi one")

    def test_postback_default_mode_sets_default(self) -> None:
        self.post_events(_postback_event({"videoId": "BBBBBBBBBBB", "title": "lofi two", "mode": "default"}, "t1"))
        current = self.app.state.relay.default_track.get()
        self.assertEqual((current.id, current.label), ("BBBBBBBBBBB", "lofi two"))
        self.assertIn("lofi two", self.reply_for("t1")["messages"][0]["text"])

    def test_playlist_link(self) -> None:
        viewer = self.app.state.relay.subscribe("viewer")
        self.post_events(_message_event("https://www.youtube.com/playlist?list=PL123", "t1"))
        appended = []
        while not viewer.empty():
            appended.append(viewer.get_nowait())
        self.assertEqual([data["videoId"] for _, data in appended], ["AAAAAAAAAAA", "BBBBBBBBBBB", "CCCCCCCCCCC"])
        self.assertEqual({data["source"] for _, data in appended}, {"LINE_PLAYLIST"})
        self.assertIn("3", self.reply_for("t1")["messages"][0]["text"])

    def test_one_failing_event_does_not_sink_the_batch(self) -> None:
        self.youtube.fail = RuntimeError("kaboom")
        with mock.patch("songrelay.web.webhook.format_error", return_value="エラーが発生しました") as logged:
            resp = self.post_events(
                _message_event("lofi", "bad"),
                _message_event("skip", "good"),
                {"type": "follow", "replyToken": "f"},
            )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"results": [{"status": "error"}, {"status": "relayed"}, {"status": "ignored"}]})
        self.assertIn("エラー", self.reply_for("bad")["messages"][0]["text"])
        self.assertEqual(self.reply_for("good")["messages"][0]["text"], "✅ 受け付けました")
        logged.assert_called_once()

    def test_search_without_key_apologises(self) -> None:
        self.youtube.configured = False
        resp = self.post_events(_message_event("lofi hip hop", "t1"))
        self.assertEqual(resp.json(), {"results": [{"status": "search_unavailable"}]})
        self.assertIn("設定", self.reply_for("t1")["messages"][0]["text"])

    def test_lost_reply_does_not_turn_into_an_apology(self) -> None:
        viewer = self.app.state.relay.subscribe("viewer")
        self.line_error = httpx.ReadTimeout("slow")
        with mock.patch("songrelay.web.webhook.format_error", return_value="エラーが発生しました") as logged:
            resp = self.post_events(_postback_event({"videoId": "AAAAAAAAAAA", "title": "One"}, "t1"))
        self.assertEqual(resp.json(), {"results": [{"status": "queued"}]})
        self.assertEqual(viewer.get_nowait(), ("add-queue", {"videoId": "AAAAAAAAAAA", "title": "One", "source": "LINE"}))
        self.assertEqual([r["messages"][0]["text"] for r in self.replies], ["🎵 リクエスト予約: One"])
        self.assertEqual(logged.call_args.args[0], "line_reply")
