"""LINE Messaging API: webhook signature check + reply delivery."""
import base64
import hashlib
import hmac
import logging
from typing import Optional

import httpx

from .config import CHANNEL_ACCESS_TOKEN, CHANNEL_SECRET, LINE_API_HOST, LINE_TIMEOUT

logger = logging.getLogger(__name__)

# A single reply can carry at most five message objects.
MAX_REPLY_MESSAGES = 5


def compute_signature(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(secret: str, body: bytes, provided: Optional[str]) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(compute_signature(secret, body), provided)


class LineClient:
    def __init__(
        self,
        access_token: Optional[str] = None,
        channel_secret: Optional[str] = None,
        host: str = LINE_API_HOST,
        timeout: float = LINE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = CHANNEL_ACCESS_TOKEN if access_token is None else access_token
        self.channel_secret = CHANNEL_SECRET if channel_secret is None else channel_secret
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def can_reply(self) -> bool:
        return bool(self.access_token)

    def check_signature(self, body: bytes, provided: Optional[str]) -> bool:
        """No secret configured → unverified mode (preflight warns about it)."""
        if not self.channel_secret:
            return True
        return verify_signature(self.channel_secret, body, provided)

    async def reply(self, reply_token: str, messages: list[dict]) -> bool:
        """POST /v2/bot/message/reply. Returns True if LINE accepted it."""
        if not messages or not reply_token:
            return False
        if not self.can_reply:
            logger.warning("CHANNEL_ACCESS_TOKEN not set; dropping reply: %s", messages[0].get("type"))
            return False

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.post(
                f"{self.host}/v2/bot/message/reply",
                headers={"Authorization": f"Bearer {self.access_token}"},
                json={"replyToken": reply_token, "messages": messages[:MAX_REPLY_MESSAGES]},
            )
        if r.status_code != 200:
            logger.warning("LINE reply HTTP %s: %s", r.status_code, r.text[:200])
            return False
        return True
