"""Telegram notification channel.

Sends messages to a chat through the Bot API ``sendMessage`` method.
"""

import asyncio
import html
import re
from typing import Any

import httpx

from gitscope.logging import get_logger
from gitscope.notifications.base import FailureKind, NotificationChannel, SendFailure

log = get_logger("gitscope.notifications.telegram")

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 2
MAX_RETRY_WAIT = 30.0

# Telegram rejects longer message texts
MAX_MESSAGE_LENGTH = 4096

_TAG_RE = re.compile(r"<[^>]+>")


def to_plain_text(message: str) -> str:
    """Strip HTML markup, leaving readable plain text."""
    return html.unescape(_TAG_RE.sub("", message))


def split_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split a message into chunks Telegram accepts, on line boundaries."""
    if len(message) <= limit:
        return [message]

    chunks: list[str] = []
    current = ""
    for line in message.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier(NotificationChannel):
    """Delivers messages to one Telegram chat.

    Rate limits and network errors are retried; a message whose HTML
    markup is rejected is resent once as plain text.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_url: str = TELEGRAM_API_BASE,
    ):
        """Initialize the Telegram notifier.

        Args:
            bot_token: Bot API token.
            chat_id: Destination chat, group or channel ID.
            timeout: Request timeout in seconds.
            max_retries: Retries for rate-limited or network failures.
            base_url: Bot API base URL.
        """
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout
        self._max_retries = max_retries
        self._base_url = base_url.rstrip("/")
        self._client: httpx.AsyncClient | None = None
        self._last_failure: SendFailure | None = None

    @property
    def last_failure(self) -> SendFailure | None:
        """The most recent delivery failure, if any."""
        return self._last_failure

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def send(self, message: str) -> bool:
        """Send a message, split into several if it is too long.

        Args:
            message: HTML-formatted message.

        Returns:
            True if every part was delivered.
        """
        try:
            for chunk in split_message(message):
                if not await self._send_chunk(chunk):
                    return False
        except Exception as e:
            self._last_failure = SendFailure(FailureKind.UNKNOWN, detail=str(e))
            log.error("telegram_send_error", chat_id=self._chat_id, error=str(e))
            return False

        log.info("telegram_message_sent", chat_id=self._chat_id, length=len(message))
        return True

    async def _send_chunk(self, text: str) -> bool:
        """Deliver one chunk, applying the retry and plain-text fallback policy."""
        parse_mode: str | None = "HTML"
        attempt = 0

        while True:
            failure = await self._post(text, parse_mode)
            if failure is None:
                return True
            self._last_failure = failure

            if failure.kind is FailureKind.MARKUP_REJECTED and parse_mode is not None:
                log.warning(
                    "telegram_markup_rejected",
                    chat_id=self._chat_id,
                    detail=failure.detail,
                    fallback="plain_text",
                )
                text = to_plain_text(text)
                parse_mode = None
                continue

            if failure.retryable and attempt < self._max_retries:
                attempt += 1
                delay = min(failure.retry_after or float(2**attempt), MAX_RETRY_WAIT)
                log.warning(
                    "telegram_send_retrying",
                    chat_id=self._chat_id,
                    kind=failure.kind.value,
                    attempt=attempt,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                continue

            log.error(
                "telegram_send_failed",
                chat_id=self._chat_id,
                kind=failure.kind.value,
                detail=failure.detail,
                attempts=attempt + 1,
            )
            return False

    async def _post(self, text: str, parse_mode: str | None) -> SendFailure | None:
        """Call sendMessage once.

        Returns:
            None on success, otherwise the classified failure.
        """
        payload: dict[str, Any] = {
            "chat_id": self._chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        client = await self._get_client()
        try:
            response = await client.post(f"/bot{self._bot_token}/sendMessage", json=payload)
        except httpx.RequestError as e:
            # str(e) can contain the request URL, which embeds the token
            return SendFailure(FailureKind.NETWORK, detail=type(e).__name__)

        try:
            body: dict[str, Any] = response.json()
        except ValueError:
            body = {}

        if response.status_code == 200 and body.get("ok"):
            return None

        description = str(body.get("description") or response.text or "")

        if response.status_code == 429:
            retry_after = (body.get("parameters") or {}).get("retry_after")
            return SendFailure(
                FailureKind.RATE_LIMITED,
                detail=description,
                retry_after=float(retry_after) if retry_after is not None else None,
            )

        if response.status_code == 400 and "can't parse entities" in description.lower():
            return SendFailure(FailureKind.MARKUP_REJECTED, detail=description)

        if response.status_code >= 500:
            return SendFailure(FailureKind.NETWORK, detail=description)

        return SendFailure(FailureKind.API, detail=description)
