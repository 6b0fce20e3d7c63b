"""Outbound Telegram Bot API messaging.

Sends text, photos, videos and invoice links for one bot. Long texts are
split into ordered chunks with any inline keyboard attached to the last
chunk only. Send failures are retried on transient errors, then logged and
swallowed so the triggering action still completes.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from dataclasses import dataclass
from datetime import timedelta

from telegram import Bot, InlineKeyboardMarkup, LabeledPrice, LinkPreviewOptions, Message
from telegram.constants import ParseMode
from telegram.error import BadRequest, NetworkError, RetryAfter, TelegramError

from manhub.config import Settings
from manhub.errors import DependencyError

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:([^;]+);base64,(.+)$")

# Longest HTML entity we back off from, e.g. "&quot;"
MAX_ENTITY_LENGTH = 10


@dataclass(frozen=True)
class MediaFile:
    mime: str
    content: bytes
    filename: str


def html_safe_cut(text: str, cut: int) -> int:
    """Move a hard cut back so it does not land inside an HTML entity or tag.

    Returns ``cut`` unchanged when backing off would leave nothing before it.
    """
    head = text[:cut]
    amp = head.rfind("&")
    if amp > 0 and ";" not in head[amp:] and cut - amp <= MAX_ENTITY_LENGTH:
        return amp
    lt = head.rfind("<")
    if lt > 0 and ">" not in head[lt:]:
        return lt
    return cut


def truncate_html(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: html_safe_cut(text, max_length)]


def split_for_telegram(text: str, max_length: int = 3800) -> list[str]:
    """Split ``text`` into chunks of at most ``max_length`` characters.

    Cuts at the last newline inside the window unless it falls in the first
    half, in which case the chunk is cut hard at ``max_length``, backed off
    to the start of any HTML entity or tag it would split. The newline
    itself starts the next chunk, so joining the chunks gives back the text
    (minus a whitespace-only tail).
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")
    if len(text) <= max_length:
        return [text]

    parts: list[str] = []
    remaining = text
    while len(remaining) > max_length:
        cut = remaining.rfind("\n", 0, max_length + 1)
        if cut < max_length * 0.5:
            cut = html_safe_cut(remaining, max_length)
        parts.append(remaining[:cut])
        remaining = remaining[cut:]
    if remaining.strip():
        parts.append(remaining)
    return parts


def parse_data_url(data_url: str) -> MediaFile | None:
    """Decode a ``data:<mime>;base64,<payload>`` URL, or None if malformed."""
    match = DATA_URL_RE.match(data_url or "")
    if not match:
        return None
    mime, payload = match.group(1), match.group(2)
    try:
        content = base64.b64decode(payload)
    except (binascii.Error, ValueError):
        return None
    subtype = mime.split("/")[1] if "/" in mime else ""
    return MediaFile(mime=mime, content=content, filename=f"media.{subtype or 'jpg'}")


class TelegramMessenger:
    def __init__(self, bot_token: str, default_chat_id: str | int | None, settings: Settings):
        self.bot = Bot(token=bot_token)
        self.chat_id = default_chat_id
        self.max_length = settings.telegram_message_max_length
        self.caption_max_length = settings.telegram_caption_max_length
        self.attempts = max(1, settings.telegram_send_attempts)
        self.backoff = settings.telegram_retry_backoff_seconds
        self.max_retry_after = settings.telegram_max_retry_after_seconds

    def _flood_wait(self, exc: RetryAfter) -> float:
        retry_after = exc.retry_after
        if isinstance(retry_after, timedelta):
            retry_after = retry_after.total_seconds()
        return min(float(retry_after), self.max_retry_after)

    async def _call(self, action: str, func, **kwargs):
        """Run a Bot API call, retrying network errors and flood control.

        Flood control waits as long as Telegram asks (up to a cap); other
        transient errors back off exponentially.
        """
        delay = self.backoff
        for attempt in range(1, self.attempts + 1):
            try:
                return await func(**kwargs)
            except BadRequest:
                raise
            except (NetworkError, RetryAfter) as exc:
                if attempt == self.attempts:
                    raise
                if isinstance(exc, RetryAfter):
                    wait = self._flood_wait(exc)
                else:
                    wait = delay
                    delay *= 2
                logger.warning(
                    "Telegram %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    action, attempt, self.attempts, wait, exc,
                )
                await asyncio.sleep(wait)

    def _target(self, chat_id: str | int | None) -> str | int:
        target = chat_id if chat_id is not None else self.chat_id
        if target is None:
            raise ValueError("No chat_id given and no default chat configured")
        return target

    async def send_message(
        self,
        text: str,
        chat_id: str | int | None = None,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Message | None:
        try:
            return await self._call(
                "sendMessage",
                self.bot.send_message,
                chat_id=self._target(chat_id),
                text=text,
                parse_mode=ParseMode.HTML,
                link_preview_options=LinkPreviewOptions(is_disabled=disable_preview),
                reply_markup=reply_markup,
            )
        except TelegramError:
            logger.exception("Failed to send Telegram message")
            return None

    async def send_long_message(
        self,
        text: str,
        chat_id: str | int | None = None,
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> Message | None:
        """Send ``text`` as sequential chunks; the keyboard rides on the last one."""
        parts = split_for_telegram(text, self.max_length)
        result = None
        for index, part in enumerate(parts):
            markup = reply_markup if index == len(parts) - 1 else None
            result = await self.send_message(part, chat_id=chat_id, reply_markup=markup)
        return result

    async def send_photo_data_url(
        self, data_url: str, caption: str, chat_id: str | int | None = None
    ) -> Message | None:
        media = parse_data_url(data_url)
        if media is None:
            logger.error("Invalid base64 format (data url expected)")
            return None
        try:
            return await self._call(
                "sendPhoto",
                self.bot.send_photo,
                chat_id=self._target(chat_id),
                photo=media.content,
                filename=media.filename,
                caption=truncate_html(caption, self.caption_max_length),
                parse_mode=ParseMode.HTML,
            )
        except TelegramError:
            logger.exception("Failed to send Telegram photo")
            return None

    async def send_photo(
        self, photo_url: str, caption: str | None = None, chat_id: str | int | None = None
    ) -> Message | None:
        try:
            return await self._call(
                "sendPhoto",
                self.bot.send_photo,
                chat_id=self._target(chat_id),
                photo=photo_url,
                caption=truncate_html(caption, self.caption_max_length) if caption else None,
                parse_mode=ParseMode.HTML,
            )
        except TelegramError:
            logger.exception("Failed to send Telegram photo")
            return None

    async def send_video(
        self, video_url: str, caption: str | None = None, chat_id: str | int | None = None
    ) -> Message | None:
        try:
            return await self._call(
                "sendVideo",
                self.bot.send_video,
                chat_id=self._target(chat_id),
                video=video_url,
                caption=truncate_html(caption, self.caption_max_length) if caption else None,
                parse_mode=ParseMode.HTML,
            )
        except TelegramError:
            logger.exception("Failed to send Telegram video")
            return None

    async def create_invoice_link(
        self,
        title: str,
        description: str,
        payload: str,
        currency: str,
        prices: list[LabeledPrice],
    ) -> str:
        """Create an invoice link. Unlike sends, failure here is terminal."""
        try:
            return await self._call(
                "createInvoiceLink",
                self.bot.create_invoice_link,
                title=title,
                description=description,
                payload=payload,
                currency=currency,
                prices=prices,
            )
        except TelegramError as exc:
            logger.exception("Failed to create Telegram invoice link")
            raise DependencyError(f"Failed to create invoice: {exc}") from exc
