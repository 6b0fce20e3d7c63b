"""Moderation cards sent to the admin chat for articles, edits and products.

Each card is HTML. Base64 article photos go out first as a separate photo
message; the card text is split into chunks and only the last chunk carries
the approve/reject keyboard.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from manhub.errors import NotFoundError, ValidationError
from manhub.models.article import Article
from manhub.models.product import UserProduct
from manhub.models.profile import Profile
from manhub.services.telegram_messenger import TelegramMessenger

logger = logging.getLogger(__name__)

PRODUCT_DESCRIPTION_PREVIEW = 300
SHORT_ID_LENGTH = 8


def safe(value) -> str:
    """Escape angle brackets so user content cannot inject HTML tags."""
    text = "" if value is None else str(value)
    return text.replace("<", "&lt;").replace(">", "&gt;")


def yes_no(flag) -> str:
    return "Да" if flag else "Нет"


def _keyboard(approve_text: str, approve_data: str, reject_data: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton(approve_text, callback_data=approve_data),
        InlineKeyboardButton("❌ Отклонить", callback_data=reject_data),
    ]])


def _author_lines(author: Profile | None) -> str:
    first = (author.first_name if author else None) or ""
    last = (author.last_name if author else None) or ""
    name = f"{first} {last}".strip() or "Не указано"
    username = f"(@{safe(author.username)})" if author and author.username else ""
    telegram_id = author.telegram_id if author and author.telegram_id else "—"
    profile_id = author.id if author else "—"
    return (
        f"👤 <b>Автор (оригинал):</b> {safe(name)} {username}\n"
        f"🆔 <b>Telegram ID:</b> {safe(telegram_id)}\n"
        f"🧾 <b>Profile ID:</b> <code>{safe(profile_id)}</code>"
    )


def _media_line(media_url: str | None, media_type: str | None) -> str:
    if not media_url:
        return ""
    if media_url.startswith("data:"):
        return "\n\n🖼 <b>Медиа:</b> фото (см. выше)"
    if media_type == "youtube":
        return f'\n\n🎬 <b>Медиа:</b> <a href="https://youtube.com/watch?v={safe(media_url)}">YouTube ссылка</a>'
    return f'\n\n🔗 <b>Медиа:</b> <a href="{safe(media_url)}">ссылка</a>'


def is_data_url(media_url) -> bool:
    return isinstance(media_url, str) and media_url.startswith("data:")


def edited_value(article: Article, field: str):
    """Value of `field` after the pending edit, falling back to the current one."""
    value = (article.pending_edit or {}).get(field)
    return value if value is not None else getattr(article, field)


class ModerationService:
    def __init__(self, messenger: TelegramMessenger):
        self.messenger = messenger

    async def get_or_create_short_id(self, db_session: AsyncSession, article: Article) -> str:
        """Shortest free prefix of the article's hex id, 8 characters or more."""
        if article.short_id:
            return article.short_id

        hex_id = article.id.replace("-", "")
        candidate = hex_id
        for length in range(SHORT_ID_LENGTH, len(hex_id), 4):
            taken = await db_session.scalar(
                select(Article.id).where(Article.short_id == hex_id[:length])
            )
            if taken is None:
                candidate = hex_id[:length]
                break
            logger.warning("Moderation code %s already taken, extending", hex_id[:length])

        article.short_id = candidate
        await db_session.commit()
        return article.short_id

    async def _load_article(self, db_session: AsyncSession, article_id: str) -> tuple[Article, Profile | None]:
        article = await db_session.get(Article, article_id)
        if article is None:
            raise NotFoundError("Article not found")
        author = await db_session.get(Profile, article.author_id)
        return article, author

    def build_article_card(self, article: Article, author: Profile | None, short_id: str) -> str:
        return (
            f"🆕 <b>Статья на модерации</b>\n🆔 Код: <code>{safe(short_id)}</code>\n"
            f"{_author_lines(author)}"
            f"\n\n🗂 <b>Категория:</b> {safe(article.category_id or '—')}"
            f"\n🧩 <b>Тема:</b> {safe(article.topic or '—')}"
            f"\n📝 <b>Заголовок:</b> {safe(article.title)}"
            f"\n🙈 <b>Анонимная публикация:</b> {yes_no(article.is_anonymous)}"
            f"\n\n📄 <b>Текст:</b>\n{safe(article.body or '')}"
            f"{_media_line(article.media_url, article.media_type)}"
        )

    def build_edit_card(self, article: Article, author: Profile | None, short_id: str) -> str:
        next_title = edited_value(article, "title")
        next_topic = edited_value(article, "topic")
        next_body = edited_value(article, "body")
        next_media_url = edited_value(article, "media_url")
        next_media_type = edited_value(article, "media_type")
        next_anonymous = edited_value(article, "is_anonymous")

        changes = "<b>📝 Изменения:</b>\n"
        if next_title != article.title:
            changes += f"• <b>Заголовок:</b> <s>{safe(article.title)}</s> ➡️ {safe(next_title)}\n"
        if next_topic != article.topic:
            changes += f"• <b>Тема:</b> <s>{safe(article.topic or '—')}</s> ➡️ {safe(next_topic or '—')}\n"
        if next_anonymous != article.is_anonymous:
            changes += f"• <b>Анонимность:</b> {yes_no(article.is_anonymous)} ➡️ {yes_no(next_anonymous)}\n"
        if next_media_url != article.media_url:
            changes += "• <b>Медиа:</b> изменено\n"
        if next_body != article.body:
            changes += "• <b>Текст:</b> изменён\n"

        return (
            f"✏️ <b>Редактирование статьи</b>\n🆔 Код: <code>{safe(short_id)}</code>\n"
            f"{_author_lines(author)}\n\n{changes}"
            f"\n🗂 <b>Категория:</b> {safe(article.category_id or '—')}"
            f"\n🧩 <b>Тема (новая):</b> {safe(next_topic or '—')}"
            f"\n📝 <b>Заголовок (новый):</b> {safe(next_title)}"
            f"\n🙈 <b>Анонимная публикация (новая):</b> {yes_no(next_anonymous)}"
            f"\n\n📄 <b>Новая версия текста:</b>\n{safe(next_body or '')}"
            f"{_media_line(next_media_url, next_media_type)}"
        )

    async def send_article_moderation(self, db_session: AsyncSession, article_id: str) -> int | None:
        """Post a new article to the admin chat. Returns the keyboard message id."""
        article, author = await self._load_article(db_session, article_id)
        short_id = await self.get_or_create_short_id(db_session, article)

        if is_data_url(article.media_url):
            await self.messenger.send_photo_data_url(
                article.media_url,
                f"🖼 <b>Медиа к статье</b>\n📝 {safe(article.title)}",
            )

        message = await self.messenger.send_long_message(
            self.build_article_card(article, author, short_id),
            reply_markup=_keyboard("✅ Принять", f"approve:{short_id}", f"reject:{short_id}"),
        )
        message_id = message.message_id if message is not None else None
        if message_id is not None:
            article.telegram_message_id = message_id
            await db_session.commit()
        logger.info("Sent moderation request for article %s (code %s)", article.id, short_id)
        return message_id

    async def send_edit_moderation(self, db_session: AsyncSession, article_id: str) -> int | None:
        """Post an article's pending edit to the admin chat."""
        article, author = await self._load_article(db_session, article_id)
        if not article.pending_edit:
            raise ValidationError("No pending edit for this article")
        short_id = await self.get_or_create_short_id(db_session, article)

        next_media_url = edited_value(article, "media_url")
        if is_data_url(next_media_url):
            next_title = edited_value(article, "title")
            await self.messenger.send_photo_data_url(
                next_media_url,
                f"🖼 <b>Медиа (после редактирования)</b>\n📝 {safe(next_title)}",
            )

        message = await self.messenger.send_long_message(
            self.build_edit_card(article, author, short_id),
            reply_markup=_keyboard("✅ Одобрить", f"edit_approve:{short_id}", f"edit_reject:{short_id}"),
        )
        logger.info("Sent edit moderation request for article %s (code %s)", article.id, short_id)
        return message.message_id if message is not None else None

    async def send_product_moderation(self, product: UserProduct, author: Profile) -> int | None:
        description = product.description or ""
        preview = description[:PRODUCT_DESCRIPTION_PREVIEW] or "Нет описания"
        if len(description) > PRODUCT_DESCRIPTION_PREVIEW:
            preview += "..."
        if author.username:
            author_name = f"@{author.username}"
        else:
            author_name = author.first_name or f"ID:{author.telegram_id}"

        lines = [
            "📦 <b>Новый продукт на модерации</b>",
            "",
            f"🏷 <b>Код:</b> <code>{product.id[:8]}</code>",
            f"📛 <b>Название:</b> {safe(product.title)}",
            f"💰 <b>Цена:</b> {safe(product.price)} {safe(product.currency or 'RUB')}",
            "",
            f"📝 <b>Описание:</b>\n{safe(preview)}",
            "",
        ]
        if product.media_url:
            lines.append(f"🎬 <b>Медиа:</b> {safe(product.media_url)}")
        if product.link:
            lines.append(f"🔗 <b>Ссылка:</b> {safe(product.link)}")
        lines.append(f"👤 <b>Автор:</b> {safe(author_name)}")

        message = await self.messenger.send_long_message(
            "\n".join(lines),
            reply_markup=_keyboard("✅ Одобрить", f"product_approve:{product.id}", f"product_reject:{product.id}"),
        )
        return message.message_id if message is not None else None
