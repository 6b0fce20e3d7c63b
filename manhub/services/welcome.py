"""Delayed welcome messages delivered by the user bot.

Sends are sequential. A row is marked sent even when delivery failed so a
blocked bot or deleted chat is not retried forever.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.models.database import utcnow
from manhub.models.notification import AdminSetting, ScheduledNotification
from manhub.models.profile import Profile
from manhub.services.telegram_messenger import TelegramMessenger

logger = logging.getLogger(__name__)

WELCOME_SETTING_KEYS = (
    "welcome_message_text",
    "welcome_message_media_url",
    "welcome_message_media_type",
    "welcome_message_enabled",
)


@dataclass
class WelcomeResult:
    sent: int
    message: str | None = None


class WelcomeService:
    def __init__(self, messenger: TelegramMessenger, batch_size: int = 50):
        self.messenger = messenger
        self.batch_size = batch_size

    async def _load_settings(self, db_session: AsyncSession) -> dict[str, str]:
        result = await db_session.execute(
            select(AdminSetting).where(AdminSetting.key.in_(WELCOME_SETTING_KEYS))
        )
        return {row.key: row.value for row in result.scalars().all() if row.value}

    async def _deliver(self, telegram_id: int, text: str, media_url: str | None, media_type: str | None):
        if media_url and media_type == "photo":
            return await self.messenger.send_photo(media_url, caption=text, chat_id=telegram_id)
        if media_url and media_type == "video":
            return await self.messenger.send_video(media_url, caption=text, chat_id=telegram_id)
        return await self.messenger.send_message(text, chat_id=telegram_id, disable_preview=False)

    async def send_pending(self, db_session: AsyncSession) -> WelcomeResult:
        settings = await self._load_settings(db_session)
        if settings.get("welcome_message_enabled") == "false":
            logger.info("Welcome message is disabled")
            return WelcomeResult(sent=0, message="Welcome message disabled")

        text = settings.get("welcome_message_text")
        if not text:
            logger.info("No welcome message configured")
            return WelcomeResult(sent=0, message="No welcome message configured")

        result = await db_session.execute(
            select(ScheduledNotification.id, Profile.telegram_id)
            .join(Profile, ScheduledNotification.user_profile_id == Profile.id)
            .where(ScheduledNotification.notification_type == "welcome")
            .where(ScheduledNotification.sent_at.is_(None))
            .where(ScheduledNotification.scheduled_at <= utcnow())
            .order_by(ScheduledNotification.scheduled_at)
            .limit(self.batch_size)
        )
        pending = result.all()
        if not pending:
            return WelcomeResult(sent=0)

        logger.info("Found %d pending welcome notifications", len(pending))
        sent = 0
        processed: list[str] = []
        for notification_id, telegram_id in pending:
            processed.append(notification_id)
            if not telegram_id:
                logger.info("No telegram_id for notification %s", notification_id)
                continue
            message = await self._deliver(
                telegram_id,
                text,
                settings.get("welcome_message_media_url"),
                settings.get("welcome_message_media_type"),
            )
            if message is not None:
                sent += 1
                logger.info("Sent welcome message to %s", telegram_id)
            else:
                logger.warning("Welcome message to %s failed, marking as sent", telegram_id)

        await db_session.execute(
            update(ScheduledNotification)
            .where(ScheduledNotification.id.in_(processed))
            .values(sent_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()
        logger.info("Sent %d welcome notifications", sent)
        return WelcomeResult(sent=sent)
