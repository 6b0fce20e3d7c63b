import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.errors import NotFoundError
from manhub.models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileService:
    async def get_by_telegram_id(self, db_session: AsyncSession, telegram_id: int) -> Profile:
        result = await db_session.execute(select(Profile).where(Profile.telegram_id == telegram_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            logger.info("No profile for Telegram user %s", telegram_id)
            raise NotFoundError("Profile not found")
        return profile
