"""In-app notification feed for the Mini App."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.models.notification import Notification

logger = logging.getLogger(__name__)

# Feed filter name -> notification types it includes
FILTER_TYPES: dict[str, tuple[str, ...]] = {
    "likes": ("like",),
    "comments": ("comment", "reply", "mention"),
    "rep": ("rep",),
    "articles": ("article_approved", "article_rejected"),
    "favorites": ("favorite",),
    "badges": ("badge",),
}


class NotificationService:
    async def list_notifications(
        self,
        db_session: AsyncSession,
        profile_id: str,
        feed_filter: str | None = None,
        limit: int = 50,
    ) -> list[Notification]:
        query = (
            select(Notification)
            .where(Notification.user_profile_id == profile_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        types = FILTER_TYPES.get(feed_filter or "all")
        if types:
            query = query.where(Notification.type.in_(types))

        result = await db_session.execute(query)
        return list(result.scalars().all())

    async def unread_count(self, db_session: AsyncSession, profile_id: str) -> int:
        result = await db_session.execute(
            select(func.count(Notification.id))
            .where(Notification.user_profile_id == profile_id)
            .where(Notification.is_read.is_(False))
        )
        return result.scalar() or 0

    async def mark_all_read(self, db_session: AsyncSession, profile_id: str) -> None:
        await db_session.execute(
            update(Notification)
            .where(Notification.user_profile_id == profile_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await db_session.commit()

    async def create(
        self, db_session: AsyncSession, profile_id: str, type_: str, message: str, commit: bool = True
    ) -> Notification:
        notification = Notification(user_profile_id=profile_id, type=type_, message=message, is_read=False)
        db_session.add(notification)
        if commit:
            await db_session.commit()
        return notification
