import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.errors import AuthorizationError, NotFoundError
from manhub.models.article import Article, ArticleView
from manhub.models.database import utcnow
from manhub.models.profile import Profile

logger = logging.getLogger(__name__)


class ArticleService:
    async def get(self, db_session: AsyncSession, article_id: str) -> Article:
        article = await db_session.get(Article, article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def submit_edit(
        self, db_session: AsyncSession, profile: Profile, article_id: str, updates: dict
    ) -> Article:
        """Store an author's edit as ``pending_edit`` until moderators decide."""
        article = await self.get(db_session, article_id)
        if article.author_id != profile.id:
            raise AuthorizationError("You can only edit your own articles")

        now = utcnow()
        article.pending_edit = {
            "title": updates.get("title"),
            "topic": updates.get("topic"),
            "body": updates.get("body"),
            "media_url": updates.get("media_url"),
            "is_anonymous": updates.get("is_anonymous"),
            "sources": updates.get("sources"),
            "submitted_at": now.isoformat(),
        }
        article.updated_at = now
        await db_session.commit()
        logger.info("Article %s edit submitted for moderation", article.id)
        return article

    async def add_view(self, db_session: AsyncSession, profile_id: str, article_id: str) -> tuple[bool, int]:
        """Record one view per profile. Returns (already_viewed, views_count).

        The unique (article, profile) constraint decides whether the view is
        new, and the counter is bumped with a single UPDATE, so concurrent
        requests neither double count nor lose increments.
        """
        await self.get(db_session, article_id)

        db_session.add(ArticleView(article_id=article_id, user_profile_id=profile_id))
        try:
            await db_session.flush()
        except IntegrityError:
            await db_session.rollback()
            return True, await self._views_count(db_session, article_id)

        await db_session.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(views_count=Article.views_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()
        return False, await self._views_count(db_session, article_id)

    async def _views_count(self, db_session: AsyncSession, article_id: str) -> int:
        result = await db_session.execute(select(Article.views_count).where(Article.id == article_id))
        return result.scalar() or 0
