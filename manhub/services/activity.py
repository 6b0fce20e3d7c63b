"""Activity feed: what a user has liked, commented on and published."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.models.article import Article, ArticleComment, ArticleLike, ArticleStatus
from manhub.models.schemas import ActivityItem

COMMENT_PREVIEW = 100

STATUS_LABELS = {
    ArticleStatus.APPROVED: "Опубликовано",
    ArticleStatus.PENDING: "На модерации",
}


class ActivityService:
    async def get_activity(self, db_session: AsyncSession, profile_id: str, limit: int = 50) -> list[ActivityItem]:
        activities: list[ActivityItem] = []

        likes = await db_session.execute(
            select(ArticleLike, Article)
            .join(Article, ArticleLike.article_id == Article.id)
            .where(ArticleLike.user_profile_id == profile_id)
            .order_by(ArticleLike.created_at.desc())
            .limit(limit)
        )
        for like, article in likes.all():
            activities.append(ActivityItem(
                id=like.id,
                type="like",
                article_id=article.id,
                article_title=article.title,
                article_topic=article.topic,
                created_at=like.created_at,
            ))

        comments = await db_session.execute(
            select(ArticleComment, Article)
            .join(Article, ArticleComment.article_id == Article.id)
            .where(ArticleComment.author_id == profile_id)
            .order_by(ArticleComment.created_at.desc())
            .limit(limit)
        )
        for comment, article in comments.all():
            activities.append(ActivityItem(
                id=comment.id,
                type="comment",
                article_id=article.id,
                article_title=article.title,
                article_topic=article.topic,
                created_at=comment.created_at,
                details=comment.body[:COMMENT_PREVIEW],
            ))

        articles = await db_session.execute(
            select(Article)
            .where(Article.author_id == profile_id)
            .order_by(Article.created_at.desc())
            .limit(limit)
        )
        for article in articles.scalars().all():
            activities.append(ActivityItem(
                id=f"created_{article.id}",
                type="article_created",
                article_id=article.id,
                article_title=article.title,
                article_topic=article.topic,
                created_at=article.created_at,
                details=STATUS_LABELS.get(article.status, "Отклонено"),
            ))
            if article.edited_at and article.edited_at != article.created_at:
                activities.append(ActivityItem(
                    id=f"edited_{article.id}",
                    type="article_updated",
                    article_id=article.id,
                    article_title=article.title,
                    article_topic=article.topic,
                    created_at=article.edited_at,
                ))

        activities.sort(key=lambda item: item.created_at, reverse=True)
        return activities[:limit]
