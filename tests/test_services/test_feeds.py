"""Tests for the notification feed and the activity feed."""

from datetime import datetime, timedelta

import pytest

from manhub.models.article import Article, ArticleComment, ArticleLike, ArticleStatus
from manhub.models.notification import Notification
from manhub.services.activity import ActivityService
from manhub.services.notifications import NotificationService

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


async def _notify(db_session, profile_id, type_, minutes, is_read=False):
    db_session.add(Notification(
        user_profile_id=profile_id,
        type=type_,
        message=f"{type_} notification",
        is_read=is_read,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    ))
    await db_session.commit()


class TestNotifications:
    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, profile):
        await _notify(db_session, profile.id, "like", 1)
        await _notify(db_session, profile.id, "comment", 2)

        items = await NotificationService().list_notifications(db_session, profile.id)

        assert [n.type for n in items] == ["comment", "like"]

    @pytest.mark.asyncio
    async def test_filter_groups_types(self, db_session, profile):
        for minutes, type_ in enumerate(["like", "comment", "reply", "mention", "badge"]):
            await _notify(db_session, profile.id, type_, minutes)

        service = NotificationService()
        comments = await service.list_notifications(db_session, profile.id, "comments")
        everything = await service.list_notifications(db_session, profile.id, "all")

        assert {n.type for n in comments} == {"comment", "reply", "mention"}
        assert len(everything) == 5

    @pytest.mark.asyncio
    async def test_limit(self, db_session, profile):
        for minutes in range(5):
            await _notify(db_session, profile.id, "like", minutes)

        items = await NotificationService().list_notifications(db_session, profile.id, limit=2)
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_all_read(self, db_session, profile):
        await _notify(db_session, profile.id, "like", 1)
        await _notify(db_session, profile.id, "rep", 2)
        await _notify(db_session, profile.id, "badge", 3, is_read=True)
        service = NotificationService()

        assert await service.unread_count(db_session, profile.id) == 2
        await service.mark_all_read(db_session, profile.id)
        assert await service.unread_count(db_session, profile.id) == 0

    @pytest.mark.asyncio
    async def test_create(self, db_session, profile):
        notification = await NotificationService().create(db_session, profile.id, "subscription", "Done")
        assert notification.id
        assert notification.is_read is False


class TestActivity:
    @pytest.mark.asyncio
    async def test_merges_sources_newest_first(self, db_session, profile):
        mine = Article(
            author_id=profile.id,
            title="My post",
            status=ArticleStatus.APPROVED,
            created_at=BASE_TIME,
            edited_at=BASE_TIME + timedelta(hours=3),
        )
        other = Article(author_id=profile.id, title="Draft", status=ArticleStatus.REJECTED,
                        created_at=BASE_TIME - timedelta(days=1))
        db_session.add_all([mine, other])
        await db_session.commit()
        db_session.add_all([
            ArticleLike(article_id=mine.id, user_profile_id=profile.id,
                        created_at=BASE_TIME + timedelta(hours=1)),
            ArticleComment(article_id=mine.id, author_id=profile.id, body="c" * 150,
                           created_at=BASE_TIME + timedelta(hours=2)),
        ])
        await db_session.commit()

        items = await ActivityService().get_activity(db_session, profile.id)

        assert [i.type for i in items] == [
            "article_updated", "comment", "like", "article_created", "article_created",
        ]
        assert items[1].details == "c" * 100
        assert items[3].details == "Опубликовано"
        assert items[4].details == "Отклонено"
        assert items[0].id == f"edited_{mine.id}"

    @pytest.mark.asyncio
    async def test_limit_truncates_merged_list(self, db_session, profile):
        for day in range(4):
            db_session.add(Article(author_id=profile.id, title=f"a{day}",
                                   created_at=BASE_TIME + timedelta(days=day)))
        await db_session.commit()

        items = await ActivityService().get_activity(db_session, profile.id, limit=2)

        assert [i.article_title for i in items] == ["a3", "a2"]
        assert all(i.details == "На модерации" for i in items)

    @pytest.mark.asyncio
    async def test_empty(self, db_session, profile):
        assert await ActivityService().get_activity(db_session, profile.id) == []
