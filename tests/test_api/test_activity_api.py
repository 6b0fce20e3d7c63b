from datetime import datetime, timedelta

import pytest

from manhub.models.article import Article, ArticleLike, ArticleStatus


@pytest.mark.asyncio
async def test_my_activity(client, db_session, profile, init_data):
    created = datetime(2024, 5, 1, 10, 0)
    article = Article(author_id=profile.id, title="Post", status=ArticleStatus.PENDING, created_at=created)
    db_session.add(article)
    await db_session.commit()
    db_session.add(ArticleLike(article_id=article.id, user_profile_id=profile.id,
                               created_at=created + timedelta(minutes=30)))
    await db_session.commit()

    resp = await client.post("/api/v1/tg-my-activity", json={"initData": init_data()})

    assert resp.status_code == 200
    activities = resp.json()["activities"]
    assert [a["type"] for a in activities] == ["like", "article_created"]
    assert activities[1]["details"] == "На модерации"
    assert activities[1]["id"] == f"created_{article.id}"


@pytest.mark.asyncio
async def test_my_activity_requires_auth(client):
    resp = await client.post("/api/v1/tg-my-activity", json={"initData": "user=%7B%7D&hash=00"})
    assert resp.status_code == 401
