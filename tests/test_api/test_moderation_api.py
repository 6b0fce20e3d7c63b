from datetime import timedelta

import pytest
import pytest_asyncio

from manhub.models.article import Article
from manhub.models.database import utcnow
from manhub.models.notification import AdminSetting, ScheduledNotification

API_KEY = "test_secret"
HEADERS = {"X-API-Key": API_KEY}


@pytest_asyncio.fixture
async def article(db_session, profile):
    article = Article(author_id=profile.id, title="Fresh", body="Text", is_anonymous=True)
    db_session.add(article)
    await db_session.commit()
    return article


class TestModerationAPI:

    @pytest.mark.asyncio
    async def test_send_moderation(self, client, article, admin_messenger):
        resp = await client.post("/api/v1/send-moderation", headers=HEADERS, json={"articleId": article.id})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "messageId": 777}
        kwargs = admin_messenger.bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == "-100123"
        assert "Анонимная публикация:</b> Да" in kwargs["text"]

    @pytest.mark.asyncio
    async def test_send_moderation_requires_api_key(self, client, article):
        resp = await client.post("/api/v1/send-moderation", json={"articleId": article.id})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid API key"}

        resp = await client.post(
            "/api/v1/send-moderation", headers={"X-API-Key": "wrong"}, json={"articleId": article.id}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_send_moderation_unknown_article(self, client):
        resp = await client.post("/api/v1/send-moderation", headers=HEADERS, json={"articleId": "nope"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_send_moderation_requires_article_id(self, client):
        resp = await client.post("/api/v1/send-moderation", headers=HEADERS, json={})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_send_edit_moderation(self, client, db_session, article):
        article.pending_edit = {"title": "Fresher"}
        await db_session.commit()

        resp = await client.post("/api/v1/send-edit-moderation", headers=HEADERS, json={"articleId": article.id})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message_id": 777}

    @pytest.mark.asyncio
    async def test_send_edit_moderation_without_pending_edit(self, client, article):
        resp = await client.post("/api/v1/send-edit-moderation", headers=HEADERS, json={"articleId": article.id})
        assert resp.status_code == 400
        assert resp.json() == {"error": "No pending edit for this article"}


class TestWelcomeAPI:

    @pytest.mark.asyncio
    async def test_sends_pending(self, client, db_session, profile, user_messenger):
        db_session.add_all([
            AdminSetting(key="welcome_message_text", value="Привет!"),
            AdminSetting(key="welcome_message_enabled", value="true"),
            ScheduledNotification(
                user_profile_id=profile.id,
                notification_type="welcome",
                scheduled_at=utcnow() - timedelta(minutes=1),
            ),
        ])
        await db_session.commit()

        resp = await client.post("/api/v1/send-welcome-notifications", headers=HEADERS)

        assert resp.status_code == 200
        assert resp.json() == {"sent": 1}
        assert user_messenger.bot.send_message.call_args.kwargs["chat_id"] == 42

        resp = await client.post("/api/v1/send-welcome-notifications", headers=HEADERS)
        assert resp.json() == {"sent": 0}

    @pytest.mark.asyncio
    async def test_not_configured(self, client):
        resp = await client.post("/api/v1/send-welcome-notifications", headers=HEADERS)
        assert resp.json() == {"sent": 0, "message": "No welcome message configured"}

    @pytest.mark.asyncio
    async def test_requires_api_key(self, client):
        resp = await client.post("/api/v1/send-welcome-notifications")
        assert resp.status_code == 401
