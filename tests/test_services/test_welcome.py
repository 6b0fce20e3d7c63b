from datetime import timedelta

import pytest
from sqlalchemy import select

from manhub.models.database import utcnow
from manhub.models.notification import AdminSetting, ScheduledNotification
from manhub.models.profile import Profile
from manhub.services.welcome import WelcomeService


async def _configure(db_session, **values):
    for key, value in values.items():
        db_session.add(AdminSetting(key=f"welcome_message_{key}", value=value))
    await db_session.commit()


async def _schedule(db_session, profile_id, minutes_ago=5):
    row = ScheduledNotification(
        user_profile_id=profile_id,
        notification_type="welcome",
        scheduled_at=utcnow() - timedelta(minutes=minutes_ago),
    )
    db_session.add(row)
    await db_session.commit()
    return row


@pytest.mark.asyncio
async def test_disabled(db_session, user_messenger, profile):
    await _configure(db_session, text="Hi", enabled="false")
    await _schedule(db_session, profile.id)

    result = await WelcomeService(user_messenger).send_pending(db_session)

    assert result.sent == 0
    assert result.message == "Welcome message disabled"
    user_messenger.bot.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_not_configured(db_session, user_messenger, profile):
    result = await WelcomeService(user_messenger).send_pending(db_session)
    assert result.message == "No welcome message configured"


@pytest.mark.asyncio
async def test_sends_text_and_marks_sent(db_session, user_messenger, profile):
    await _configure(db_session, text="Добро пожаловать!", enabled="true")
    row = await _schedule(db_session, profile.id)
    future = await _schedule(db_session, profile.id, minutes_ago=-60)

    result = await WelcomeService(user_messenger).send_pending(db_session)

    assert result.sent == 1
    kwargs = user_messenger.bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == 42
    assert kwargs["text"] == "Добро пожаловать!"

    rows = {r.id: r.sent_at for r in (await db_session.execute(
        select(ScheduledNotification).execution_options(populate_existing=True)
    )).scalars()}
    assert rows[row.id] is not None
    assert rows[future.id] is None


@pytest.mark.asyncio
async def test_photo_media(db_session, user_messenger, profile):
    await _configure(db_session, text="Hello", media_url="https://cdn/w.jpg", media_type="photo")
    await _schedule(db_session, profile.id)

    await WelcomeService(user_messenger).send_pending(db_session)

    kwargs = user_messenger.bot.send_photo.call_args.kwargs
    assert kwargs["photo"] == "https://cdn/w.jpg"
    assert kwargs["caption"] == "Hello"
    user_messenger.bot.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_video_media(db_session, user_messenger, profile):
    await _configure(db_session, text="Hello", media_url="https://cdn/w.mp4", media_type="video")
    await _schedule(db_session, profile.id)

    result = await WelcomeService(user_messenger).send_pending(db_session)

    assert result.sent == 1
    user_messenger.bot.send_video.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_delivery_is_still_marked(db_session, user_messenger, profile):
    from telegram.error import Forbidden

    await _configure(db_session, text="Hello")
    row = await _schedule(db_session, profile.id)
    user_messenger.bot.send_message.side_effect = Forbidden("bot was blocked by the user")

    result = await WelcomeService(user_messenger).send_pending(db_session)

    assert result.sent == 0
    refreshed = await db_session.get(ScheduledNotification, row.id, populate_existing=True)
    assert refreshed.sent_at is not None


@pytest.mark.asyncio
async def test_batch_size(db_session, user_messenger, profile):
    await _configure(db_session, text="Hello")
    other = Profile(telegram_id=43)
    db_session.add(other)
    await db_session.commit()
    await _schedule(db_session, profile.id, minutes_ago=10)
    await _schedule(db_session, other.id, minutes_ago=5)

    result = await WelcomeService(user_messenger, batch_size=1).send_pending(db_session)

    assert result.sent == 1
    assert user_messenger.bot.send_message.call_args.kwargs["chat_id"] == 42
