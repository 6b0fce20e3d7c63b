import json
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from manhub.config import Settings
from manhub.models.database import Base, create_engine, create_session_factory
from manhub.models.profile import Profile
from manhub.services.telegram_auth import sign_init_data
from manhub.services.telegram_messenger import TelegramMessenger

# Registers every table on Base.metadata
import manhub.main  # noqa: F401

USER_BOT_TOKEN = "123456:USER-test"
API_KEY = "test_secret"


@pytest.fixture
def settings():
    """Test settings with dummy values."""
    return Settings(
        telegram_bot_token=USER_BOT_TOKEN,
        admin_bot_token="654321:ADMIN-test",
        telegram_admin_chat_id="-100123",
        cryptobot_api_token="12345:CRYPTO-test",
        api_secret_key=API_KEY,
        database_url="sqlite+aiosqlite:///:memory:",
        log_level="DEBUG",
        telegram_retry_backoff_seconds=0,
    )


def make_init_data(telegram_id: int = 42, token: str = USER_BOT_TOKEN, **extra) -> str:
    """Build initData signed the way the Telegram client signs it."""
    fields = {
        "query_id": "AAH-test",
        "user": json.dumps({"id": telegram_id, "first_name": "Ivan", "username": "ivan"}),
        "auth_date": "1700000000",
    }
    fields.update(extra)
    return sign_init_data(fields, token)


@pytest.fixture
def init_data():
    """Factory for signed initData strings."""
    return make_init_data


def mock_bot() -> AsyncMock:
    bot = AsyncMock()
    bot.send_message.return_value = MagicMock(message_id=777)
    bot.send_photo.return_value = MagicMock(message_id=778)
    bot.send_video.return_value = MagicMock(message_id=779)
    bot.create_invoice_link.return_value = "https://t.me/$invoice-test"
    return bot


@pytest_asyncio.fixture
async def db_engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = create_session_factory(db_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def admin_messenger(settings):
    messenger = TelegramMessenger(settings.admin_bot_token, settings.telegram_admin_chat_id, settings)
    messenger.bot = mock_bot()
    return messenger


@pytest.fixture
def user_messenger(settings):
    messenger = TelegramMessenger(settings.telegram_bot_token, None, settings)
    messenger.bot = mock_bot()
    return messenger


@pytest_asyncio.fixture
async def profile(db_session):
    profile = Profile(telegram_id=42, username="ivan", first_name="Ivan", last_name="Petrov")
    db_session.add(profile)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def test_app(settings, db_engine, admin_messenger, user_messenger):
    """Create a test FastAPI app with state injected instead of the lifespan."""
    os.environ.update({
        "TELEGRAM_BOT_TOKEN": settings.telegram_bot_token,
        "ADMIN_BOT_TOKEN": settings.admin_bot_token,
        "TELEGRAM_ADMIN_CHAT_ID": settings.telegram_admin_chat_id,
        "API_SECRET_KEY": settings.api_secret_key,
        "DATABASE_URL": settings.database_url,
    })

    from manhub.main import app

    app.state.settings = settings
    app.state.engine = db_engine
    app.state.async_session = create_session_factory(db_engine)
    app.state.user_messenger = user_messenger
    app.state.admin_messenger = admin_messenger

    yield app


@pytest_asyncio.fixture
async def client(test_app):
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
