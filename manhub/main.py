import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from manhub.config import HttpSettings, Settings
from manhub.errors import register_error_handlers
from manhub.models.database import Base, create_engine, create_session_factory
from manhub.services.telegram_messenger import TelegramMessenger

# Table modules register themselves on Base.metadata
from manhub.models import article, notification, product, profile  # noqa: F401

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-api-key",
    "crypto-pay-api-signature",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Database
    engine = create_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    app.state.engine = engine
    app.state.async_session = create_session_factory(engine)

    # Telegram bots: the user bot talks to end users, the admin bot to moderators
    app.state.settings = settings
    app.state.user_messenger = TelegramMessenger(settings.telegram_bot_token, None, settings)
    app.state.admin_messenger = TelegramMessenger(
        settings.admin_bot_token, settings.telegram_admin_chat_id, settings
    )

    logger.info(
        "ManHub API started (db=%s, cryptobot=%s)",
        engine.url.render_as_string(hide_password=True),
        "on" if settings.cryptobot_api_token else "off",
    )
    yield

    await engine.dispose()
    logger.info("ManHub API shut down")


app = FastAPI(title="ManHub API", version="1.0.0", lifespan=lifespan)

# Error handling first: CORS must wrap it so 500s carry CORS headers
register_error_handlers(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=HttpSettings().cors_origin_list,
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)

from manhub.api.router import api_router  # noqa: E402

app.include_router(api_router)
