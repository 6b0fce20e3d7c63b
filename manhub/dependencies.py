import hmac
import logging

from fastapi import Depends, Header, Request

from manhub.config import Settings
from manhub.errors import AuthenticationError, ValidationError
from manhub.services.activity import ActivityService
from manhub.services.articles import ArticleService
from manhub.services.moderation import ModerationService
from manhub.services.notifications import NotificationService
from manhub.services.payments import PaymentService
from manhub.services.products import ProductService
from manhub.services.profiles import ProfileService
from manhub.services.telegram_auth import InitDataVerification, verify_init_data
from manhub.services.telegram_messenger import TelegramMessenger
from manhub.services.welcome import WelcomeService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_messenger(request: Request) -> TelegramMessenger:
    return request.app.state.user_messenger


def get_admin_messenger(request: Request) -> TelegramMessenger:
    return request.app.state.admin_messenger


async def get_db_session(request: Request):
    async with request.app.state.async_session() as session:
        yield session


def require_internal_key(
    x_api_key: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guard for endpoints called by other backend jobs, not the Mini App."""
    expected = settings.api_secret_key
    if not x_api_key or not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        raise AuthenticationError("Invalid API key")


def authenticate_init_data(init_data: str | None, settings: Settings) -> InitDataVerification:
    """Verify Mini App initData against the user bot token.

    Missing initData is a 400; anything that fails verification, or carries
    no numeric user id, is a 401.
    """
    if not init_data:
        raise ValidationError("initData is required")
    verification = verify_init_data(
        init_data,
        settings.telegram_bot_token,
        max_age_seconds=settings.init_data_max_age_seconds,
    )
    if verification.telegram_id is None:
        logger.warning("Rejected initData: %s", verification.reason or "no user id")
        raise AuthenticationError("Invalid Telegram initData")
    return verification


def get_profile_service() -> ProfileService:
    return ProfileService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_article_service() -> ArticleService:
    return ArticleService()


def get_activity_service() -> ActivityService:
    return ActivityService()


def get_moderation_service(
    messenger: TelegramMessenger = Depends(get_admin_messenger),
) -> ModerationService:
    return ModerationService(messenger)


def get_product_service(
    settings: Settings = Depends(get_settings),
    moderation: ModerationService = Depends(get_moderation_service),
) -> ProductService:
    return ProductService(moderation, product_limit=settings.premium_product_limit)


def get_payment_service(settings: Settings = Depends(get_settings)) -> PaymentService:
    return PaymentService(settings)


def get_welcome_service(
    settings: Settings = Depends(get_settings),
    messenger: TelegramMessenger = Depends(get_user_messenger),
) -> WelcomeService:
    return WelcomeService(messenger, batch_size=settings.welcome_batch_size)
