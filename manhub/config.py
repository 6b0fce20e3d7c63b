from pydantic_settings import BaseSettings

ENV_CONFIG = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class HttpSettings(BaseSettings):
    """Settings the app needs at import time, before the lifespan runs."""

    # Comma-separated list of allowed origins, "*" for any
    cors_origins: str = "*"

    model_config = ENV_CONFIG

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]


class Settings(HttpSettings):
    # Telegram user bot (signs initData, sends user-facing messages, invoices)
    telegram_bot_token: str

    # Telegram admin bot (moderation cards)
    admin_bot_token: str
    telegram_admin_chat_id: str

    # CryptoBot payments (webhook signature secret)
    cryptobot_api_token: str | None = None

    # Outbound messaging limits
    telegram_message_max_length: int = 3800  # safely under Telegram's 4096
    telegram_caption_max_length: int = 900
    telegram_send_attempts: int = 3
    telegram_retry_backoff_seconds: float = 0.5
    telegram_max_retry_after_seconds: float = 60  # longest flood-control wait honoured

    # initData freshness check, 0 disables
    init_data_max_age_seconds: int = 0

    # Payments
    stars_rub_per_star: float = 1.8
    stars_max_amount: int = 2500
    referral_bonus_rate: float = 0.2  # 20% of the purchase goes to the referrer

    # Products
    premium_product_limit: int = 1

    # Welcome notifications
    welcome_batch_size: int = 50

    # App
    api_secret_key: str
    database_url: str = "sqlite+aiosqlite:///./manhub.db"
    log_level: str = "INFO"

    model_config = ENV_CONFIG
