"""Subscription payments: Telegram Stars invoices and CryptoBot activations."""

from __future__ import annotations

import calendar
import json
import logging
import math
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from telegram import LabeledPrice

from manhub.config import Settings
from manhub.errors import NotFoundError, ValidationError
from manhub.models.database import utcnow
from manhub.models.profile import Profile, ReferralEarning, SubscriptionTier
from manhub.services.notifications import NotificationService
from manhub.services.telegram_messenger import TelegramMessenger

logger = logging.getLogger(__name__)

STARS_CURRENCY = "XTR"

PLAN_TITLES = {
    SubscriptionTier.PLUS: "ManHub Plus",
    SubscriptionTier.PREMIUM: "ManHub Premium",
}


def rub_to_stars(amount_rub: float, rub_per_star: float = 1.8, max_stars: int = 2500) -> int:
    """Convert a RUB price to Stars, clamped to Telegram's [1, max_stars] range."""
    stars = math.ceil(amount_rub / rub_per_star)
    return max(1, min(stars, max_stars))


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day (Jan 31 + 1 month -> Feb 28/29)."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def premium_expiry(period: str | None, now: datetime) -> datetime:
    return add_months(now, 12 if period == "yearly" else 1)


class PaymentService:
    def __init__(self, settings: Settings, notifications: NotificationService | None = None):
        self.settings = settings
        self.notifications = notifications or NotificationService()

    async def create_stars_invoice(
        self,
        messenger: TelegramMessenger,
        profile: Profile,
        plan: str,
        period: str,
        amount_rub: float,
    ) -> tuple[str, int]:
        """Create a Stars invoice link for a subscription. Returns (url, stars)."""
        stars = rub_to_stars(amount_rub, self.settings.stars_rub_per_star, self.settings.stars_max_amount)
        title = PLAN_TITLES.get(plan, PLAN_TITLES[SubscriptionTier.PREMIUM])
        description = (
            f"Подписка {title} на 1 месяц" if period == "monthly" else f"Подписка {title} на 1 год"
        )
        payload = json.dumps({
            "profile_id": profile.id,
            "plan": plan,
            "period": period,
            "amount_rub": amount_rub,
            "stars": stars,
        })
        logger.info("Creating Stars invoice for profile %s: %s %s, %d stars", profile.id, plan, period, stars)
        url = await messenger.create_invoice_link(
            title=title,
            description=description,
            payload=payload,
            currency=STARS_CURRENCY,
            prices=[LabeledPrice(label=title, amount=stars)],
        )
        return url, stars

    async def handle_cryptobot_update(self, db_session: AsyncSession, update: dict) -> bool:
        """Apply a verified CryptoBot webhook update.

        Returns False when the update is not a payment and was ignored.
        """
        if update.get("update_type") != "invoice_paid":
            logger.info("Ignoring non-payment CryptoBot update: %s", update.get("update_type"))
            return False

        invoice = update.get("payload") or {}
        if not isinstance(invoice, dict) or not invoice.get("payload"):
            raise ValidationError("Invalid payload")
        try:
            purchase = json.loads(invoice["payload"])
        except (TypeError, ValueError) as exc:
            raise ValidationError("Invalid invoice payload") from exc
        if not isinstance(purchase, dict):
            raise ValidationError("Invalid invoice payload")

        telegram_id = purchase.get("telegram_id")
        plan = purchase.get("plan")
        period = purchase.get("period")
        logger.info("Processing payment for user %s, plan: %s, period: %s", telegram_id, plan, period)

        result = await db_session.execute(select(Profile).where(Profile.telegram_id == telegram_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("User not found")

        now = utcnow()
        profile.subscription_tier = plan
        profile.is_premium = True
        profile.premium_expires_at = premium_expiry(period, now)
        profile.updated_at = now

        if profile.referred_by:
            await self._credit_referrer(db_session, profile, invoice.get("amount"), f"{plan}_{period}")

        title = "Plus" if plan == SubscriptionTier.PLUS else "Premium"
        await self.notifications.create(
            db_session,
            profile.id,
            "subscription",
            f"🎉 Подписка {title} успешно активирована!",
            commit=False,
        )
        await db_session.commit()
        logger.info("Activated %s subscription for user %s", plan, telegram_id)
        return True

    async def _credit_referrer(
        self, db_session: AsyncSession, profile: Profile, amount, purchase_type: str
    ) -> None:
        try:
            purchase_amount = float(amount)
        except (TypeError, ValueError):
            logger.warning("Invoice amount %r is not numeric, skipping referral earning", amount)
            return
        earning = purchase_amount * self.settings.referral_bonus_rate

        db_session.add(ReferralEarning(
            referrer_id=profile.referred_by,
            referred_id=profile.id,
            purchase_type=purchase_type,
            purchase_amount=purchase_amount,
            earning_amount=earning,
        ))
        referrer = await db_session.get(Profile, profile.referred_by)
        if referrer is not None:
            referrer.referral_earnings = (referrer.referral_earnings or 0) + earning
