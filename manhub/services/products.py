"""Premium users' product showcase (one product per user, moderated)."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.errors import AuthorizationError, NotFoundError, ValidationError
from manhub.models.database import utcnow
from manhub.models.product import UserProduct
from manhub.models.profile import Profile, SubscriptionTier
from manhub.models.schemas import ProductPayload
from manhub.services.moderation import ModerationService

logger = logging.getLogger(__name__)


def detect_media_type(media_url: str | None) -> str | None:
    if not media_url:
        return None
    if "youtube.com" in media_url or "youtu.be" in media_url:
        return "youtube"
    return "image"


class ProductService:
    def __init__(self, moderation: ModerationService, product_limit: int = 1):
        self.moderation = moderation
        self.product_limit = product_limit

    async def list_products(self, db_session: AsyncSession, profile: Profile) -> list[UserProduct]:
        result = await db_session.execute(
            select(UserProduct)
            .where(UserProduct.user_profile_id == profile.id)
            .order_by(UserProduct.created_at.desc())
        )
        return list(result.scalars().all())

    def _require_premium(self, profile: Profile) -> None:
        if profile.subscription_tier != SubscriptionTier.PREMIUM:
            raise AuthorizationError("Premium subscription required")

    async def _owned(self, db_session: AsyncSession, profile: Profile, product_id: str | None) -> UserProduct:
        product = await db_session.get(UserProduct, product_id) if product_id else None
        if product is None or product.user_profile_id != profile.id:
            raise NotFoundError("Product not found")
        return product

    def _apply(self, product: UserProduct, payload: ProductPayload) -> None:
        product.title = payload.title
        product.description = payload.description
        product.price = payload.price
        product.currency = payload.currency or "RUB"
        product.media_url = payload.media_url
        product.media_type = detect_media_type(payload.media_url)
        product.link = payload.link
        product.status = "pending"

    async def create(self, db_session: AsyncSession, profile: Profile, payload: ProductPayload | None) -> UserProduct:
        self._require_premium(profile)
        if payload is None:
            raise ValidationError("product is required")

        count = await db_session.execute(
            select(func.count(UserProduct.id)).where(UserProduct.user_profile_id == profile.id)
        )
        if (count.scalar() or 0) >= self.product_limit:
            raise AuthorizationError(
                f"Product limit reached. Maximum {self.product_limit} product allowed."
            )

        product = UserProduct(user_profile_id=profile.id)
        self._apply(product, payload)
        db_session.add(product)
        await db_session.commit()
        logger.info("Created product %s for profile %s", product.id, profile.id)

        await self.moderation.send_product_moderation(product, profile)
        return product

    async def update(
        self, db_session: AsyncSession, profile: Profile, product_id: str | None, payload: ProductPayload | None
    ) -> UserProduct:
        self._require_premium(profile)
        product = await self._owned(db_session, profile, product_id)
        if payload is None:
            raise ValidationError("product is required")

        self._apply(product, payload)
        product.rejection_reason = None
        product.updated_at = utcnow()
        await db_session.commit()
        logger.info("Updated product %s, back to moderation", product.id)

        await self.moderation.send_product_moderation(product, profile)
        return product

    async def delete(self, db_session: AsyncSession, profile: Profile, product_id: str | None) -> None:
        self._require_premium(profile)
        product = await self._owned(db_session, profile, product_id)
        await db_session.delete(product)
        await db_session.commit()
        logger.info("Deleted product %s", product_id)
