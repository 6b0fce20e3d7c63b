"""Telegram user profiles and referral payouts."""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Float, ForeignKey, String

from manhub.models.database import Base, new_id, utcnow


class SubscriptionTier:
    FREE = "free"
    PLUS = "plus"
    PREMIUM = "premium"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    username = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    subscription_tier = Column(String, default=SubscriptionTier.FREE)
    is_premium = Column(Boolean, default=False)
    premium_expires_at = Column(DateTime, nullable=True)
    referred_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    referral_code = Column(String, nullable=True)
    referral_earnings = Column(Float, default=0.0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, nullable=True)


class ReferralEarning(Base):
    __tablename__ = "referral_earnings"

    id = Column(String(36), primary_key=True, default=new_id)
    referrer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    referred_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    purchase_type = Column(String, nullable=False)  # e.g. premium_monthly
    purchase_amount = Column(Float, nullable=False)
    earning_amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow)
