from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text

from manhub.models.database import Base, new_id, utcnow


class UserProduct(Base):
    __tablename__ = "user_products"

    id = Column(String(36), primary_key=True, default=new_id)
    user_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    currency = Column(String, default="RUB")
    media_url = Column(Text, nullable=True)
    media_type = Column(String, nullable=True)  # youtube, image
    link = Column(String, nullable=True)
    status = Column(String, default="pending")
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, nullable=True)
