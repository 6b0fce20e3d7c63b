from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from manhub.models.database import Base, new_id, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    type = Column(String, nullable=False)  # like, comment, reply, mention, rep, badge, subscription, ...
    message = Column(Text, nullable=True)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=True)
    from_user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ScheduledNotification(Base):
    __tablename__ = "scheduled_notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    notification_type = Column(String, nullable=False)  # welcome
    scheduled_at = Column(DateTime, nullable=False)
    sent_at = Column(DateTime, nullable=True)


class AdminSetting(Base):
    __tablename__ = "admin_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
