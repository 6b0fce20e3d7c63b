from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)

from manhub.models.database import Base, new_id, utcnow


class ArticleStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Article(Base):
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, default=new_id)
    author_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    category_id = Column(String, nullable=True)
    title = Column(String, nullable=False)
    topic = Column(String, nullable=True)
    body = Column(Text, nullable=True)
    media_url = Column(Text, nullable=True)  # URL, YouTube id or base64 data URL
    media_type = Column(String, nullable=True)  # image, youtube
    is_anonymous = Column(Boolean, default=False)
    status = Column(String, default=ArticleStatus.PENDING)
    pending_edit = Column(JSON, nullable=True)
    short_id = Column(String(32), unique=True, nullable=True)  # moderation code
    views_count = Column(Integer, default=0, nullable=False)
    telegram_message_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, nullable=True)
    edited_at = Column(DateTime, nullable=True)


class ArticleView(Base):
    __tablename__ = "article_views"
    __table_args__ = (UniqueConstraint("article_id", "user_profile_id", name="uq_article_view"),)

    id = Column(String(36), primary_key=True, default=new_id)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False)
    user_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ArticleLike(Base):
    __tablename__ = "article_likes"

    id = Column(String(36), primary_key=True, default=new_id)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False)
    user_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ArticleComment(Base):
    __tablename__ = "article_comments"

    id = Column(String(36), primary_key=True, default=new_id)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False)
    author_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
