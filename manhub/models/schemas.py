from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TelegramRequest(BaseModel):
    """Base for Mini App requests carrying the signed ``initData`` string."""

    model_config = ConfigDict(populate_by_name=True)

    init_data: str | None = Field(None, alias="initData")


# --- Notifications ---

class NotificationsRequest(TelegramRequest):
    action: str | None = None
    filter: str | None = None
    limit: int = Field(50, ge=1, le=200)


class NotificationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    message: str | None
    article_id: str | None
    from_user_id: str | None
    is_read: bool
    created_at: datetime | None


class NotificationsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notifications: list[NotificationItem]
    unread_count: int = Field(..., serialization_alias="unreadCount")


# --- Articles ---

class ArticleUpdates(BaseModel):
    title: str | None = None
    topic: str | None = None
    body: str | None = None
    media_url: str | None = None
    is_anonymous: bool | None = None
    sources: list[Any] | None = None


class UpdateArticleRequest(TelegramRequest):
    article_id: str | None = Field(None, alias="articleId")
    updates: ArticleUpdates | None = None


class AddViewRequest(TelegramRequest):
    article_id: str | None = Field(None, alias="articleId")


class AddViewResponse(BaseModel):
    success: bool = True
    already_viewed: bool = Field(..., serialization_alias="alreadyViewed")
    views_count: int


# --- Activity ---

class ActivityRequest(TelegramRequest):
    limit: int = Field(50, ge=1, le=200)


class ActivityItem(BaseModel):
    id: str
    type: str  # like, comment, article_created, article_updated
    article_id: str
    article_title: str
    article_topic: str | None = None
    created_at: datetime
    details: str | None = None


class ActivityResponse(BaseModel):
    activities: list[ActivityItem]


# --- Products ---

class ProductPayload(BaseModel):
    title: str
    description: str | None = None
    price: float | None = None
    currency: str | None = None
    media_url: str | None = None
    link: str | None = None


class ManageProductRequest(TelegramRequest):
    action: str | None = None
    product_id: str | None = Field(None, alias="productId")
    product: ProductPayload | None = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_profile_id: str
    title: str
    description: str | None
    price: float | None
    currency: str | None
    media_url: str | None
    media_type: str | None
    link: str | None
    status: str
    rejection_reason: str | None
    created_at: datetime | None
    updated_at: datetime | None


# --- Payments ---

class StarsInvoiceRequest(TelegramRequest):
    plan: str | None = None
    period: str | None = None
    amount: float = Field(0, ge=0)


class StarsInvoiceResponse(BaseModel):
    success: bool = True
    invoice_url: str
    stars_amount: int


# --- Moderation ---

class ModerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    article_id: str | None = Field(None, alias="articleId")
