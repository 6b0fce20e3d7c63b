import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.config import Settings
from manhub.dependencies import (
    authenticate_init_data,
    get_article_service,
    get_db_session,
    get_moderation_service,
    get_profile_service,
    get_settings,
)
from manhub.errors import AppError, ValidationError
from manhub.models.schemas import AddViewRequest, AddViewResponse, UpdateArticleRequest
from manhub.services.articles import ArticleService
from manhub.services.moderation import ModerationService
from manhub.services.profiles import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["articles"])


@router.post("/tg-update-article")
async def update_article(
    request: UpdateArticleRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    articles: ArticleService = Depends(get_article_service),
    moderation: ModerationService = Depends(get_moderation_service),
):
    if not request.init_data:
        raise ValidationError("initData is required")
    if not request.article_id or request.updates is None:
        raise ValidationError("articleId and updates are required")

    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)
    article = await articles.submit_edit(
        db_session, profile, request.article_id, request.updates.model_dump()
    )

    # The edit is stored; a failed moderation post must not undo it.
    try:
        await moderation.send_edit_moderation(db_session, article.id)
    except AppError as exc:
        logger.error("Edit moderation for article %s not sent: %s", article.id, exc.message)

    return {"success": True, "message": "Edit submitted for moderation"}


@router.post("/tg-add-view", response_model=AddViewResponse)
async def add_view(
    request: AddViewRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    articles: ArticleService = Depends(get_article_service),
):
    if not request.init_data or not request.article_id:
        raise ValidationError("Missing initData or articleId")

    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)
    already_viewed, views_count = await articles.add_view(db_session, profile.id, request.article_id)
    return AddViewResponse(already_viewed=already_viewed, views_count=views_count)
