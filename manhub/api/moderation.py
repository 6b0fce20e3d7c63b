"""Internal endpoints that post moderation cards to the admin chat."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.dependencies import get_db_session, get_moderation_service, require_internal_key
from manhub.errors import ValidationError
from manhub.models.schemas import ModerationRequest
from manhub.services.moderation import ModerationService

router = APIRouter(prefix="/api/v1", tags=["moderation"], dependencies=[Depends(require_internal_key)])


@router.post("/send-moderation")
async def send_moderation(
    request: ModerationRequest,
    db_session: AsyncSession = Depends(get_db_session),
    moderation: ModerationService = Depends(get_moderation_service),
):
    if not request.article_id:
        raise ValidationError("articleId is required")
    message_id = await moderation.send_article_moderation(db_session, request.article_id)
    return {"success": True, "messageId": message_id}


@router.post("/send-edit-moderation")
async def send_edit_moderation(
    request: ModerationRequest,
    db_session: AsyncSession = Depends(get_db_session),
    moderation: ModerationService = Depends(get_moderation_service),
):
    if not request.article_id:
        raise ValidationError("articleId is required")
    message_id = await moderation.send_edit_moderation(db_session, request.article_id)
    return {"success": True, "message_id": message_id}
