from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.config import Settings
from manhub.dependencies import (
    authenticate_init_data,
    get_db_session,
    get_notification_service,
    get_profile_service,
    get_settings,
)
from manhub.models.schemas import NotificationItem, NotificationsRequest, NotificationsResponse
from manhub.services.notifications import NotificationService
from manhub.services.profiles import ProfileService

router = APIRouter(prefix="/api/v1", tags=["notifications"])


@router.post("/tg-notifications")
async def tg_notifications(
    request: NotificationsRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)

    if request.action == "mark_all_read":
        await notifications.mark_all_read(db_session, profile.id)
        return {"success": True}

    items = await notifications.list_notifications(db_session, profile.id, request.filter, request.limit)
    unread = await notifications.unread_count(db_session, profile.id)
    return NotificationsResponse(
        notifications=[NotificationItem.model_validate(n) for n in items],
        unread_count=unread,
    ).model_dump(mode="json", by_alias=True)
