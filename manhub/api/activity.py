from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.config import Settings
from manhub.dependencies import (
    authenticate_init_data,
    get_activity_service,
    get_db_session,
    get_profile_service,
    get_settings,
)
from manhub.models.schemas import ActivityRequest, ActivityResponse
from manhub.services.activity import ActivityService
from manhub.services.profiles import ProfileService

router = APIRouter(prefix="/api/v1", tags=["activity"])


@router.post("/tg-my-activity", response_model=ActivityResponse)
async def my_activity(
    request: ActivityRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    activity: ActivityService = Depends(get_activity_service),
):
    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)
    items = await activity.get_activity(db_session, profile.id, request.limit)
    return ActivityResponse(activities=items)
