from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.dependencies import get_db_session, get_welcome_service, require_internal_key
from manhub.services.welcome import WelcomeService

router = APIRouter(prefix="/api/v1", tags=["welcome"], dependencies=[Depends(require_internal_key)])


@router.post("/send-welcome-notifications")
async def send_welcome_notifications(
    db_session: AsyncSession = Depends(get_db_session),
    welcome: WelcomeService = Depends(get_welcome_service),
):
    result = await welcome.send_pending(db_session)
    if result.message:
        return {"sent": result.sent, "message": result.message}
    return {"sent": result.sent}
