from fastapi import APIRouter

from manhub.api.health import router as health_router
from manhub.api.notifications import router as notifications_router
from manhub.api.articles import router as articles_router
from manhub.api.activity import router as activity_router
from manhub.api.products import router as products_router
from manhub.api.payments import router as payments_router
from manhub.api.moderation import router as moderation_router
from manhub.api.welcome import router as welcome_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(notifications_router)
api_router.include_router(articles_router)
api_router.include_router(activity_router)
api_router.include_router(products_router)
api_router.include_router(payments_router)
api_router.include_router(moderation_router)
api_router.include_router(welcome_router)
