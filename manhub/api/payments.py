"""Subscription payment endpoints: Stars invoices and the CryptoBot webhook."""

import json
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.config import Settings
from manhub.dependencies import (
    authenticate_init_data,
    get_db_session,
    get_payment_service,
    get_profile_service,
    get_settings,
    get_user_messenger,
)
from manhub.errors import AppError, AuthenticationError, ValidationError
from manhub.models.schemas import StarsInvoiceRequest, StarsInvoiceResponse
from manhub.services.payments import PaymentService
from manhub.services.profiles import ProfileService
from manhub.services.telegram_auth import verify_webhook_signature
from manhub.services.telegram_messenger import TelegramMessenger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["payments"])

SIGNATURE_HEADER = "crypto-pay-api-signature"


@router.post("/stars-create-invoice", response_model=StarsInvoiceResponse)
async def stars_create_invoice(
    request: StarsInvoiceRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    payments: PaymentService = Depends(get_payment_service),
    messenger: TelegramMessenger = Depends(get_user_messenger),
):
    if not request.plan or not request.period:
        raise ValidationError("Missing plan or period")
    if not request.init_data:
        raise AuthenticationError("User not authenticated")

    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)
    invoice_url, stars = await payments.create_stars_invoice(
        messenger, profile, request.plan, request.period, request.amount
    )
    return StarsInvoiceResponse(invoice_url=invoice_url, stars_amount=stars)


@router.post("/cryptobot-webhook")
async def cryptobot_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    payments: PaymentService = Depends(get_payment_service),
):
    if not settings.cryptobot_api_token:
        logger.error("CRYPTOBOT_API_TOKEN not configured")
        raise AppError("Server configuration error")

    # Signature covers the exact wire bytes: read before any JSON parsing.
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not verify_webhook_signature(raw_body, signature, settings.cryptobot_api_token):
        logger.warning("Invalid CryptoBot webhook signature")
        raise AuthenticationError("Invalid signature")

    try:
        update = json.loads(raw_body)
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(update, dict):
        raise ValidationError("Invalid JSON body")

    await payments.handle_cryptobot_update(db_session, update)
    return {"ok": True}
