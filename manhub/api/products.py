from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from manhub.config import Settings
from manhub.dependencies import (
    authenticate_init_data,
    get_db_session,
    get_product_service,
    get_profile_service,
    get_settings,
)
from manhub.errors import ValidationError
from manhub.models.schemas import ManageProductRequest, ProductResponse
from manhub.services.products import ProductService
from manhub.services.profiles import ProfileService

router = APIRouter(prefix="/api/v1", tags=["products"])


def _dump(product) -> dict:
    return ProductResponse.model_validate(product).model_dump(mode="json")


@router.post("/tg-manage-product")
async def manage_product(
    request: ManageProductRequest,
    settings: Settings = Depends(get_settings),
    db_session: AsyncSession = Depends(get_db_session),
    profiles: ProfileService = Depends(get_profile_service),
    products: ProductService = Depends(get_product_service),
):
    identity = authenticate_init_data(request.init_data, settings)
    profile = await profiles.get_by_telegram_id(db_session, identity.telegram_id)

    if request.action == "list":
        items = await products.list_products(db_session, profile)
        return {"products": [_dump(p) for p in items]}

    if request.action == "create":
        product = await products.create(db_session, profile, request.product)
        return {"product": _dump(product)}

    if request.action == "update" and request.product_id:
        product = await products.update(db_session, profile, request.product_id, request.product)
        return {"product": _dump(product)}

    if request.action == "delete" and request.product_id:
        await products.delete(db_session, profile, request.product_id)
        return {"success": True}

    raise ValidationError("Invalid action")
