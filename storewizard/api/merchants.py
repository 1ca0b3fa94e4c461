from fastapi import APIRouter, Depends, HTTPException

from storewizard.dependencies import get_current_merchant, get_db_path
from storewizard.models.database import (
    create_merchant,
    get_merchant_by_email,
    get_merchant_by_token,
    get_store_for_merchant,
    update_merchant,
)
from storewizard.models.schemas import MerchantCreate, MerchantCreated, MerchantUpdate

router = APIRouter(prefix="/api/merchants", tags=["merchants"])


def _profile(merchant: dict, store: dict | None) -> dict:
    return {
        "id": merchant["id"],
        "email": merchant["email"],
        "name": merchant["name"],
        "preferredLanguage": merchant["preferred_language"],
        "createdAt": merchant["created_at"],
        "store": None
        if store is None
        else {
            "platform": store["platform"],
            "storeId": store["store_id"],
            "storeName": store["store_name"],
            "themeId": store["theme_id"],
            "logoUrl": store["logo_url"],
        },
    }


@router.post("", response_model=MerchantCreated, status_code=201)
async def register_merchant(
    request: MerchantCreate,
    db_path: str = Depends(get_db_path),
):
    email = request.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email")
    if await get_merchant_by_email(db_path, email) is not None:
        raise HTTPException(status_code=409, detail="Merchant already exists")

    created = await create_merchant(db_path, email, request.name, request.preferred_language)
    return MerchantCreated(merchant_id=created["id"], api_token=created["api_token"])


@router.get("/me")
async def get_profile(
    merchant: dict = Depends(get_current_merchant),
    db_path: str = Depends(get_db_path),
):
    store = await get_store_for_merchant(db_path, merchant["id"])
    return _profile(merchant, store)


@router.patch("/me")
async def update_profile(
    request: MerchantUpdate,
    merchant: dict = Depends(get_current_merchant),
    db_path: str = Depends(get_db_path),
):
    await update_merchant(
        db_path,
        merchant["id"],
        name=request.name,
        preferred_language=request.preferred_language,
    )
    updated = await get_merchant_by_token(db_path, merchant["api_token"])
    store = await get_store_for_merchant(db_path, merchant["id"])
    return _profile(updated, store)
