import logging

from fastapi import APIRouter, Depends, HTTPException

from storewizard.api.sessions import record_confirmation
from storewizard.config import Settings
from storewizard.dependencies import (
    get_catalog_client,
    get_current_merchant,
    get_db_path,
    get_owned_session,
    get_settings,
    get_store,
)
from storewizard.models.database import save_coupon, update_store
from storewizard.models.schemas import LandingPageRequest, LogoRequest, PreviewCouponData, ThemeSelectRequest
from storewizard.services.landing_page import SCRIPT_NAME, build_landing_page_script, store_builder_url
from storewizard.services.localization import translate
from storewizard.services.logo import generate_svg_logo, svg_to_data_uri
from storewizard.services.themes import STORE_THEMES, get_theme
from storewizard.services.zid import ZidClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["marketing"])


@router.post("/api/sessions/{session_id}/coupons", status_code=201)
async def confirm_coupon(
    coupon: PreviewCouponData,
    merchant: dict = Depends(get_current_merchant),
    session: dict = Depends(get_owned_session),
    db_path: str = Depends(get_db_path),
):
    if not coupon.code.strip() or coupon.discount_value <= 0:
        raise HTTPException(status_code=400, detail="Coupon needs a code and a positive discount")
    if coupon.discount_type == "percentage" and coupon.discount_value > 100:
        raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")

    record = await save_coupon(db_path, session["id"], coupon.model_dump())
    progress = await record_confirmation(db_path, session, "preview_coupon")
    return {
        "coupon": record,
        "message": translate("coupon_created", merchant["preferred_language"], code=record["code"]),
        "progress": progress.to_dict(),
    }


@router.get("/api/themes", dependencies=[Depends(get_current_merchant)])
async def list_themes():
    return {"themes": [t.to_dict() for t in STORE_THEMES]}


@router.post("/api/sessions/{session_id}/theme")
async def select_theme(
    request: ThemeSelectRequest,
    session: dict = Depends(get_owned_session),
    store: dict = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
    db_path: str = Depends(get_db_path),
):
    theme = get_theme(request.theme_id)
    if theme is None:
        raise HTTPException(status_code=400, detail="Invalid theme ID")

    # Zid themes are applied from its dashboard; only the preference is stored
    await update_store(db_path, store["id"], theme_id=theme.id)
    progress = await record_confirmation(db_path, session, "suggest_themes")
    return {
        "success": True,
        "theme": theme.to_dict(),
        "storeBuilderUrl": store_builder_url(app_settings.ZID_STORE_BUILDER_URL, store["store_id"]),
        "progress": progress.to_dict(),
    }


@router.post("/api/sessions/{session_id}/logo")
async def save_logo(
    request: LogoRequest,
    session: dict = Depends(get_owned_session),
    store: dict = Depends(get_store),
    db_path: str = Depends(get_db_path),
):
    svg = None
    if request.type == "save":
        if not request.logo_url:
            raise HTTPException(status_code=400, detail="Missing logoUrl")
        logo_url = request.logo_url
    else:
        svg = generate_svg_logo(request.store_name or store["store_name"], request.primary_color, request.style)
        logo_url = svg_to_data_uri(svg)

    await update_store(db_path, store["id"], logo_url=logo_url)
    progress = await record_confirmation(db_path, session, "generate_logo")
    return {
        "success": True,
        "logoUrl": logo_url,
        "svg": svg,
        "progress": progress.to_dict(),
    }


@router.post("/api/sessions/{session_id}/landing-page")
async def save_landing_page(
    request: LandingPageRequest,
    session: dict = Depends(get_owned_session),
    store: dict = Depends(get_store),
    client: ZidClient = Depends(get_catalog_client),
    app_settings: Settings = Depends(get_settings),
    db_path: str = Depends(get_db_path),
):
    layout = request.layout
    await update_store(
        db_path,
        store["id"],
        landing_page_data=layout.model_dump(by_alias=True, exclude_none=True),
    )

    applied = None
    if request.apply:
        result = await client.replace_script(
            SCRIPT_NAME,
            build_landing_page_script(layout),
            description="Generated landing page section",
        )
        if not result.success:
            logger.warning("Landing page script was not installed: %s", result.error)
        applied = {"remoteConfirmed": result.success, "scriptId": result.data, "error": result.error}

    progress = await record_confirmation(db_path, session, "generate_landing_page")
    storefront_url = (
        app_settings.ZID_STOREFRONT_URL.format(store_id=store["store_id"]) if store["store_id"] else None
    )
    return {
        "accepted": True,
        "applied": applied,
        "pendingRemote": bool(applied) and not applied["remoteConfirmed"],
        "storeBuilderUrl": store_builder_url(app_settings.ZID_STORE_BUILDER_URL, store["store_id"]),
        "storeUrl": storefront_url,
        "progress": progress.to_dict(),
    }
