import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from storewizard.config import Settings
from storewizard.dependencies import get_current_merchant, get_db_path, get_oauth_client, get_settings, get_store
from storewizard.models.database import consume_oauth_state, create_oauth_state, update_store, upsert_store
from storewizard.services.oauth import OAuthError, ZidOAuthClient, ZidTokens, authorize_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth/zid", tags=["auth"])


def _app_redirect(app_settings: Settings, path: str, **params: str) -> RedirectResponse:
    query = f"?{urlencode(params)}" if params else ""
    return RedirectResponse(f"{app_settings.APP_URL.rstrip('/')}{path}{query}", status_code=302)


@router.get("/authorize")
async def start_authorization(
    merchant: dict = Depends(get_current_merchant),
    app_settings: Settings = Depends(get_settings),
    db_path: str = Depends(get_db_path),
):
    if not app_settings.ZID_CLIENT_ID or not app_settings.ZID_REDIRECT_URI:
        raise HTTPException(status_code=503, detail="Zid OAuth is not configured")

    state = await create_oauth_state(db_path, merchant["id"])
    return {"authorizeUrl": authorize_url(app_settings, state)}


@router.get("/callback")
async def oauth_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    oauth: ZidOAuthClient = Depends(get_oauth_client),
    app_settings: Settings = Depends(get_settings),
    db_path: str = Depends(get_db_path),
):
    """Platform redirect target; the merchant is identified by the stored state."""
    if error or not code:
        return _app_redirect(app_settings, "/connect", error=error or "no_code")

    merchant_id = await consume_oauth_state(db_path, state) if state else None
    if merchant_id is None:
        return _app_redirect(app_settings, "/connect", error="invalid_state")

    try:
        tokens = await oauth.exchange_code(code)
    except OAuthError as exc:
        logger.error("Zid OAuth failed for merchant %s: %s", merchant_id, exc)
        return _app_redirect(app_settings, "/connect", error="oauth_failed")

    identity = await oauth.fetch_store_identity(tokens)
    await upsert_store(
        db_path,
        merchant_id,
        access_token=tokens.access_token,
        store_name=identity.store_name,
        auth_token=tokens.auth_token,
        refresh_token=tokens.refresh_token,
        store_id=identity.store_id,
    )
    logger.info("Connected Zid store %s for merchant %s", identity.store_id, merchant_id)
    return _app_redirect(app_settings, "/setup")


@router.post("/repair-store-id")
async def repair_store_id(
    store: dict = Depends(get_store),
    oauth: ZidOAuthClient = Depends(get_oauth_client),
    db_path: str = Depends(get_db_path),
):
    """Recover a connected store's missing platform id without reconnecting."""
    if store["store_id"]:
        return {"storeId": store["store_id"], "storeName": store["store_name"], "repaired": False}

    tokens = ZidTokens(
        access_token=store["access_token"],
        auth_token=store["auth_token"],
        refresh_token=store["refresh_token"],
    )
    identity = await oauth.fetch_store_identity(tokens, default_name=store["store_name"])
    if identity.store_id is None:
        raise HTTPException(status_code=502, detail="Could not find the store id on Zid; reconnect the store")

    await update_store(db_path, store["id"], store_id=identity.store_id, store_name=identity.store_name)
    logger.info("Repaired store id %s for store %s", identity.store_id, store["id"])
    return {"storeId": identity.store_id, "storeName": identity.store_name, "repaired": True}
