from collections.abc import AsyncIterator

import anthropic
from fastapi import Depends, Header, HTTPException

from storewizard.config import Settings, settings
from storewizard.models.database import get_merchant_by_token, get_setup_session, get_store_for_merchant
from storewizard.services.assistant import AssistantGateway
from storewizard.services.oauth import ZidOAuthClient
from storewizard.services.zid import StoreCredentials, ZidClient


def get_db_path() -> str:
    """Provide the database path to endpoint functions."""
    return settings.SQLITE_DB_PATH


def get_settings() -> Settings:
    return settings


async def get_current_merchant(
    authorization: str | None = Header(default=None),
    db_path: str = Depends(get_db_path),
) -> dict:
    """Resolve the merchant from an ``Authorization: Bearer <api token>`` header."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    merchant = await get_merchant_by_token(db_path, token.strip())
    if merchant is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return merchant


async def get_optional_store(
    merchant: dict = Depends(get_current_merchant),
    db_path: str = Depends(get_db_path),
) -> dict | None:
    return await get_store_for_merchant(db_path, merchant["id"])


async def get_store(store: dict | None = Depends(get_optional_store)) -> dict:
    if store is None:
        raise HTTPException(status_code=400, detail="No store connected")
    return store


async def get_owned_session(
    session_id: str,
    store: dict = Depends(get_store),
    db_path: str = Depends(get_db_path),
) -> dict:
    """A setup session that belongs to the caller's store; 404 otherwise."""
    session = await get_setup_session(db_path, session_id)
    if session is None or session["store_id"] != store["id"]:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _client_for(store: dict, app_settings: Settings) -> ZidClient:
    return ZidClient(
        StoreCredentials(
            access_token=store["access_token"],
            auth_token=store.get("auth_token"),
            store_id=store.get("store_id"),
        ),
        app_settings,
    )


async def get_catalog_client(
    store: dict = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
) -> AsyncIterator[ZidClient]:
    client = _client_for(store, app_settings)
    try:
        yield client
    finally:
        await client.close()


async def get_optional_catalog_client(
    store: dict | None = Depends(get_optional_store),
    app_settings: Settings = Depends(get_settings),
) -> AsyncIterator[ZidClient | None]:
    """Like get_catalog_client, but yields None while no store is connected."""
    if store is None:
        yield None
        return
    client = _client_for(store, app_settings)
    try:
        yield client
    finally:
        await client.close()


async def get_oauth_client(app_settings: Settings = Depends(get_settings)) -> AsyncIterator[ZidOAuthClient]:
    client = ZidOAuthClient(app_settings)
    try:
        yield client
    finally:
        await client.close()


async def get_assistant_gateway(app_settings: Settings = Depends(get_settings)) -> AsyncIterator[AssistantGateway]:
    client = anthropic.AsyncAnthropic(api_key=app_settings.ANTHROPIC_API_KEY)
    try:
        yield AssistantGateway(
            client,
            model=app_settings.CLAUDE_MODEL,
            max_tokens=app_settings.CLAUDE_MAX_TOKENS,
            history_window=app_settings.HISTORY_WINDOW,
        )
    finally:
        await client.close()
