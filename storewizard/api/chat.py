import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from storewizard.dependencies import (
    get_assistant_gateway,
    get_db_path,
    get_optional_catalog_client,
    get_optional_store,
)
from storewizard.models.database import get_setup_session, save_message
from storewizard.models.schemas import ChatRequest
from storewizard.services.assistant import AssistantGateway, AssistantUnavailableError, StoreContext
from storewizard.services.localization import detect_language, translate
from storewizard.services.zid import ZidClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


async def load_store_context(store: dict | None, client: ZidClient | None) -> StoreContext:
    """Live catalog snapshot for the prompt; an unreachable store yields an empty one."""
    if store is None or client is None:
        return StoreContext()
    categories, products = await asyncio.gather(client.list_categories(), client.list_products(page=1))
    if not categories.success or not products.success:
        logger.warning(
            "Store snapshot incomplete: categories=%s products=%s",
            categories.error,
            products.error,
        )
    return StoreContext(
        store_name=store["store_name"],
        store_id=store["store_id"],
        categories=categories.data or [],
        products=products.data or [],
    )


@router.post("")
async def chat(
    request: ChatRequest,
    store: dict | None = Depends(get_optional_store),
    client: ZidClient | None = Depends(get_optional_catalog_client),
    gateway: AssistantGateway = Depends(get_assistant_gateway),
    db_path: str = Depends(get_db_path),
):
    if not request.message.strip() or not request.session_id:
        raise HTTPException(status_code=400, detail="Missing required fields")

    session = await get_setup_session(db_path, request.session_id)
    if session is None or store is None or session["store_id"] != store["id"]:
        raise HTTPException(status_code=404, detail="Session not found")

    context = await load_store_context(store, client)
    await save_message(db_path, session["id"], "user", request.message)

    try:
        turn = await gateway.respond(request.message, request.history, context)
    except AssistantUnavailableError:
        apology = translate("assistant_error", detect_language(request.message))
        await save_message(
            db_path,
            session["id"],
            "assistant",
            apology,
            {"action": {"type": "none", "data": {}}, "error": True},
        )
        return JSONResponse(status_code=502, content={"message": apology, "action": {"type": "none", "data": {}}})

    action = turn.reply.action.model_dump(by_alias=True)
    await save_message(
        db_path,
        session["id"],
        "assistant",
        turn.reply.message,
        {"action": action, "parsed": turn.parsed, "context": turn.context},
    )
    return {"message": turn.reply.message, "action": action, "context": turn.context}
