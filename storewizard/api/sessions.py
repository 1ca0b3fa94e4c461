from fastapi import APIRouter, Depends

from storewizard.dependencies import get_current_merchant, get_db_path, get_owned_session, get_store
from storewizard.models.database import (
    advance_session_progress,
    get_messages,
    get_or_create_setup_session,
)
from storewizard.models.schemas import SetupSessionInfo
from storewizard.services.localization import translate
from storewizard.services.progress import SetupProgress, advance, from_record

router = APIRouter(tags=["sessions"])


async def record_confirmation(db_path: str, session: dict, action_type: str) -> SetupProgress:
    """Advance and persist the session's progress after a confirmed action.

    Progress is recomputed from the stored row, not from ``session``: a long
    bulk push must not overwrite confirmations that landed while it ran.
    """
    computed: list[SetupProgress] = []

    def _reduce(current: dict, confirmed_products: int) -> tuple[str, int, list[str]]:
        progress = advance(from_record(current), action_type, confirmed_products)
        computed.append(progress)
        return progress.step.value, progress.percentage, sorted(progress.confirmed)

    if await advance_session_progress(db_path, session["id"], _reduce) is None:
        # session vanished mid-request; report what it would have reached
        return advance(from_record(session), action_type)
    return computed[0]


@router.post("/api/setup", response_model=SetupSessionInfo)
async def start_setup(
    merchant: dict = Depends(get_current_merchant),
    store: dict = Depends(get_store),
    db_path: str = Depends(get_db_path),
):
    session = await get_or_create_setup_session(db_path, store["id"])
    return SetupSessionInfo(
        session_id=session["id"],
        store_id=session["store_id"],
        status=session["status"],
        current_step=session["current_step"],
        completion_percentage=session["completion_percentage"],
        created_at=session["created_at"],
        updated_at=session["updated_at"],
        welcome_message=translate("welcome", merchant["preferred_language"]),
    )


@router.get("/api/sessions/{session_id}")
async def get_session_detail(
    session: dict = Depends(get_owned_session),
    store: dict = Depends(get_store),
    db_path: str = Depends(get_db_path),
):
    messages = await get_messages(db_path, session["id"])
    return {
        "sessionId": session["id"],
        "status": session["status"],
        "createdAt": session["created_at"],
        "progress": from_record(session).to_dict(),
        "store": {
            "storeName": store["store_name"],
            "storeId": store["store_id"],
            "themeId": store["theme_id"],
            "logoUrl": store["logo_url"],
        },
        "messages": messages,
    }
