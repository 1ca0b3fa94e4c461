import pytest

from storewizard.api.sessions import record_confirmation
from storewizard.models import database


async def _seed_session(db_path: str) -> dict:
    merchant = await database.create_merchant(db_path, "owner@example.com")
    store_row_id = await database.upsert_store(db_path, merchant["id"], "token", "My Store")
    return await database.get_or_create_setup_session(db_path, store_row_id)


@pytest.mark.asyncio
async def test_slow_confirmation_does_not_roll_back_newer_progress(db_path):
    session = await _seed_session(db_path)
    await record_confirmation(db_path, session, "suggest_categories")
    # snapshot taken when a long bulk push starts
    bulk_snapshot = await database.get_setup_session(db_path, session["id"])

    await record_confirmation(db_path, await database.get_setup_session(db_path, session["id"]), "suggest_themes")
    progress = await record_confirmation(db_path, bulk_snapshot, "bulk_products")

    stored = await database.get_setup_session(db_path, session["id"])
    assert stored["current_step"] == "marketing"
    assert stored["completion_percentage"] == 75
    assert stored["confirmed_actions"] == ["bulk_products", "suggest_categories", "suggest_themes"]
    assert progress.to_dict() == {
        "currentStep": "marketing",
        "completionPercentage": 75,
        "confirmedActions": ["bulk_products", "suggest_categories", "suggest_themes"],
    }


@pytest.mark.asyncio
async def test_stale_snapshot_keeps_finish_reachable(db_path):
    session = await _seed_session(db_path)
    stale = dict(session)

    await record_confirmation(db_path, session, "generate_logo")
    progress = await record_confirmation(db_path, stale, "generate_landing_page")

    assert progress.percentage == 100
    stored = await database.get_setup_session(db_path, session["id"])
    assert stored["completion_percentage"] == 100


@pytest.mark.asyncio
async def test_product_threshold_uses_stored_products(db_path):
    session = await _seed_session(db_path)
    await record_confirmation(db_path, session, "suggest_categories")
    for name in ("a", "b", "c"):
        await database.save_product(db_path, session["id"], name, name, 10)

    progress = await record_confirmation(db_path, session, "preview_product")

    assert progress.step.value == "marketing"
    assert progress.percentage == 75
