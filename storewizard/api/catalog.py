import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from storewizard.api.sessions import record_confirmation
from storewizard.config import Settings
from storewizard.dependencies import (
    get_catalog_client,
    get_current_merchant,
    get_db_path,
    get_owned_session,
    get_settings,
)
from storewizard.models.database import list_categories, list_products, save_categories
from storewizard.models.schemas import BulkConfirmRequest, CategoryConfirmRequest, ProductConfirmRequest
from storewizard.services.localization import translate
from storewizard.services.normalization import Locale
from storewizard.services.products import confirm_bulk, confirm_product, select_items
from storewizard.services.reconcile import CategoryReview, execute_plan
from storewizard.services.zid import CategoryDraft, ZidClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


# --- Categories ---

@router.get("/api/store/categories/remote")
async def get_remote_categories(
    locale: Locale = Query(default="ar"),
    client: ZidClient = Depends(get_catalog_client),
):
    result = await client.list_categories(locale)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Could not load store categories")
    return {"categories": [c.to_dict() for c in result.data]}


@router.post("/api/sessions/{session_id}/categories/confirm")
async def confirm_categories(
    request: CategoryConfirmRequest,
    session: dict = Depends(get_owned_session),
    client: ZidClient = Depends(get_catalog_client),
    db_path: str = Depends(get_db_path),
):
    live = await client.list_categories(request.language)
    if not live.success and request.existing:
        raise HTTPException(status_code=502, detail=live.error or "Could not load store categories")

    suggested = [
        CategoryDraft(name_ar=c.name_ar.strip() or c.name_en.strip(), name_en=c.name_en.strip() or c.name_ar.strip())
        for c in request.categories
        if c.name_ar.strip() or c.name_en.strip()
    ]
    review = CategoryReview(existing=live.data, suggested=suggested)
    known = {item.original.id for item in review.existing}
    for change in request.existing:
        if change.id not in known:
            logger.warning("Ignoring change for unknown category %s", change.id)
            continue
        review.set_existing_names(change.id, change.name_ar, change.name_en)
        review.mark_removed(change.id, change.remove)

    if not review.can_confirm:
        raise HTTPException(status_code=400, detail="No categories to confirm")

    report = await execute_plan(client, review)
    await save_categories(
        db_path,
        session["id"],
        [
            {"name_ar": o.name_ar, "name_en": o.name_en, "platform_id": o.category_id}
            for o in report.created
            if o.success
        ],
    )
    progress = await record_confirmation(db_path, session, "suggest_categories")

    summary = report.summary
    return {
        "confirmed": True,
        "summary": summary.to_dict(),
        "summaryText": translate("categories_summary", request.language, **summary.to_dict()),
        "message": translate("categories_followup", request.language, count=summary.kept + summary.added),
        "outcomes": [o.to_dict() for o in report.outcomes],
        "pendingRemote": bool(report.failures),
        "progress": progress.to_dict(),
    }


@router.delete("/api/store/categories/remote/{category_id}")
async def delete_remote_category(
    category_id: str,
    merchant: dict = Depends(get_current_merchant),
    client: ZidClient = Depends(get_catalog_client),
):
    result = await client.delete_category(category_id)
    if not result.success:
        raise HTTPException(
            status_code=502,
            detail=translate("delete_failed", merchant["preferred_language"]),
        )
    return {"success": True, "categoryId": category_id}


@router.get("/api/sessions/{session_id}/categories")
async def get_session_categories(
    session: dict = Depends(get_owned_session),
    db_path: str = Depends(get_db_path),
):
    return await list_categories(db_path, session["id"])


# --- Products ---

@router.get("/api/store/products/remote")
async def get_remote_products(
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None, ge=1, le=100, alias="perPage"),
    locale: Locale = Query(default="ar"),
    client: ZidClient = Depends(get_catalog_client),
):
    result = await client.list_products(page=page, per_page=per_page, locale=locale)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Could not load store products")
    return {
        "products": [p.to_dict() for p in result.data],
        "total": result.total,
        "page": page,
    }


@router.post("/api/sessions/{session_id}/products")
async def confirm_single_product(
    request: ProductConfirmRequest,
    merchant: dict = Depends(get_current_merchant),
    session: dict = Depends(get_owned_session),
    client: ZidClient = Depends(get_catalog_client),
    db_path: str = Depends(get_db_path),
):
    if not (request.product.name_ar or request.product.name_en):
        raise HTTPException(status_code=400, detail="Product name is required")

    confirmation = await confirm_product(db_path, client, session["id"], request.product, request.category_id)
    progress = await record_confirmation(db_path, session, "preview_product")

    language = merchant["preferred_language"]
    return {
        **confirmation.to_dict(),
        "message": translate("product_added" if confirmation.remote_confirmed else "pending_remote", language),
        "progress": progress.to_dict(),
    }


@router.post("/api/sessions/{session_id}/products/bulk")
async def confirm_bulk_products(
    request: BulkConfirmRequest,
    session: dict = Depends(get_owned_session),
    client: ZidClient = Depends(get_catalog_client),
    app_settings: Settings = Depends(get_settings),
    db_path: str = Depends(get_db_path),
):
    if not select_items(request.products, request.selected):
        raise HTTPException(status_code=400, detail="No products selected")

    report = await confirm_bulk(
        db_path,
        client,
        session["id"],
        request.products,
        request.selected,
        concurrency=app_settings.BULK_CONCURRENCY,
    )
    progress = await record_confirmation(db_path, session, "bulk_products")

    return {
        **report.to_dict(),
        "message": translate("products_added", request.language, count=report.done_count),
        "progress": progress.to_dict(),
    }


@router.delete("/api/store/products/remote/{product_id}")
async def delete_remote_product(
    product_id: str,
    merchant: dict = Depends(get_current_merchant),
    client: ZidClient = Depends(get_catalog_client),
):
    result = await client.delete_product(product_id)
    if not result.success:
        raise HTTPException(
            status_code=502,
            detail=translate("delete_failed", merchant["preferred_language"]),
        )
    return {"success": True, "productId": product_id}


@router.get("/api/sessions/{session_id}/products")
async def get_session_products(
    session: dict = Depends(get_owned_session),
    db_path: str = Depends(get_db_path),
):
    return await list_products(db_path, session["id"])
