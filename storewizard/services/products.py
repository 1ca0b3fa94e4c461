"""Single and bulk product confirmation.

A confirmed product is always recorded locally ("accepted"); whether the
store actually received it is tracked separately ("remote_confirmed"), so
the merchant is never blocked on a transient platform error but can still
be shown what has not reached the store yet.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from storewizard.models import database
from storewizard.models.schemas import BulkProductItem, PreviewProductData
from storewizard.services.work_queue import ItemResult, WorkQueue
from storewizard.services.zid import ProductDraft, RemoteResult

logger = logging.getLogger(__name__)


class ProductWriter(Protocol):
    async def create_product(self, draft: ProductDraft, category_id: str | None = None) -> RemoteResult: ...


@dataclass
class ProductConfirmation:
    record: dict
    remote: RemoteResult

    @property
    def remote_confirmed(self) -> bool:
        return self.remote.success

    def to_dict(self) -> dict:
        return {
            "accepted": True,
            "remoteConfirmed": self.remote_confirmed,
            "pendingRemote": not self.remote_confirmed,
            "product": self.record,
            "error": self.remote.error,
        }


@dataclass
class BulkReport:
    results: list[ItemResult] = field(default_factory=list)
    progress: int = 0

    @property
    def done_count(self) -> int:
        return sum(1 for r in self.results if r.done)

    def to_dict(self) -> dict:
        return {
            # best effort: the batch counts as confirmed even with failed items
            "confirmed": True,
            "progress": self.progress,
            "selected": len(self.results),
            "done": self.done_count,
            "pendingRemote": self.done_count < len(self.results),
            "items": [
                {
                    "index": r.item[0],
                    "nameAr": r.item[1].name_ar,
                    "nameEn": r.item[1].name_en,
                    "done": r.done,
                    "platformId": r.value.data if r.done else None,
                    "error": r.error,
                }
                for r in self.results
            ],
        }


async def _push(writer: ProductWriter, draft: ProductDraft, category_id: str | None) -> RemoteResult:
    try:
        return await writer.create_product(draft, category_id)
    except Exception as exc:
        logger.exception("Product push raised for %r", draft.name_en)
        return RemoteResult(success=False, error=str(exc) or type(exc).__name__)


async def confirm_product(
    db_path: str,
    writer: ProductWriter,
    session_id: str,
    product: PreviewProductData,
    category_id: str | None = None,
) -> ProductConfirmation:
    """Push one product (one network call) and record it locally."""
    draft = ProductDraft(
        name_ar=product.name_ar,
        name_en=product.name_en,
        price=product.price,
        description_ar=product.description_ar,
        description_en=product.description_en,
        variants=[v.model_dump() for v in product.variants],
    )
    remote = await _push(writer, draft, category_id)
    if not remote.success:
        logger.warning("Product %r saved locally but not on the store: %s", draft.name_en, remote.error)

    record = await database.save_product(
        db_path,
        session_id,
        name_ar=draft.name_ar,
        name_en=draft.name_en,
        price=draft.price,
        description_ar=draft.description_ar,
        description_en=draft.description_en,
        variants=draft.variants,
        platform_id=remote.data if remote.success else None,
    )
    return ProductConfirmation(record=record, remote=remote)


def select_items(items: list[BulkProductItem], selected: list[int] | None) -> list[tuple[int, BulkProductItem]]:
    """Merchant-selected subset, in list order."""
    if selected is None:
        return list(enumerate(items))
    wanted = {i for i in selected if 0 <= i < len(items)}
    return [(i, item) for i, item in enumerate(items) if i in wanted]


async def confirm_bulk(
    db_path: str,
    writer: ProductWriter,
    session_id: str,
    items: list[BulkProductItem],
    selected: list[int] | None = None,
    concurrency: int = 1,
) -> BulkReport:
    """Push the selected products one by one; failed items are skipped, not retried."""
    chosen = select_items(items, selected)

    async def _on_progress(result: ItemResult, completed: int, total: int) -> None:
        logger.info(
            "Bulk push %s: item %d %s (%d/%d)",
            session_id,
            result.item[0],
            "done" if result.done else "failed",
            completed,
            total,
        )

    async def _worker(entry: tuple[int, BulkProductItem]) -> RemoteResult:
        _, item = entry
        draft = ProductDraft(
            name_ar=item.name_ar,
            name_en=item.name_en,
            price=item.price,
            description_ar=item.description_ar,
            description_en=item.description_en,
        )
        remote = await _push(writer, draft, None)
        await database.save_product(
            db_path,
            session_id,
            name_ar=draft.name_ar,
            name_en=draft.name_en,
            price=draft.price,
            description_ar=draft.description_ar,
            description_en=draft.description_en,
            platform_id=remote.data if remote.success else None,
        )
        return remote

    queue: WorkQueue = WorkQueue(concurrency=concurrency, on_progress=_on_progress)
    results = await queue.run(chosen, _worker)
    return BulkReport(results=results, progress=queue.percentage)
