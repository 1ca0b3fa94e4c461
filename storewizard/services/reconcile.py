"""Category reconciliation for a confirmed ``suggest_categories`` action.

The merchant reviews two lists before confirming: the categories that
already exist on the store (each kept, renamed or marked for removal) and
the categories the assistant suggested (each editable or removable). A
``CategoryReview`` is the working copy of that review; nothing in it talks
to the platform. ``execute_plan`` turns the review into remote mutations.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Protocol

from storewizard.services.normalization import BilingualName, Locale, RemoteCategory
from storewizard.services.zid import CategoryDraft, RemoteResult

logger = logging.getLogger(__name__)


class Disposition(str, Enum):
    KEEP = "keep"
    EDIT = "edit"
    REMOVE = "remove"


class CatalogWriter(Protocol):
    async def update_category(self, category_id: str, name_ar: str, name_en: str) -> RemoteResult: ...

    async def delete_category(self, category_id: str) -> RemoteResult: ...

    async def create_categories(self, categories: list[CategoryDraft]) -> list[RemoteResult]: ...


@dataclass
class ManagedCategoryEdit:
    original: RemoteCategory
    name: BilingualName
    removed: bool = False

    @classmethod
    def wrap(cls, category: RemoteCategory) -> "ManagedCategoryEdit":
        return cls(original=category, name=category.name)

    @property
    def disposition(self) -> Disposition:
        # removal takes precedence so only one disposition is ever active
        if self.removed:
            return Disposition.REMOVE
        if self.name != self.original.name:
            return Disposition.EDIT
        return Disposition.KEEP

    def rename(self, locale: Locale, value: str) -> None:
        value = value.strip()
        if not value:
            return
        if locale == "ar":
            self.name = BilingualName(ar=value, en=self.name.en)
        else:
            self.name = BilingualName(ar=self.name.ar, en=value)


@dataclass
class ReconciliationPlan:
    renames: list[ManagedCategoryEdit] = field(default_factory=list)
    deletes: list[ManagedCategoryEdit] = field(default_factory=list)
    creates: list[CategoryDraft] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.renames or self.deletes or self.creates)


@dataclass
class ReconciliationSummary:
    kept: int
    added: int
    removed: int

    def to_dict(self) -> dict:
        return {"kept": self.kept, "added": self.added, "removed": self.removed}


@dataclass
class ItemOutcome:
    operation: str
    name_ar: str
    name_en: str
    category_id: str | None
    success: bool
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "categoryId": self.category_id,
            "nameAr": self.name_ar,
            "nameEn": self.name_en,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class ReconciliationReport:
    summary: ReconciliationSummary
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def created(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.operation == "create"]

    @property
    def failures(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.success]


class CategoryReview:
    """Working copy of one category review card."""

    def __init__(self, existing: list[RemoteCategory], suggested: list[CategoryDraft]):
        self.existing = [ManagedCategoryEdit.wrap(c) for c in existing]
        self.suggested = [CategoryDraft(name_ar=s.name_ar, name_en=s.name_en) for s in suggested]

    def _existing(self, category_id: str) -> ManagedCategoryEdit:
        for item in self.existing:
            if item.original.id == category_id:
                return item
        raise KeyError(category_id)

    # -- existing categories --

    def rename_existing(self, category_id: str, locale: Locale, value: str) -> None:
        self._existing(category_id).rename(locale, value)

    def set_existing_names(self, category_id: str, name_ar: str | None, name_en: str | None) -> None:
        item = self._existing(category_id)
        if name_ar is not None:
            item.rename("ar", name_ar)
        if name_en is not None:
            item.rename("en", name_en)

    def toggle_remove(self, category_id: str) -> Disposition:
        item = self._existing(category_id)
        item.removed = not item.removed
        return item.disposition

    def mark_removed(self, category_id: str, removed: bool = True) -> None:
        self._existing(category_id).removed = removed

    # -- suggested categories --

    def rename_suggested(self, index: int, locale: Locale, value: str) -> None:
        value = value.strip()
        if not value:
            return
        draft = self.suggested[index]
        if locale == "ar":
            draft.name_ar = value
        else:
            draft.name_en = value

    def remove_suggested(self, index: int) -> None:
        del self.suggested[index]

    def add_suggested(self, name: str, name_en: str | None = None) -> None:
        name = name.strip()
        if not name:
            return
        self.suggested.append(CategoryDraft(name_ar=name, name_en=(name_en or name).strip()))

    # -- confirmation --

    @property
    def total(self) -> int:
        return len(self.existing) + len(self.suggested)

    @property
    def can_confirm(self) -> bool:
        return self.total > 0

    def plan(self) -> ReconciliationPlan:
        return ReconciliationPlan(
            renames=[i for i in self.existing if i.disposition is Disposition.EDIT],
            deletes=[i for i in self.existing if i.disposition is Disposition.REMOVE],
            creates=list(self.suggested),
        )

    def summary(self) -> ReconciliationSummary:
        removed = sum(1 for i in self.existing if i.disposition is Disposition.REMOVE)
        return ReconciliationSummary(
            kept=len(self.existing) - removed,
            added=len(self.suggested),
            removed=removed,
        )


async def _attempt(label: str, call: Awaitable[Any]) -> Any:
    try:
        return await call
    except Exception as exc:
        logger.exception("Category %s raised unexpectedly", label)
        return RemoteResult(success=False, error=str(exc) or type(exc).__name__)


async def execute_plan(writer: CatalogWriter, review: CategoryReview) -> ReconciliationReport:
    """Apply a review to the store: renames, then deletes, then one batch create.

    Every step and every item is attempted independently; nothing is rolled
    back. The summary reflects the review's dispositions, not the outcome of
    the remote calls.
    """
    plan = review.plan()
    report = ReconciliationReport(summary=review.summary())

    for item in plan.renames:
        result = await _attempt(
            f"rename {item.original.id}",
            writer.update_category(item.original.id, item.name.ar, item.name.en),
        )
        report.outcomes.append(
            ItemOutcome("rename", item.name.ar, item.name.en, item.original.id, result.success, result.error)
        )

    for item in plan.deletes:
        result = await _attempt(f"delete {item.original.id}", writer.delete_category(item.original.id))
        if not result.success:
            logger.warning("Category %s was not deleted: %s", item.original.id, result.error)
        report.outcomes.append(
            ItemOutcome("delete", item.name.ar, item.name.en, item.original.id, result.success, result.error)
        )

    if plan.creates:
        results = await _attempt("batch create", writer.create_categories(plan.creates))
        if isinstance(results, RemoteResult):
            results = [results] * len(plan.creates)
        for draft, result in zip(plan.creates, results):
            report.outcomes.append(
                ItemOutcome("create", draft.name_ar, draft.name_en, result.data, result.success, result.error)
            )

    if report.failures:
        logger.warning(
            "Category reconciliation finished with %d failed item(s) of %d",
            len(report.failures),
            len(report.outcomes),
        )
    return report
