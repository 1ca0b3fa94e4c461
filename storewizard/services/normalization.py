"""Normalization of Zid catalog payloads.

Zid is inconsistent about response shapes: list endpoints wrap their items
under different keys depending on API version, and names come back either
as a flat string or as a locale-keyed object. Everything here turns those
raw shapes into one stable representation so call sites never probe
properties themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Union

Locale = Literal["ar", "en"]

CATEGORY_WRAPPER_KEYS = ("categories", "data.categories", "data")
PRODUCT_WRAPPER_KEYS = ("products", "data.products", "data")


# -- Tagged name variants --

@dataclass(frozen=True)
class FlatName:
    value: str
    kind: Literal["flat"] = "flat"


@dataclass(frozen=True)
class LocalizedName:
    ar: str | None = None
    en: str | None = None
    kind: Literal["localized"] = "localized"


RawName = Union[FlatName, LocalizedName]


@dataclass(frozen=True)
class BilingualName:
    ar: str
    en: str

    def label(self, locale: Locale) -> str:
        return self.ar if locale == "ar" else self.en


# -- Stable catalog shapes --

@dataclass
class RemoteCategory:
    id: str
    name: BilingualName
    slug: str | None = None
    products_count: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nameAr": self.name.ar,
            "nameEn": self.name.en,
            "slug": self.slug,
            "productsCount": self.products_count,
        }


@dataclass
class RemoteProduct:
    id: str
    name: BilingualName
    price: float = 0.0
    sku: str | None = None
    status: str = "active"
    category_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nameAr": self.name.ar,
            "nameEn": self.name.en,
            "price": self.price,
            "sku": self.sku,
            "status": self.status,
            "categoryIds": self.category_ids,
        }


# -- Parsing --

def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_name(raw: Any) -> RawName:
    """Tag a raw name value as flat or localized. Never raises."""
    if isinstance(raw, dict):
        return LocalizedName(ar=_text(raw.get("ar")), en=_text(raw.get("en")))
    return FlatName(value=_text(raw) or "")


def parse_item_name(item: dict) -> RawName:
    """Resolve the name of a raw catalog item.

    Products sometimes carry flat ``name_ar``/``name_en`` fields instead of
    a locale-keyed ``name`` object; those are folded into a LocalizedName.
    """
    name = item.get("name")
    if isinstance(name, dict):
        return parse_name(name)
    if item.get("name_ar") is not None or item.get("name_en") is not None:
        return LocalizedName(
            ar=_text(item.get("name_ar")) or _text(name),
            en=_text(item.get("name_en")) or _text(name),
        )
    return parse_name(name)


def canonicalize(name: RawName, locale: Locale = "ar") -> BilingualName:
    """Collapse a tagged name into both locales.

    A locale missing from a localized name falls back to the other one;
    the requested ``locale`` wins when both keys are absent from one side.
    An entirely empty name yields empty strings for both locales.
    """
    if isinstance(name, FlatName):
        return BilingualName(ar=name.value, en=name.value)

    preferred = name.ar if locale == "ar" else name.en
    other = name.en if locale == "ar" else name.ar
    fallback = preferred or other or ""
    return BilingualName(ar=name.ar or fallback, en=name.en or fallback)


def unwrap_list(payload: Any, keys: tuple[str, ...]) -> list[dict]:
    """Return the first list found under ``keys`` (dotted paths allowed)."""
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if not isinstance(payload, dict):
        return []

    for key in keys:
        node: Any = payload
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                node = None
                break
            node = node[part]
        if isinstance(node, list):
            return [item for item in node if isinstance(item, dict)]
    return []


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def normalize_category(raw: dict, locale: Locale = "ar") -> RemoteCategory:
    slug = raw.get("slug")
    return RemoteCategory(
        id=str(raw.get("id") or ""),
        name=canonicalize(parse_item_name(raw), locale),
        slug=str(slug) if slug else None,
        products_count=_as_int(
            raw.get("products_count") if raw.get("products_count") is not None else raw.get("productsCount")
        ),
    )


def normalize_product(raw: dict, locale: Locale = "ar") -> RemoteProduct:
    sku = raw.get("sku")
    category_ids = raw.get("category_ids")
    if not isinstance(category_ids, list):
        categories = raw.get("categories")
        if isinstance(categories, list):
            category_ids = [c.get("id") for c in categories if isinstance(c, dict)]
        else:
            category_ids = []

    return RemoteProduct(
        id=str(raw.get("id") or raw.get("uuid") or ""),
        name=canonicalize(parse_item_name(raw), locale),
        price=_as_float(raw.get("price")),
        sku=str(sku) if sku else None,
        status="draft" if raw.get("is_draft") or raw.get("status") == "draft" else "active",
        category_ids=[str(cid) for cid in category_ids if cid is not None],
    )


def normalize_categories(payload: Any, locale: Locale = "ar") -> list[RemoteCategory]:
    return [normalize_category(raw, locale) for raw in unwrap_list(payload, CATEGORY_WRAPPER_KEYS)]


def normalize_products(payload: Any, locale: Locale = "ar") -> list[RemoteProduct]:
    return [normalize_product(raw, locale) for raw in unwrap_list(payload, PRODUCT_WRAPPER_KEYS)]


def extract_total(payload: Any, fallback: int) -> int:
    if isinstance(payload, dict):
        total = payload.get("total")
        if total is None and isinstance(payload.get("meta"), dict):
            total = payload["meta"].get("total")
        if total is not None:
            return _as_int(total)
    return fallback
