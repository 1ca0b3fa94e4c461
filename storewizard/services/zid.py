import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx

from storewizard.config import Settings
from storewizard.services.normalization import (
    Locale,
    extract_total,
    normalize_categories,
    normalize_products,
)

logger = logging.getLogger(__name__)

BODY_LOG_LIMIT = 300


@dataclass
class StoreCredentials:
    access_token: str
    auth_token: str | None = None
    store_id: str | None = None


@dataclass
class RemoteResult:
    """Outcome of one call to the platform. Failures are values, not exceptions."""

    success: bool
    status: int | None = None
    body: str = ""
    data: Any = None
    error: str | None = None
    total: int | None = None

    def json(self) -> Any:
        try:
            return json.loads(self.body) if self.body else None
        except ValueError:
            return None

    def to_dict(self) -> dict:
        return {"success": self.success, "status": self.status, "error": self.error}


@dataclass
class CategoryDraft:
    name_ar: str
    name_en: str


@dataclass
class ProductDraft:
    name_ar: str
    name_en: str
    price: float = 0.0
    description_ar: str | None = None
    description_en: str | None = None
    variants: list[dict] = field(default_factory=list)


class ZidClient:
    def __init__(
        self,
        credentials: StoreCredentials,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.settings = settings
        self.base_url = settings.ZID_API_BASE_URL.rstrip("/")
        self._client = httpx.AsyncClient(timeout=settings.REMOTE_TIMEOUT, transport=transport)

        self.common_headers = {
            "X-Manager-Token": credentials.access_token,
            "Authorization": f"Bearer {credentials.auth_token or ''}",
            "Accept-Language": "ar",
        }
        self.manager_headers = dict(self.common_headers)
        if credentials.store_id:
            self.manager_headers["Store-Id"] = credentials.store_id
            self.manager_headers["Role"] = "Manager"

    # -- Low-level helpers --

    def _url(self, path: str, **params: str) -> str:
        return self.base_url + path.format(**params)

    async def _send(self, label: str, method: str, url: str, **kwargs) -> RemoteResult:
        """Issue one request; every transport or HTTP failure is captured."""
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            error = str(exc) or type(exc).__name__
            logger.warning("Zid %s failed: %s", label, error)
            return RemoteResult(success=False, error=error)

        body = response.text
        logger.info("Zid %s: %s %s", label, response.status_code, body[:BODY_LOG_LIMIT])
        if response.is_success:
            return RemoteResult(success=True, status=response.status_code, body=body)
        return RemoteResult(
            success=False,
            status=response.status_code,
            body=body,
            error=f"Zid returned {response.status_code}",
        )

    def _form(self, fields: list[tuple[str, str]]) -> dict:
        """Encode form fields the way the configured Zid version expects."""
        if self.settings.ZID_CATEGORY_FORM_ENCODING == "urlencoded":
            return {"data": dict(fields)}
        return {"files": [(name, (None, value)) for name, value in fields]}

    @staticmethod
    def _category_fields(name_ar: str, name_en: str) -> list[tuple[str, str]]:
        return [
            ("name[ar]", name_ar),
            ("name[en]", name_en or name_ar),
            ("description[ar]", ""),
            ("description[en]", ""),
        ]

    # -- Category methods --

    async def list_categories(self, locale: Locale = "ar") -> RemoteResult:
        """Fetch the live category list. ``data`` holds RemoteCategory items."""
        result = await self._send(
            "list categories",
            "GET",
            self._url(self.settings.ZID_CATEGORIES_PATH),
            headers=self.common_headers,
        )
        if not result.success:
            result.data = []
            return result
        result.data = normalize_categories(result.json(), locale)
        return result

    async def create_categories(self, categories: list[CategoryDraft]) -> list[RemoteResult]:
        """Create a batch of categories. Returns one result per draft, in order.

        Zid only exposes a single-item ``add`` endpoint, so the batch is sent
        item by item; ``data`` on each result is the new platform id.
        """
        results = []
        for draft in categories:
            result = await self._send(
                f"create category {draft.name_en!r}",
                "POST",
                self._url(self.settings.ZID_CATEGORY_ADD_PATH),
                headers=self.common_headers,
                **self._form(self._category_fields(draft.name_ar, draft.name_en)),
            )
            if result.success:
                payload = result.json() or {}
                category = payload.get("category") if isinstance(payload, dict) else None
                if isinstance(category, dict) and category.get("id") is not None:
                    result.data = str(category["id"])
            results.append(result)
        return results

    async def update_category(self, category_id: str, name_ar: str, name_en: str) -> RemoteResult:
        return await self._send(
            f"update category {category_id}",
            "PUT",
            self._url(self.settings.ZID_CATEGORY_ITEM_PATH, category_id=category_id),
            headers=self.common_headers,
            **self._form(self._category_fields(name_ar, name_en)),
        )

    async def delete_category(self, category_id: str) -> RemoteResult:
        """Delete a category, falling back to the form-POST endpoint.

        Older Zid versions reject the REST-style DELETE; the ``delete``
        action endpoint is only tried when the first attempt fails.
        """
        primary = await self._send(
            f"delete category {category_id} (attempt 1)",
            "DELETE",
            self._url(self.settings.ZID_CATEGORY_ITEM_PATH, category_id=category_id),
            headers=self.common_headers,
        )
        if primary.success:
            return primary

        fallback = await self._send(
            f"delete category {category_id} (attempt 2)",
            "POST",
            self._url(self.settings.ZID_CATEGORY_DELETE_PATH),
            headers=self.common_headers,
            **self._form([("category_id", category_id)]),
        )
        if not fallback.success and fallback.error is None:
            fallback.error = primary.error
        return fallback

    # -- Product methods --

    async def list_products(self, page: int = 1, per_page: int | None = None, locale: Locale = "ar") -> RemoteResult:
        """Fetch one page of products. ``data`` holds RemoteProduct items."""
        per_page = per_page or self.settings.PRODUCTS_PAGE_SIZE
        result = await self._send(
            f"list products page {page}",
            "GET",
            self._url(self.settings.ZID_PRODUCTS_PATH),
            headers={**self.manager_headers, "Accept-Language": "ar,en"},
            params={"page": page, "per_page": per_page},
        )
        if not result.success:
            result.data = []
            return result
        payload = result.json()
        result.data = normalize_products(payload, locale)
        result.total = extract_total(payload, len(result.data))
        return result

    async def create_product(self, draft: ProductDraft, category_id: str | None = None) -> RemoteResult:
        """Create one product; ``data`` is the new platform id on success.

        Category assignment is a separate Zid call and its failure does not
        fail the product creation.
        """
        if not self.credentials.store_id:
            return RemoteResult(success=False, error="Store id missing; reconnect the store")

        headers = {
            **self.manager_headers,
            "Accept-Language": "all-languages",
            "Content-Type": "application/json",
        }
        body = {
            "name": draft.name_ar or draft.name_en or "Product",
            "price": draft.price or 0,
            "sku": f"SW-{uuid.uuid4().hex[:12]}",
            "is_draft": False,
            "is_infinite": True,
            "quantity": 999,
            "requires_shipping": True,
            "is_taxable": False,
        }
        result = await self._send(
            f"create product {draft.name_en!r}",
            "POST",
            self._url(self.settings.ZID_PRODUCTS_PATH),
            headers=headers,
            json=body,
        )
        if not result.success:
            return result

        payload = result.json() or {}
        product_id = payload.get("id") if isinstance(payload, dict) else None
        if product_id is None and isinstance(payload, dict) and isinstance(payload.get("product"), dict):
            product_id = payload["product"].get("id")
        result.data = str(product_id) if product_id is not None else None

        if result.data and category_id:
            await self._send(
                f"assign product {result.data} to category {category_id}",
                "POST",
                self._url(self.settings.ZID_PRODUCT_CATEGORIES_PATH, product_id=result.data),
                headers=headers,
                json={"id": int(category_id) if str(category_id).isdigit() else category_id},
            )
        return result

    async def delete_product(self, product_id: str) -> RemoteResult:
        return await self._send(
            f"delete product {product_id}",
            "DELETE",
            self._url(self.settings.ZID_PRODUCT_ITEM_PATH, product_id=product_id),
            headers=self.manager_headers,
        )

    # -- Storefront scripts --

    async def replace_script(self, name: str, src_code: str, description: str = "") -> RemoteResult:
        """Install a storefront script, removing an earlier one with the same name."""
        headers = {**self.manager_headers, "Accept": "application/json", "Accept-Language": "en"}
        scripts_url = self._url(self.settings.ZID_SCRIPTS_PATH)

        listing = await self._send("list scripts", "GET", scripts_url, headers=headers)
        existing_id = None
        if listing.success:
            payload = listing.json()
            scripts = payload if isinstance(payload, list) else (payload or {}).get("scripts") or (payload or {}).get("data") or []
            for script in scripts:
                if isinstance(script, dict) and name in str(script.get("name") or script.get("title") or ""):
                    existing_id = script.get("id")
                    break
        if existing_id is not None:
            await self._send(f"delete script {existing_id}", "DELETE", f"{scripts_url}/{existing_id}", headers=headers)

        result = await self._send(
            "create script",
            "POST",
            scripts_url,
            headers=headers,
            json={
                "name": name,
                "title": name,
                "description": description,
                "src_code": src_code,
                "event": "onload",
                "scope": "storefront",
            },
        )
        if result.success:
            payload = result.json() or {}
            script = payload.get("script") if isinstance(payload, dict) else None
            script_id = script.get("id") if isinstance(script, dict) else (payload.get("id") if isinstance(payload, dict) else None)
            result.data = str(script_id) if script_id is not None else None
        return result

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()
