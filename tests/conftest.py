"""Shared fixtures: temporary SQLite files, test settings and a fake Zid API."""

import asyncio
import itertools
import json
import os
import re
from urllib.parse import parse_qsl

import httpx
import pytest


def pytest_configure(config):
    """Set required env vars before the settings module is imported."""
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")


@pytest.fixture
def db_path(tmp_path) -> str:
    from storewizard.models.database import init_db

    path = str(tmp_path / "storewizard-test.db")
    # private loop: asyncio.run would reset the loop pytest-asyncio installed
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(init_db(path))
    finally:
        loop.close()
    return path


@pytest.fixture
def test_settings():
    from storewizard.config import Settings

    return Settings(
        _env_file=None,
        ANTHROPIC_API_KEY="test-key",
        ZID_API_BASE_URL="https://api.zid.test",
        ZID_OAUTH_BASE_URL="https://oauth.zid.test",
        ZID_CLIENT_ID="client-1",
        ZID_CLIENT_SECRET="secret-1",
        ZID_REDIRECT_URI="https://app.test/api/auth/zid/callback",
        APP_URL="https://app.test",
    )


MULTIPART_FIELD_RE = re.compile(rb'name="([^"]+)"\r\n\r\n(.*?)\r\n', re.S)


def form_fields(request: httpx.Request) -> dict[str, str]:
    """Decode a multipart or urlencoded request body into a flat dict."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        return {k.decode(): v.decode() for k, v in MULTIPART_FIELD_RE.findall(request.content)}
    return dict(parse_qsl(request.content.decode()))


class FakeZid:
    """In-memory stand-in for the Zid manager API, served through httpx.MockTransport."""

    def __init__(self):
        self.categories: dict[str, dict] = {
            "1": {"id": 1, "name": {"ar": "ملابس", "en": "Clothing"}, "slug": "clothing", "products_count": 4},
            "2": {"id": 2, "name": {"ar": "أحذية", "en": "Shoes"}, "slug": "shoes", "products_count": 0},
        }
        self.products: dict[str, dict] = {}
        self.scripts: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        # (method, path) pairs that answer 500
        self.failing: set[tuple[str, str]] = set()
        self._ids = itertools.count(100)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path_prefix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        if (method, path) in self.failing:
            return httpx.Response(500, json={"message": "internal error"})

        if path == "/v1/managers/store/categories/" and method == "GET":
            return httpx.Response(200, json={"categories": list(self.categories.values())})

        if path == "/v1/managers/store/categories/add" and method == "POST":
            fields = form_fields(request)
            category_id = next(self._ids)
            category = {
                "id": category_id,
                "name": {"ar": fields["name[ar]"], "en": fields["name[en]"]},
                "products_count": 0,
            }
            self.categories[str(category_id)] = category
            return httpx.Response(201, json={"category": category})

        if path == "/v1/managers/store/categories/delete" and method == "POST":
            category_id = form_fields(request).get("category_id")
            if self.categories.pop(category_id, None) is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json={"status": "ok"})

        match = re.fullmatch(r"/v1/managers/store/categories/(\w+)", path)
        if match:
            category_id = match.group(1)
            if category_id not in self.categories:
                return httpx.Response(404, json={"message": "not found"})
            if method == "PUT":
                fields = form_fields(request)
                self.categories[category_id]["name"] = {"ar": fields["name[ar]"], "en": fields["name[en]"]}
                return httpx.Response(200, json={"category": self.categories[category_id]})
            if method == "DELETE":
                del self.categories[category_id]
                return httpx.Response(200, json={"status": "ok"})

        if path == "/v1/products/" and method == "GET":
            products = list(self.products.values())
            return httpx.Response(200, json={"products": products, "total": len(products)})

        if path == "/v1/products/" and method == "POST":
            body = json.loads(request.content)
            product_id = f"p-{next(self._ids)}"
            product = {"id": product_id, "name": body["name"], "price": body["price"], "sku": body["sku"]}
            self.products[product_id] = product
            return httpx.Response(201, json=product)

        match = re.fullmatch(r"/v1/products/([\w-]+)/categories/", path)
        if match and method == "POST":
            return httpx.Response(200, json={"status": "ok"})

        match = re.fullmatch(r"/v1/products/([\w-]+)", path)
        if match and method == "DELETE":
            if self.products.pop(match.group(1), None) is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(204)

        if path == "/v1/managers/scripts" and method == "GET":
            return httpx.Response(200, json={"scripts": list(self.scripts.values())})

        if path == "/v1/managers/scripts" and method == "POST":
            body = json.loads(request.content)
            script_id = str(next(self._ids))
            self.scripts[script_id] = {"id": script_id, "name": body["name"]}
            return httpx.Response(201, json={"script": self.scripts[script_id]})

        match = re.fullmatch(r"/v1/managers/scripts/(\w+)", path)
        if match and method == "DELETE":
            self.scripts.pop(match.group(1), None)
            return httpx.Response(200, json={"status": "ok"})

        return httpx.Response(404, json={"message": f"no route for {method} {path}"})


@pytest.fixture
def fake_zid() -> FakeZid:
    return FakeZid()
