import json

import httpx
import pytest

from storewizard.services.zid import CategoryDraft, ProductDraft, StoreCredentials, ZidClient


@pytest.fixture
def credentials():
    return StoreCredentials(access_token="manager-token", auth_token="auth-token", store_id="777")


@pytest.fixture
def client(fake_zid, credentials, test_settings):
    return ZidClient(credentials, test_settings, transport=fake_zid.transport)


@pytest.mark.asyncio
async def test_list_categories_normalizes_names(client, fake_zid):
    fake_zid.categories["3"] = {"id": 3, "name": "Bags", "products_count": "2"}
    fake_zid.categories["4"] = {"id": 4, "name": {"ar": "عطور"}}

    result = await client.list_categories()
    await client.close()

    assert result.success
    by_id = {c.id: c for c in result.data}
    assert by_id["1"].name.ar == "ملابس"
    assert by_id["1"].name.en == "Clothing"
    assert by_id["3"].name.ar == by_id["3"].name.en == "Bags"
    assert by_id["3"].products_count == 2
    # missing English falls back to Arabic
    assert by_id["4"].name.en == "عطور"


@pytest.mark.asyncio
async def test_requests_carry_manager_headers(client, fake_zid):
    await client.list_categories()
    await client.list_products()
    await client.close()

    category_request, product_request = fake_zid.requests
    assert category_request.headers["X-Manager-Token"] == "manager-token"
    assert category_request.headers["Authorization"] == "Bearer auth-token"
    assert "Store-Id" not in category_request.headers
    assert product_request.headers["Store-Id"] == "777"
    assert product_request.headers["Role"] == "Manager"
    assert product_request.url.params["per_page"] == "50"


@pytest.mark.asyncio
async def test_list_categories_failure_is_a_value(client, fake_zid):
    fake_zid.failing.add(("GET", "/v1/managers/store/categories/"))

    result = await client.list_categories()
    await client.close()

    assert not result.success
    assert result.status == 500
    assert result.data == []


@pytest.mark.asyncio
async def test_transport_error_is_a_value(credentials, test_settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = ZidClient(credentials, test_settings, transport=httpx.MockTransport(handler))
    result = await client.delete_product("p-1")
    await client.close()

    assert not result.success
    assert result.status is None
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_create_categories_posts_one_form_per_item(client, fake_zid):
    results = await client.create_categories(
        [CategoryDraft(name_ar="عطور", name_en="Perfumes"), CategoryDraft(name_ar="ساعات", name_en="Watches")]
    )
    await client.close()

    assert [r.success for r in results] == [True, True]
    assert all(r.data for r in results)
    posts = fake_zid.calls("POST", "/v1/managers/store/categories/add")
    assert len(posts) == 2
    assert posts[0].headers["content-type"].startswith("multipart/form-data")
    body = posts[0].content
    assert b'name="name[ar]"' in body
    assert b'name="name[en]"' in body
    assert b'name="description[ar]"' in body
    assert "عطور".encode() in body


@pytest.mark.asyncio
async def test_update_category_urlencoded_when_configured(fake_zid, credentials, test_settings):
    test_settings.ZID_CATEGORY_FORM_ENCODING = "urlencoded"
    client = ZidClient(credentials, test_settings, transport=fake_zid.transport)

    result = await client.update_category("1", "ملابس رجالية", "Men's Clothing")
    await client.close()

    assert result.success
    (put,) = fake_zid.calls("PUT")
    assert put.headers["content-type"] == "application/x-www-form-urlencoded"
    assert fake_zid.categories["1"]["name"] == {"ar": "ملابس رجالية", "en": "Men's Clothing"}


@pytest.mark.asyncio
async def test_delete_category_falls_back_to_form_post(client, fake_zid):
    fake_zid.failing.add(("DELETE", "/v1/managers/store/categories/2"))

    result = await client.delete_category("2")
    await client.close()

    assert result.success
    assert [r.method for r in fake_zid.requests] == ["DELETE", "POST"]
    assert fake_zid.requests[1].url.path == "/v1/managers/store/categories/delete"
    assert "2" not in fake_zid.categories


@pytest.mark.asyncio
async def test_delete_category_skips_fallback_when_first_attempt_succeeds(client, fake_zid):
    result = await client.delete_category("1")
    await client.close()

    assert result.success
    assert len(fake_zid.requests) == 1


@pytest.mark.asyncio
async def test_second_delete_of_same_category_fails_gracefully(client, fake_zid):
    first = await client.delete_category("1")
    second = await client.delete_category("1")
    await client.close()

    assert first.success
    assert not second.success
    assert second.status == 404


@pytest.mark.asyncio
async def test_create_product_assigns_category(client, fake_zid):
    result = await client.create_product(ProductDraft(name_ar="قميص", name_en="Shirt", price=120), category_id="1")
    await client.close()

    assert result.success
    assert result.data in fake_zid.products
    (create,) = fake_zid.calls("POST", "/v1/products/")[:1]
    body = json.loads(create.content)
    assert body["name"] == "قميص"
    assert body["price"] == 120
    assert body["sku"].startswith("SW-")
    assign = fake_zid.calls("POST", f"/v1/products/{result.data}/categories/")
    assert json.loads(assign[0].content) == {"id": 1}


@pytest.mark.asyncio
async def test_create_product_requires_store_id(fake_zid, test_settings):
    client = ZidClient(StoreCredentials(access_token="t"), test_settings, transport=fake_zid.transport)

    result = await client.create_product(ProductDraft(name_ar="قميص", name_en="Shirt"))
    await client.close()

    assert not result.success
    assert fake_zid.requests == []


@pytest.mark.asyncio
async def test_list_products_reads_total_and_category_ids(credentials, test_settings):
    payload = {
        "data": {
            "products": [
                {"id": "a", "name": {"ar": "كوب", "en": "Mug"}, "price": "15.5", "categories": [{"id": 3}]},
                {"id": "b", "name_ar": "صحن", "price": 20, "is_draft": True},
            ]
        },
        "meta": {"total": 42},
    }
    client = ZidClient(
        credentials,
        test_settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
    )

    result = await client.list_products(page=2, per_page=2)
    await client.close()

    assert result.total == 42
    mug, plate = result.data
    assert mug.price == 15.5
    assert mug.category_ids == ["3"]
    assert plate.name.en == "صحن"
    assert plate.status == "draft"
    assert plate.category_ids == []


@pytest.mark.asyncio
async def test_replace_script_removes_previous_copy(client, fake_zid):
    fake_zid.scripts["9"] = {"id": "9", "name": "Store Setup Landing Page"}
    fake_zid.scripts["10"] = {"id": "10", "name": "Analytics"}

    result = await client.replace_script("Store Setup Landing Page", "console.log(1)")
    await client.close()

    assert result.success
    assert "9" not in fake_zid.scripts
    assert "10" in fake_zid.scripts
    assert result.data in fake_zid.scripts
