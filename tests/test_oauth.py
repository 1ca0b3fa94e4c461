import base64
import json

import httpx
import pytest

from storewizard.services.oauth import OAuthError, ZidOAuthClient, ZidTokens, store_id_from_jwt

TOKENS = ZidTokens(access_token="acc", auth_token="auth", refresh_token=None)


def _jwt(payload: dict) -> str:
    body = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
    return f"header.{body}.signature"


def _client(test_settings, routes: dict[str, httpx.Response]) -> tuple[ZidOAuthClient, list[str]]:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return routes.get(request.url.path, httpx.Response(404, json={"message": "not found"}))

    return ZidOAuthClient(test_settings, transport=httpx.MockTransport(handler)), seen


@pytest.mark.asyncio
async def test_identity_falls_back_to_manager_profile(test_settings):
    client, seen = _client(
        test_settings,
        {
            "/v1/manager/account/info": httpx.Response(500, text="upstream error"),
            "/v1/managers/account/profile": httpx.Response(
                200, json={"user": {"store": {"id": 4242, "title": "Oud House"}}}
            ),
        },
    )

    identity = await client.fetch_store_identity(TOKENS)
    await client.close()

    assert identity.store_id == "4242"
    assert identity.store_name == "Oud House"
    assert seen == ["/v1/manager/account/info", "/v1/managers/account/profile"]


@pytest.mark.asyncio
async def test_identity_falls_back_to_store_endpoint_and_keeps_earlier_name(test_settings):
    client, seen = _client(
        test_settings,
        {
            "/v1/manager/account/info": httpx.Response(200, json={"store": {"name": "Bloom"}}),
            "/v1/managers/account/profile": httpx.Response(200, text="<html>maintenance</html>"),
            "/v1/managers/store/": httpx.Response(200, json={"data": {"store": {"id": "77"}}}),
        },
    )

    identity = await client.fetch_store_identity(TOKENS)
    await client.close()

    assert identity.store_id == "77"
    assert identity.store_name == "Bloom"
    assert seen[-1] == "/v1/managers/store/"


@pytest.mark.asyncio
async def test_identity_uses_token_claim_as_last_resort(test_settings):
    client, _ = _client(test_settings, {})
    tokens = ZidTokens(access_token="acc", auth_token=_jwt({"store_id": 31}), refresh_token=None)

    identity = await client.fetch_store_identity(tokens, default_name="Desert Threads")
    await client.close()

    assert identity.store_id == "31"
    assert identity.store_name == "Desert Threads"


@pytest.mark.asyncio
async def test_identity_without_any_id(test_settings):
    client, seen = _client(test_settings, {})

    identity = await client.fetch_store_identity(TOKENS)
    await client.close()

    assert identity.store_id is None
    assert identity.store_name == "My Zid Store"
    assert len(seen) == 3


def test_store_id_from_jwt():
    assert store_id_from_jwt(_jwt({"store_id": "9", "sub": "user-1"})) == "9"
    assert store_id_from_jwt(_jwt({"sub": "user-1"})) is None
    assert store_id_from_jwt("not-a-jwt") is None
    assert store_id_from_jwt("a.!!!.c") is None
    assert store_id_from_jwt(None) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>ok</html>"),
        httpx.Response(200, json=[{"access_token": "acc"}]),
        httpx.Response(200, json={"token_type": "bearer"}),
    ],
)
async def test_malformed_token_response_is_an_oauth_error(test_settings, response):
    client, _ = _client(test_settings, {"/oauth/token": response})

    with pytest.raises(OAuthError):
        await client.exchange_code("code")
    await client.close()
