import base64
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from storewizard.config import Settings

logger = logging.getLogger(__name__)


class OAuthError(Exception):
    """Token exchange with the platform failed."""


@dataclass
class ZidTokens:
    access_token: str
    auth_token: str | None
    refresh_token: str | None


@dataclass
class StoreIdentity:
    store_id: str | None
    store_name: str


# (settings attribute holding the path, store id locations, store name locations)
IDENTITY_LOOKUPS = (
    ("ZID_ACCOUNT_INFO_PATH", (("store", "id"),), (("store", "name"),)),
    (
        "ZID_ACCOUNT_PROFILE_PATH",
        (("user", "store", "id"), ("store", "id")),
        (("user", "store", "title"), ("user", "store", "username")),
    ),
    ("ZID_STORE_PATH", (("store", "id"), ("data", "store", "id"), ("id",)), (("store", "name"), ("store", "title"))),
)


def _first(data: Any, *paths: tuple[str, ...]) -> Any:
    """First non-empty value found at any of the nested key ``paths``."""
    for path in paths:
        value = data
        for key in path:
            value = value.get(key) if isinstance(value, dict) else None
        if value not in (None, ""):
            return value
    return None


def store_id_from_jwt(token: str | None) -> str | None:
    """Read the ``store_id`` claim of an unverified JWT."""
    parts = (token or "").split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(parts[1] + "=" * (-len(parts[1]) % 4)))
    except ValueError:
        return None
    store_id = _first(payload, ("store_id",))
    return str(store_id) if store_id is not None else None


def authorize_url(settings: Settings, state: str) -> str:
    params = urlencode(
        {
            "client_id": settings.ZID_CLIENT_ID,
            "redirect_uri": settings.ZID_REDIRECT_URI,
            "response_type": "code",
            "scope": settings.ZID_OAUTH_SCOPE,
            "state": state,
        }
    )
    return f"{settings.ZID_OAUTH_BASE_URL.rstrip('/')}/oauth/authorize?{params}"


class ZidOAuthClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(timeout=settings.REMOTE_TIMEOUT, transport=transport)

    async def exchange_code(self, code: str) -> ZidTokens:
        """Exchange an authorization code for store tokens."""
        try:
            response = await self._client.post(
                f"{self.settings.ZID_OAUTH_BASE_URL.rstrip('/')}/oauth/token",
                json={
                    "grant_type": "authorization_code",
                    "client_id": self.settings.ZID_CLIENT_ID,
                    "client_secret": self.settings.ZID_CLIENT_SECRET,
                    "redirect_uri": self.settings.ZID_REDIRECT_URI,
                    "code": code,
                },
            )
        except httpx.HTTPError as exc:
            raise OAuthError(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            logger.error("Token exchange failed: %s %s", response.status_code, response.text[:300])
            raise OAuthError(f"Token exchange failed: {response.status_code}")

        try:
            tokens = response.json()
        except ValueError as exc:
            raise OAuthError("Token response is not JSON") from exc
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            raise OAuthError("Token response has no access_token")
        return ZidTokens(
            access_token=tokens["access_token"],
            auth_token=tokens.get("authorization"),
            refresh_token=tokens.get("refresh_token"),
        )

    async def _get_json(self, path: str, tokens: ZidTokens) -> dict:
        try:
            response = await self._client.get(
                f"{self.settings.ZID_API_BASE_URL.rstrip('/')}{path}",
                headers={
                    "Authorization": f"Bearer {tokens.auth_token or tokens.access_token}",
                    "X-Manager-Token": tokens.access_token,
                    "Accept-Language": "ar",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("Store identity lookup %s failed: %s", path, exc)
            return {}
        if not response.is_success:
            logger.warning("Store identity lookup %s answered %s", path, response.status_code)
            return {}
        try:
            data = response.json()
        except ValueError:
            logger.warning("Store identity lookup %s returned a non-JSON body", path)
            return {}
        return data if isinstance(data, dict) else {}

    async def fetch_store_identity(self, tokens: ZidTokens, default_name: str = "My Zid Store") -> StoreIdentity:
        """Look up the connected store.

        The identity endpoints are tried in order until one yields a store id;
        the id claim of the authorization token is the last resort. A name
        found along the way is kept even when its endpoint had no id.
        """
        store_id = None
        store_name = None
        for setting, id_paths, name_paths in IDENTITY_LOOKUPS:
            data = await self._get_json(getattr(self.settings, setting), tokens)
            store_name = store_name or _first(data, *name_paths)
            store_id = _first(data, *id_paths)
            if store_id is not None:
                break
        if store_id is None:
            store_id = store_id_from_jwt(tokens.auth_token)
        if store_id is None:
            logger.warning("No store id found on any Zid identity endpoint")
        return StoreIdentity(
            store_id=str(store_id) if store_id is not None else None,
            store_name=str(store_name or default_name),
        )

    async def close(self):
        await self._client.aclose()
