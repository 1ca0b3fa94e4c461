from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    ANTHROPIC_API_KEY: str
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"
    CLAUDE_MAX_TOKENS: int = 1024
    SQLITE_DB_PATH: str = str(BASE_DIR / "data" / "storewizard.db")
    LOG_LEVEL: str = "INFO"

    # Sliding window of prior turns sent to the model
    HISTORY_WINDOW: int = 10

    APP_URL: str = "http://localhost:3000"

    # Zid platform
    ZID_API_BASE_URL: str = "https://api.zid.sa"
    ZID_OAUTH_BASE_URL: str = "https://oauth.zid.sa"
    ZID_CLIENT_ID: str = ""
    ZID_CLIENT_SECRET: str = ""
    ZID_REDIRECT_URI: str = ""
    ZID_OAUTH_SCOPE: str = (
        "store:read store:write products:read products:write categories:read categories:write"
    )
    REMOTE_TIMEOUT: float = 15.0

    # Endpoint paths differ between Zid API versions, so they stay configurable
    ZID_CATEGORIES_PATH: str = "/v1/managers/store/categories/"
    ZID_CATEGORY_ADD_PATH: str = "/v1/managers/store/categories/add"
    ZID_CATEGORY_ITEM_PATH: str = "/v1/managers/store/categories/{category_id}"
    ZID_CATEGORY_DELETE_PATH: str = "/v1/managers/store/categories/delete"
    ZID_PRODUCTS_PATH: str = "/v1/products/"
    ZID_PRODUCT_ITEM_PATH: str = "/v1/products/{product_id}"
    ZID_PRODUCT_CATEGORIES_PATH: str = "/v1/products/{product_id}/categories/"
    ZID_SCRIPTS_PATH: str = "/v1/managers/scripts"
    ZID_ACCOUNT_INFO_PATH: str = "/v1/manager/account/info"
    ZID_ACCOUNT_PROFILE_PATH: str = "/v1/managers/account/profile"
    ZID_STORE_PATH: str = "/v1/managers/store/"
    ZID_CATEGORY_FORM_ENCODING: Literal["multipart", "urlencoded"] = "multipart"
    ZID_STORE_BUILDER_URL: str = (
        "https://dashboard.zid.sa/ar-sa/stores/{store_id}/channels/online-store/builder"
    )
    ZID_STOREFRONT_URL: str = "https://web.zid.sa/{store_id}"

    PRODUCTS_PAGE_SIZE: int = 50
    BULK_CONCURRENCY: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()  # type: ignore
