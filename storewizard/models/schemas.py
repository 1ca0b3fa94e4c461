from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models use camelCase keys, Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Action payloads ---

class CategoryPair(CamelModel):
    name_ar: str = ""
    name_en: str = ""


class ProductVariant(CamelModel):
    name_ar: str = ""
    name_en: str = ""
    options: list[str] = []


class SuggestCategoriesData(CamelModel):
    categories: list[CategoryPair] = []
    existing_categories: list[dict[str, Any]] | None = None


class PreviewProductData(CamelModel):
    name_ar: str = ""
    name_en: str = ""
    description_ar: str | None = None
    description_en: str | None = None
    price: float = 0
    variants: list[ProductVariant] = []
    image_prompt: str | None = None


class PreviewCouponData(CamelModel):
    code: str = ""
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: float = 0
    expiry_date: str | None = None
    min_order_value: float | None = None
    description_ar: str | None = None
    description_en: str | None = None


class SuggestThemesData(CamelModel):
    model_config = ConfigDict(extra="allow")


class GenerateLogoData(CamelModel):
    store_name: str | None = None
    primary_color: str | None = None
    logo_prompt: str | None = None


class BulkProductItem(CamelModel):
    name_ar: str = ""
    name_en: str = ""
    price: float = 0
    description_ar: str | None = None
    description_en: str | None = None


class BulkProductsData(CamelModel):
    products: list[BulkProductItem] = []


class HeroSection(CamelModel):
    headline: str = ""
    headline_ar: str | None = None
    subheadline: str = ""
    subheadline_ar: str | None = None
    cta: str = ""
    cta_ar: str | None = None


class FeatureItem(CamelModel):
    icon: str = ""
    title: str = ""
    title_ar: str | None = None
    description: str = ""
    description_ar: str | None = None


class TestimonialItem(CamelModel):
    quote: str = ""
    quote_ar: str | None = None
    author: str = ""
    rating: int | None = None


class PromoSection(CamelModel):
    headline: str = ""
    headline_ar: str | None = None
    discount: str | None = None
    code: str | None = None
    cta: str | None = None
    cta_ar: str | None = None


class LandingCategory(CamelModel):
    name: str = ""
    name_ar: str | None = None


class GenerateLandingPageData(CamelModel):
    store_name: str | None = None
    store_name_ar: str | None = None
    primary_color: str | None = None
    hero: HeroSection | None = None
    features: list[FeatureItem] | None = None
    testimonials: list[TestimonialItem] | None = None
    promo: PromoSection | None = None
    categories: list[LandingCategory] | None = None
    seo_title: str | None = None
    seo_description: str | None = None


class DeleteCategoryData(CamelModel):
    category_id: str = ""
    name_ar: str = ""
    name_en: str = ""


class DeleteProductData(CamelModel):
    product_id: str = ""
    name_ar: str = ""
    name_en: str = ""


# --- Action union ---

class NoneAction(BaseModel):
    type: Literal["none"] = "none"
    data: dict[str, Any] = {}


class SuggestCategoriesAction(BaseModel):
    type: Literal["suggest_categories"]
    data: SuggestCategoriesData = SuggestCategoriesData()


class PreviewProductAction(BaseModel):
    type: Literal["preview_product"]
    data: PreviewProductData = PreviewProductData()


class PreviewCouponAction(BaseModel):
    type: Literal["preview_coupon"]
    data: PreviewCouponData = PreviewCouponData()


class SuggestThemesAction(BaseModel):
    type: Literal["suggest_themes"]
    data: SuggestThemesData = SuggestThemesData()


class GenerateLogoAction(BaseModel):
    type: Literal["generate_logo"]
    data: GenerateLogoData = GenerateLogoData()


class BulkProductsAction(BaseModel):
    type: Literal["bulk_products"]
    data: BulkProductsData = BulkProductsData()


class GenerateLandingPageAction(BaseModel):
    type: Literal["generate_landing_page"]
    data: GenerateLandingPageData = GenerateLandingPageData()


class DeleteCategoryAction(BaseModel):
    type: Literal["delete_category"]
    data: DeleteCategoryData = DeleteCategoryData()


class DeleteProductAction(BaseModel):
    type: Literal["delete_product"]
    data: DeleteProductData = DeleteProductData()


AIAction = Annotated[
    Union[
        NoneAction,
        SuggestCategoriesAction,
        PreviewProductAction,
        PreviewCouponAction,
        SuggestThemesAction,
        GenerateLogoAction,
        BulkProductsAction,
        GenerateLandingPageAction,
        DeleteCategoryAction,
        DeleteProductAction,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES = frozenset(
    {
        "none",
        "suggest_categories",
        "preview_product",
        "preview_coupon",
        "suggest_themes",
        "generate_logo",
        "bulk_products",
        "generate_landing_page",
        "delete_category",
        "delete_product",
    }
)

_action_adapter: TypeAdapter = TypeAdapter(AIAction)


def parse_action(raw: Any) -> tuple[Any, str | None]:
    """Validate a raw action. Returns (action, error); invalid input yields a none action."""
    if not isinstance(raw, dict) or raw.get("type") not in ACTION_TYPES:
        return NoneAction(), None if raw is None else f"unknown action: {raw!r:.120}"
    if raw.get("data") is None:
        raw = {**raw, "data": {}}
    try:
        return _action_adapter.validate_python(raw), None
    except ValidationError as exc:
        return NoneAction(), str(exc)


class AssistantReply(BaseModel):
    message: str
    action: AIAction = NoneAction()


# --- Merchant schemas ---

class MerchantCreate(CamelModel):
    email: str
    name: str | None = None
    preferred_language: Literal["en", "ar"] = "en"


class MerchantUpdate(CamelModel):
    name: str | None = None
    preferred_language: Literal["en", "ar"] | None = None


class MerchantCreated(CamelModel):
    merchant_id: str
    api_token: str


# --- Session schemas ---

class SetupSessionInfo(CamelModel):
    session_id: str
    store_id: str
    status: str
    current_step: str
    completion_percentage: int
    created_at: str
    updated_at: str
    welcome_message: str | None = None


# --- Chat schemas ---

class HistoryTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    # validated by hand so missing fields get the same 400 as empty ones
    message: str = ""
    session_id: str = ""
    history: list[HistoryTurn] = []


# --- Confirmation schemas ---

class ExistingCategoryChange(CamelModel):
    id: str
    name_ar: str | None = None
    name_en: str | None = None
    remove: bool = False


class CategoryConfirmRequest(CamelModel):
    existing: list[ExistingCategoryChange] = []
    categories: list[CategoryPair] = []
    language: Literal["en", "ar"] = "en"


class ProductConfirmRequest(CamelModel):
    product: PreviewProductData
    category_id: str | None = None


class BulkConfirmRequest(CamelModel):
    products: list[BulkProductItem]
    # indices into ``products``; all of them when omitted
    selected: list[int] | None = None
    language: Literal["en", "ar"] = "en"


class ThemeSelectRequest(CamelModel):
    theme_id: str


class LogoRequest(CamelModel):
    type: Literal["svg", "save"] = "svg"
    logo_url: str | None = None
    store_name: str | None = None
    primary_color: str | None = None
    style: Literal["initials", "wordmark", "icon+text"] = "initials"


class LandingPageRequest(CamelModel):
    layout: GenerateLandingPageData
    apply: bool = False
