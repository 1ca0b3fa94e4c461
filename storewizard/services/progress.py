"""Setup progress reducer.

Maps confirmed action types to forward progress through the four setup
steps. Transitions only ever move forward; the theme rule and the
three-products rule are independent forced jumps, and whichever is applied
last determines the result.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class SetupStep(str, Enum):
    BUSINESS = "business"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    MARKETING = "marketing"


PRODUCT_ACTIONS = frozenset({"preview_product", "bulk_products"})
MARKETING_PRODUCT_THRESHOLD = 3

CATEGORIES_PERCENT = 25
PRODUCTS_PERCENT = 50
MARKETING_PERCENT = 75
LOGO_PERCENT = 88
LANDING_PAGE_PERCENT = 95
COMPLETE_PERCENT = 100


@dataclass(frozen=True)
class SetupProgress:
    step: SetupStep = SetupStep.BUSINESS
    percentage: int = 0
    confirmed: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        return {
            "currentStep": self.step.value,
            "completionPercentage": self.percentage,
            "confirmedActions": sorted(self.confirmed),
        }


def advance(progress: SetupProgress, action_type: str, confirmed_products: int = 0) -> SetupProgress:
    """Return the progress after ``action_type`` was confirmed.

    ``confirmed_products`` is the running total of products accepted in the
    session, including the ones just confirmed.
    """
    nxt = replace(progress, confirmed=progress.confirmed | {action_type})

    if action_type == "suggest_categories" and nxt.step is SetupStep.BUSINESS:
        nxt = replace(nxt, step=SetupStep.CATEGORIES, percentage=CATEGORIES_PERCENT)

    elif action_type in PRODUCT_ACTIONS:
        if nxt.step is SetupStep.CATEGORIES:
            nxt = replace(nxt, step=SetupStep.PRODUCTS, percentage=PRODUCTS_PERCENT)
        if confirmed_products >= MARKETING_PRODUCT_THRESHOLD:
            nxt = replace(nxt, step=SetupStep.MARKETING, percentage=MARKETING_PERCENT)

    elif action_type == "suggest_themes":
        nxt = replace(nxt, step=SetupStep.MARKETING, percentage=MARKETING_PERCENT)

    elif action_type == "generate_logo":
        nxt = replace(nxt, percentage=LOGO_PERCENT)

    elif action_type == "generate_landing_page":
        nxt = replace(nxt, percentage=LANDING_PAGE_PERCENT)

    # logo + landing page together finish the flow
    if action_type in ("generate_logo", "generate_landing_page") and {
        "generate_logo",
        "generate_landing_page",
    } <= nxt.confirmed:
        nxt = replace(nxt, step=SetupStep.MARKETING, percentage=COMPLETE_PERCENT)

    return nxt


def from_record(session: dict) -> SetupProgress:
    """Rebuild progress from a setup_sessions row."""
    confirmed = session.get("confirmed_actions") or []
    return SetupProgress(
        step=SetupStep(session.get("current_step") or SetupStep.BUSINESS.value),
        percentage=int(session.get("completion_percentage") or 0),
        confirmed=frozenset(confirmed),
    )
