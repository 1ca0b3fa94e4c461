import re

from storewizard.services.normalization import Locale

ARABIC_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")

MESSAGES: dict[str, dict[str, str]] = {
    "welcome": {
        "en": (
            "Hello! I'm your store setup assistant. I'm here to help you set up your online "
            "store step by step. To get started, what type of products do you sell? "
            "Tell me about your business!"
        ),
        "ar": (
            "مرحباً! أنا مساعد إعداد متجرك. أنا هنا لمساعدتك في إعداد متجرك الإلكتروني "
            "خطوة بخطوة. للبدء، ما نوع المنتجات التي تبيعها؟ أخبرني عن نشاطك التجاري!"
        ),
    },
    "assistant_error": {
        "en": "Sorry, I encountered an error. Please try again.",
        "ar": "عذراً، حدث خطأ. يرجى المحاولة مرة أخرى.",
    },
    "categories_summary": {
        "en": "{kept} kept · {added} new · {removed} removed",
        "ar": "{kept} محفوظة · {added} جديدة · {removed} محذوفة",
    },
    "categories_followup": {
        "en": "Great, I've confirmed {count} categories. Now let's add products.",
        "ar": "تم تأكيد {count} فئات. الآن دعنا نضيف المنتجات.",
    },
    "products_added": {
        "en": "{count} products added to your store",
        "ar": "{count} منتج أضيف إلى متجرك",
    },
    "product_added": {
        "en": "Product added to your store",
        "ar": "تمت إضافة المنتج إلى متجرك",
    },
    "pending_remote": {
        "en": "Saved. Some changes haven't reached your store yet; we'll keep checking.",
        "ar": "تم الحفظ. بعض التغييرات لم تصل إلى متجرك بعد، وسنواصل المحاولة.",
    },
    "coupon_created": {
        "en": "Coupon {code} created!",
        "ar": "تم إنشاء الكوبون {code}!",
    },
    "delete_failed": {
        "en": "Delete failed",
        "ar": "فشل الحذف",
    },
    "store_not_connected": {
        "en": "Your store isn't connected yet. Connect it to continue.",
        "ar": "متجرك غير متصل بعد. قم بربطه للمتابعة.",
    },
}


def detect_language(text: str, default: Locale = "en") -> Locale:
    """Arabic script anywhere in the text means the merchant writes Arabic."""
    if not text:
        return default
    return "ar" if ARABIC_RE.search(text) else "en"


def translate(key: str, locale: Locale, **params) -> str:
    entry = MESSAGES[key]
    template = entry.get(locale) or entry["en"]
    return template.format(**params) if params else template
