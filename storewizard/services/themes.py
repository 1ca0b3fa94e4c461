from dataclasses import dataclass


@dataclass(frozen=True)
class StoreTheme:
    id: str
    name_en: str
    name_ar: str
    style: str
    primary: str
    secondary: str
    accent: str
    description_en: str
    description_ar: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nameEn": self.name_en,
            "nameAr": self.name_ar,
            "style": self.style,
            "colors": {"primary": self.primary, "secondary": self.secondary, "accent": self.accent},
            "descriptionEn": self.description_en,
            "descriptionAr": self.description_ar,
        }


STORE_THEMES = (
    StoreTheme(
        "desert-gold", "Desert Gold", "ذهب الصحراء", "elegant", "#C9922A", "#F5E6C8", "#8B6914",
        "Warm gold tones inspired by Arabian luxury", "ألوان ذهبية دافئة مستوحاة من الرقي العربي",
    ),
    StoreTheme(
        "ocean-blue", "Ocean Blue", "أزرق المحيط", "modern", "#1E6FBF", "#E8F3FF", "#0D4C8C",
        "Clean and professional, ideal for tech and fashion", "نظيف واحترافي، مثالي للتقنية والأزياء",
    ),
    StoreTheme(
        "midnight-black", "Midnight Black", "أسود منتصف الليل", "bold", "#1A1A2E", "#F0F0F5", "#7C3AED",
        "Bold and premium, makes products stand out", "جريء وراقٍ، يجعل المنتجات تبرز",
    ),
    StoreTheme(
        "rose-garden", "Rose Garden", "حديقة الورود", "elegant", "#BE185D", "#FFF0F6", "#9D174D",
        "Soft and feminine, perfect for beauty and gifts", "ناعم وأنثوي، مثالي للجمال والهدايا",
    ),
    StoreTheme(
        "sage-minimal", "Sage Minimal", "أخضر مريمية", "minimal", "#4A7C59", "#F0F7F2", "#2D5A3D",
        "Natural and calm, great for organic and wellness", "طبيعي وهادئ، رائع للمنتجات العضوية والصحية",
    ),
    StoreTheme(
        "royal-violet", "Royal Violet", "بنفسجي ملكي", "modern", "#7C3AED", "#F5F0FF", "#5B21B6",
        "Vibrant and modern, bold identity for any store", "نابض بالحياة وحديث، هوية جريئة لأي متجر",
    ),
)


def get_theme(theme_id: str) -> StoreTheme | None:
    return next((t for t in STORE_THEMES if t.id == theme_id), None)
