"""Compile a landing page layout into a storefront script.

The script prepends a bilingual hero/promo/features/categories/testimonials
section to the homepage body and only runs on the store root path. Zid
installs it through the App Scripts API.
"""

import json
import re

from jinja2 import Environment
from markupsafe import Markup

from storewizard.models.schemas import GenerateLandingPageData, HeroSection

SCRIPT_NAME = "Store Setup Landing Page"
DEFAULT_COLOR = "#7C3AED"
HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

ICON_PATHS = {
    "truck": '<rect x="1" y="3" width="15" height="13" rx="1"/><polygon points="16 8 20 8 23 11 23 16 16 16 16 8"/>'
    '<circle cx="5.5" cy="18.5" r="2.5"/><circle cx="18.5" cy="18.5" r="2.5"/>',
    "shield": '<path d="M12 22s8-4 8-10V5l-8-3-8 3v7c0 6 8 10 8 10z"/>',
    "gift": '<polyline points="20 12 20 22 4 22 4 12"/><rect x="2" y="7" width="20" height="5" rx="1"/>'
    '<line x1="12" y1="22" x2="12" y2="7"/>',
    "tag": '<path d="M20.59 13.41l-7.17 7.17a2 2 0 0 1-2.83 0L2 12V2h10l8.59 8.59a2 2 0 0 1 0 2.82z"/>',
    "star": '<polygon points="12 2 15.09 8.26 22 9.27 17 14.14 18.18 21.02 12 17.77 5.82 21.02 7 14.14 2 9.27 8.91 8.26 12 2"/>',
    "info": '<circle cx="12" cy="12" r="10"/><line x1="12" y1="8" x2="12" y2="12"/>',
}
ICON_ALIASES = {
    "shipping": "truck",
    "secure": "shield",
    "payment": "shield",
    "discount": "tag",
    "quality": "star",
}

SECTION_TEMPLATE = """\
<div class="sw-hero">
  <div class="sw-hero-inner">
    <h1 class="sw-en">{{ hero.headline }}</h1>
    <h1 class="sw-ar">{{ hero.headline_ar or hero.headline }}</h1>
    <p class="sw-en">{{ hero.subheadline }}</p>
    <p class="sw-ar">{{ hero.subheadline_ar or hero.subheadline }}</p>
    <button class="sw-hero-cta" onclick="window.scrollTo({top: window.innerHeight, behavior: 'smooth'})">
      <span class="sw-en">{{ hero.cta }} &rarr;</span>
      <span class="sw-ar">{{ hero.cta_ar or hero.cta }} &larr;</span>
    </button>
  </div>
</div>
{% if promo %}
<div class="sw-promo">
  <span class="sw-en">{{ promo.headline }}</span>
  <span class="sw-ar">{{ promo.headline_ar or promo.headline }}</span>
  {% if promo.discount %}<span class="sw-promo-badge">{{ promo.discount }}</span>{% endif %}
  {% if promo.code %}<code class="sw-promo-code">{{ promo.code }}</code>{% endif %}
</div>
{% endif %}
{% if features %}
<div class="sw-features">
  {% for f in features %}
  <div class="sw-feature-item">
    <div class="sw-feature-icon">{{ icon(f.icon) }}</div>
    <div class="sw-feature-text">
      <span class="sw-en">{{ f.title }}</span>
      <span class="sw-ar">{{ f.title_ar or f.title }}</span>
      <small class="sw-en">{{ f.description }}</small>
      <small class="sw-ar">{{ f.description_ar or f.description }}</small>
    </div>
  </div>
  {% endfor %}
</div>
{% endif %}
{% if categories %}
<div class="sw-cats">
  {% for c in categories %}
  <span class="sw-cat-chip"><span class="sw-en">{{ c.name }}</span><span class="sw-ar">{{ c.name_ar or c.name }}</span></span>
  {% endfor %}
</div>
{% endif %}
{% if testimonials %}
<div class="sw-testimonials">
  <p class="sw-section-label sw-en">What our customers say</p>
  <p class="sw-section-label sw-ar">ماذا يقول عملاؤنا</p>
  <div class="sw-testi-grid">
    {% for t in testimonials %}
    <div class="sw-testi-card">
      <div class="sw-stars">{% for i in range(5) %}<span style="color:{{ '#f59e0b' if i < (t.rating or 5) else '#d1d5db' }}">&#9733;</span>{% endfor %}</div>
      <p class="sw-testi-quote sw-en">&ldquo;{{ t.quote }}&rdquo;</p>
      <p class="sw-testi-quote sw-ar">&ldquo;{{ t.quote_ar or t.quote }}&rdquo;</p>
      <p class="sw-testi-author">&mdash; {{ t.author }}</p>
    </div>
    {% endfor %}
  </div>
</div>
{% endif %}
"""

CSS_TEMPLATE = """\
#sw-landing-section { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Tahoma, Arial, sans-serif; }
.sw-hero { background: {{ color }}; padding: 60px 24px; text-align: center; color: #fff; }
.sw-hero-inner { max-width: 620px; margin: 0 auto; }
.sw-hero h1 { font-size: 2rem; font-weight: 800; margin: 0 0 12px; }
.sw-hero p { font-size: 1rem; opacity: 0.85; margin: 0 0 24px; line-height: 1.6; }
.sw-hero-cta { background: #fff; color: {{ color }}; padding: 12px 28px; border-radius: 50px; font-weight: 700; border: none; cursor: pointer; }
.sw-promo { background: {{ color_dark }}; color: #fff; padding: 12px 24px; display: flex; flex-wrap: wrap; justify-content: center; gap: 10px; font-weight: 600; }
.sw-promo-badge { background: rgba(255,255,255,0.2); border-radius: 50px; padding: 3px 12px; }
.sw-promo-code { background: #fff; color: {{ color }}; border-radius: 6px; padding: 3px 10px; font-family: monospace; font-weight: 800; }
.sw-features { display: flex; flex-wrap: wrap; justify-content: center; gap: 12px; padding: 32px 24px; background: #fff; }
.sw-feature-item { display: flex; align-items: center; gap: 12px; background: {{ color_light }}; border-radius: 12px; padding: 12px 16px; flex: 1 1 180px; max-width: 240px; }
.sw-feature-text { display: flex; flex-direction: column; }
.sw-cats { padding: 20px 24px; display: flex; flex-wrap: wrap; gap: 8px; justify-content: center; background: #f9fafb; }
.sw-cat-chip { background: {{ color }}; color: #fff; padding: 6px 16px; border-radius: 50px; font-size: 0.82rem; font-weight: 600; }
.sw-testimonials { padding: 36px 24px; background: #fff; }
.sw-section-label { text-align: center; font-size: 0.75rem; font-weight: 700; text-transform: uppercase; color: #9ca3af; }
.sw-testi-grid { display: flex; flex-wrap: wrap; gap: 12px; justify-content: center; }
.sw-testi-card { background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 12px; padding: 16px; flex: 1 1 220px; max-width: 300px; }
[dir="rtl"] .sw-en { display: none !important; }
[dir="ltr"] .sw-ar { display: none !important; }
"""

SCRIPT_TEMPLATE = """\
(function() {
  try {
    var path = window.location.pathname;
    if (path !== '/' && path !== '') return;
    if (document.getElementById('sw-landing-section')) return;
    var htmlEl = document.documentElement;
    var lang = (htmlEl.getAttribute('lang') || htmlEl.getAttribute('dir') || 'en').toLowerCase();
    var section = document.createElement('div');
    section.id = 'sw-landing-section';
    section.setAttribute('dir', (lang === 'ar' || lang === 'rtl') ? 'rtl' : 'ltr');
    var style = document.createElement('style');
    style.textContent = %(css)s;
    section.appendChild(style);
    section.insertAdjacentHTML('beforeend', %(html)s);
    document.body.insertBefore(section, document.body.firstChild);
  } catch (e) {
    console.warn('[storewizard] landing section injection error:', e);
  }
})();"""

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_section = _env.from_string(SECTION_TEMPLATE)
# CSS is not HTML; colours are validated before rendering
_css = Environment(autoescape=False).from_string(CSS_TEMPLATE)


def _rgba(hex_color: str, alpha: float) -> str:
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (1, 3, 5))
    return f"rgba({r},{g},{b},{alpha})"


def _icon(name: str, color: str):
    key = (name or "").lower()
    paths = ICON_PATHS.get(ICON_ALIASES.get(key, key), ICON_PATHS["info"])
    return Markup(
        f'<svg width="20" height="20" viewBox="0 0 24 24" fill="none" stroke="{color}" stroke-width="2">{paths}</svg>'
    )


def render_section(layout: GenerateLandingPageData) -> tuple[str, str]:
    """Return (html, css) for the landing section."""
    color = layout.primary_color if layout.primary_color and HEX_RE.match(layout.primary_color) else DEFAULT_COLOR
    hero = layout.hero or HeroSection(
        headline=layout.store_name or "Your Store",
        headline_ar=layout.store_name_ar or "متجرك",
        subheadline="Welcome",
        subheadline_ar="مرحباً",
        cta="Shop Now",
        cta_ar="تسوق الآن",
    )
    html = _section.render(
        hero=hero,
        promo=layout.promo,
        features=layout.features or [],
        categories=layout.categories or [],
        testimonials=layout.testimonials or [],
        icon=lambda name: _icon(name, color),
    )
    css = _css.render(color=color, color_light=_rgba(color, 0.12), color_dark=_rgba(color, 0.9))
    return html, css


def build_landing_page_script(layout: GenerateLandingPageData) -> str:
    html, css = render_section(layout)
    return SCRIPT_TEMPLATE % {"css": json.dumps(css), "html": json.dumps(html)}


def store_builder_url(template: str, store_id: str | None) -> str:
    if not store_id:
        return "https://web.zid.sa/store-design"
    return template.format(store_id=store_id)
