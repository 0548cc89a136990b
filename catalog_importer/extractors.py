"""
Field extractors for single product pages.

Each extract_* method returns Found(value, rule_index) or NOT_FOUND; none of
them raise for a missing or implausible value. Defaulting happens in the
normalizer.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from .config import ImporterSettings
from .models import NOT_FOUND, ExtractedField, ExtractedFields, Found, SourceDocument
from .rules import CssRule, FieldExtractor, JsonLdRule, MetaRule, RegexRule, Rule
from .utils import clean_text, decode_entities, dedupe, strip_tags

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

# where the main product block starts on a WooCommerce page
MAIN_SECTION_MARKERS = [
    re.compile(r"summary\s+entry-summary", re.I),
    re.compile(r'id="product-\d+"', re.I),
    re.compile(r'class="product\s+type-product[^"]*"', re.I),
    re.compile(r'class="price[^"]*"', re.I),
    re.compile(r"woocommerce-Price-amount", re.I),
]

MAIN_SECTION_SPAN = 15000

_CURRENCY_TOKEN_RE = re.compile(r"\d+(?:[.,]\d{3})*[.,]\d{2}(?!\d)")
_BARE_IMAGE_RE = re.compile(r"https?://[^\s)\"'<>]+\.(?:jpe?g|png|webp)", re.I)
_NUMBER = r"([0-9]+(?:[.,][0-9]+)?)"


def _finite_positive(v: float) -> bool:
    return math.isfinite(v) and v > 0


def parse_markup_amount(raw: str) -> Optional[float]:
    """'R$&nbsp;1.245,90' -> 1245.9. Only digits and the decimal comma survive."""
    text = decode_entities(strip_tags(raw))
    digits = re.sub(r"[^\d,]", "", text).replace(",", ".")
    if not digits:
        return None
    try:
        return float(digits)
    except ValueError:
        return None


def parse_structured_amount(raw: str) -> Optional[float]:
    """Prices from JSON-LD / meta tags, which may use either decimal convention."""
    m = re.search(r"\d+(?:[.,]\d+)*", raw or "")
    if not m:
        return None
    s = m.group(0)
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        head, _, tail = s.rpartition(",")
        s = s.replace(",", "") if len(tail) == 3 and head else s.replace(",", ".")
    elif s.count(".") > 1:
        # 1.234.567
        s = s.replace(".", "")
    try:
        return float(s)
    except ValueError:
        return None


def parse_weight(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        return None


def main_product_section(doc: SourceDocument) -> Optional[SourceDocument]:
    html = doc.content or ""
    for marker in MAIN_SECTION_MARKERS:
        m = marker.search(html)
        if m:
            idx = m.start()
            if len(html) - idx < MAIN_SECTION_SPAN:
                # short pages and pasted snippets keep everything after the marker
                end = len(html)
            else:
                end = min(idx + MAIN_SECTION_SPAN, idx + len(html) // 2)
            return SourceDocument(html[idx:end], doc.url)
    return None


class ProductExtractor:
    def __init__(self, settings: Optional[ImporterSettings] = None):
        self.settings = settings or ImporterSettings()
        s = self.settings
        extra = s.selectors or {}

        self.name = FieldExtractor(
            "name",
            self._css(extra.get("name")) + [
                CssRule("h1.product_title"),
                CssRule("h1.entry-title"),
                CssRule("h1.elementor-heading-title"),
                CssRule("h1.product-title"),
                RegexRule(r"<title[^>]*>([^<]+)</title>"),
                MetaRule("og:title"),
                CssRule("h1"),
            ],
            parse=self.clean_name,
            predicate=lambda v: len(v) > s.min_name_length,
        )

        # markup tiers use the BRL convention, structured tiers accept both
        self.price = FieldExtractor(
            "price",
            self._css(extra.get("price")) + [
                RegexRule(r'<span[^>]*class="[^"]*woocommerce-Price-amount[^"]*"[^>]*>\s*<bdi>([\s\S]*?)</bdi>', scoped=True),
                RegexRule(r'<p[^>]*class="[^"]*\bprice\b[^"]*"[^>]*>[\s\S]*?<bdi>([\s\S]*?)</bdi>', scoped=True),
                RegexRule(r"R\$\s*([0-9][0-9.,]*)", target="text", scoped=True),
                JsonLdRule(("offers", "price"), ("offers", "lowPrice"), ("price",), ("lowPrice",))
                .with_parser(parse_structured_amount),
                MetaRule("product:price:amount").with_parser(parse_structured_amount),
                MetaRule("price").with_parser(parse_structured_amount),
                RegexRule(r"data-price=[\"']([^\"']+)[\"']").with_parser(parse_structured_amount),
            ],
            parse=parse_markup_amount,
            predicate=_finite_positive,
        )

        ceiling = s.weight_ceiling
        self.weight = FieldExtractor(
            "weight",
            [
                RegexRule(r"peso[^:\d]{0,30}:\s*" + _NUMBER + r"\s*g", target="text"),
                RegexRule(r"gramatura[^:\d]{0,30}:\s*" + _NUMBER + r"\s*g", target="text"),
                RegexRule(r"weight[^:\d]{0,30}:\s*" + _NUMBER, target="text"),
                RegexRule(_NUMBER + r"\s*gramas?\b", target="text"),
                RegexRule(_NUMBER + r"\s*g\b", target="text"),
            ],
            parse=parse_weight,
            predicate=lambda v: math.isfinite(v) and 0 < v < ceiling,
        )

        self.description = FieldExtractor(
            "description",
            self._css(extra.get("description")) + [
                CssRule("div.woocommerce-product-details__short-description"),
                CssRule("div.elementor-text-editor"),
                CssRule("div.product-description"),
                CssRule("#tab-description"),
                MetaRule("description"),
                MetaRule("og:description"),
            ],
            parse=lambda raw: clean_text(decode_entities(strip_tags(raw))) or None,
            predicate=lambda v: len(v) > s.min_description_length,
        )

    @staticmethod
    def _css(selectors: Optional[List[str]]) -> List[Rule]:
        return [CssRule(sel) for sel in (selectors or [])]

    def strip_site_suffix(self, raw: str) -> str:
        """Decoded heading text without the " - HubJoias | tagline" tail."""
        s = clean_text(decode_entities(strip_tags(raw)))
        suffix = self.settings.site.title_suffix
        if suffix:
            s = re.sub(r"\s*[-|–]\s*" + re.escape(suffix) + r".*$", "", s, flags=re.I).strip()
        return s

    def clean_name(self, raw: str) -> Optional[str]:
        s = self.strip_site_suffix(raw)
        prefixes = [p for p in self.settings.category_prefixes if p]
        if prefixes:
            alt = "|".join(re.escape(p) for p in prefixes)
            s = re.sub(r"^(?:" + alt + r")\s+", "", s, flags=re.I).strip()
        return s or None

    def extract_name(self, doc: SourceDocument) -> ExtractedField:
        found = self.name.extract(doc)
        if not found:
            return found
        # raw keeps the category word for the classifier, not the site tagline
        return replace(found, raw=self.strip_site_suffix(found.raw or ""))

    def extract_price(self, doc: SourceDocument) -> ExtractedField:
        scoped = main_product_section(doc)
        found = self.price.extract(doc, scoped=scoped)
        if not found and scoped is not None:
            logger.debug("[price] nothing in the main product section, retrying on the whole page")
            found = self.price.extract(doc)
        if found:
            return found
        if scoped is not None:
            found = self.rescue_price(scoped)
            if found:
                return found
        return self.rescue_price(doc)

    def rescue_price(self, doc: SourceDocument) -> ExtractedField:
        """Last resort: first currency-shaped number inside the wholesale range."""
        lo, hi = self.settings.rescue_price_range
        for m in _CURRENCY_TOKEN_RE.finditer(doc.text):
            value = parse_structured_amount(m.group(0))
            if value is not None and lo <= value <= hi:
                logger.debug(f"[price] rescue scan picked {value} (low confidence)")
                return Found(value, len(self.price.rules), raw=m.group(0), low_confidence=True)
        return NOT_FOUND

    def extract_weight(self, doc: SourceDocument) -> ExtractedField:
        return self.weight.extract(doc)

    def extract_description(self, doc: SourceDocument) -> ExtractedField:
        return self.description.extract(doc)

    def _is_placeholder(self, url: str) -> bool:
        low = url.lower()
        return any(marker in low for marker in self.settings.placeholder_markers)

    def extract_images(self, doc: SourceDocument) -> ExtractedField:
        soup = doc.soup
        raw: List[str] = []
        for sel in (self.settings.selectors or {}).get("images", []):
            for el in soup.select(sel):
                v = el.get("src") or el.get("content") or el.get("href")
                if v:
                    raw.append(v.strip())
        for m in soup.select('meta[property="og:image"], meta[property="og:image:secure_url"]'):
            if m.get("content"):
                raw.append(m["content"].strip())
        for img in soup.select("img"):
            src = img.get("src") or img.get("data-src") or img.get("data-lazy-src") or img.get("data-original")
            srcset = img.get("srcset") or img.get("data-srcset")
            if srcset:
                # last srcset entry is the widest
                src = srcset.split(",")[-1].strip().split(" ")[0] or src
            if src:
                raw.append(src.strip())
        if not raw:
            raw = _BARE_IMAGE_RE.findall(doc.content or "")

        base = doc.url or (doc.base_url or self.settings.site.base_url) + "/"
        out = []
        for src in raw:
            if src.lower().startswith("data:"):
                continue
            url = urljoin(base, src)
            if not urlparse(url).path.lower().endswith(IMAGE_EXTENSIONS):
                continue
            if self._is_placeholder(url):
                continue
            out.append(url)

        images = dedupe(out)[: self.settings.max_images]
        if not images:
            return NOT_FOUND
        return Found(images, 0)

    def extract_all(self, doc: SourceDocument) -> ExtractedFields:
        return ExtractedFields(
            name=self.extract_name(doc),
            price=self.extract_price(doc),
            weight=self.extract_weight(doc),
            images=self.extract_images(doc),
            description=self.extract_description(doc),
        )
