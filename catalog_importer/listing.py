"""
Category / listing page extraction.

A listing page (or a markdown dump of one) holds many product cards; each
card becomes a ListingEntry that can be fed to the batch importer as an
ImportItem pointing at the product page.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin

from .config import ImporterSettings
from .extractors import IMAGE_EXTENSIONS, ProductExtractor, parse_markup_amount
from .models import ImportItem, SourceDocument
from .utils import clean_text, dedupe

logger = logging.getLogger(__name__)

CARD_SELECTORS = ".woocommerce-LoopProduct-link, .product-item, .wc-block-grid__product"
ALT_CARD_SELECTORS = ["li.product", ".product", ".woocommerce-loop-product__link", '[href*="/produto/"]']
TITLE_SELECTORS = "h2, .woocommerce-loop-product__title, .product-title, .entry-title"
PRICE_SELECTORS = ".price, .woocommerce-Price-amount, .amount, .price-current"

_MD_LINK_RE = re.compile(r"\[([^\[\]]+)\]\(([^)\s]+)\)")
_MD_PRICE_RE = re.compile(r"R\$\s*([\d.,]+)")
_MD_IMAGE_RE = re.compile(r"https://[^)\s]+\.(?:jpg|jpeg|png|webp)", re.I)


@dataclass
class ListingEntry:
    name: str
    price: float
    source_url: str
    images: List[str] = field(default_factory=list)

    def to_item(self) -> ImportItem:
        return ImportItem(url=self.source_url, name=self.name)


def _card_link(card) -> Optional[str]:
    href = card.get("href")
    if not href:
        a = card.select_one("a[href]")
        href = a.get("href") if a else None
    return href


def extract_listing_html(doc: SourceDocument, settings: Optional[ImporterSettings] = None) -> List[ListingEntry]:
    settings = settings or ImporterSettings()
    extractor = ProductExtractor(settings)
    base = doc.url or settings.site.base_url + "/"
    marker = f"/{settings.site.product_path}/"
    soup = doc.soup

    cards = soup.select(CARD_SELECTORS)
    if not cards:
        for sel in ALT_CARD_SELECTORS:
            cards = soup.select(sel)
            if cards:
                break

    entries: List[ListingEntry] = []
    seen_urls = set()
    for card in cards:
        href = _card_link(card)
        if not href or marker not in href:
            continue
        url = urljoin(base, href)
        if url in seen_urls:
            continue

        title_el = card.select_one(TITLE_SELECTORS)
        name = extractor.clean_name(title_el.decode_contents()) if title_el else None
        if not name:
            continue

        price_el = card.select_one(PRICE_SELECTORS)
        price = parse_markup_amount(price_el.decode_contents()) if price_el else None
        if not price:
            continue

        images = []
        for img in card.select("img"):
            src = img.get("src") or img.get("data-src")
            if not src:
                continue
            src = urljoin(base, src)
            if any(m in src.lower() for m in settings.placeholder_markers):
                continue
            images.append(src)

        seen_urls.add(url)
        entries.append(ListingEntry(name=name, price=price, source_url=url, images=dedupe(images)))

    logger.info(f"Found {len(entries)} products on listing page {doc.url or '<inline>'}")
    return entries


def extract_listing_markdown(text: str, settings: Optional[ImporterSettings] = None) -> List[ListingEntry]:
    settings = settings or ImporterSettings()
    extractor = ProductExtractor(settings)
    base = settings.site.base_url + "/"
    lines = (text or "").split("\n")

    entries: List[ListingEntry] = []
    for i, line in enumerate(lines):
        for m in _MD_LINK_RE.finditer(line):
            label, url = m.group(1), m.group(2)
            if url.lower().endswith(IMAGE_EXTENSIONS):
                continue
            pm = _MD_PRICE_RE.search(label)
            price = parse_markup_amount(pm.group(1)) if pm else None
            if not price:
                continue
            label = _MD_PRICE_RE.sub("", label).replace("**", "")
            name = extractor.clean_name(clean_text(label))
            if not name:
                continue
            images = []
            for j in range(max(0, i - 3), min(len(lines), i + 4)):
                images.extend(_MD_IMAGE_RE.findall(lines[j]))
            entries.append(ListingEntry(
                name=name,
                price=price,
                source_url=urljoin(base, url),
                images=dedupe(images),
            ))
    return entries
