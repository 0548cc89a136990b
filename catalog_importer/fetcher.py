"""
Document fetcher: turns an ImportItem into a SourceDocument.

URL resolution order: explicit URL, stable code (SKU), product name, image
filename. Each resolved URL also gets the known alternate shapes of the
catalog's URL scheme. Candidates are tried once each, in order; the first
successful response wins.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Protocol
from urllib.parse import quote_plus, urljoin, urlparse

import cloudscraper
import requests
from bs4 import BeautifulSoup
from cloudscraper.exceptions import CloudflareException

from .config import FetchConfig, ImporterSettings, SiteConfig
from .errors import FetchError, NoCandidateUrlError
from .models import ImportItem, SourceDocument
from .utils import clean_text, dedupe, jaccard, slugify

logger = logging.getLogger(__name__)

# product codes embedded in image filenames, most specific first
IMAGE_CODE_PATTERNS = [
    re.compile(r"/([A-Z]{2,}\d+[A-Z]*)[_-][^/]*\.(?:jpg|jpeg|png|webp)", re.I),
    re.compile(r"/([A-Z]{2,}\d+)[^/]*\.(?:jpg|jpeg|png|webp)", re.I),
    re.compile(r"/([\w-]+?)(?:-\d+)?\.(?:jpg|jpeg|png|webp)", re.I),
]

BLOCKED_MARKERS = [
    "cf-browser-verification",
    "<title>just a moment",
    "attention required",
    "cf-challenge",
]


def looks_blocked(html: str) -> bool:
    h = (html or "").lower()
    return any(m in h for m in BLOCKED_MARKERS)


def slug_code(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def product_url(code: str, site: SiteConfig, path: Optional[str] = None) -> str:
    return f"{site.base_url.rstrip('/')}/{path or site.product_path}/{code}/"


def code_from_image(image_url: str) -> Optional[str]:
    path = urlparse(image_url).path or image_url
    for pattern in IMAGE_CODE_PATTERNS:
        m = pattern.search(path)
        if m and m.group(1):
            code = re.sub(r"_hj.*$", "", m.group(1), flags=re.I)
            code = re.sub(r"-still$", "", code, flags=re.I)
            code = re.sub(r"[^a-z0-9-]", "", code.lower())
            if code:
                return code
    # descriptive filename without a known extension
    filename = path.rstrip("/").split("/")[-1].split(".")[0]
    return slug_code(filename) or None


def url_variants(url: str, site: SiteConfig) -> List[str]:
    out = [url]
    seg, alt = f"/{site.product_path}/", f"/{site.alt_product_path}/"
    if site.alt_product_path and seg in url:
        out.append(url.replace(seg, alt, 1))
    p = urlparse(url)
    if p.netloc.startswith("www."):
        out.append(p._replace(netloc=p.netloc[4:]).geturl())
    return out


def candidate_urls(item: ImportItem, site: SiteConfig) -> List[str]:
    """Ordered candidate URLs for an item; empty when nothing is resolvable."""
    primaries: List[str] = []
    if item.url and item.url.strip():
        primaries.append(item.url.strip())
    elif item.sku and slug_code(item.sku):
        primaries.append(product_url(slug_code(item.sku), site))
    elif item.name and slugify(item.name):
        primaries.append(product_url(slugify(item.name), site))
    elif item.image_url and item.image_url.strip():
        code = code_from_image(item.image_url.strip())
        if code:
            primaries.append(product_url(code, site))
            if "-" in code:
                primaries.append(product_url(code.replace("-", "", 1), site))

    urls: List[str] = []
    for u in primaries:
        urls.extend(url_variants(u, site))
    return dedupe(urls)


def search_result_cards(html: str, base_url: str, product_path: str = "produto") -> List[tuple[str, str]]:
    """(url, title) pairs for product links on a search results page."""
    soup = BeautifulSoup(html or "", "lxml")
    cards: List[tuple[str, str]] = []
    for a in soup.select(f'a[href*="/{product_path}/"]'):
        href = urljoin(base_url + "/", a.get("href", "").strip())
        heading = a.select_one("h2, h3, h4, .woocommerce-loop-product__title")
        title = clean_text(heading.get_text(" ") if heading else (a.get("title") or a.get_text(" ")))
        cards.append((href, title))
    seen = set()
    out = []
    for url, title in cards:
        if url in seen:
            continue
        seen.add(url)
        out.append((url, title))
    return out


def pick_best_card(cards: List[tuple[str, str]], name: Optional[str], code: Optional[str]) -> Optional[str]:
    if not cards:
        return None
    if code:
        for url, _ in cards:
            if code.lower() in url.lower():
                return url
    if not name:
        return cards[0][0]
    return max(cards, key=lambda c: jaccard(c[1], name))[0]


async def render_html(url: str, timeout_ms: int, wait_ms: int = 1500) -> str:
    from playwright.async_api import async_playwright
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        page = await browser.new_page()
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        await page.wait_for_timeout(wait_ms)
        html = await page.content()
        await browser.close()
        return html


def render_html_sync(url: str, timeout: float) -> str:
    from playwright.async_api import Error as PlaywrightError
    try:
        return asyncio.run(render_html(url, timeout_ms=int(timeout * 1000)))
    except PlaywrightError as e:
        raise FetchError(f"browser render failed for {url}: {e}", [url]) from e


class DocumentFetcher(Protocol):
    def fetch(self, item: ImportItem) -> SourceDocument:
        ...


class HttpDocumentFetcher:
    def __init__(self, settings: Optional[ImporterSettings] = None,
                 session: Optional[requests.Session] = None):
        self.settings = settings or ImporterSettings()
        self.site: SiteConfig = self.settings.site
        self.cfg: FetchConfig = self.settings.fetch
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": self.cfg.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": self.cfg.accept_language,
            "Cache-Control": "no-cache",
        })
        self._scraper = None

    def close(self):
        self.session.close()
        if self._scraper is not None:
            self._scraper.close()

    @property
    def scraper(self):
        if self._scraper is None:
            self._scraper = cloudscraper.create_scraper(
                browser={"browser": "chrome", "platform": "windows", "desktop": True}
            )
            self._scraper.headers.update({"Accept-Language": self.cfg.accept_language})
        return self._scraper

    def get_html(self, url: str) -> str:
        """GET one URL. Raises on network errors, non-2xx and empty bodies."""
        r = self.session.get(url, timeout=self.cfg.timeout)
        blocked = r.status_code in (403, 503) or looks_blocked(r.text)
        if blocked and self.cfg.use_cloudscraper:
            logger.info(f"Challenge page at {url}, retrying through cloudscraper")
            r = self.scraper.get(url, timeout=self.cfg.timeout)
            blocked = r.status_code in (403, 503) or looks_blocked(r.text)
        if blocked and self.cfg.use_browser:
            logger.info(f"Still blocked at {url}, rendering with Playwright")
            html = render_html_sync(url, self.cfg.timeout)
        elif blocked:
            raise FetchError(f"anti-bot challenge not passed at {url}", [url])
        else:
            r.raise_for_status()
            html = r.text
        if not html or not html.strip():
            raise FetchError(f"empty response from {url}", [url])
        return html

    def _try(self, url: str, attempted: List[str]) -> Optional[str]:
        attempted.append(url)
        try:
            logger.info(f"Trying URL: {url}")
            return self.get_html(url)
        except (requests.RequestException, CloudflareException, FetchError) as e:
            logger.warning(f"URL failed: {url} - {e}")
            return None

    def search(self, item: ImportItem, attempted: List[str]) -> Optional[SourceDocument]:
        code = code_from_image(item.image_url) if item.image_url else None
        for query in [q for q in (item.sku, item.name) if q and q.strip()]:
            search_url = f"{self.site.base_url.rstrip('/')}{self.site.search_path}{quote_plus(query.strip())}"
            html = self._try(search_url, attempted)
            if html is None:
                continue
            cards = search_result_cards(html, self.site.base_url, self.site.product_path)
            best = pick_best_card(cards[: self.cfg.max_search_results], item.name, code or item.sku)
            if not best:
                logger.info(f"No search results for {query!r}")
                continue
            page = self._try(best, attempted)
            if page is not None:
                logger.info(f"Fetched product page via search best match: {best}")
                return SourceDocument(page, best)
        return None

    def fetch(self, item: ImportItem) -> SourceDocument:
        candidates = candidate_urls(item, self.site)
        can_search = self.cfg.search_fallback and any(
            q and q.strip() for q in (item.sku, item.name)
        )
        if not candidates and not can_search:
            raise NoCandidateUrlError(
                f"no resolvable URL for item {item.identifier!r} (no url, sku, name or image)"
            )

        attempted: List[str] = []
        for url in candidates:
            html = self._try(url, attempted)
            if html is not None:
                logger.info(f"Successfully fetched from: {url}")
                return SourceDocument(html, url)

        if can_search:
            logger.info(f"Direct URLs failed for {item.identifier!r}, trying search fallback")
            doc = self.search(item, attempted)
            if doc is not None:
                return doc

        raise FetchError(
            f"all {len(attempted)} URL candidates failed for {item.identifier!r}", attempted
        )
