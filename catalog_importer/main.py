"""CLI entry point: import products into the catalog and write a review sheet."""

import argparse
import logging
import os
import re
import sys
from typing import Iterable, List, Optional

import requests

from .config import ImporterSettings, load_settings
from .errors import CatalogImportError
from .export import failures_to_dataframe, records_to_dataframe, save_table
from .extractors import IMAGE_EXTENSIONS
from .fetcher import HttpDocumentFetcher
from .logger import setup_logger
from .models import ImportItem, SourceDocument
from .pipeline import BatchImporter
from .store import InMemoryCatalogStore, RestCatalogStore

logger = logging.getLogger(__name__)

_SKU_RE = re.compile(r"^[A-Za-z]{2,}[-_]?\d+[A-Za-z0-9_-]*$")


def parse_item(token: str) -> Optional[ImportItem]:
    """One input line: product URL, image URL, product code or product name."""
    token = token.strip()
    if not token or token.startswith("#"):
        return None
    if token.lower().startswith(("http://", "https://")):
        if token.split("?", 1)[0].lower().endswith(IMAGE_EXTENSIONS):
            return ImportItem(image_url=token)
        return ImportItem(url=token)
    if _SKU_RE.match(token):
        return ImportItem(sku=token)
    return ImportItem(name=token)


def read_items(sources: Iterable[str], file_path: Optional[str] = None) -> List[ImportItem]:
    lines = list(sources or [])
    if file_path:
        with open(file_path, encoding="utf-8") as f:
            lines.extend(f.read().splitlines())
    return [item for item in (parse_item(line) for line in lines) if item is not None]


def build_store(args):
    if not args.store_url:
        logger.info("No --store-url given, records are kept in memory (dry run)")
        return InMemoryCatalogStore()
    api_key = args.api_key or os.environ.get("CATALOG_API_KEY")
    if not api_key:
        raise CatalogImportError("--store-url needs --api-key or CATALOG_API_KEY")
    store = RestCatalogStore(args.store_url, api_key, publish=args.publish)
    if args.category:
        store.category_id = store.resolve_category_id(args.category)
        if store.category_id is None:
            logger.warning(f"Category {args.category!r} not found, importing without one")
    return store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import supplier products into the catalog")
    parser.add_argument("sources", nargs="*",
                        help="Product URLs, image URLs, product codes or names")
    parser.add_argument("--file", type=str, default=None,
                        help="Text file with one product URL, code or name per line")
    parser.add_argument("--listing", type=str, default=None,
                        help="Category page URL; every product card on it is imported")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to a YAML settings file")
    parser.add_argument("--output", type=str, default=None,
                        help="Review sheet path (.xlsx, .tsv or .csv)")
    parser.add_argument("--failures", type=str, default=None,
                        help="Where to write failed items (.xlsx, .tsv or .csv)")
    parser.add_argument("--store-url", type=str, default=None,
                        help="Catalog REST base URL; omit for a dry run")
    parser.add_argument("--api-key", type=str, default=None,
                        help="Catalog API key (default: $CATALOG_API_KEY)")
    parser.add_argument("--category", type=str, default=None,
                        help="Category name to file the products under")
    parser.add_argument("--publish", action="store_true",
                        help="Create products as active instead of pending review")
    parser.add_argument("--delay", type=float, default=None,
                        help="Seconds to wait between page fetches")
    parser.add_argument("--no-search", action="store_true",
                        help="Do not fall back to the site search")
    parser.add_argument("--browser", action="store_true",
                        help="Render blocked pages with Playwright")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Also write a rotating log file (keeps DEBUG records)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show extraction details on the console")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    settings = load_settings(args.config) if args.config else ImporterSettings()
    if args.delay is not None:
        settings.fetch.delay = args.delay
    if args.no_search:
        settings.fetch.search_fallback = False
    if args.browser:
        settings.fetch.use_browser = True

    items: List[ImportItem] = []
    if not args.listing:
        items = read_items(args.sources, args.file)
        if not items:
            parser.error("nothing to import: pass product URLs, codes or names, --file or --listing")

    fetcher = HttpDocumentFetcher(settings)
    store = None
    try:
        store = build_store(args)
        importer = BatchImporter(settings, fetcher=fetcher, store=store)
        if args.listing:
            page = SourceDocument(fetcher.get_html(args.listing), args.listing)
            result = importer.import_listing(page)
        else:
            result = importer.run(items)
    except (CatalogImportError, ValueError, requests.RequestException) as e:
        logger.error(f"Import aborted: {e}")
        return 2
    finally:
        fetcher.close()
        if isinstance(store, RestCatalogStore):
            store.close()

    if args.output:
        save_table(records_to_dataframe(result.succeeded), args.output)
        logger.info(f"Review sheet written to {args.output}")
    if args.failures and result.failed:
        save_table(failures_to_dataframe(result.failed), args.failures)
        logger.info(f"{len(result.failed)} failed items written to {args.failures}")

    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
