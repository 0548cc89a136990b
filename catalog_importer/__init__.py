"""Product catalog importer: fetch, extract, normalize and store supplier products."""

from .classify import classify, detect_features
from .config import FetchConfig, ImporterSettings, SiteConfig, load_settings
from .errors import CatalogImportError, FetchError, MissingNameError, NoCandidateUrlError, StoreError
from .extractors import ProductExtractor
from .fetcher import HttpDocumentFetcher, candidate_urls
from .listing import ListingEntry, extract_listing_html, extract_listing_markdown
from .models import (
    NOT_FOUND,
    BatchState,
    Found,
    ImportBatchResult,
    ImportedProduct,
    ImportFailure,
    ImportItem,
    ProductType,
    SourceDocument,
)
from .normalizer import extract_and_normalize, normalize
from .pipeline import BatchImporter
from .pricing import compute_sale_price, estimate_defaults
from .store import InMemoryCatalogStore, RestCatalogStore, build_product_row
from .utils import SkuGenerator, slugify

__all__ = [
    "BatchImporter",
    "BatchState",
    "CatalogImportError",
    "FetchConfig",
    "FetchError",
    "Found",
    "HttpDocumentFetcher",
    "ImportBatchResult",
    "ImportFailure",
    "ImportItem",
    "ImportedProduct",
    "ImporterSettings",
    "InMemoryCatalogStore",
    "ListingEntry",
    "MissingNameError",
    "NOT_FOUND",
    "NoCandidateUrlError",
    "ProductExtractor",
    "ProductType",
    "RestCatalogStore",
    "SiteConfig",
    "SkuGenerator",
    "SourceDocument",
    "StoreError",
    "build_product_row",
    "candidate_urls",
    "classify",
    "compute_sale_price",
    "detect_features",
    "estimate_defaults",
    "extract_and_normalize",
    "extract_listing_html",
    "extract_listing_markdown",
    "load_settings",
    "normalize",
    "slugify",
]
