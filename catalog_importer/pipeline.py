from __future__ import annotations

import logging
import random
import time
from typing import Callable, Iterable, List, Optional, Protocol

from .config import ImporterSettings
from .errors import StoreError
from .extractors import ProductExtractor
from .fetcher import DocumentFetcher, HttpDocumentFetcher
from .listing import extract_listing_html
from .models import (
    BatchState,
    ImportBatchResult,
    ImportedProduct,
    ImportFailure,
    ImportItem,
    SourceDocument,
)
from .normalizer import extract_and_normalize
from .store import CatalogStore
from .utils import SkuGenerator

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    def is_set(self) -> bool:
        ...


class BatchImporter:
    """
    Runs import items one at a time, in input order.

    Each item is fetched (unless it carries its own document), extracted,
    normalized and handed to the catalog store. A failing item is recorded in
    the result and the batch moves on.
    """

    def __init__(
        self,
        settings: Optional[ImporterSettings] = None,
        fetcher: Optional[DocumentFetcher] = None,
        store: Optional[CatalogStore] = None,
        extractor: Optional[ProductExtractor] = None,
        sku_generator: Optional[SkuGenerator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = (settings or ImporterSettings()).validate()
        self.fetcher = fetcher
        self.store = store
        self.extractor = extractor or ProductExtractor(self.settings)
        self.sku_generator = sku_generator or SkuGenerator(tag=self.settings.site.sku_tag)
        self.sleep = sleep
        self.state = BatchState.IDLE
        self._fetches = 0
        self._owns_fetcher = False

    def _get_fetcher(self) -> DocumentFetcher:
        if self.fetcher is None:
            self.fetcher = HttpDocumentFetcher(self.settings)
            self._owns_fetcher = True
        return self.fetcher

    def _throttle(self):
        # politeness pause before every fetch but the first
        if self._fetches > 0:
            cfg = self.settings.fetch
            pause = cfg.delay + (random.uniform(0, cfg.jitter) if cfg.jitter > 0 else 0.0)
            if pause > 0:
                self.sleep(pause)
        self._fetches += 1

    def _close_owned_fetcher(self):
        if self._owns_fetcher and self.fetcher is not None:
            self.fetcher.close()
            self.fetcher = None
            self._owns_fetcher = False

    def process_item(self, item: ImportItem) -> ImportedProduct:
        doc = item.document
        if doc is None:
            self._throttle()
            doc = self._get_fetcher().fetch(item)

        record = extract_and_normalize(
            doc,
            self.extractor,
            candidate_name=item.name,
            sku_generator=self.sku_generator,
        )
        if not record.source_url and item.url:
            record.source_url = item.url

        if self.store is not None and not self.store.save_product(record):
            raise StoreError("catalog store rejected record")
        return record

    def run(self, items: Iterable[ImportItem], cancel: Optional[CancelSignal] = None) -> ImportBatchResult:
        items = list(items)
        if not items:
            raise ValueError("import batch needs at least one item")

        self.state = BatchState.RUNNING
        self._fetches = 0
        result = ImportBatchResult()
        total = len(items)
        logger.info(f"Starting import of {total} items")

        try:
            for i, item in enumerate(items, start=1):
                if cancel is not None and cancel.is_set():
                    logger.warning(f"Import cancelled after {i - 1}/{total} items")
                    result.cancelled = True
                    break

                ident = item.identifier
                try:
                    record = self.process_item(item)
                except Exception as e:
                    reason = str(e) or type(e).__name__
                    logger.error(f"[{i}/{total}] Failed: {ident}: {reason}")
                    result.failed.append(ImportFailure(identifier=ident, reason=reason))
                    continue

                result.succeeded.append(record)
                flag = " (low-confidence price)" if record.price_low_confidence else ""
                logger.info(
                    f"[{i}/{total}] Imported {record.name}: cost R$ {record.cost_price:.2f}, "
                    f"sale R$ {record.sale_price}, {record.weight_grams}g{flag}"
                )
        finally:
            self._close_owned_fetcher()

        self.state = BatchState.COMPLETED
        s = result.summary()
        logger.info(f"Import done: {s['succeeded']} succeeded, {s['failed']} failed"
                    + (" (cancelled)" if s["cancelled"] else ""))
        return result

    def import_documents(self, docs: Iterable[SourceDocument],
                         cancel: Optional[CancelSignal] = None) -> ImportBatchResult:
        return self.run([ImportItem(document=d) for d in docs], cancel=cancel)

    def import_listing(self, doc: SourceDocument, cancel: Optional[CancelSignal] = None) -> ImportBatchResult:
        entries = extract_listing_html(doc, self.settings)
        items: List[ImportItem] = [e.to_item() for e in entries]
        if not items:
            raise ValueError(f"no products found on listing page {doc.url or '<inline>'}")
        return self.run(items, cancel=cancel)
