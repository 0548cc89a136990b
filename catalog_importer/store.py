from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

import requests

from .errors import StoreError
from .models import ImportedProduct

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    def save_product(self, record: ImportedProduct) -> bool:
        ...


class CategoryResolver(Protocol):
    def resolve_category_id(self, label: str) -> Optional[str]:
        ...


def build_product_row(
    record: ImportedProduct,
    category_id: Optional[str] = None,
    publish: bool = False,
    stock_quantity: int = 0,
) -> dict:
    """
    The one place where a record maps onto catalog table columns.

    Imported products land inactive by default so they can be reviewed before
    going live.
    """
    row = {
        # identification
        "name": record.name,
        "slug": record.slug,
        "sku": record.sku,

        # content
        "description": record.description,
        "short_description": record.name,
        "images": record.images,

        # organisation
        "category_id": category_id,

        # commercial
        "price": record.sale_price,
        "cost_price": record.cost_price,
        "weight": record.weight_grams,
        "stock_quantity": stock_quantity,

        "is_active": publish,
        "source_url": record.source_url or None,
    }
    return {k: v for k, v in row.items() if v is not None}


class RestCatalogStore:
    """PostgREST-style client (Supabase REST) for the products/categories tables."""

    def __init__(self, base_url: str, api_key: str, table: str = "products",
                 category_table: str = "categories", category_id: Optional[str] = None,
                 publish: bool = False, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base = base_url.rstrip("/") + "/rest/v1"
        self.table = table
        self.category_table = category_table
        self.category_id = category_id
        self.publish = publish
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        })
        self._category_cache: Dict[str, Optional[str]] = {}

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base}/{path}"
        r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if r.status_code >= 400:
            raise StoreError(f"catalog API error {r.status_code} on {path}: {r.text[:300]}")
        return r

    def save_product(self, record: ImportedProduct) -> bool:
        row = build_product_row(record, category_id=self.category_id, publish=self.publish)
        self._request("POST", self.table, json=row)
        logger.info(f"Saved {record.sku} ({record.name}) to {self.table}")
        return True

    def resolve_category_id(self, label: str) -> Optional[str]:
        key = label.strip().lower()
        if key in self._category_cache:
            return self._category_cache[key]
        r = self._request(
            "GET",
            self.category_table,
            params={"select": "id", "name": f"ilike.{label.strip()}", "limit": 1},
        )
        data = r.json()
        cid = str(data[0]["id"]) if isinstance(data, list) and data else None
        self._category_cache[key] = cid
        return cid

    def close(self):
        self.session.close()


class InMemoryCatalogStore:
    """Keeps rows in a dict keyed by SKU; useful for dry runs."""

    def __init__(self, categories: Optional[Dict[str, str]] = None):
        self.rows: Dict[str, dict] = {}
        self.categories = {k.lower(): v for k, v in (categories or {}).items()}

    def save_product(self, record: ImportedProduct) -> bool:
        self.rows[record.sku] = build_product_row(record)
        return True

    def resolve_category_id(self, label: str) -> Optional[str]:
        return self.categories.get(label.strip().lower())
