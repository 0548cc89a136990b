from __future__ import annotations

import re
from typing import Any, Iterable, List

import pandas as pd

from .models import ImportedProduct, ImportFailure

RECORD_COLUMNS = [
    "sku",
    "name",
    "slug",
    "product_type",
    "cost_price",
    "sale_price",
    "price_source",
    "price_low_confidence",
    "weight_grams",
    "weight_source",
    "image",
    "image_count",
    "description",
    "source_url",
]


def _clean_cell(val: Any) -> Any:
    if val is None:
        return ""
    if isinstance(val, (bool, int, float)):
        return val
    s = str(val)
    s = re.sub(r"[\t\r\n]+", " ", s)
    s = re.sub(r"\s{2,}", " ", s).strip()
    return s


def records_to_dataframe(records: Iterable[ImportedProduct]) -> pd.DataFrame:
    rows: List[dict] = []
    for r in records:
        row = {
            "sku": r.sku,
            "name": r.name,
            "slug": r.slug,
            "product_type": r.product_type.value,
            "cost_price": round(r.cost_price, 2),
            "sale_price": r.sale_price,
            "price_source": r.price_source,
            "price_low_confidence": r.price_low_confidence,
            "weight_grams": r.weight_grams,
            "weight_source": r.weight_source,
            # review sheet shows the first image only
            "image": r.images[0] if r.images else "",
            "image_count": len(r.images),
            "description": r.description,
            "source_url": r.source_url,
        }
        rows.append({k: _clean_cell(v) for k, v in row.items()})
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def failures_to_dataframe(failures: Iterable[ImportFailure]) -> pd.DataFrame:
    rows = [{"identifier": _clean_cell(f.identifier), "reason": _clean_cell(f.reason)} for f in failures]
    return pd.DataFrame(rows, columns=["identifier", "reason"])


def save_tsv(df: pd.DataFrame, path: str) -> None:
    df.to_csv(path, sep="\t", index=False, encoding="utf-8")


def save_table(df: pd.DataFrame, path: str) -> None:
    p = str(path).lower()
    if p.endswith(".xlsx"):
        df.to_excel(path, index=False)
    elif p.endswith(".tsv"):
        save_tsv(df, path)
    else:
        df.to_csv(path, index=False, encoding="utf-8")
