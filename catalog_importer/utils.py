from __future__ import annotations

import html
import itertools
import re
import time
import unicodedata
from typing import Callable, Iterable, List, Optional

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def clean_text(s: Optional[str]) -> str:
    if not s:
        return ""
    return _WS_RE.sub(" ", s).strip()


def strip_tags(s: str) -> str:
    return _TAG_RE.sub(" ", s or "")


def decode_entities(s: str) -> str:
    # &amp; &#8211; &nbsp; ...; anything html can't decode is dropped
    s = html.unescape(s or "")
    return re.sub(r"&[a-zA-Z0-9#]+;", "", s).replace("\xa0", " ")


def strip_accents(s: str) -> str:
    nfd = unicodedata.normalize("NFD", s or "")
    return "".join(ch for ch in nfd if unicodedata.category(ch) != "Mn")


def fold(s: str) -> str:
    """Lower-case, accent-free form used for keyword matching."""
    return strip_accents(s).lower()


def slugify(name: str) -> str:
    return _NON_ALNUM_RE.sub("-", fold(name)).strip("-")


def dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for x in items:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return out


def tokens(s: str) -> set[str]:
    return set(re.sub(r"[^a-z0-9\s]", " ", fold(s)).split())


def jaccard(a: str, b: str) -> float:
    ta, tb = tokens(a), tokens(b)
    union = ta | tb
    if not union:
        return 0.0
    return len(ta & tb) / len(union)


def sku_prefix(name: str) -> str:
    words = [w for w in strip_accents(name).split() if len(w) > 2]
    prefix = "".join(re.sub(r"[^A-Za-z0-9]", "", w)[:2].upper() for w in words[:2])
    return prefix or "JO"


def generate_sku(name: str, stamp: int, seq: int, tag: str = "HJ") -> str:
    return f"{sku_prefix(name)}{stamp % 10000:04d}{seq:02d}_{tag}"


class SkuGenerator:
    """Hands out SKUs that never repeat for the lifetime of the generator."""

    def __init__(self, tag: str = "HJ", clock: Callable[[], float] = time.time):
        self.tag = tag
        self.clock = clock
        self._seq = itertools.count()
        self._issued: set[str] = set()

    def next(self, name: str) -> str:
        stamp = int(self.clock() * 1000)
        while True:
            sku = generate_sku(name, stamp, next(self._seq), self.tag)
            if sku not in self._issued:
                self._issued.add(sku)
                return sku
