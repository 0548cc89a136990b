"""
Ordered extraction rules.

A rule pulls one raw string out of a SourceDocument, either with a CSS
selector, a regular expression, a <meta> tag or the JSON-LD Product node.
A FieldExtractor runs its rules in order and returns the first value that
parses and passes the field's predicate.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup

from .models import NOT_FOUND, ExtractedField, Found, SourceDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_jsonld(soup: BeautifulSoup) -> list[dict]:
    out = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(tag.get_text(strip=True))
        except ValueError:
            continue
        if isinstance(data, list):
            out.extend([d for d in data if isinstance(d, dict)])
        elif isinstance(data, dict):
            out.append(data)
    return out


def _is_product(obj: dict) -> bool:
    t = obj.get("@type")
    return t == "Product" or (isinstance(t, list) and "Product" in t)


def find_product_ld(ld_list: list[dict]) -> dict | None:
    for obj in ld_list:
        if _is_product(obj):
            return obj
    for obj in ld_list:
        g = obj.get("@graph")
        if isinstance(g, list):
            for x in g:
                if isinstance(x, dict) and _is_product(x):
                    return x
    return None


class Rule(ABC):
    # scoped rules run against the narrowed document when the extractor has one
    scoped: bool = False
    # overrides the extractor's parser for this rule only
    parse: Optional[Callable[[str], Any]] = None

    def with_parser(self, parse: Callable[[str], Any]) -> "Rule":
        self.parse = parse
        return self

    @abstractmethod
    def apply(self, doc: SourceDocument) -> Optional[str]:
        ...


class RegexRule(Rule):
    def __init__(self, pattern: str, group: int = 1, target: str = "html",
                 flags: int = re.IGNORECASE, scoped: bool = False):
        if target not in ("html", "text"):
            raise ValueError(f"unknown regex target {target!r}")
        self.regex = re.compile(pattern, flags)
        self.group = group
        self.target = target
        self.scoped = scoped

    def apply(self, doc: SourceDocument) -> Optional[str]:
        haystack = doc.content if self.target == "html" else doc.text
        m = self.regex.search(haystack or "")
        if not m:
            return None
        return m.group(self.group)

    def __repr__(self) -> str:
        return f"RegexRule({self.regex.pattern!r})"


class CssRule(Rule):
    def __init__(self, selector: str, attr: Optional[str] = None, scoped: bool = False):
        self.selector = selector
        self.attr = attr
        self.scoped = scoped

    def apply(self, doc: SourceDocument) -> Optional[str]:
        el = doc.soup.select_one(self.selector)
        if el is None:
            return None
        if self.attr:
            v = el.get(self.attr)
            return v.strip() if isinstance(v, str) else None
        # inner html so post-processing can strip tags itself
        return el.decode_contents()

    def __repr__(self) -> str:
        return f"CssRule({self.selector!r})"


class MetaRule(Rule):
    def __init__(self, key: str):
        self.key = key

    def apply(self, doc: SourceDocument) -> Optional[str]:
        soup = doc.soup
        for attr in ("property", "name", "itemprop"):
            el = soup.find(attrs={attr: self.key, "content": True})
            if el is not None:
                return el["content"].strip()
        return None

    def __repr__(self) -> str:
        return f"MetaRule({self.key!r})"


class JsonLdRule(Rule):
    """Walks the JSON-LD Product node; each path is a tuple of keys, first hit wins."""

    def __init__(self, *paths: Sequence[str]):
        self.paths = paths

    @staticmethod
    def _walk(node: Any, path: Sequence[str]) -> Any:
        for key in path:
            if isinstance(node, list):
                node = node[0] if node else None
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node

    def apply(self, doc: SourceDocument) -> Optional[str]:
        product = find_product_ld(extract_jsonld(doc.soup))
        if not product:
            return None
        for path in self.paths:
            v = self._walk(product, path)
            if isinstance(v, (str, int, float)) and not isinstance(v, bool) and str(v).strip():
                return str(v).strip()
        return None

    def __repr__(self) -> str:
        return f"JsonLdRule({self.paths!r})"


class FieldExtractor(Generic[T]):
    def __init__(
        self,
        field_name: str,
        rules: List[Rule],
        parse: Callable[[str], Optional[T]],
        predicate: Callable[[T], bool],
    ):
        self.field_name = field_name
        self.rules = rules
        self.parse = parse
        self.predicate = predicate

    def extract(self, doc: SourceDocument, scoped: Optional[SourceDocument] = None) -> ExtractedField:
        for i, rule in enumerate(self.rules):
            target = scoped if (rule.scoped and scoped is not None) else doc
            raw = rule.apply(target)
            if raw is None:
                continue
            value = (rule.parse or self.parse)(raw)
            if value is None:
                continue
            if self.predicate(value):
                logger.debug(f"[{self.field_name}] rule {i} {rule!r} matched: {value!r}")
                return Found(value, i, raw=raw)
            logger.debug(f"[{self.field_name}] rule {i} {rule!r} rejected {value!r}")
        return NOT_FOUND
