from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup

T = TypeVar("T")


class ProductType(Enum):
    RING = "ring"
    EARRING = "earring"
    NECKLACE = "necklace"
    BRACELET = "bracelet"
    PIERCING = "piercing"
    GENERIC = "generic"


class BatchState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class SourceDocument:
    """Raw page content (HTML or markdown-like text) plus where it came from."""
    content: str
    url: str = ""
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)
    _text: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    @property
    def base_url(self) -> str:
        p = urlparse(self.url)
        if p.scheme and p.netloc:
            return f"{p.scheme}://{p.netloc}"
        return ""

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.content or "", "lxml")
        return self._soup

    @property
    def text(self) -> str:
        # visible text, scripts and styles removed
        if self._text is None:
            soup = BeautifulSoup(self.content or "", "lxml")
            for tag in soup(["script", "style", "noscript"]):
                tag.decompose()
            self._text = soup.get_text(" ", strip=True)
        return self._text


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T
    rule_index: int
    raw: Optional[str] = None
    low_confidence: bool = False


class NotFound:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()

ExtractedField = Union[Found[T], NotFound]


@dataclass
class ExtractedFields:
    name: ExtractedField = NOT_FOUND
    price: ExtractedField = NOT_FOUND
    weight: ExtractedField = NOT_FOUND
    images: ExtractedField = NOT_FOUND
    description: ExtractedField = NOT_FOUND


@dataclass
class ImportedProduct:
    name: str
    cost_price: float
    sale_price: int
    weight_grams: float
    images: List[str]
    description: str
    slug: str
    sku: str
    source_url: str = ""

    # provenance
    product_type: ProductType = ProductType.GENERIC
    price_source: str = "extracted"
    price_rule_index: Optional[int] = None
    price_low_confidence: bool = False
    weight_source: str = "extracted"
    description_generated: bool = False


@dataclass
class ImportItem:
    document: Optional[SourceDocument] = None
    url: Optional[str] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def identifier(self) -> str:
        for v in (self.sku, self.name, self.url, self.image_url):
            if v and v.strip():
                return v.strip()
        if self.document is not None and self.document.url:
            return self.document.url
        return "<unidentified>"


@dataclass
class ImportFailure:
    identifier: str
    reason: str


@dataclass
class ImportBatchResult:
    succeeded: List[ImportedProduct] = field(default_factory=list)
    failed: List[ImportFailure] = field(default_factory=list)
    cancelled: bool = False

    def summary(self) -> dict:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "cancelled": self.cancelled,
        }
