"""
Importer settings: site layout, fetch behaviour, commercial defaults.

Everything the pipeline would otherwise hard-code lives here so a run (or a
test) can override it. Settings can be loaded from a YAML file, see
config.example.yaml.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from .models import ProductType
from .pricing import DEFAULT_ESTIMATES, DEFAULT_MARGIN_MULTIPLIER, Estimate

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class SiteConfig:
    base_url: str = "https://www.hubjoias.com.br"
    product_path: str = "produto"
    alt_product_path: str = "produtos"
    search_path: str = "/?s="
    title_suffix: str = "HubJoias"
    sku_tag: str = "HJ"


@dataclass
class FetchConfig:
    timeout: float = 12.0
    user_agent: str = USER_AGENT
    accept_language: str = "pt-BR,pt;q=0.9,en;q=0.8"
    delay: float = 0.5
    jitter: float = 0.0
    use_cloudscraper: bool = True
    use_browser: bool = False
    search_fallback: bool = True
    max_search_results: int = 5


@dataclass
class ImporterSettings:
    margin_multiplier: float = DEFAULT_MARGIN_MULTIPLIER
    weight_ceiling: float = 50.0
    rescue_price_range: Tuple[float, float] = (15.0, 200.0)
    max_images: int = 5
    placeholder_markers: List[str] = field(default_factory=lambda: ["placeholder", "logo", "icon", "sprite"])
    category_prefixes: List[str] = field(default_factory=lambda: [
        "anel", "brinco", "colar", "pulseira",
        "ring", "earring", "necklace", "bracelet",
    ])
    min_name_length: int = 3
    min_description_length: int = 20
    estimates: Mapping[ProductType, Estimate] = field(default_factory=lambda: dict(DEFAULT_ESTIMATES))
    # extra CSS rules per field, tried before the built-in ones
    # {"name": ["h1.my-title"], "price": [...], "description": [...], "images": [...]}
    selectors: Dict[str, List[str]] = field(default_factory=dict)
    site: SiteConfig = field(default_factory=SiteConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)

    def validate(self) -> "ImporterSettings":
        if self.margin_multiplier <= 1:
            raise ValueError(f"margin_multiplier must be > 1, got {self.margin_multiplier}")
        if self.weight_ceiling <= 0:
            raise ValueError(f"weight_ceiling must be > 0, got {self.weight_ceiling}")
        lo, hi = self.rescue_price_range
        if not 0 < lo <= hi:
            raise ValueError(f"invalid rescue_price_range {self.rescue_price_range}")
        if self.fetch.timeout <= 0:
            raise ValueError(f"fetch timeout must be > 0, got {self.fetch.timeout}")
        return self


def _pick(cls, raw: Optional[dict]) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (raw or {}).items() if k in names}


def _parse_estimates(raw: Optional[dict]) -> Dict[ProductType, Estimate]:
    table = dict(DEFAULT_ESTIMATES)
    for key, val in (raw or {}).items():
        ptype = ProductType(str(key).lower())
        base = table[ptype]
        table[ptype] = Estimate(
            cost_price=float(val.get("cost_price", base.cost_price)),
            weight_grams=float(val.get("weight_grams", base.weight_grams)),
        )
    return table


def settings_from_dict(raw: Optional[dict]) -> ImporterSettings:
    raw = dict(raw or {})
    site = SiteConfig(**_pick(SiteConfig, raw.pop("site", None)))
    fetch = FetchConfig(**_pick(FetchConfig, raw.pop("fetch", None)))
    estimates = _parse_estimates(raw.pop("estimates", None))

    top = _pick(ImporterSettings, raw)
    if "rescue_price_range" in top:
        lo, hi = top["rescue_price_range"]
        top["rescue_price_range"] = (float(lo), float(hi))

    return ImporterSettings(site=site, fetch=fetch, estimates=estimates, **top).validate()


def load_settings(config_path: str = "config.yaml") -> ImporterSettings:
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return settings_from_dict(raw)
