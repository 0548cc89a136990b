import math
from dataclasses import dataclass
from typing import Mapping

from .models import ProductType


@dataclass(frozen=True)
class Estimate:
    cost_price: float
    weight_grams: float


# typical HubJoias wholesale price (BRL) and weight (g) per product type
DEFAULT_ESTIMATES: Mapping[ProductType, Estimate] = {
    ProductType.RING: Estimate(45.00, 2.0),
    ProductType.EARRING: Estimate(32.00, 1.5),
    ProductType.NECKLACE: Estimate(55.00, 3.5),
    ProductType.BRACELET: Estimate(48.00, 2.8),
    ProductType.PIERCING: Estimate(39.00, 0.8),
    ProductType.GENERIC: Estimate(39.00, 1.5),
}

DEFAULT_MARGIN_MULTIPLIER = 4.2


def round_half_up(value: float) -> int:
    # round() in python rounds .5 to even; prices round .5 up
    return int(math.floor(value + 0.5))


def estimate_defaults(
    product_type: ProductType,
    table: Mapping[ProductType, Estimate] = DEFAULT_ESTIMATES,
) -> Estimate:
    est = table.get(product_type)
    if est is None:
        est = table.get(ProductType.GENERIC) or DEFAULT_ESTIMATES[ProductType.GENERIC]
    return est


def compute_sale_price(cost_price: float, margin_multiplier: float = DEFAULT_MARGIN_MULTIPLIER) -> int:
    """Sale price for a cost price. Every record's sale price comes from here."""
    if margin_multiplier <= 0:
        raise ValueError(f"margin multiplier must be positive, got {margin_multiplier}")
    return round_half_up(cost_price * margin_multiplier)
