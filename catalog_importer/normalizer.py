from __future__ import annotations

import logging
from typing import Optional

from .classify import TYPE_LABELS, classify, detect_features
from .config import ImporterSettings
from .errors import MissingNameError
from .extractors import ProductExtractor
from .models import ExtractedFields, Found, ImportedProduct, ProductType, SourceDocument
from .pricing import compute_sale_price, estimate_defaults
from .utils import SkuGenerator, clean_text, slugify

logger = logging.getLogger(__name__)


def generate_description(name: str, product_type: ProductType) -> str:
    features = detect_features(name)
    features_text = f" com {', '.join(features)}" if features else ""
    label = TYPE_LABELS[product_type]
    return (
        f"{name} - Elegante {label}{features_text}. "
        "Peça de alta qualidade com design contemporâneo e sofisticado. "
        "Ideal para uso diário ou ocasiões especiais. "
        "Acabamento resistente e confortável, garantindo durabilidade e estilo."
    )


def normalize(
    fields: ExtractedFields,
    *,
    candidate_name: Optional[str] = None,
    source_url: str = "",
    settings: Optional[ImporterSettings] = None,
    sku_generator: Optional[SkuGenerator] = None,
) -> ImportedProduct:
    """Merge extracted fields with estimator defaults into one record.

    Raises MissingNameError when neither the page nor the caller supplies a name.
    """
    settings = settings or ImporterSettings()
    sku_generator = sku_generator or SkuGenerator(tag=settings.site.sku_tag)

    if isinstance(fields.name, Found):
        name = fields.name.value
        type_source = fields.name.raw or name
    elif candidate_name and clean_text(candidate_name):
        name = clean_text(candidate_name)
        type_source = name
        logger.info(f"Using provided product name: {name}")
    else:
        raise MissingNameError("could not extract a product name and none was supplied")

    product_type = classify(type_source)
    if product_type is ProductType.GENERIC:
        product_type = classify(name)
    estimate = estimate_defaults(product_type, settings.estimates)

    if isinstance(fields.price, Found):
        cost_price = float(fields.price.value)
        price_source, price_rule = "extracted", fields.price.rule_index
        low_confidence = fields.price.low_confidence
    else:
        cost_price = estimate.cost_price
        price_source, price_rule, low_confidence = "estimated", None, False
        logger.info(f"Using estimated cost price for {name}: R$ {cost_price:.2f}")

    weight = fields.weight.value if isinstance(fields.weight, Found) else None
    if weight is not None and 0 < weight < settings.weight_ceiling:
        weight_source = "extracted"
    else:
        weight = estimate.weight_grams
        weight_source = "estimated"
        logger.debug(f"Using estimated weight for {name}: {weight}g")

    if isinstance(fields.description, Found):
        description, generated = fields.description.value, False
    else:
        description, generated = generate_description(name, product_type), True

    images = list(fields.images.value) if isinstance(fields.images, Found) else []

    sku = sku_generator.next(name)
    # names without any latin letters or digits slug to nothing
    slug = slugify(name) or slugify(sku)

    return ImportedProduct(
        name=name,
        cost_price=cost_price,
        sale_price=compute_sale_price(cost_price, settings.margin_multiplier),
        weight_grams=weight,
        images=images,
        description=description,
        slug=slug,
        sku=sku,
        source_url=source_url,
        product_type=product_type,
        price_source=price_source,
        price_rule_index=price_rule,
        price_low_confidence=low_confidence,
        weight_source=weight_source,
        description_generated=generated,
    )


def extract_and_normalize(
    doc: SourceDocument,
    extractor: ProductExtractor,
    *,
    candidate_name: Optional[str] = None,
    sku_generator: Optional[SkuGenerator] = None,
) -> ImportedProduct:
    fields = extractor.extract_all(doc)
    return normalize(
        fields,
        candidate_name=candidate_name,
        source_url=doc.url,
        settings=extractor.settings,
        sku_generator=sku_generator,
    )
