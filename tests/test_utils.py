import pytest

from catalog_importer.utils import (
    SkuGenerator,
    decode_entities,
    dedupe,
    generate_sku,
    jaccard,
    sku_prefix,
    slugify,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Anel Solitário Model X", "anel-solitario-model-x"),
        ("  Brinco -- Argola  Dourada!! ", "brinco-argola-dourada"),
        ("Colar Coração 18k", "colar-coracao-18k"),
        ("---", ""),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", ["Anel Solitário Model X", "Pulseira  Riviera / Zircônia", "ÇÃO -- ãé"])
def test_slugify_is_idempotent_and_clean(name):
    slug = slugify(name)
    assert slugify(slug) == slug
    assert "--" not in slug
    assert not slug.startswith("-") and not slug.endswith("-")


def test_decode_entities_drops_unknown_and_nbsp():
    assert decode_entities("R$&nbsp;45,90 &amp; mais &foo123;") == "R$ 45,90 & mais "


def test_sku_prefix():
    assert sku_prefix("Anel Solitário Model X") == "ANSO"
    assert sku_prefix("Anel de Prata") == "ANPR"
    assert sku_prefix("a b") == "JO"


def test_generate_sku_format():
    assert generate_sku("Anel Solitário", 1234567, 3) == "ANSO456703_HJ"
    assert generate_sku("Anel Solitário", 1234567, 3, tag="XX").endswith("_XX")


def test_sku_generator_never_repeats_with_frozen_clock():
    gen = SkuGenerator(clock=lambda: 1_700_000_000.123)
    skus = [gen.next("Anel Solitário") for _ in range(150)]
    assert len(set(skus)) == len(skus)
    assert all(s.startswith("ANSO") and s.endswith("_HJ") for s in skus)


def test_dedupe_keeps_order_and_drops_empty():
    assert dedupe(["b", "a", "", "b", "c", "a"]) == ["b", "a", "c"]


def test_jaccard():
    assert jaccard("Anel Solitário", "anel solitario") == 1.0
    assert jaccard("Anel Solitário", "Brinco Argola") == 0.0
    assert jaccard("", "") == 0.0
