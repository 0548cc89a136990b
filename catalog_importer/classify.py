import re
from typing import List, Sequence, Tuple

from .models import ProductType
from .utils import fold

# first match wins; keywords are matched at word starts on the folded name
TYPE_KEYWORDS: Sequence[Tuple[ProductType, Sequence[str]]] = (
    (ProductType.RING, ("anel", "aneis", "ring")),
    (ProductType.EARRING, ("brinco", "argola", "argolinha", "ear cuff", "earcuff", "earring")),
    (ProductType.NECKLACE, ("colar", "gargantilha", "choker", "necklace")),
    (ProductType.BRACELET, ("pulseira", "bracelete", "bracelet")),
    (ProductType.PIERCING, ("piercing",)),
)

TYPE_LABELS = {
    ProductType.RING: "anel",
    ProductType.EARRING: "brinco",
    ProductType.NECKLACE: "colar",
    ProductType.BRACELET: "pulseira",
    ProductType.PIERCING: "piercing",
    ProductType.GENERIC: "joia",
}

FEATURES: Sequence[Tuple[Sequence[str], str]] = (
    (("dourado", "dourada", "ouro", "gold"), "acabamento dourado premium"),
    (("prateado", "prateada", "prata", "silver"), "acabamento prateado elegante"),
    (("zirconia", "zirconias", "zircon"), "cravejado com zircônias de alta qualidade"),
    (("solitario", "solitaire"), "design solitário sofisticado"),
    (("coracao", "heart"), "formato de coração romântico"),
    (("delicado", "delicada", "delicate"), "design delicado e feminino"),
)


def _has_word_start(folded: str, keyword: str) -> bool:
    return re.search(r"\b" + re.escape(keyword), folded) is not None


def classify(name: str) -> ProductType:
    folded = fold(name or "")
    for ptype, keywords in TYPE_KEYWORDS:
        if any(_has_word_start(folded, k) for k in keywords):
            return ptype
    return ProductType.GENERIC


def detect_features(name: str) -> List[str]:
    folded = fold(name or "")
    return [clause for keywords, clause in FEATURES if any(_has_word_start(folded, k) for k in keywords)]
