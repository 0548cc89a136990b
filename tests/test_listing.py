from catalog_importer.listing import ListingEntry, extract_listing_html, extract_listing_markdown
from catalog_importer.models import SourceDocument

BASE = "https://www.hubjoias.com.br"

CATEGORY_PAGE = """
<html><body>
<ul class="products">
  <li class="product">
    <a href="/produto/anel-gota/" class="woocommerce-LoopProduct-link">
      <img src="/wp-content/uploads/AN200_HJ.jpg">
      <img src="/wp-content/uploads/woocommerce-placeholder.png">
      <h2 class="woocommerce-loop-product__title">Anel Gota Cristal</h2>
      <span class="price"><bdi>R$&nbsp;39,90</bdi></span>
    </a>
  </li>
  <li class="product">
    <a href="/produto/brinco-sem-preco/" class="woocommerce-LoopProduct-link">
      <h2 class="woocommerce-loop-product__title">Brinco Sem Preço</h2>
    </a>
  </li>
  <li class="product">
    <a href="/categoria/aneis/" class="woocommerce-LoopProduct-link">
      <h2 class="woocommerce-loop-product__title">Ver todos</h2>
      <span class="price">R$ 1,00</span>
    </a>
  </li>
  <li class="product">
    <a href="/produto/anel-gota/" class="woocommerce-LoopProduct-link">
      <h2 class="woocommerce-loop-product__title">Anel Gota Cristal</h2>
      <span class="price">R$ 39,90</span>
    </a>
  </li>
</ul>
</body></html>
"""


def test_extract_listing_html():
    entries = extract_listing_html(SourceDocument(CATEGORY_PAGE, f"{BASE}/categoria/aneis/"))

    assert entries == [
        ListingEntry(
            name="Gota Cristal",
            price=39.9,
            source_url=f"{BASE}/produto/anel-gota/",
            images=[f"{BASE}/wp-content/uploads/AN200_HJ.jpg"],
        )
    ]


def test_listing_entry_to_item():
    item = ListingEntry("Gota Cristal", 39.9, f"{BASE}/produto/anel-gota/").to_item()
    assert item.url == f"{BASE}/produto/anel-gota/"
    assert item.name == "Gota Cristal"
    assert item.document is None


def test_listing_falls_back_to_alternate_cards():
    html = """
    <div class="product"><a href="https://www.hubjoias.com.br/produto/colar-luna/">
      <h2>Colar Luna</h2></a><span class="amount">R$ 55,00</span></div>
    """
    entries = extract_listing_html(SourceDocument(html))
    assert [(e.name, e.price, e.source_url) for e in entries] == [
        ("Luna", 55.0, f"{BASE}/produto/colar-luna/"),
    ]


MARKDOWN = """
![Anel Gota](https://www.hubjoias.com.br/wp-content/uploads/AN200_HJ.jpg)
[**Anel Gota Cristal R$ 39,90**](https://www.hubjoias.com.br/produto/anel-gota/)

Texto qualquer

[Sobre nós](https://www.hubjoias.com.br/sobre/)
[**Brinco Luna R$ 29,90**](/produto/brinco-luna/)
"""


def test_extract_listing_markdown():
    entries = extract_listing_markdown(MARKDOWN)

    assert [(e.name, e.price, e.source_url) for e in entries] == [
        ("Gota Cristal", 39.9, f"{BASE}/produto/anel-gota/"),
        ("Luna", 29.9, f"{BASE}/produto/brinco-luna/"),
    ]
    assert entries[0].images == [f"{BASE}/wp-content/uploads/AN200_HJ.jpg"]
    assert entries[1].images == []


def test_markdown_without_products():
    assert extract_listing_markdown("# nada aqui\n[link](https://x/)") == []
