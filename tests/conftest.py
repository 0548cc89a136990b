"""
Shared fixtures: sample product pages and a fake HTTP session.

No test touches the network.
"""

import pytest
import requests

from catalog_importer.config import ImporterSettings
from catalog_importer.models import SourceDocument

PRODUCT_URL = "https://www.hubjoias.com.br/produto/anel-solitario-model-x/"

RING_PAGE = """
<html>
<head><title>Anel Solitário Model X - HubJoias</title></head>
<body>
  <header><img src="/wp-content/uploads/logo-hubjoias.png"></header>
  <div id="product-123" class="product type-product">
    <div class="summary entry-summary">
      <h1 class="product_title entry-title">Anel Solitário Model X</h1>
      <p class="price"><span class="woocommerce-Price-amount amount"><bdi><span class="woocommerce-Price-currencySymbol">R$</span>&nbsp;45,90</bdi></span></p>
    </div>
    <div class="images">
      <img class="wp-post-image" src="/wp-content/uploads/2024/01/AN123_HJ.jpg">
      <img data-src="https://www.hubjoias.com.br/wp-content/uploads/2024/01/AN123_HJ-2.jpg">
      <img src="/wp-content/uploads/2024/01/AN123_HJ.jpg">
      <img src="/wp-content/uploads/woocommerce-placeholder.png">
    </div>
  </div>
</body>
</html>
"""

EARRING_PAGE_NO_PRICE = """
<html>
<head><title>Brinco Argola Dourada - HubJoias</title></head>
<body>
  <div class="summary entry-summary">
    <h1 class="product_title">Brinco Argola Dourada</h1>
    <p>Consulte disponibilidade.</p>
  </div>
</body>
</html>
"""

HEAVY_NECKLACE_PAGE = """
<html>
<head><title>Colar Coração Delicado - HubJoias</title></head>
<body>
  <div class="summary entry-summary">
    <h1 class="product_title">Colar Coração Delicado</h1>
    <p class="price"><span class="woocommerce-Price-amount amount"><bdi>R$&nbsp;60,00</bdi></span></p>
    <ul class="specs"><li>Peso: 120g</li></ul>
    <div class="woocommerce-product-details__short-description">
      <p>Colar com pingente de coração, banhado a ouro 18k, corrente veneziana.</p>
    </div>
  </div>
</body>
</html>
"""


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Maps URL -> html, (status, html) or an exception instance. Unknown URLs are 404."""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None, **kwargs):
        self.calls.append((url, timeout))
        page = self.pages.get(url)
        if page is None:
            return FakeResponse(404, "not found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, tuple):
            return FakeResponse(*page)
        return FakeResponse(200, page)

    def close(self):
        pass


@pytest.fixture
def settings():
    s = ImporterSettings()
    s.fetch.delay = 0
    s.fetch.search_fallback = False
    return s


@pytest.fixture
def ring_doc():
    return SourceDocument(RING_PAGE, PRODUCT_URL)


@pytest.fixture
def earring_doc():
    return SourceDocument(EARRING_PAGE_NO_PRICE, "https://www.hubjoias.com.br/produto/brinco-argola-dourada/")


@pytest.fixture
def necklace_doc():
    return SourceDocument(HEAVY_NECKLACE_PAGE, "https://www.hubjoias.com.br/produto/colar-coracao-delicado/")
