from unittest import mock

import pandas as pd
import pytest

from catalog_importer import main as cli
from catalog_importer.fetcher import HttpDocumentFetcher
from catalog_importer.models import ImportItem

from .conftest import PRODUCT_URL, RING_PAGE, FakeSession

LISTING_URL = "https://www.hubjoias.com.br/categoria/aneis/"
LISTING = (
    '<ul class="products"><li class="product">'
    '<a href="/produto/anel-solitario-model-x/" class="woocommerce-LoopProduct-link">'
    '<h2 class="woocommerce-loop-product__title">Anel Solitário Model X</h2></a>'
    "</li></ul>"
)


@pytest.mark.parametrize(
    "token, expected",
    [
        (PRODUCT_URL, ImportItem(url=PRODUCT_URL)),
        ("https://www.hubjoias.com.br/wp-content/uploads/AN123_HJ.jpg?v=2",
         ImportItem(image_url="https://www.hubjoias.com.br/wp-content/uploads/AN123_HJ.jpg?v=2")),
        ("AN123", ImportItem(sku="AN123")),
        ("  Anel Solitário Model X ", ImportItem(name="Anel Solitário Model X")),
        ("", None),
        ("# comentário", None),
    ],
)
def test_parse_item(token, expected):
    assert cli.parse_item(token) == expected


def test_read_items_merges_args_and_file(tmp_path):
    path = tmp_path / "items.txt"
    path.write_text("AN123\n\n# skip\nBrinco Gota Cristal\n", encoding="utf-8")
    items = cli.read_items([PRODUCT_URL], str(path))
    assert [i.identifier for i in items] == [PRODUCT_URL, "AN123", "Brinco Gota Cristal"]


@pytest.fixture
def fake_http(monkeypatch):
    pages = {PRODUCT_URL: RING_PAGE, LISTING_URL: LISTING}
    monkeypatch.setattr(cli, "setup_logger", mock.Mock())
    monkeypatch.setattr(
        cli, "HttpDocumentFetcher",
        lambda settings: HttpDocumentFetcher(settings, session=FakeSession(pages)),
    )
    return pages


def test_main_writes_review_sheet(tmp_path, fake_http):
    out = tmp_path / "review.csv"
    code = cli.main([PRODUCT_URL, "--delay", "0", "--no-search", "--output", str(out)])

    assert code == 0
    df = pd.read_csv(out)
    assert list(df["name"]) == ["Solitário Model X"]
    assert list(df["sale_price"]) == [193]


def test_main_reports_failed_items(tmp_path, fake_http):
    failures = tmp_path / "failed.csv"
    missing = "https://www.hubjoias.com.br/produto/nao-existe/"
    code = cli.main([PRODUCT_URL, missing, "--delay", "0", "--no-search",
                     "--failures", str(failures)])

    assert code == 1
    df = pd.read_csv(failures)
    assert list(df["identifier"]) == [missing]


def test_main_imports_listing(tmp_path, fake_http):
    out = tmp_path / "review.csv"
    code = cli.main(["--listing", LISTING_URL, "--delay", "0", "--no-search", "--output", str(out)])

    assert code == 0
    assert list(pd.read_csv(out)["slug"]) == ["solitario-model-x"]


def test_main_without_items_exits(fake_http):
    with pytest.raises(SystemExit):
        cli.main(["--no-search"])


def test_store_url_without_api_key_aborts(fake_http, monkeypatch):
    monkeypatch.delenv("CATALOG_API_KEY", raising=False)
    code = cli.main([PRODUCT_URL, "--store-url", "https://loja.example.com"])
    assert code == 2
