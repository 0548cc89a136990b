from unittest import mock

import pandas as pd
import pytest

from catalog_importer.errors import StoreError
from catalog_importer.export import failures_to_dataframe, records_to_dataframe, save_table
from catalog_importer.models import ImportedProduct, ImportFailure, ProductType
from catalog_importer.store import InMemoryCatalogStore, RestCatalogStore, build_product_row


@pytest.fixture
def record():
    return ImportedProduct(
        name="Solitário Model X",
        cost_price=45.9,
        sale_price=193,
        weight_grams=2.0,
        images=["https://www.hubjoias.com.br/a.jpg", "https://www.hubjoias.com.br/b.jpg"],
        description="Anel\tsolitário\ncom zircônia",
        slug="solitario-model-x",
        sku="SOMO123401_HJ",
        source_url="https://www.hubjoias.com.br/produto/x/",
        product_type=ProductType.RING,
    )


def test_build_product_row(record):
    row = build_product_row(record)
    assert row["price"] == 193
    assert row["cost_price"] == 45.9
    assert row["weight"] == 2.0
    assert row["is_active"] is False
    assert row["stock_quantity"] == 0
    assert row["short_description"] == "Solitário Model X"
    assert "category_id" not in row


def test_build_product_row_with_category(record):
    row = build_product_row(record, category_id="42", publish=True)
    assert row["category_id"] == "42"
    assert row["is_active"] is True


def fake_response(status=200, payload=None, text=""):
    r = mock.Mock()
    r.status_code = status
    r.text = text
    r.json.return_value = payload
    return r


@pytest.fixture
def session():
    s = mock.Mock()
    s.headers = {}
    s.request.return_value = fake_response(201)
    return s


def test_rest_store_posts_row(record, session):
    store = RestCatalogStore("https://db.example.com/", "key", category_id="7", session=session)

    assert store.save_product(record) is True

    method, url = session.request.call_args.args
    assert (method, url) == ("POST", "https://db.example.com/rest/v1/products")
    row = session.request.call_args.kwargs["json"]
    assert row["sku"] == "SOMO123401_HJ"
    assert row["category_id"] == "7"
    assert session.headers["apikey"] == "key"
    assert session.headers["Authorization"] == "Bearer key"


def test_rest_store_raises_on_api_error(record, session):
    session.request.return_value = fake_response(409, text="duplicate key value")
    store = RestCatalogStore("https://db.example.com", "key", session=session)
    with pytest.raises(StoreError, match="409"):
        store.save_product(record)


def test_rest_store_resolves_and_caches_category(session):
    session.request.return_value = fake_response(200, payload=[{"id": 5}])
    store = RestCatalogStore("https://db.example.com", "key", session=session)

    assert store.resolve_category_id("Anel") == "5"
    assert store.resolve_category_id(" anel ") == "5"

    session.request.assert_called_once()
    params = session.request.call_args.kwargs["params"]
    assert params["name"] == "ilike.Anel"


def test_rest_store_unknown_category(session):
    session.request.return_value = fake_response(200, payload=[])
    store = RestCatalogStore("https://db.example.com", "key", session=session)
    assert store.resolve_category_id("Tornozeleira") is None


def test_in_memory_store(record):
    store = InMemoryCatalogStore(categories={"Anel": "1"})
    assert store.save_product(record)
    assert store.rows["SOMO123401_HJ"]["price"] == 193
    assert store.resolve_category_id("anel") == "1"
    assert store.resolve_category_id("colar") is None


def test_records_to_dataframe_cleans_cells(record):
    df = records_to_dataframe([record])
    assert list(df.columns)[:3] == ["sku", "name", "slug"]
    row = df.iloc[0]
    assert row["product_type"] == "ring"
    assert row["description"] == "Anel solitário com zircônia"
    assert row["image"] == "https://www.hubjoias.com.br/a.jpg"
    assert row["image_count"] == 2


def test_save_table_csv_and_tsv(record, tmp_path):
    df = records_to_dataframe([record])
    csv_path = tmp_path / "review.csv"
    tsv_path = tmp_path / "review.tsv"

    save_table(df, str(csv_path))
    save_table(df, str(tsv_path))

    assert pd.read_csv(csv_path)["sku"].tolist() == ["SOMO123401_HJ"]
    assert pd.read_csv(tsv_path, sep="\t")["sale_price"].tolist() == [193]


def test_save_table_xlsx(record, tmp_path):
    path = tmp_path / "review.xlsx"
    save_table(records_to_dataframe([record]), str(path))
    assert pd.read_excel(path)["name"].tolist() == ["Solitário Model X"]


def test_failures_to_dataframe():
    df = failures_to_dataframe([ImportFailure("AN123", "all 3 URL candidates\nfailed")])
    assert df.to_dict("records") == [{"identifier": "AN123", "reason": "all 3 URL candidates failed"}]
