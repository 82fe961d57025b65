"""Pytest configuration and shared fixtures."""

import pytest

from vendor_feeds.models.config import ImporterConfig, PaginationSpec, VendorConfig
from vendor_feeds.sink.memory import InMemorySink
from tests.fixtures.sample_data import get_sample_records, get_sample_rows, write_csv, write_json


@pytest.fixture
def json_vendor():
    """Vendor with nested source paths, handlers, transforms and taxonomies."""
    return VendorConfig(
        name="Acme Jewels",
        source="acme.json",
        identity_field="sku",
        field_mapping={
            "sku": "sku",
            "name": "title",
            "description": "description",
            "pricing.retail": "price",
            "stock": "stock_status",
            "tags": "categories",
            "images": "images",
        },
        transforms={"pricing.retail": "decimal"},
        special_handlers={"stock": "stock_status", "tags": "split_list"},
        taxonomy_mapping={"categories": "product_cat"},
        image_fields=["images"],
    )


@pytest.fixture
def csv_vendor():
    """Vendor whose source paths are CSV column names."""
    return VendorConfig(
        name="Chains Inc",
        source="chains.csv",
        identity_field="SKU",
        field_mapping={
            "SKU": "sku",
            "Title": "title",
            "Price": "price",
            "Qty": "stock_status",
            "Category": "categories",
            "Images": "images",
        },
        transforms={"Price": "numeric", "Qty": "boolean"},
        special_handlers={"Category": "split_list"},
        taxonomy_mapping={"categories": "product_cat"},
        image_fields=["images"],
    )


@pytest.fixture
def api_vendor():
    """Page-paginated remote vendor."""
    return VendorConfig(
        name="Feed Co",
        source="http://feed.test/products",
        identity_field="sku",
        field_mapping={"sku": "sku", "name": "title"},
        pagination=PaginationSpec(strategy="page", page_size=100, total_path="meta.total_pages"),
    )


@pytest.fixture
def sink():
    return InMemorySink()


@pytest.fixture
def data_dir(tmp_path):
    """Data directory holding acme.json (5 records) and chains.csv (7 rows)."""
    directory = tmp_path / "data"
    directory.mkdir()
    write_json(directory / "acme.json", {"products": get_sample_records(5)})
    write_csv(directory / "chains.csv", get_sample_rows(7))
    return directory


@pytest.fixture
def importer_config(tmp_path, data_dir, json_vendor, csv_vendor):
    return ImporterConfig(
        data_directory=str(data_dir),
        asset_root=str(tmp_path / "assets"),
        output_directory=str(tmp_path / "out"),
        vendors={"acme": json_vendor, "chains": csv_vendor},
    )
