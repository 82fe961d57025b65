"""Unit tests for the upsert engine."""

import pytest

from vendor_feeds.models.data_models import UpsertAction
from vendor_feeds.processor.assets import AssetResolver
from vendor_feeds.processor.mapper import map_record
from vendor_feeds.processor.reconciler import Reconciler
from vendor_feeds.sink.assets import LocalAssetStore
from vendor_feeds.sink.memory import InMemorySink
from tests.fixtures.sample_data import get_sample_records


@pytest.fixture
def asset_store(tmp_path):
    root = tmp_path / "assets"
    (root / "2024").mkdir(parents=True)
    for name in ("ring-1.jpg", "ring-1-side.jpg"):
        (root / "2024" / name).write_bytes(b"jpg")
    return LocalAssetStore(str(root))


def test_first_upsert_creates(sink, json_vendor):
    raw = get_sample_records(1)[0]
    result = Reconciler(sink).upsert(map_record(raw, json_vendor), json_vendor)

    assert result.action == UpsertAction.CREATED
    assert result.identity == "R-1"
    assert result.message == "Created: Ring 1 (vendor_sku: R-1)"
    record = sink.records[result.record_id]
    assert record.title == "Ring 1"
    assert record.body == "Gold ring number 1"
    assert record.vendor == "Acme Jewels"
    assert record.attributes["vendor_sku"] == "R-1"
    assert record.attributes["price"] == "100000.50"
    assert "title" not in record.attributes
    assert record.taxonomies == {"product_cat": ["Rings", "Gold"]}


def test_second_upsert_updates_same_record(sink, json_vendor):
    reconciler = Reconciler(sink)
    raw = get_sample_records(1)[0]
    first = reconciler.upsert(map_record(raw, json_vendor), json_vendor)

    raw["name"] = "Ring One"
    second = reconciler.upsert(map_record(raw, json_vendor), json_vendor)

    assert second.action == UpsertAction.UPDATED
    assert second.record_id == first.record_id
    assert len(sink.records) == 1
    assert sink.records[first.record_id].title == "Ring One"
    assert second.message.startswith("Updated: Ring One")


def test_reimport_is_idempotent(sink, json_vendor):
    reconciler = Reconciler(sink)
    raw = get_sample_records(1)[0]
    reconciler.upsert(map_record(raw, json_vendor), json_vendor)
    snapshot = sink.to_dict()

    reconciler.upsert(map_record(raw, json_vendor), json_vendor)

    assert sink.to_dict() == snapshot


def test_same_identity_different_vendor_is_separate(sink, json_vendor):
    reconciler = Reconciler(sink)
    other = json_vendor.model_copy(update={"name": "Other Jewels"})
    raw = get_sample_records(1)[0]

    first = reconciler.upsert(map_record(raw, json_vendor), json_vendor)
    second = reconciler.upsert(map_record(raw, other), other)

    assert second.action == UpsertAction.CREATED
    assert second.record_id != first.record_id


def test_missing_identity_errors_without_write(sink, json_vendor):
    result = Reconciler(sink).upsert(map_record({"name": "No SKU"}, json_vendor), json_vendor)

    assert result.action == UpsertAction.ERRORED
    assert result.record_id is None
    assert "sku" in result.message
    assert sink.records == {}


def test_blank_identity_errors(sink, json_vendor):
    result = Reconciler(sink).upsert(map_record({"sku": "   "}, json_vendor), json_vendor)
    assert result.action == UpsertAction.ERRORED


def test_sink_rejection_becomes_errored_result(json_vendor):
    class RacingSink(InMemorySink):
        """Misses on lookup, as a concurrent writer would."""

        def find_by_identity(self, vendor, identity):
            return None

    sink = RacingSink()
    reconciler = Reconciler(sink)
    normalized = map_record({"sku": "R-1", "name": "Ring"}, json_vendor)

    assert reconciler.upsert(normalized, json_vendor).action == UpsertAction.CREATED
    result = reconciler.upsert(normalized, json_vendor)

    assert result.action == UpsertAction.ERRORED
    assert "already exists" in result.message
    assert len(sink.records) == 1


def test_images_attach_primary_and_gallery(sink, json_vendor, asset_store):
    reconciler = Reconciler(sink, AssetResolver(asset_store))
    raw = get_sample_records(1)[0]
    result = reconciler.upsert(map_record(raw, json_vendor), json_vendor)

    record = sink.records[result.record_id]
    primary = asset_store.find_by_filename("ring-1.jpg")
    side = asset_store.find_by_filename("ring-1-side.jpg")
    assert record.primary_image == primary
    assert record.gallery == str(side)


def test_duplicate_images_are_not_repeated_in_gallery(sink, json_vendor, asset_store):
    reconciler = Reconciler(sink, AssetResolver(asset_store))
    raw = {"sku": "R-1", "name": "Ring", "images": "ring-1.jpg, ring-1-side.jpg, ring-1.jpg, ring-1-side.jpg"}
    result = reconciler.upsert(map_record(raw, json_vendor), json_vendor)

    record = sink.records[result.record_id]
    assert record.gallery == str(asset_store.find_by_filename("ring-1-side.jpg"))


def test_unresolved_images_do_not_fail_the_record(sink, json_vendor, asset_store):
    resolver = AssetResolver(asset_store)
    raw = {"sku": "R-9", "name": "Ring", "images": ["missing.jpg"]}
    result = Reconciler(sink, resolver).upsert(map_record(raw, json_vendor), json_vendor)

    assert result.action == UpsertAction.CREATED
    assert sink.records[result.record_id].primary_image is None
    assert resolver.missing == [(result.record_id, "missing.jpg")]


def test_malformed_image_url_does_not_fail_the_record(sink, json_vendor, asset_store):
    resolver = AssetResolver(asset_store)
    raw = {"sku": "R-10", "name": "Ring", "images": ["http://[cdn/a.jpg", "ring-1.jpg"]}
    result = Reconciler(sink, resolver).upsert(map_record(raw, json_vendor), json_vendor)

    assert result.action == UpsertAction.CREATED
    record = sink.records[result.record_id]
    assert record.primary_image == asset_store.find_by_filename("ring-1.jpg")
    assert resolver.missing == [(result.record_id, "http://[cdn/a.jpg")]
