"""Unit tests for the in-memory record store."""

import pytest

from vendor_feeds.models.errors import SinkError
from vendor_feeds.sink.memory import InMemorySink


def create(sink, identity="A-1", vendor="Acme"):
    return sink.create_record({"title": "T", "body": "B", "vendor": vendor, "identity": identity})


def test_create_and_find(sink):
    record_id = create(sink)
    assert sink.find_by_identity("Acme", "A-1") == record_id
    assert sink.find_by_identity("Other", "A-1") is None


def test_duplicate_identity_is_rejected(sink):
    create(sink)
    with pytest.raises(SinkError) as exc_info:
        create(sink)
    assert exc_info.value.code == "DUPLICATE_IDENTITY"


def test_create_requires_vendor_and_identity(sink):
    with pytest.raises(SinkError):
        sink.create_record({"title": "T", "vendor": "Acme"})


def test_unknown_record_id(sink):
    with pytest.raises(SinkError, match="does not exist"):
        sink.update_record(99, {"title": "x"})


def test_taxonomy_terms_are_not_duplicated(sink):
    record_id = create(sink)
    sink.attach_taxonomy(record_id, "product_cat", "Rings")
    sink.attach_taxonomy(record_id, "product_cat", "Rings")
    sink.attach_taxonomy(record_id, "product_tag", "Sale")
    assert sink.records[record_id].taxonomies == {"product_cat": ["Rings"], "product_tag": ["Sale"]}


def test_gallery_is_comma_joined(sink):
    record_id = create(sink)
    sink.set_gallery(record_id, [3, 5])
    assert sink.records[record_id].gallery == "3,5"


def test_snapshot_round_trip_keeps_identity_index(tmp_path, sink):
    record_id = create(sink)
    sink.set_attributes(record_id, {"price": "9.99"})
    path = tmp_path / "store" / "records.json"
    sink.save(str(path))

    loaded = InMemorySink.load(str(path))

    assert loaded.find_by_identity("Acme", "A-1") == record_id
    assert loaded.records[record_id].attributes == {"price": "9.99"}
    assert create(loaded, identity="A-2") == record_id + 1


def test_load_missing_snapshot_is_empty(tmp_path):
    assert InMemorySink.load(str(tmp_path / "none.json")).records == {}


def test_records_for_vendor(sink):
    create(sink, "A-1", "Acme")
    create(sink, "B-1", "Other")
    assert [r.identity for r in sink.records_for("Acme")] == ["A-1"]
