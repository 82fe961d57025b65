"""Unit tests for asset resolution and the local asset store."""

import httpx
import pytest

from vendor_feeds.fetcher.http_client import FeedHTTPClient
from vendor_feeds.models.errors import AssetError
from vendor_feeds.processor.assets import AssetResolver, split_references
from vendor_feeds.sink.assets import LocalAssetStore


@pytest.fixture
def asset_root(tmp_path):
    root = tmp_path / "assets"
    (root / "2023" / "05").mkdir(parents=True)
    (root / "2023" / "05" / "ring.jpg").write_bytes(b"a")
    (root / "logos").mkdir()
    (root / "logos" / "brand.png").write_bytes(b"b")
    return root


def make_http_client(handler) -> FeedHTTPClient:
    client = FeedHTTPClient()
    client._client = httpx.Client(transport=httpx.MockTransport(handler))
    return client


def test_split_references():
    assert split_references("a.jpg, b.jpg ,, c.jpg") == ["a.jpg", "b.jpg", "c.jpg"]
    assert split_references(["a.jpg|b.jpg", None, "c.jpg"]) == ["a.jpg", "b.jpg", "c.jpg"]
    assert split_references(None) == []
    assert split_references(7) == []


class TestLocalAssetStore:
    def test_index_is_built_in_sorted_order(self, asset_root):
        store = LocalAssetStore(str(asset_root))
        assert list(store.assets.values()) == ["2023/05/ring.jpg", "logos/brand.png"]

    def test_find_by_filename_matches_substring(self, asset_root):
        store = LocalAssetStore(str(asset_root))
        assert store.find_by_filename("ring.jpg") == 1
        assert store.find_by_filename("brand") == 2
        assert store.find_by_filename("nope.jpg") is None
        assert store.find_by_filename("") is None

    def test_find_by_path_requires_exact_existing_path(self, asset_root):
        store = LocalAssetStore(str(asset_root))
        assert store.find_by_path("2023/05/ring.jpg") == 1
        assert store.find_by_path("/logos/brand.png") == 2
        assert store.find_by_path("ring.jpg") is None

    def test_missing_root_is_empty(self, tmp_path):
        assert LocalAssetStore(str(tmp_path / "absent")).assets == {}

    def test_import_from_url_stores_file(self, asset_root):
        client = make_http_client(lambda request: httpx.Response(200, content=b"image-bytes"))
        store = LocalAssetStore(str(asset_root), client)

        asset_id = store.import_from_url("https://cdn.test/media/new%20ring.jpg")

        assert store.assets[asset_id] == "imported/new ring.jpg"
        assert (asset_root / "imported" / "new ring.jpg").read_bytes() == b"image-bytes"

    def test_import_from_url_avoids_name_collision(self, asset_root):
        client = make_http_client(lambda request: httpx.Response(200, content=b"x"))
        store = LocalAssetStore(str(asset_root), client)

        first = store.import_from_url("https://a.test/pic.jpg")
        second = store.import_from_url("https://b.test/pic.jpg")

        assert first != second
        assert store.assets[second] == f"imported/{second}-pic.jpg"

    def test_import_from_url_http_error(self, asset_root):
        client = make_http_client(lambda request: httpx.Response(404))
        store = LocalAssetStore(str(asset_root), client)

        with pytest.raises(AssetError, match="Failed to download"):
            store.import_from_url("https://cdn.test/x.jpg")

    def test_import_from_url_invalid_url(self, asset_root):
        client = make_http_client(lambda request: httpx.Response(200, content=b"x"))
        store = LocalAssetStore(str(asset_root), client)

        with pytest.raises(AssetError, match="Failed to download"):
            store.import_from_url("https://cdn.test/x\x01.jpg")

    def test_import_without_client(self, asset_root):
        with pytest.raises(AssetError):
            LocalAssetStore(str(asset_root)).import_from_url("https://cdn.test/x.jpg")


class TestAssetResolver:
    def test_filename_match_wins_over_download(self, asset_root):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, content=b"x")

        store = LocalAssetStore(str(asset_root), make_http_client(handler))
        resolver = AssetResolver(store)

        assert resolver.resolve("https://cdn.test/images/ring.jpg") == 1
        assert calls == []

    def test_url_is_downloaded_when_not_stored(self, asset_root):
        store = LocalAssetStore(str(asset_root), make_http_client(lambda request: httpx.Response(200, content=b"x")))
        resolver = AssetResolver(store)

        asset_id = resolver.resolve("https://cdn.test/images/fresh.jpg")

        assert store.assets[asset_id] == "imported/fresh.jpg"

    def test_relative_path_lookup(self, asset_root):
        store = LocalAssetStore(str(asset_root))
        # a path whose basename also matches resolves by filename first
        assert AssetResolver(store).resolve("logos/brand.png") == 2

    def test_failed_download_is_recorded_as_missing(self, asset_root):
        store = LocalAssetStore(str(asset_root), make_http_client(lambda request: httpx.Response(500)))
        resolver = AssetResolver(store)

        assert resolver.resolve("https://cdn.test/gone.jpg", owner_id=4) is None
        assert resolver.missing == [(4, "https://cdn.test/gone.jpg")]

    def test_resolve_many_keeps_order_and_skips_missing(self, asset_root):
        resolver = AssetResolver(LocalAssetStore(str(asset_root)))

        assert resolver.resolve_many("brand.png, missing.jpg ,, ring.jpg", owner_id=1) == [2, 1]
        assert resolver.missing == [(1, "missing.jpg")]

    def test_unparseable_reference_is_recorded_as_missing(self, asset_root):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, content=b"x")

        resolver = AssetResolver(LocalAssetStore(str(asset_root), make_http_client(handler)))

        assert resolver.resolve("http://[cdn/ring.jpg", owner_id=3) is None
        assert resolver.missing == [(3, "http://[cdn/ring.jpg")]
        assert calls == []

    def test_non_http_scheme_uses_path_lookup(self, asset_root):
        resolver = AssetResolver(LocalAssetStore(str(asset_root)))

        assert resolver.resolve("ftp://cdn.test/nothing.jpg") is None
        assert resolver.missing == [(None, "ftp://cdn.test/nothing.jpg")]
