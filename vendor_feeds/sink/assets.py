"""Asset store backed by a local directory tree."""

import posixpath
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import unquote, urlparse

import httpx

from vendor_feeds.fetcher.http_client import FeedHTTPClient
from vendor_feeds.models.errors import AssetError
from vendor_feeds.sink.base import AssetStore


IMPORT_DIRECTORY = "imported"


class LocalAssetStore(AssetStore):
    """
    Assets are files under asset_root, addressed by their POSIX path relative
    to it. The index is built once at construction, in sorted path order;
    downloaded assets are appended to it.
    """

    def __init__(self, asset_root: str, http_client: Optional[FeedHTTPClient] = None):
        self.asset_root = Path(asset_root)
        self.http_client = http_client
        self.assets: Dict[int, str] = {}
        self._next_id = 1
        if self.asset_root.is_dir():
            for path in sorted(p for p in self.asset_root.rglob("*") if p.is_file()):
                self._register(path.relative_to(self.asset_root).as_posix())

    def _register(self, relative_path: str) -> int:
        asset_id = self._next_id
        self._next_id += 1
        self.assets[asset_id] = relative_path
        return asset_id

    def find_by_filename(self, name: str) -> Optional[int]:
        if not name:
            return None
        for asset_id, path in self.assets.items():
            if name in path:
                return asset_id
        return None

    def find_by_path(self, path: str) -> Optional[int]:
        relative = path.strip().lstrip("/")
        if not relative or not (self.asset_root / relative).is_file():
            return None
        for asset_id, stored in self.assets.items():
            if stored == relative:
                return asset_id
        return None

    def import_from_url(self, url: str) -> int:
        if self.http_client is None:
            raise AssetError(f"No HTTP client configured to download {url}")
        try:
            content = self.http_client.download(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AssetError(f"Failed to download {url}: {e}", details={"url": url}) from e

        filename = posixpath.basename(unquote(urlparse(url).path)) or "asset"
        relative = f"{IMPORT_DIRECTORY}/{filename}"
        if relative in self.assets.values():
            relative = f"{IMPORT_DIRECTORY}/{self._next_id}-{filename}"

        target = self.asset_root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise AssetError(f"Failed to store {url}: {e}", details={"url": url}) from e
        return self._register(relative)
