"""In-memory record store with JSON snapshot persistence."""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from vendor_feeds.models.errors import SinkError
from vendor_feeds.sink.base import RecordSink


@dataclass
class StoredRecord:
    """One product record as held by the store."""
    id: int
    vendor: str
    identity: str
    title: str = ""
    body: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    taxonomies: Dict[str, List[str]] = field(default_factory=dict)
    primary_image: Optional[int] = None
    gallery: str = ""  # comma-joined asset ids


class InMemorySink(RecordSink):
    """
    Reference record store.

    Enforces the identity invariant itself: creating a second record for an
    identity that is already stored raises SinkError.
    """

    def __init__(self):
        self.records: Dict[int, StoredRecord] = {}
        self._identities: Dict[Tuple[str, str], int] = {}
        self._next_id = 1

    def _get(self, record_id: int) -> StoredRecord:
        try:
            return self.records[record_id]
        except KeyError:
            raise SinkError(f"Record {record_id} does not exist", details={"record_id": record_id}) from None

    def find_by_identity(self, vendor: str, identity: str) -> Optional[int]:
        return self._identities.get((vendor, identity))

    def create_record(self, fields: Dict[str, Any]) -> int:
        vendor = fields.get("vendor") or ""
        identity = fields.get("identity") or ""
        if not vendor or not identity:
            raise SinkError("Cannot create a record without vendor and identity")

        key = (vendor, identity)
        if key in self._identities:
            raise SinkError(
                f"Record for {vendor}/{identity} already exists",
                code="DUPLICATE_IDENTITY",
                details={"record_id": self._identities[key]},
            )

        record_id = self._next_id
        self._next_id += 1
        self.records[record_id] = StoredRecord(
            id=record_id,
            vendor=vendor,
            identity=identity,
            title=str(fields.get("title") or ""),
            body=str(fields.get("body") or ""),
        )
        self._identities[key] = record_id
        return record_id

    def update_record(self, record_id: int, fields: Dict[str, Any]) -> None:
        record = self._get(record_id)
        record.title = str(fields.get("title") or "")
        record.body = str(fields.get("body") or "")

    def set_attributes(self, record_id: int, attributes: Dict[str, Any]) -> None:
        self._get(record_id).attributes.update(attributes)

    def attach_taxonomy(self, record_id: int, taxonomy: str, value: str) -> None:
        terms = self._get(record_id).taxonomies.setdefault(taxonomy, [])
        if value not in terms:
            terms.append(value)

    def set_primary_image(self, record_id: int, asset_id: int) -> None:
        self._get(record_id).primary_image = asset_id

    def set_gallery(self, record_id: int, asset_ids: List[int]) -> None:
        self._get(record_id).gallery = ",".join(str(asset_id) for asset_id in asset_ids)

    def records_for(self, vendor: str) -> List[StoredRecord]:
        """All stored records of one vendor, in creation order."""
        return [record for record in self.records.values() if record.vendor == vendor]

    def to_dict(self) -> Dict[str, Any]:
        return {"records": [asdict(record) for record in self.records.values()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemorySink":
        sink = cls()
        for item in data.get("records", []):
            record = StoredRecord(**item)
            sink.records[record.id] = record
            sink._identities[(record.vendor, record.identity)] = record.id
            sink._next_id = max(sink._next_id, record.id + 1)
        return sink

    def save(self, path: str) -> None:
        """Write a JSON snapshot, creating parent directories as needed."""
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: str) -> "InMemorySink":
        """Load a JSON snapshot; a missing file yields an empty store."""
        snapshot = Path(path)
        if not snapshot.exists():
            return cls()
        with open(snapshot, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))
