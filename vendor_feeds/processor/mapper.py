"""Field mapper: projects a raw vendor record onto the normalized schema.

The mapping is driven entirely by the vendor's configuration: which source
paths to read, which handler and transform to apply to each, and which target
field receives the result. Fields without a mapping entry are dropped.
"""

from typing import Any, Dict, Optional

from vendor_feeds.models.config import VendorConfig
from vendor_feeds.models.data_models import VENDOR_NAME_FIELD, NormalizedRecord
from vendor_feeds.processor.handlers import apply_handler
from vendor_feeds.processor.path_resolver import ABSENT, lookup, resolve
from vendor_feeds.processor.transforms import apply_transform


def _source_value(raw: Dict[str, Any], source_path: str, flat: bool) -> Any:
    return lookup(raw, source_path) if flat else resolve(raw, source_path)


def map_record(raw: Dict[str, Any], vendor: VendorConfig, flat: bool = False) -> NormalizedRecord:
    """
    Normalize one raw record using the vendor's declarative mapping.

    For each (source path, target field) in configured order: resolve the
    value, apply the special handler registered for the path, then the
    transform, and set the target when the result is present. Later entries
    overwrite earlier ones that share a target. vendorName is always set last.

    Args:
        raw: Raw record as received from the feed
        vendor: Vendor configuration
        flat: Treat source paths as literal keys (CSV column names)

    Returns:
        A new normalized record

    Examples:
        >>> vendor = VendorConfig(name="Acme", source="acme.json", identity_field="sku",
        ...                       field_mapping={"sku": "vendor_sku", "price": "price"},
        ...                       transforms={"price": "numeric"})
        >>> map_record({"sku": "A1", "price": "$9.99", "extra": "ignored"}, vendor)
        {'vendor_sku': 'A1', 'price': 9.99, 'vendorName': 'Acme'}
    """
    normalized: NormalizedRecord = {}

    for source_path, target_field in vendor.field_mapping.items():
        value = _source_value(raw, source_path, flat)
        if value is ABSENT:
            continue

        handler = vendor.special_handlers.get(source_path)
        if handler:
            value = apply_handler(value, handler)
            if value is ABSENT:
                continue

        transform = vendor.transforms.get(source_path)
        if transform:
            value = apply_transform(value, transform)

        normalized[target_field] = value

    normalized[VENDOR_NAME_FIELD] = vendor.name
    return normalized


def _as_identity(value: Any) -> str:
    if value is ABSENT or value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def identity_value(
    normalized: NormalizedRecord,
    vendor: VendorConfig,
    raw: Optional[Dict[str, Any]] = None,
    flat: bool = False
) -> str:
    """
    Identity value of a record within its vendor.

    Read from the target field the identity path maps to; when the identity
    path is not mapped, looked up in the raw record instead.

    Returns:
        Trimmed identity string, or "" when it is missing
    """
    target = vendor.identity_target
    if target is not None:
        return _as_identity(normalized.get(target, ABSENT))
    if raw is not None:
        return _as_identity(_source_value(raw, vendor.identity_field, flat))
    return ""
