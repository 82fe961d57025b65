"""Dot-path lookup into nested feed records."""

from typing import Any, Optional, Sequence


class _Absent:
    """Marker for a path that does not resolve; distinct from a present None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

# Envelope keys checked, in order, when a data file has no configured data path.
ENVELOPE_KEYS = ("products", "data", "items")


def lookup(data: Any, key: str) -> Any:
    """
    Descend one level into a mapping or list.

    Lists are indexed only by non-negative integer keys within range.
    JSON nulls count as absent.
    """
    if isinstance(data, dict):
        value = data.get(key, ABSENT)
    elif isinstance(data, (list, tuple)):
        if not key.isdecimal() or int(key) >= len(data):
            return ABSENT
        value = data[int(key)]
    else:
        return ABSENT
    return ABSENT if value is None else value


def resolve(data: Any, path: str) -> Any:
    """
    Resolve a dot-separated path against nested mappings and lists.

    Args:
        data: Raw record (mapping, list or scalar)
        path: Dot-separated keys, e.g. "variants.0.price"

    Returns:
        The value at the path, or ABSENT if any key along the way is missing
        or hits a non-indexable value. An empty path returns data itself.

    Examples:
        >>> resolve({"a": {"b": {"c": 5}}}, "a.b.c")
        5
        >>> resolve({"a": 1}, "a.b")
        ABSENT
    """
    if not path:
        return data
    value = data
    for key in path.split("."):
        value = lookup(value, key)
        if value is ABSENT:
            return ABSENT
    return value


def extract_records(payload: Any, data_path: str = "", fallback_keys: Sequence[str] = ENVELOPE_KEYS) -> Optional[list]:
    """
    Pull the record array out of a response envelope or data file.

    A bare list is returned as is. Otherwise the configured data path is
    used; without one, the envelope keys are tried in priority order.

    Returns:
        The record list, or None when no list can be found
    """
    if isinstance(payload, list):
        return payload
    if data_path:
        records = resolve(payload, data_path)
        return records if isinstance(records, list) else None
    if isinstance(payload, dict):
        for key in fallback_keys:
            records = payload.get(key)
            if isinstance(records, list):
                return records
    return None
