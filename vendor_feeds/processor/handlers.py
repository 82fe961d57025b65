"""Special handlers: structural reshaping applied before a field's transform."""

import re
from typing import Any, Callable, Dict, List, Union

from vendor_feeds.models.data_models import HandlerName
from vendor_feeds.processor.path_resolver import ABSENT
from vendor_feeds.processor.transforms import to_stock_status


_DELIMITERS = re.compile(r"[,;|]")


def split_list(value: Any) -> Any:
    """
    Split a delimited string on ',', ';' or '|' into trimmed, non-empty items.

    Examples:
        >>> split_list("a.jpg, b.jpg ,, c.jpg")
        ['a.jpg', 'b.jpg', 'c.jpg']
    """
    if isinstance(value, str):
        parts: List[Any] = _DELIMITERS.split(value)
    elif isinstance(value, list):
        parts = value
    else:
        return value
    items = []
    for part in parts:
        if isinstance(part, str):
            part = part.strip()
            if not part:
                continue
        elif part is None:
            continue
        items.append(part)
    return items


def join_list(value: Any) -> Any:
    if isinstance(value, list):
        return ",".join(str(item) for item in value if item is not None)
    return value


def first_item(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else ABSENT
    return value


def trim(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


HANDLERS: Dict[HandlerName, Callable[[Any], Any]] = {
    HandlerName.SPLIT_LIST: split_list,
    HandlerName.JOIN_LIST: join_list,
    HandlerName.FIRST_ITEM: first_item,
    HandlerName.STOCK_STATUS: to_stock_status,
    HandlerName.TRIM: trim,
}


def apply_handler(value: Any, name: Union[str, HandlerName]) -> Any:
    """Apply a registered handler by name; unknown names pass the value through."""
    try:
        func = HANDLERS[HandlerName(name)]
    except ValueError:
        return value
    return func(value)
