"""Named value transforms applied during field mapping.

Every transform is a pure function that never raises: malformed input to the
numeric transforms yields 0. Unknown transform names return the value
unchanged; unknown names are reported when the configuration is loaded.
"""

import math
import re
from typing import Any, Callable, Dict, Union

from vendor_feeds.models.data_models import TransformName


IN_STOCK = "instock"
OUT_OF_STOCK = "outofstock"

_NON_NUMERIC = re.compile(r"[^0-9.]")
_TRUTHY_STRINGS = frozenset({"1", "true", "yes", "y", "on", "instock", "in stock", "available"})


def _map_strings(value: Any, func: Callable[[str], str]) -> Any:
    if isinstance(value, str):
        return func(value)
    if isinstance(value, list):
        return [func(item) if isinstance(item, str) else item for item in value]
    return value


def to_uppercase(value: Any) -> Any:
    return _map_strings(value, str.upper)


def to_lowercase(value: Any) -> Any:
    return _map_strings(value, str.lower)


def to_numeric(value: Any) -> float:
    """
    Parse a value to float after stripping everything but digits and '.'.

    Examples:
        >>> to_numeric("$1,234.56abc")
        1234.56
        >>> to_numeric("")
        0.0
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if not isinstance(value, str):
        return 0.0
    cleaned = _NON_NUMERIC.sub("", value)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def to_decimal(value: Any) -> str:
    """Numeric parse rendered with exactly two fractional digits."""
    return f"{to_numeric(value):.2f}"


def to_integer(value: Any) -> int:
    """Numeric parse truncated toward zero."""
    return int(to_numeric(value))


def is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return False


def to_stock_status(value: Any) -> str:
    """Map truthy values to the in-stock token and everything else to out-of-stock."""
    return IN_STOCK if is_truthy(value) else OUT_OF_STOCK


TRANSFORMS: Dict[TransformName, Callable[[Any], Any]] = {
    TransformName.UPPERCASE: to_uppercase,
    TransformName.LOWERCASE: to_lowercase,
    TransformName.NUMERIC: to_numeric,
    TransformName.DECIMAL: to_decimal,
    TransformName.INTEGER: to_integer,
    TransformName.BOOLEAN: to_stock_status,
}


def apply_transform(value: Any, name: Union[str, TransformName]) -> Any:
    """
    Apply a registered transform by name.

    Args:
        value: Value resolved from the raw record
        name: Transform name, e.g. "decimal"

    Returns:
        The transformed value, or the value unchanged for an unknown name
    """
    try:
        func = TRANSFORMS[TransformName(name)]
    except ValueError:
        return value
    return func(value)
