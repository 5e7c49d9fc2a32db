"""
Row Sanitizer
=============

Normalizes source rows into the flat string-or-null shape the destination
schema expects (every column is created as STRING).

Rules, applied per value:
- None                          -> None
- date / time / datetime        -> ISO-8601 string
- dict / list / tuple / set     -> compact JSON string
- str                           -> capped at MAX_STRING_LENGTH characters
- bool                          -> "true" / "false"
- bytes                         -> base64 text
- anything else                 -> str(value)
"""

import base64
import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Optional

MAX_STRING_LENGTH = 1024

_TEMPORAL_TYPES = (datetime, date, time)
_COMPOSITE_TYPES = (dict, list, tuple, set, frozenset)
_BINARY_TYPES = (bytes, bytearray, memoryview)


def _json_default(value: Any) -> Any:
    """Fallback serializer for values nested inside composites."""
    if isinstance(value, _TEMPORAL_TYPES):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, _BINARY_TYPES):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


def sanitize_value(value: Any) -> Optional[str]:
    """
    Coerce a single column value into a loadable scalar.

    Args:
        value: Raw value as returned by the source driver

    Returns:
        None or a string
    """
    if value is None:
        return None
    if isinstance(value, _TEMPORAL_TYPES):
        return value.isoformat()
    if isinstance(value, _COMPOSITE_TYPES):
        return json.dumps(
            value, default=_json_default, ensure_ascii=False, separators=(",", ":")
        )
    if isinstance(value, str):
        return value[:MAX_STRING_LENGTH] if len(value) > MAX_STRING_LENGTH else value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _BINARY_TYPES):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def sanitize_row(row: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """
    Sanitize every column of a row, preserving column order.

    Args:
        row: Mapping of column name to raw value

    Returns:
        Mapping of column name to None or string
    """
    return {key: sanitize_value(value) for key, value in row.items()}
