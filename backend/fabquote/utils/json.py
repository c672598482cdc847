from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import orjson


def _default(o: Any):
    # Normalize common non-JSON-native types for audit payloads
    if isinstance(o, Decimal):
        return str(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    raise TypeError(f"Type is not JSON serializable: {type(o).__name__}")


def dumps_bytes(obj: Any) -> bytes:
    # Allow non-string dict keys and coerce Decimals/datetimes
    return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS, default=_default)


def to_jsonable(obj: Any) -> Any:
    """Round-trip ``obj`` through orjson so it can be stored in a JSON column."""
    return orjson.loads(dumps_bytes(obj))
