"""Wire schema for the plain-structure round trip.

Generated instances reduce to plain dicts whose keys are property names.
Version 1 of the schema adds two reserved keys:

    __class__    class tag of the instance the dict was produced from
    __version__  WIRE_SCHEMA_VERSION

Nested instances are embedded as their own tagged dicts, so a payload can be
rebuilt without consulting storage. Text transport uses JSON, binary transport
uses MessagePack; both go through the same plain form.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta
from typing import Any

import msgpack

WIRE_CLASS_KEY = "__class__"
WIRE_VERSION_KEY = "__version__"
WIRE_SCHEMA_VERSION = 1
WIRE_META_KEYS = frozenset({WIRE_CLASS_KEY, WIRE_VERSION_KEY})

# Legacy transports mark stored field names with this prefix.
MARKED_PREFIX = "_"


def _encode_default(value: Any) -> Any:
    """Reduce values that JSON/MessagePack cannot carry natively."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return list(bytes(value))
    if callable(value):
        from protoclass.core.callbacks import callback_name

        name = callback_name(value)
        if name is not None:
            return name
    raise TypeError(f"Object of type {type(value).__name__} is not wire serializable")


def _msgpack_default(value: Any) -> Any:
    # MessagePack carries bytes natively.
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return _encode_default(value)


def dumps_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, default=_encode_default)


def loads_json(text: str) -> Any:
    return json.loads(text)


def pack(payload: dict[str, Any]) -> bytes:
    return msgpack.packb(payload, default=_msgpack_default, use_bin_type=True)


def unpack(data: bytes) -> Any:
    return msgpack.unpackb(data, raw=False)


__all__ = [
    "WIRE_CLASS_KEY",
    "WIRE_VERSION_KEY",
    "WIRE_SCHEMA_VERSION",
    "WIRE_META_KEYS",
    "MARKED_PREFIX",
    "dumps_json",
    "loads_json",
    "pack",
    "unpack",
]
