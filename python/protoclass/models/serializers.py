"""Plain-structure conversion for generated instances.

Functions:
    normalize_seed(cls, seed) -> dict:
        Turn a constructor/init seed into a dict keyed by property name.
        Accepts None, a mapping, another generated instance, a JSON string
        or msgpack bytes. Strips the wire meta keys, rejects unknown schema
        versions and maps marked keys ("_name") back to property names.

    to_plain(instance, marked=False) -> dict:
        Reduce an instance to its tagged plain form. Nested instances are
        embedded as their own tagged dicts; arrays become plain lists.
        An instance met again while it is still being reduced (a cycle) is
        written as its "Tag:id" reference instead.

Marked keys:
    Older transports prefix every stored field with "_". A marked key is
    renamed only when the bare name is a declared property and the payload
    does not already carry the bare key:

        {"_name": "Bob"}                  -> {"name": "Bob"}
        {"_name": "Bob", "name": "Alice"} -> {"name": "Alice"}  (marked key dropped)
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import msgpack

from protoclass.core.transforms import REFERENCE_SEPARATOR
from protoclass.core.wire import (
    MARKED_PREFIX,
    WIRE_CLASS_KEY,
    WIRE_META_KEYS,
    WIRE_SCHEMA_VERSION,
    WIRE_VERSION_KEY,
    loads_json,
    unpack,
)
from protoclass.exceptions import InvalidSignature, ProtoclassError

if TYPE_CHECKING:
    from protoclass.models.base import GeneratedObject


def _decode(cls: type[GeneratedObject], seed: Any) -> Any:
    if isinstance(seed, str):
        try:
            return loads_json(seed)
        except json.JSONDecodeError as e:
            raise InvalidSignature(
                f"{cls.__class_tag__}.init(): seed string is not valid JSON ({e})"
            ) from e
    if isinstance(seed, (bytes, bytearray, memoryview)):
        try:
            return unpack(bytes(seed))
        except (msgpack.UnpackException, ValueError) as e:
            raise InvalidSignature(
                f"{cls.__class_tag__}.init(): seed bytes are not a MessagePack document"
            ) from e
    if hasattr(type(seed), "__class_tag__") and hasattr(seed, "to_dict"):
        return seed.to_dict()
    return seed


def normalize_seed(cls: type[GeneratedObject], seed: Any) -> dict[str, Any]:
    """Return `seed` as a dict keyed by bare property names."""
    if seed is None:
        return {}
    data = _decode(cls, seed)
    if not isinstance(data, Mapping):
        raise InvalidSignature(
            f"{cls.__class_tag__}.init(): expected a mapping, JSON string or "
            f"MessagePack bytes, received {type(data).__name__}"
        )

    version = data.get(WIRE_VERSION_KEY, WIRE_SCHEMA_VERSION)
    if version != WIRE_SCHEMA_VERSION:
        raise InvalidSignature(
            f"{cls.__class_tag__}.init(): unsupported wire schema version {version!r}"
        )

    names = cls.__property_names__
    values = {key: value for key, value in data.items() if key not in WIRE_META_KEYS}
    for key in list(values):
        if not isinstance(key, str) or not key.startswith(MARKED_PREFIX) or key in names:
            continue
        bare = key[len(MARKED_PREFIX):]
        if bare in names:
            marked = values.pop(key)
            values.setdefault(bare, marked)
    return values


def _reference(instance: GeneratedObject) -> str:
    cls = type(instance)
    if "id" not in cls.__property_names__:
        raise ProtoclassError(
            f"{cls.__class_tag__}.to_dict(): cyclic reference to an instance without an id"
        )
    return f"{cls.__class_tag__}{REFERENCE_SEPARATOR}{instance.id()}"


def _plain(value: Any, path: set[int]) -> Any:
    if hasattr(type(value), "__class_tag__") and hasattr(value, "_state"):
        if id(value) in path:
            return _reference(value)
        return to_plain(value, _path=path)
    if isinstance(value, (list, tuple)):
        return [_plain(item, path) for item in value]
    if isinstance(value, (set, frozenset)):
        return set(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def to_plain(
    instance: GeneratedObject, *, marked: bool = False, _path: set[int] | None = None
) -> dict[str, Any]:
    cls = type(instance)
    path = set() if _path is None else _path
    path.add(id(instance))
    payload: dict[str, Any] = {
        WIRE_CLASS_KEY: cls.__class_tag__,
        WIRE_VERSION_KEY: WIRE_SCHEMA_VERSION,
    }
    prefix = MARKED_PREFIX if marked else ""
    try:
        for prop in cls.__properties__:
            payload[f"{prefix}{prop.name}"] = _plain(instance._state.get(prop.name), path)
    finally:
        path.discard(id(instance))
    return payload


__all__ = ["normalize_seed", "to_plain"]
