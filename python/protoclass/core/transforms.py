"""Scalar transforms used by the type registry.

Each kind contributes up to three functions:

    coerce_*(value, prop)             validate-and-coerce on write
    serialize_*(value, prop)          in-memory value -> storage value
    load_*(raw, prop, service=None)   storage value -> in-memory value

Null handling is shared: `nullable()` wraps a coercer so that None is
accepted only when `prop.allow_null` is set, `null_safe()` makes serializers
and loaders propagate None unchanged.

Validation is strict (fail fast, never coerce an invalid non-null value to a
default):

    coerce_integer(True, prop)   -> TypeMismatch (bool is not numeric here)
    coerce_integer(3.7, prop)    -> 3
    coerce_text(42, prop)        -> "42"
    coerce_date("2024-01-31", p) -> date(2024, 1, 31)
"""

from __future__ import annotations

import functools
import json
import math
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from protoclass.core.callbacks import callback_name, get_callback
from protoclass.core.wire import WIRE_CLASS_KEY
from protoclass.exceptions import InvalidSignature, TypeMismatch, UnknownType

if TYPE_CHECKING:
    from protoclass.models.config import PropertyConfig

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
REFERENCE_SEPARATOR = ":"

_NUMBERS = (int, float, Decimal)


def _shape(value: Any) -> str:
    tag = getattr(type(value), "__class_tag__", None)
    return tag if isinstance(tag, str) else type(value).__name__


def _expected(prop: PropertyConfig) -> str:
    return prop.instance_of or prop.type or "object"


def mismatch(prop: PropertyConfig, expected: str, value: Any) -> TypeMismatch:
    """Build the TypeMismatch raised when `value` does not fit `prop`."""
    where = "element of " if prop.is_element else ""
    return TypeMismatch(
        f"{prop.qualified_name}(): invalid value passed as {where}'{expected}', "
        f"received {_shape(value)} {value!r:.80}",
        property_name=prop.name,
        expected=expected,
        received=_shape(value),
    )


def nullable(check: Callable[[Any, PropertyConfig], Any]) -> Callable[[Any, PropertyConfig], Any]:
    """Wrap a coercer with the allow_null rule."""

    @functools.wraps(check)
    def transform(value: Any, prop: PropertyConfig) -> Any:
        if value is None:
            if prop.allow_null:
                return None
            raise TypeMismatch(
                f"{prop.qualified_name}(): null value passed to '{_expected(prop)}' "
                "setter that does not allow nulls",
                property_name=prop.name,
                expected=_expected(prop),
                received="None",
            )
        return check(value, prop)

    return transform


def null_safe(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Propagate None through a serializer or loader."""

    @functools.wraps(fn)
    def transform(value: Any, prop: PropertyConfig, *args: Any) -> Any:
        if value is None:
            return None
        return fn(value, prop, *args)

    return transform


# --- numeric -----------------------------------------------------------------


def coerce_integer(value: Any, prop: PropertyConfig) -> int:
    if isinstance(value, bool) or not isinstance(value, _NUMBERS):
        raise mismatch(prop, "numeric", value)
    if isinstance(value, float) and not math.isfinite(value):
        raise mismatch(prop, "numeric", value)
    return int(value)


def coerce_float(value: Any, prop: PropertyConfig) -> float:
    if isinstance(value, bool) or not isinstance(value, _NUMBERS):
        raise mismatch(prop, "numeric", value)
    return float(value)


def coerce_bit(value: Any, prop: PropertyConfig) -> int:
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise mismatch(prop, "bit", value)
    return value


def load_integer(raw: Any, prop: PropertyConfig, service: Any = None) -> int:
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return int(Decimal(raw))
        except (InvalidOperation, ValueError):
            raise mismatch(prop, "numeric", raw) from None
    return int(raw)


def load_float(raw: Any, prop: PropertyConfig, service: Any = None) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise mismatch(prop, "numeric", raw) from None


def load_bit(raw: Any, prop: PropertyConfig, service: Any = None) -> int:
    if isinstance(raw, (bytes, bytearray)):
        return int.from_bytes(raw, "big")
    return int(raw)


# --- text --------------------------------------------------------------------


def coerce_text(value: Any, prop: PropertyConfig) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, *_NUMBERS)):
        raise mismatch(prop, "string", value)
    text = value if isinstance(value, str) else str(value)
    if prop.length is not None and prop.descriptor.length_applicable:
        text = text[: prop.length]
    return text


def load_text(raw: Any, prop: PropertyConfig, service: Any = None) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    return str(raw)


def _format_timedelta(delta: timedelta) -> str:
    seconds = int(delta.total_seconds())
    sign = "-" if seconds < 0 else ""
    hours, remainder = divmod(abs(seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def coerce_time(value: Any, prop: PropertyConfig) -> str:
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, timedelta):
        return _format_timedelta(value)
    if isinstance(value, str):
        return value
    raise mismatch(prop, "time", value)


def load_time(raw: Any, prop: PropertyConfig, service: Any = None) -> str:
    # MySQL drivers hand TIME columns back as timedelta.
    if isinstance(raw, timedelta):
        return _format_timedelta(raw)
    if isinstance(raw, time):
        return raw.isoformat()
    return load_text(raw, prop)


# --- boolean -----------------------------------------------------------------


def coerce_bool(value: Any, prop: PropertyConfig) -> bool:
    if not isinstance(value, bool):
        raise mismatch(prop, "boolean", value)
    return value


def serialize_bool(value: bool, prop: PropertyConfig) -> int:
    return 1 if value else 0


def load_bool(raw: Any, prop: PropertyConfig, service: Any = None) -> bool:
    if isinstance(raw, (bytes, bytearray)):
        return any(raw)
    if isinstance(raw, str):
        return raw.strip().lower() not in ("", "0", "false")
    return bool(raw)


# --- date-like ---------------------------------------------------------------


def _parse_datetime(text: str) -> datetime:
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _naive_utc(value: datetime) -> datetime:
    # Storage has no offset column; aware values are kept as naive UTC.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def coerce_date(value: Any, prop: PropertyConfig) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return _parse_datetime(value).date()
        except ValueError:
            raise mismatch(prop, "date", value) from None
    raise mismatch(prop, "date", value)


def coerce_datetime(value: Any, prop: PropertyConfig) -> datetime:
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        try:
            return _naive_utc(_parse_datetime(value))
        except ValueError:
            raise mismatch(prop, "datetime", value) from None
    raise mismatch(prop, "datetime", value)


def serialize_date(value: date, prop: PropertyConfig) -> str:
    return value.strftime(DATE_FORMAT)


def serialize_datetime(value: datetime, prop: PropertyConfig) -> str:
    return value.strftime(DATETIME_FORMAT)


def load_date(raw: Any, prop: PropertyConfig, service: Any = None) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return _parse_datetime(load_text(raw, prop)).date()


def load_datetime(raw: Any, prop: PropertyConfig, service: Any = None) -> datetime:
    if isinstance(raw, datetime):
        return _naive_utc(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    return _naive_utc(_parse_datetime(load_text(raw, prop)))


# --- binary ------------------------------------------------------------------


def coerce_bytes(value: Any, prop: PropertyConfig) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        # Sequence of octets, as produced by the JSON wire form.
        try:
            return bytes(value)
        except (TypeError, ValueError):
            raise mismatch(prop, "bytes", value) from None
    raise mismatch(prop, "bytes", value)


def serialize_bytes(value: bytes, prop: PropertyConfig) -> str:
    return value.decode("latin-1")


def load_bytes(raw: Any, prop: PropertyConfig, service: Any = None) -> bytes:
    if isinstance(raw, str):
        return raw.encode("latin-1")
    return bytes(raw)


# --- set ---------------------------------------------------------------------


def coerce_set(value: Any, prop: PropertyConfig) -> set[str]:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise mismatch(prop, "set", value)
    items = list(value)
    if any(not isinstance(item, str) for item in items):
        raise mismatch(prop, "set", value)
    return set(items)


def serialize_set(value: set[str], prop: PropertyConfig) -> str:
    return ",".join(sorted(value))


def load_set(raw: Any, prop: PropertyConfig, service: Any = None) -> set[str]:
    if isinstance(raw, (set, frozenset, list, tuple)):
        return {str(item) for item in raw}
    text = load_text(raw, prop)
    return set(text.split(",")) if text else set()


# --- callback / json ---------------------------------------------------------


def coerce_callback(value: Any, prop: PropertyConfig) -> Callable[..., Any]:
    if isinstance(value, str):
        handler = get_callback(value)
        if handler is None:
            raise mismatch(prop, "registered callback", value)
        return handler
    if not callable(value) or callback_name(value) is None:
        raise mismatch(prop, "registered callback", value)
    return value


def serialize_callback(value: Callable[..., Any], prop: PropertyConfig) -> str:
    name = callback_name(value)
    if name is None:
        raise mismatch(prop, "registered callback", value)
    return name


def load_callback(raw: Any, prop: PropertyConfig, service: Any = None) -> Callable[..., Any]:
    if callable(raw):
        return raw
    handler = get_callback(load_text(raw, prop))
    if handler is None:
        raise mismatch(prop, "registered callback", raw)
    return handler


def coerce_json(value: Any, prop: PropertyConfig) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise mismatch(prop, "plain object", value)
    return value if isinstance(value, dict) else dict(value)


def serialize_json(value: Any, prop: PropertyConfig) -> str:
    return json.dumps(value)


def load_json(raw: Any, prop: PropertyConfig, service: Any = None) -> Any:
    if isinstance(raw, (dict, list)):
        return raw
    return json.loads(load_text(raw, prop))


# --- nested objects ----------------------------------------------------------


def satisfies_constraint(value: Any, prop: PropertyConfig) -> bool:
    """True when `value` is a generated instance acceptable for `prop`."""
    cls = type(value)
    tags = getattr(cls, "__ancestor_tags__", None)
    if tags is None:
        return False
    if prop.instance_of:
        return prop.instance_of in tags
    if prop.type is None or prop.type.lower() == "object":
        return True
    return cls.__class_tag__ == prop.type


def _rebuild(payload: Mapping[str, Any], prop: PropertyConfig) -> Any:
    from protoclass.models.registry import get_class

    tag = payload.get(WIRE_CLASS_KEY)
    if tag is None and prop.type is not None and prop.type.lower() != "object":
        tag = prop.type
    if tag is None:
        tag = prop.instance_of
    cls = get_class(tag) if isinstance(tag, str) else None
    if cls is None:
        raise mismatch(prop, _expected(prop), payload)
    return cls(payload)


def coerce_object(value: Any, prop: PropertyConfig) -> Any:
    if isinstance(value, Mapping):
        value = _rebuild(value, prop)
    if not satisfies_constraint(value, prop):
        raise mismatch(prop, _expected(prop), value)
    return value


def serialize_object(value: Any, prop: PropertyConfig) -> str:
    cls = type(value)
    if "id" not in getattr(cls, "__property_names__", ()):
        raise mismatch(prop, f"{_expected(prop)} with identity", value)
    return f"{cls.__class_tag__}{REFERENCE_SEPARATOR}{value.id()}"


def _default_tag(prop: PropertyConfig, raw: Any) -> str:
    tag = prop.instance_of or prop.type
    if not tag or tag.lower() == "object":
        raise mismatch(prop, "tagged reference", raw)
    return tag


def parse_reference(raw: Any, prop: PropertyConfig) -> tuple[str, int]:
    """Split a stored reference into (class tag, identity).

    "Worker:7" -> ("Worker", 7). A bare identity falls back to the class
    named by the property's constraint.
    """
    if isinstance(raw, bool):
        raise mismatch(prop, "reference", raw)
    if isinstance(raw, int):
        return _default_tag(prop, raw), raw
    text = load_text(raw, prop).strip()
    tag, separator, identity = text.rpartition(REFERENCE_SEPARATOR)
    if not separator:
        tag = _default_tag(prop, raw)
    try:
        return tag, int(identity)
    except ValueError:
        raise mismatch(prop, "reference", raw) from None


def class_for_tag(tag: str, prop: PropertyConfig) -> type:
    from protoclass.models.registry import get_class

    cls = get_class(tag)
    if cls is None:
        raise UnknownType(
            f"{prop.qualified_name}(): no generated class registered under '{tag}'"
        )
    if cls.__config__.table_name is None:
        raise InvalidSignature(
            f"{prop.qualified_name}(): class '{tag}' has no table binding to load from"
        )
    return cls


async def load_reference(tag: str, identity: int, prop: PropertyConfig, service: Any) -> Any:
    cls = class_for_tag(tag, prop)
    if service is None:
        raise InvalidSignature(
            f"{prop.qualified_name}(): loading a '{tag}' reference requires a query service"
        )
    return await cls().load(identity, service)


async def load_object(raw: Any, prop: PropertyConfig, service: Any = None) -> Any:
    if raw is None or raw == "":
        return None
    if isinstance(raw, Mapping) or hasattr(type(raw), "__class_tag__"):
        return coerce_object(raw, prop)
    tag, identity = parse_reference(raw, prop)
    return await load_reference(tag, identity, prop, service)


__all__ = [
    "DATE_FORMAT",
    "DATETIME_FORMAT",
    "REFERENCE_SEPARATOR",
    "mismatch",
    "nullable",
    "null_safe",
    "coerce_integer",
    "coerce_float",
    "coerce_bit",
    "coerce_text",
    "coerce_time",
    "coerce_bool",
    "coerce_date",
    "coerce_datetime",
    "coerce_bytes",
    "coerce_set",
    "coerce_callback",
    "coerce_json",
    "coerce_object",
    "serialize_bool",
    "serialize_date",
    "serialize_datetime",
    "serialize_bytes",
    "serialize_set",
    "serialize_callback",
    "serialize_json",
    "serialize_object",
    "load_integer",
    "load_float",
    "load_bit",
    "load_text",
    "load_time",
    "load_bool",
    "load_date",
    "load_datetime",
    "load_bytes",
    "load_set",
    "load_callback",
    "load_json",
    "load_object",
    "load_reference",
    "class_for_tag",
    "parse_reference",
    "satisfies_constraint",
]
