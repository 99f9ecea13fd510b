"""Unified type registry for protoclass.

TYPE_REGISTRY maps (kind, element kind) pairs to their TypeDescriptor:

    (Kind.INT, None)          -> integer descriptor
    (Kind.ARRAY, Kind.INT)    -> array-of-integer descriptor
    (Kind.ARRAY, Kind.OBJECT) -> array-of-nested-object descriptor

The registry is built once at import time and exposed read-only. Lookups go
through `resolve()`, which has a single fallback path: any name that is not a
built-in kind is a nested-object kind (a user-defined generated class), both
at the top level and as an array element.

    resolve("VarChar")            -> varchar descriptor
    resolve("Worker")             -> object descriptor
    resolve("array", "Worker")    -> array-of-object descriptor
    resolve("array")              -> UnknownType
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Any

from protoclass.core import transforms as t
from protoclass.core.arrays import array_descriptor
from protoclass.core.callbacks import noop
from protoclass.core.kinds import (
    BINARY_KINDS,
    DATE_KINDS,
    FLOAT_KINDS,
    INTEGER_KINDS,
    TEXT_DELIMITER,
    TEXT_KINDS,
    Kind,
    TypeDescriptor,
)
from protoclass.exceptions import UnknownType

EPOCH = datetime(1970, 1, 1)

# Inclusive (min, max) length per kind when a length is configured.
LENGTH_BOUNDS: dict[Kind, tuple[int, int]] = {
    Kind.VARCHAR: (1, 65535),
    Kind.VARBINARY: (1, 65535),
    Kind.BIT: (1, 64),
    Kind.TINYINT: (1, 4),
    Kind.SMALLINT: (1, 6),
    Kind.MEDIUMINT: (1, 8),
    Kind.INT: (1, 11),
    Kind.INTEGER: (1, 11),
    Kind.BIGINT: (1, 20),
}

_WIDE_ARRAYS = {
    Kind.BIGINT: "mediumtext",
    Kind.REAL: "mediumtext",
    Kind.DOUBLE: "mediumtext",
    Kind.FLOAT: "mediumtext",
    Kind.DECIMAL: "mediumtext",
    Kind.NUMERIC: "mediumtext",
    Kind.VARCHAR: "mediumtext",
    Kind.BINARY: "mediumtext",
    Kind.VARBINARY: "mediumtext",
    Kind.TINYBLOB: "mediumtext",
    Kind.BLOB: "mediumtext",
    Kind.TINYTEXT: "mediumtext",
    Kind.TEXT: "mediumtext",
    Kind.FUNCTION: "mediumtext",
    Kind.JSON: "mediumtext",
    Kind.MEDIUMBLOB: "longtext",
    Kind.LONGBLOB: "longtext",
    Kind.MEDIUMTEXT: "longtext",
    Kind.LONGTEXT: "longtext",
}


def _descriptor(kind: Kind, native: str, default: Any, **options: Any) -> TypeDescriptor:
    options.setdefault("sql_type", kind.value)
    options.setdefault("length_bounds", LENGTH_BOUNDS.get(kind))
    options.setdefault("array_sql_type", _WIDE_ARRAYS.get(kind, "text"))
    return TypeDescriptor(kind=kind, native=native, default=default, **options)


def _integer(kind: Kind) -> TypeDescriptor:
    return _descriptor(
        kind,
        "int",
        1970 if kind is Kind.YEAR else 0,
        coerce=t.nullable(t.coerce_integer),
        serialize=t.null_safe(lambda v, p: v),
        deserialize=t.null_safe(t.load_integer),
        length_applicable=kind is not Kind.YEAR,
        unsigned_applicable=kind is not Kind.YEAR,
    )


def _floating(kind: Kind) -> TypeDescriptor:
    return _descriptor(
        kind,
        "float",
        0.0,
        coerce=t.nullable(t.coerce_float),
        serialize=t.null_safe(lambda v, p: v),
        deserialize=t.null_safe(t.load_float),
        length_applicable=True,
        decimals_applicable=True,
        length_requires_decimals=kind in (Kind.REAL, Kind.DOUBLE, Kind.FLOAT),
        unsigned_applicable=True,
    )


def _text(kind: Kind) -> TypeDescriptor:
    if kind is Kind.TIME:
        return _descriptor(
            kind,
            "str",
            "00:00:00",
            coerce=t.nullable(t.coerce_time),
            serialize=t.null_safe(lambda v, p: v),
            deserialize=t.null_safe(t.load_time),
            array_delimiter=TEXT_DELIMITER,
        )
    return _descriptor(
        kind,
        "str",
        "",
        coerce=t.nullable(t.coerce_text),
        serialize=t.null_safe(lambda v, p: v),
        deserialize=t.null_safe(t.load_text),
        length_applicable=kind in (Kind.CHAR, Kind.VARCHAR, Kind.TEXT),
        length_required=kind is Kind.VARCHAR,
        charset_applicable=True,
        values_required=kind is Kind.ENUM,
        array_delimiter=TEXT_DELIMITER,
    )


def _date(kind: Kind) -> TypeDescriptor:
    if kind is Kind.DATE:
        return _descriptor(
            kind,
            "date",
            EPOCH.date(),
            coerce=t.nullable(t.coerce_date),
            serialize=t.null_safe(t.serialize_date),
            deserialize=t.null_safe(t.load_date),
            nullable_default=True,
        )
    return _descriptor(
        kind,
        "datetime",
        EPOCH,
        coerce=t.nullable(t.coerce_datetime),
        serialize=t.null_safe(t.serialize_datetime),
        deserialize=t.null_safe(t.load_datetime),
        nullable_default=True,
    )


def _binary(kind: Kind) -> TypeDescriptor:
    return _descriptor(
        kind,
        "bytes",
        b"",
        coerce=t.nullable(t.coerce_bytes),
        serialize=t.null_safe(t.serialize_bytes),
        deserialize=t.null_safe(t.load_bytes),
        length_applicable=kind in (Kind.BINARY, Kind.VARBINARY, Kind.BLOB),
        length_required=kind is Kind.VARBINARY,
        array_delimiter=TEXT_DELIMITER,
    )


def _build_scalars() -> dict[Kind, TypeDescriptor]:
    scalars: dict[Kind, TypeDescriptor] = {}
    for kind in INTEGER_KINDS:
        scalars[kind] = _integer(kind)
    for kind in FLOAT_KINDS:
        scalars[kind] = _floating(kind)
    for kind in TEXT_KINDS:
        scalars[kind] = _text(kind)
    for kind in DATE_KINDS:
        scalars[kind] = _date(kind)
    for kind in BINARY_KINDS:
        scalars[kind] = _binary(kind)

    scalars[Kind.BIT] = _descriptor(
        Kind.BIT,
        "int",
        0,
        coerce=t.nullable(t.coerce_bit),
        serialize=t.null_safe(lambda v, p: v),
        deserialize=t.null_safe(t.load_bit),
        length_applicable=True,
    )
    scalars[Kind.SET] = _descriptor(
        Kind.SET,
        "set[str]",
        frozenset(),
        coerce=t.nullable(t.coerce_set),
        serialize=t.null_safe(t.serialize_set),
        deserialize=t.null_safe(t.load_set),
        charset_applicable=True,
        values_required=True,
        array_delimiter=TEXT_DELIMITER,
    )
    scalars[Kind.BOOLEAN] = _descriptor(
        Kind.BOOLEAN,
        "bool",
        False,
        sql_type="tinyint",
        coerce=t.nullable(t.coerce_bool),
        serialize=t.null_safe(t.serialize_bool),
        deserialize=t.null_safe(t.load_bool),
    )
    scalars[Kind.FUNCTION] = _descriptor(
        Kind.FUNCTION,
        "callable",
        noop,
        sql_type="text",
        coerce=t.nullable(t.coerce_callback),
        serialize=t.null_safe(t.serialize_callback),
        deserialize=t.null_safe(t.load_callback),
        array_delimiter=TEXT_DELIMITER,
    )
    scalars[Kind.JSON] = _descriptor(
        Kind.JSON,
        "dict",
        {},
        sql_type="text",
        coerce=t.nullable(t.coerce_json),
        serialize=t.null_safe(t.serialize_json),
        deserialize=t.null_safe(t.load_json),
    )
    scalars[Kind.OBJECT] = _descriptor(
        Kind.OBJECT,
        "object",
        None,
        sql_type="varchar(255)",
        coerce=t.nullable(t.coerce_object),
        serialize=t.null_safe(t.serialize_object),
        deserialize=t.load_object,
        nullable_default=True,
    )
    return scalars


def _build_registry() -> dict[tuple[Kind, Kind | None], TypeDescriptor]:
    registry: dict[tuple[Kind, Kind | None], TypeDescriptor] = {}
    for kind, descriptor in _build_scalars().items():
        registry[(kind, None)] = descriptor
        registry[(Kind.ARRAY, kind)] = array_descriptor(descriptor)
    return registry


TYPE_REGISTRY: MappingProxyType[tuple[Kind, Kind | None], TypeDescriptor] = (
    MappingProxyType(_build_registry())
)


def resolve(kind: str | Kind, element_kind: str | Kind | None = None) -> TypeDescriptor:
    """Return the descriptor for `kind` (and `element_kind` for arrays)."""
    resolved = kind if isinstance(kind, Kind) else Kind.parse(kind)
    if resolved is None:
        resolved = Kind.OBJECT
    if resolved is not Kind.ARRAY:
        return TYPE_REGISTRY[(resolved, None)]

    if element_kind is None:
        raise UnknownType("Array kind requires an element kind")
    element = (
        element_kind if isinstance(element_kind, Kind) else Kind.parse(element_kind)
    )
    if element is None:
        element = Kind.OBJECT
    if element is Kind.ARRAY:
        raise UnknownType("Arrays of arrays are not supported")
    return TYPE_REGISTRY[(Kind.ARRAY, element)]


__all__ = ["TYPE_REGISTRY", "LENGTH_BOUNDS", "EPOCH", "resolve"]
