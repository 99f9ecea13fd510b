"""Kind enumeration and the TypeDescriptor record.

Kind is the closed set of value categories a property can hold. Every
Kind (or, for arrays, every Kind x element Kind pair) maps to exactly one
TypeDescriptor in protoclass.core.types.TYPE_REGISTRY.

A TypeDescriptor bundles:
    - the in-memory shape (native) and built-in default
    - the storage column type and which column modifiers apply
    - three transforms:
        coerce(value, prop) -> value              validate-and-coerce on write
        serialize(value, prop) -> storage value   before INSERT/UPDATE
        deserialize(raw, prop, service) -> value  after SELECT (may be async)

The transforms receive the owning PropertyConfig so that error messages can
name the property and so that per-property settings (length, element
config, instance constraint) are honoured.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Kind(str, Enum):
    """Semantic value categories, keyed by their lower-case configuration name."""

    BIT = "bit"
    TINYINT = "tinyint"
    SMALLINT = "smallint"
    MEDIUMINT = "mediumint"
    INT = "int"
    INTEGER = "integer"
    BIGINT = "bigint"
    REAL = "real"
    DOUBLE = "double"
    FLOAT = "float"
    DECIMAL = "decimal"
    NUMERIC = "numeric"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    DATETIME = "datetime"
    YEAR = "year"
    CHAR = "char"
    VARCHAR = "varchar"
    BINARY = "binary"
    VARBINARY = "varbinary"
    TINYBLOB = "tinyblob"
    BLOB = "blob"
    MEDIUMBLOB = "mediumblob"
    LONGBLOB = "longblob"
    TINYTEXT = "tinytext"
    TEXT = "text"
    MEDIUMTEXT = "mediumtext"
    LONGTEXT = "longtext"
    ENUM = "enum"
    SET = "set"
    BOOLEAN = "boolean"
    FUNCTION = "function"
    JSON = "json"
    OBJECT = "object"
    ARRAY = "array"

    @classmethod
    def parse(cls, name: str) -> Kind | None:
        """Case-insensitive lookup; None when the name is not a built-in kind."""
        try:
            return cls(name.lower())
        except ValueError:
            return None


INTEGER_KINDS = frozenset(
    {
        Kind.TINYINT,
        Kind.SMALLINT,
        Kind.MEDIUMINT,
        Kind.INT,
        Kind.INTEGER,
        Kind.BIGINT,
        Kind.YEAR,
    }
)
FLOAT_KINDS = frozenset(
    {Kind.REAL, Kind.DOUBLE, Kind.FLOAT, Kind.DECIMAL, Kind.NUMERIC}
)
DATE_KINDS = frozenset({Kind.DATE, Kind.DATETIME, Kind.TIMESTAMP})
TEXT_KINDS = frozenset(
    {
        Kind.CHAR,
        Kind.VARCHAR,
        Kind.TINYTEXT,
        Kind.TEXT,
        Kind.MEDIUMTEXT,
        Kind.LONGTEXT,
        Kind.ENUM,
        Kind.TIME,
    }
)
BINARY_KINDS = frozenset(
    {
        Kind.BINARY,
        Kind.VARBINARY,
        Kind.TINYBLOB,
        Kind.BLOB,
        Kind.MEDIUMBLOB,
        Kind.LONGBLOB,
    }
)

# Separators used when an array is flattened into one column.
SAFE_DELIMITER = ","
TEXT_DELIMITER = "!&|&!"
NULL_TOKEN = "\\N"


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Describes how one kind is validated, stored and loaded."""

    kind: Kind
    native: str  # "int", "float", "str", "bytes", "date", ... for messages/docs
    default: Any
    sql_type: str
    coerce: Callable[[Any, Any], Any]
    serialize: Callable[[Any, Any], Any]
    deserialize: Callable[[Any, Any, Any], Any]
    element_kind: Kind | None = None
    length_applicable: bool = False
    decimals_applicable: bool = False
    length_required: bool = False
    length_requires_decimals: bool = False
    length_bounds: tuple[int, int] | None = None
    unsigned_applicable: bool = False
    charset_applicable: bool = False
    values_required: bool = False
    nullable_default: bool = False
    array_delimiter: str = SAFE_DELIMITER
    array_sql_type: str = "text"

    @property
    def label(self) -> str:
        if self.kind is Kind.ARRAY and self.element_kind is not None:
            return f"array[{self.element_kind.value}]"
        return self.kind.value


__all__ = [
    "Kind",
    "TypeDescriptor",
    "INTEGER_KINDS",
    "FLOAT_KINDS",
    "DATE_KINDS",
    "TEXT_KINDS",
    "BINARY_KINDS",
    "SAFE_DELIMITER",
    "TEXT_DELIMITER",
    "NULL_TOKEN",
]
