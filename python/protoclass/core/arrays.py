"""Array Type Adapter.

`array_descriptor(element)` wraps a scalar TypeDescriptor into the descriptor
for a homogeneous array of that kind. Array values live in memory as
`TypedList`, a list subclass that routes every element it receives through
the element property's set transform:

    tags = TypedList([1, 3, 5], element=int_prop)
    tags.append("x")        # TypeMismatch, same as tags = [1, 3, "x"]
    tags.prepend(0)         # [0, 1, 3, 5]
    tags.fill(9, 1, 3)      # [0, 9, 9, 5]

Storage flattens the array into one column:

    [1, 3, 5]          -> "1,3,5"
    ["a,b", "c"]       -> "a,b!&|&!c"        (text-like elements)
    [worker1, worker2] -> "Worker:1,Worker:2"
    []                 -> ""
    [1, None]          -> "1,\\N"            (when elements allow null)
    ["\\N"]            -> "\\\\N"          (literal text, escaped)

Arrays of nested objects load in a single batched SELECT when every
reference carries the same class tag; mixed arrays fall back to one load()
per element.
"""

from __future__ import annotations

import copy
import inspect
import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any, SupportsIndex

from protoclass.core.kinds import (
    NULL_TOKEN,
    SAFE_DELIMITER,
    Kind,
    TypeDescriptor,
)
from protoclass.core.transforms import (
    class_for_tag,
    coerce_object,
    load_object,
    mismatch,
    nullable,
    parse_reference,
)

if TYPE_CHECKING:
    from protoclass.models.config import PropertyConfig

logger = logging.getLogger(__name__)

# Literal pieces shaped like the null token are stored with one extra backslash.
_NULL_LIKE = re.compile(r"\\+N")


class TypedList(list):
    """List that validates every element written into it."""

    __slots__ = ("_element",)

    def __init__(self, iterable: Iterable[Any] = (), element: PropertyConfig | None = None):
        self._element = element
        super().__init__(self._coerce(item) for item in iterable)

    @property
    def element(self) -> PropertyConfig | None:
        return self._element

    def _coerce(self, value: Any) -> Any:
        if self._element is None:
            return value
        return self._element.set_transform(value, self._element)

    def append(self, value: Any) -> None:
        super().append(self._coerce(value))

    def extend(self, values: Iterable[Any]) -> None:
        super().extend([self._coerce(value) for value in values])

    def insert(self, index: SupportsIndex, value: Any) -> None:
        super().insert(index, self._coerce(value))

    def prepend(self, *values: Any) -> int:
        """Insert `values` at the front, keeping their order. Returns the new length."""
        super().__setitem__(slice(0, 0), [self._coerce(value) for value in values])
        return len(self)

    def fill(self, value: Any, start: int = 0, end: int | None = None) -> TypedList:
        """Overwrite positions [start, end) with `value`."""
        coerced = self._coerce(value)
        for index in range(*slice(start, end).indices(len(self))):
            super().__setitem__(index, coerced)
        return self

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            super().__setitem__(index, [self._coerce(item) for item in value])
        else:
            super().__setitem__(index, self._coerce(value))

    def __iadd__(self, values: Iterable[Any]) -> TypedList:
        self.extend(values)
        return self

    def __copy__(self) -> TypedList:
        return TypedList(self, self._element)

    def __deepcopy__(self, memo: dict[int, Any]) -> TypedList:
        return TypedList((copy.deepcopy(item, memo) for item in self), self._element)

    def __reduce__(self) -> tuple[Any, ...]:
        return (TypedList, (list(self), self._element))


def _check_array(value: Any, prop: PropertyConfig) -> TypedList:
    if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(
        value, (list, tuple)
    ):
        raise mismatch(prop, "array", value)
    return TypedList(value, prop.array_of)


def _serialize_array(value: list[Any], prop: PropertyConfig) -> Any:
    element = prop.array_of
    if value is None:
        return None
    if element.descriptor.kind is Kind.JSON:
        return json.dumps(list(value))
    parts = []
    for item in value:
        if item is None:
            parts.append(NULL_TOKEN)
        else:
            parts.append(_escape(str(element.save_transform(item, element))))
    return element.descriptor.array_delimiter.join(parts)


def _escape(piece: str) -> str:
    return "\\" + piece if _NULL_LIKE.fullmatch(piece) else piece


def _unescape(piece: str, element: PropertyConfig) -> str | None:
    if piece == NULL_TOKEN:
        return None if element.allow_null else piece
    if _NULL_LIKE.fullmatch(piece):
        return piece[1:]
    return piece


def _split(raw: Any, prop: PropertyConfig) -> list[str]:
    element = prop.array_of
    text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)
    if text == "":
        return []
    return text.split(element.descriptor.array_delimiter)


def _load_array(raw: Any, prop: PropertyConfig, service: Any = None) -> list[Any] | None:
    if raw is None:
        return None
    element = prop.array_of
    if isinstance(raw, (list, tuple)):
        pieces: Iterable[Any] = raw
    elif element.descriptor.kind is Kind.JSON:
        pieces = json.loads(raw)
    else:
        pieces = [_unescape(piece, element) for piece in _split(raw, prop)]
    return [
        None if piece is None else element.load_transform(piece, element, service)
        for piece in pieces
    ]


async def _load_object_array(
    raw: Any, prop: PropertyConfig, service: Any = None
) -> list[Any] | None:
    if raw is None:
        return None
    element = prop.array_of
    if isinstance(raw, (list, tuple)) and any(
        isinstance(item, Mapping) or hasattr(type(item), "__class_tag__") for item in raw
    ):
        return [None if item is None else coerce_object(item, element) for item in raw]

    pieces = raw if isinstance(raw, (list, tuple)) else _split(raw, prop)
    references = [
        None if piece is None or piece == NULL_TOKEN else parse_reference(piece, element)
        for piece in pieces
    ]
    tags = {reference[0] for reference in references if reference is not None}

    if len(tags) == 1 and service is not None:
        (tag,) = tags
        cls = class_for_tag(tag, element)
        from protoclass.persistence.methods import select_rows_by_id

        identities = [reference[1] for reference in references if reference is not None]
        logger.debug("Batch loading %d %s reference(s)", len(identities), tag)
        rows = await select_rows_by_id(cls.__config__, identities, service)
        loaded: list[Any] = []
        for reference in references:
            if reference is None:
                loaded.append(None)
                continue
            row = rows.get(reference[1])
            if row is not None:
                loaded.append(await cls().load(row, service))
        return loaded

    loaded = []
    for piece in pieces:
        if piece is None or piece == NULL_TOKEN:
            loaded.append(None)
            continue
        item = load_object(piece, element, service)
        if inspect.isawaitable(item):
            item = await item
        if item is not None:
            loaded.append(item)
    return loaded


def array_descriptor(element: TypeDescriptor) -> TypeDescriptor:
    """Build the array descriptor wrapping `element`."""
    is_object = element.kind is Kind.OBJECT
    return replace(
        element,
        kind=Kind.ARRAY,
        native=f"list[{element.native}]",
        default=(),
        sql_type=element.array_sql_type,
        coerce=nullable(_check_array),
        serialize=_serialize_array,
        deserialize=_load_object_array if is_object else _load_array,
        element_kind=element.kind,
        length_applicable=False,
        decimals_applicable=False,
        length_required=False,
        length_requires_decimals=False,
        length_bounds=None,
        unsigned_applicable=False,
        charset_applicable=False,
        values_required=False,
        nullable_default=True,
        array_delimiter=SAFE_DELIMITER,
    )


__all__ = ["TypedList", "array_descriptor"]
