"""Query service contract.

Persistence methods talk to the database only through an object exposing
an awaitable `query(sql, params)`. What it returns depends on the statement:

    SELECT            -> sequence of row mappings (column name -> value)
    INSERT            -> metadata carrying the generated identity, as an
                         attribute (`insert_id`, `lastrowid`) or a mapping key
                         (`insert_id`, `insertId`)
    UPDATE / DELETE   -> anything; the result is ignored

Placeholders are `?`, parameters are passed positionally. Errors raised by
the service propagate to the caller unchanged.
Transaction control (begin/commit/abort) is left to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from protoclass.exceptions import InvalidSignature, ProtoclassError


@runtime_checkable
class QueryService(Protocol):
    async def query(self, sql: str, params: Sequence[Any] | None = None) -> Any: ...


def ensure_service(service: Any, where: str) -> QueryService:
    """Fail with InvalidSignature unless `service` has a callable `query`."""
    if service is None or not callable(getattr(service, "query", None)):
        raise InvalidSignature(
            f"{where}: expected a query service exposing query(sql, params), "
            f"received {type(service).__name__}"
        )
    return service


def rows_of(result: Any) -> list[Mapping[str, Any]]:
    """Normalize a SELECT result to a list of row mappings."""
    if result is None:
        return []
    if isinstance(result, Mapping):
        return [result]
    return [row for row in result if isinstance(row, Mapping)]


def insert_id_of(result: Any) -> int:
    """Extract the generated identity from INSERT metadata."""
    for attribute in ("insert_id", "lastrowid"):
        value = getattr(result, attribute, None)
        if value is not None:
            return int(value)
    if isinstance(result, Mapping):
        for key in ("insert_id", "insertId", "lastrowid"):
            if result.get(key) is not None:
                return int(result[key])
    raise ProtoclassError(
        f"Query service returned no generated identity for INSERT ({type(result).__name__})"
    )


__all__ = [
    "QueryService",
    "ensure_service",
    "rows_of",
    "insert_id_of",
]
