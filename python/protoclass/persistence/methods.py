"""Persistence methods generated for table-bound classes.

build_persistence_methods(config) returns the async insert/update/load/delete
functions that create_class() installs when the config has a tableName.

Column discipline:
    Every statement walks config.all_properties() (parent-first, declaration
    order) and keeps properties with store=True. insert and update skip the
    identity column; the column list and the parameter list are built in the
    same loop, so they always line up.

    INSERT INTO workers (name, salary) VALUES (?, ?)
    UPDATE workers SET name = ?, salary = ? WHERE id = ?
    SELECT id, name, salary FROM workers WHERE id = ?
    DELETE FROM workers WHERE id = ?

load(selector, service=None, *, http_client=None):
    int        -> SELECT by id
    str URL    -> GET the URL (httpx) and populate from the JSON object
    other str  -> SELECT by the configured alternate lookup column
    mapping    -> populate from an already-fetched row, no query

    A SELECT that finds nothing returns None and leaves the instance as is.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import httpx

from protoclass.exceptions import InvalidSignature, ProtoclassError
from protoclass.persistence.service import ensure_service, insert_id_of, rows_of

if TYPE_CHECKING:
    from protoclass.models.base import GeneratedObject
    from protoclass.models.config import ClassConfig, PropertyConfig

logger = logging.getLogger(__name__)

IDENTITY = "id"
URL_SCHEMES = ("http://", "https://")


def stored_properties(
    config: ClassConfig, *, include_identity: bool = True
) -> list[PropertyConfig]:
    return [
        prop
        for prop in config.all_properties()
        if prop.store and (include_identity or prop.name != IDENTITY)
    ]


def _serialized(instance: GeneratedObject, prop: PropertyConfig) -> Any:
    return prop.save_transform(instance._state.get(prop.name), prop)


async def _run(service: Any, sql: str, params: list[Any]) -> Any:
    logger.debug("%s %r", sql, params)
    return await service.query(sql, params)


async def _select(
    config: ClassConfig, column: str, values: Iterable[Any], service: Any
) -> list[Mapping[str, Any]]:
    values = list(values)
    columns = ", ".join(prop.name for prop in stored_properties(config))
    if len(values) == 1:
        where = f"{column} = ?"
    else:
        where = f"{column} IN ({', '.join('?' for _ in values)})"
    sql = f"SELECT {columns} FROM {config.table_name} WHERE {where}"
    return rows_of(await _run(service, sql, values))


async def select_rows_by_id(
    config: ClassConfig, identities: Iterable[int], service: Any
) -> dict[int, Mapping[str, Any]]:
    """Fetch several rows in one statement, keyed by identity."""
    unique = list(dict.fromkeys(identities))
    if not unique:
        return {}
    ensure_service(service, f"{config.class_name}.load()")
    rows = await _select(config, IDENTITY, unique, service)
    return {int(row[IDENTITY]): row for row in rows if row.get(IDENTITY) is not None}


async def _fetch_json(url: str, http_client: httpx.AsyncClient | None) -> Any:
    logger.debug("GET %s", url)
    if http_client is not None:
        response = await http_client.get(url)
    else:
        async with httpx.AsyncClient() as client:
            response = await client.get(url)
    response.raise_for_status()
    return response.json()


async def populate(
    instance: GeneratedObject,
    config: ClassConfig,
    row: Mapping[str, Any],
    service: Any = None,
) -> GeneratedObject:
    """Deserialize the stored columns present in `row` into `instance`, in order."""
    for prop in stored_properties(config):
        if prop.name not in row:
            continue
        value = prop.load_transform(row[prop.name], prop, service)
        if inspect.isawaitable(value):
            value = await value
        getattr(instance, prop.name)(value)
    return instance


def build_persistence_methods(config: ClassConfig) -> dict[str, Callable[..., Any]]:
    """Build insert/update/load/delete bound to `config`'s table."""
    tag = config.class_name
    table = config.table_name

    async def insert(self: GeneratedObject, service: Any) -> GeneratedObject:
        """INSERT the stored properties and write the generated id back."""
        ensure_service(service, f"{tag}.insert()")
        columns: list[str] = []
        params: list[Any] = []
        for prop in stored_properties(config, include_identity=False):
            columns.append(prop.name)
            params.append(_serialized(self, prop))
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        result = await _run(service, sql, params)
        getattr(self, IDENTITY)(insert_id_of(result))
        return self

    async def update(self: GeneratedObject, service: Any) -> GeneratedObject:
        """UPDATE the stored properties of the row with this instance's id."""
        ensure_service(service, f"{tag}.update()")
        assignments: list[str] = []
        params: list[Any] = []
        for prop in stored_properties(config, include_identity=False):
            assignments.append(f"{prop.name} = ?")
            params.append(_serialized(self, prop))
        if not assignments:
            logger.debug("%s.update(): no stored columns, nothing to do", tag)
            return self
        params.append(getattr(self, IDENTITY)())
        sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {IDENTITY} = ?"
        await _run(service, sql, params)
        return self

    async def delete(self: GeneratedObject, service: Any) -> GeneratedObject:
        """DELETE the row with this instance's id."""
        ensure_service(service, f"{tag}.delete()")
        sql = f"DELETE FROM {table} WHERE {IDENTITY} = ?"
        await _run(service, sql, [getattr(self, IDENTITY)()])
        return self

    async def load(
        self: GeneratedObject,
        selector: Any,
        service: Any = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> GeneratedObject | None:
        """Populate this instance from storage. Returns None when nothing matches."""
        from protoclass.models.serializers import normalize_seed

        where = f"{tag}.load()"
        if isinstance(selector, bool):
            raise InvalidSignature(f"{where}: a boolean is not a valid selector")

        if isinstance(selector, int):
            ensure_service(service, where)
            rows = await _select(config, IDENTITY, [selector], service)
            row = rows[0] if rows else None
        elif isinstance(selector, str) and selector.startswith(URL_SCHEMES):
            payload = await _fetch_json(selector, http_client)
            if not isinstance(payload, Mapping):
                raise ProtoclassError(f"{where}: {selector} did not return a JSON object")
            row = normalize_seed(type(self), payload)
        elif isinstance(selector, str):
            if config.alternate_lookup is None:
                raise InvalidSignature(
                    f"{where}: string selectors need an alternate lookup property"
                )
            ensure_service(service, where)
            rows = await _select(config, config.alternate_lookup, [selector], service)
            row = rows[0] if rows else None
        elif isinstance(selector, Mapping):
            row = normalize_seed(type(self), selector)
        else:
            raise InvalidSignature(
                f"{where}: unsupported selector {type(selector).__name__}; expected an "
                "id, a lookup string, a URL or a row mapping"
            )

        if row is None:
            logger.debug("%s: no row for %r", where, selector)
            return None
        return await populate(self, config, row, service)

    methods: dict[str, Callable[..., Any]] = {
        "insert": insert,
        "update": update,
        "delete": delete,
        "load": load,
    }
    for name, method in methods.items():
        method.__qualname__ = f"{tag}.{name}"
    return methods


__all__ = [
    "IDENTITY",
    "stored_properties",
    "select_rows_by_id",
    "populate",
    "build_persistence_methods",
]
