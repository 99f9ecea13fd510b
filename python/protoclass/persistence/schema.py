"""CREATE TABLE generation for table-bound class configs.

    sql = build_create_table_sql(Worker.__config__)
    # CREATE TABLE IF NOT EXISTS workers (id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    #   name VARCHAR(40) NOT NULL, ..., INDEX by_name USING BTREE (name))

    await create_table(Worker.__config__, service)

Columns follow the parent-first stored property order. The identity column is
always NOT NULL AUTO_INCREMENT PRIMARY KEY; other modifiers come from each
PropertyConfig and only apply where the kind supports them.
"""

from __future__ import annotations

import logging
from typing import Any

from protoclass.core.kinds import Kind
from protoclass.exceptions import ConfigError
from protoclass.models.config import ClassConfig, IndexConfig, PropertyConfig
from protoclass.models.validation import validate_class_config
from protoclass.persistence.methods import IDENTITY, stored_properties
from protoclass.persistence.service import ensure_service

logger = logging.getLogger(__name__)

INDEX_TYPES = ("BTREE", "HASH")


def quote(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "''") + "'"


def column_definition(prop: PropertyConfig) -> str:
    descriptor = prop.descriptor
    sql_type = descriptor.sql_type.upper()
    if descriptor.kind in (Kind.ENUM, Kind.SET):
        sql_type += "(" + ", ".join(quote(value) for value in prop.values or ()) + ")"
    elif prop.length is not None and descriptor.length_applicable:
        if prop.decimals is not None and descriptor.decimals_applicable:
            sql_type += f"({prop.length}, {prop.decimals})"
        else:
            sql_type += f"({prop.length})"

    parts = [prop.name, sql_type]
    if descriptor.unsigned_applicable:
        if prop.unsigned:
            parts.append("UNSIGNED")
        if prop.zerofill:
            parts.append("ZEROFILL")
    if descriptor.charset_applicable:
        if prop.character_set:
            parts.append(f"CHARACTER SET {prop.character_set}")
        if prop.collate:
            parts.append(f"COLLATE {prop.collate}")

    if prop.name == IDENTITY:
        parts.append("NOT NULL AUTO_INCREMENT PRIMARY KEY")
    else:
        parts.append("NULL" if prop.allow_null else "NOT NULL")
        if prop.auto_increment:
            parts.append("AUTO_INCREMENT")
        if prop.unique:
            parts.append("UNIQUE KEY")
    if prop.comment:
        parts.append(f"COMMENT {quote(prop.comment)}")
    return " ".join(parts)


def index_definition(index: IndexConfig) -> str:
    index_type = index.type.upper()
    if index_type not in INDEX_TYPES:
        raise ConfigError(
            f"Index '{index.name}': type must be one of {', '.join(INDEX_TYPES)}"
        )
    if index.visible and index.invisible:
        raise ConfigError(f"Index '{index.name}' cannot be both visible and invisible")
    if not index.columns:
        raise ConfigError(f"Index '{index.name}' needs at least one column")

    parts = [f"INDEX {index.name} USING {index_type} ({', '.join(index.columns)})"]
    if index.key_block_size is not None:
        parts.append(f"KEY_BLOCK_SIZE {index.key_block_size}")
    if index.parser_name:
        parts.append(f"WITH PARSER {index.parser_name}")
    if index.comment:
        parts.append(f"COMMENT {quote(index.comment)}")
    if index.visible:
        parts.append("VISIBLE")
    if index.invisible:
        parts.append("INVISIBLE")
    return " ".join(parts)


def build_create_table_sql(config: ClassConfig | Any) -> str:
    """Return the CREATE TABLE IF NOT EXISTS statement for a table-bound config."""
    config = validate_class_config(config)
    if config.table_name is None:
        raise ConfigError(f"{config.class_name}: no tableName configured")

    stored = {prop.name for prop in stored_properties(config)}
    definitions = [column_definition(prop) for prop in stored_properties(config)]
    for index in config.all_indexes():
        missing = [column for column in index.columns if column not in stored]
        if missing:
            raise ConfigError(
                f"Index '{index.name}' refers to unknown column(s): {', '.join(missing)}"
            )
        definitions.append(index_definition(index))
    return f"CREATE TABLE IF NOT EXISTS {config.table_name} ({', '.join(definitions)})"


async def create_table(config: ClassConfig | Any, service: Any) -> Any:
    """Issue the CREATE TABLE statement through `service`."""
    ensure_service(service, "create_table()")
    sql = build_create_table_sql(config)
    logger.debug("%s", sql)
    return await service.query(sql, [])


__all__ = [
    "INDEX_TYPES",
    "column_definition",
    "index_definition",
    "build_create_table_sql",
    "create_table",
]
