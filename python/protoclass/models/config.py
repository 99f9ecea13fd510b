"""Declarative configuration models.

Class and property configurations are written as plain dicts (or JSON
documents) and parsed into pydantic models:

    config = ClassConfig.from_mapping({
        "className": "Worker",
        "tableName": "workers",
        "properties": [
            {"name": "id", "type": "int"},
            {"name": "name", "type": "varchar", "length": 40},
            {"name": "tags", "type": "array", "arrayOf": {"type": "int"}},
            {"name": "manager", "instanceOf": "Person"},
        ],
    })

Both the camelCase keys shown above and the snake_case field names are
accepted. Parsing only checks shapes; protoclass.models.validation resolves
kinds, fills defaults and enforces the per-kind rules, mutating the models in
place. After validation every PropertyConfig carries its TypeDescriptor.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from protoclass.core.kinds import TypeDescriptor
from protoclass.exceptions import ConfigError


def _config_error(what: str, error: ValidationError) -> ConfigError:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in issue['loc']) or '<root>'}: {issue['msg']}"
        for issue in error.errors()
    )
    return ConfigError(f"Invalid {what} configuration: {problems}")


class PropertyConfig(BaseModel):
    """Configuration of one generated property."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    name: str | None = None
    type: str | None = None
    instance_of: str | None = Field(default=None, alias="instanceOf")
    array_of: PropertyConfig | None = Field(default=None, alias="arrayOf")
    allow_null: bool | None = Field(default=None, alias="allowNull")
    default: Any = None
    store: bool = True

    set_transform: Callable[..., Any] | None = Field(default=None, alias="setTransform")
    save_transform: Callable[..., Any] | None = Field(default=None, alias="saveTransform")
    load_transform: Callable[..., Any] | None = Field(default=None, alias="loadTransform")
    get_transform: Callable[..., Any] | None = Field(default=None, alias="getTransform")

    # Storage-only metadata
    length: Any = None
    decimals: Any = None
    values: list[str] | None = None
    unique: bool = False
    unsigned: bool = False
    zerofill: bool = False
    auto_increment: bool = Field(default=False, alias="autoIncrement")
    character_set: str | None = Field(default=None, alias="characterSet")
    collate: str | None = None
    comment: str | None = None

    # Owning class tag, filled in by class validation
    class_name: str | None = Field(default=None, alias="className")

    _descriptor: TypeDescriptor | None = PrivateAttr(default=None)
    _is_element: bool = PrivateAttr(default=False)
    _user_transforms: frozenset[str] | None = PrivateAttr(default=None)

    @classmethod
    def from_mapping(cls, data: Any) -> PropertyConfig:
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"Property configuration must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise _config_error("property", e) from e

    @property
    def descriptor(self) -> TypeDescriptor:
        if self._descriptor is None:
            raise ConfigError(f"Property '{self.name}' has not been validated")
        return self._descriptor

    @property
    def is_validated(self) -> bool:
        return self._descriptor is not None

    @property
    def is_element(self) -> bool:
        return self._is_element

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    @property
    def qualified_name(self) -> str:
        name = f"{self.class_name or '<unbound>'}.{self.name or '<unnamed>'}"
        return f"{name}[]" if self._is_element else name


class IndexConfig(BaseModel):
    """Named index appended to the CREATE TABLE statement."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    columns: list[str]
    type: str = "BTREE"
    key_block_size: int | None = Field(default=None, alias="keyBlockSize")
    parser_name: str | None = Field(default=None, alias="parserName")
    comment: str | None = None
    visible: bool = False
    invisible: bool = False


class ClassConfig(BaseModel):
    """Configuration of one generated class."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    class_name: str | None = Field(default=None, alias="className")
    properties: list[PropertyConfig] = Field(default_factory=list)
    parent: ClassConfig | None = Field(default=None, alias="extends")
    table_name: str | None = Field(default=None, alias="tableName")
    alternate_lookup: str | None = Field(default=None, alias="alternateLookup")
    indexes: list[IndexConfig] = Field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Any) -> ClassConfig:
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"Class configuration must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise _config_error("class", e) from e

    def lineage(self) -> list[ClassConfig]:
        """Configs from the root ancestor down to this one."""
        chain: list[ClassConfig] = []
        current: ClassConfig | None = self
        while current is not None:
            if any(seen is current for seen in chain):
                raise ConfigError(f"Class '{self.class_name}' has a cyclic parent chain")
            chain.append(current)
            current = current.parent
        return list(reversed(chain))

    def all_properties(self) -> list[PropertyConfig]:
        """Inherited properties first, then this class's own, in declaration order."""
        return [prop for config in self.lineage() for prop in config.properties]

    def all_indexes(self) -> list[IndexConfig]:
        return [index for config in self.lineage() for index in config.indexes]


PropertyConfig.model_rebuild()
ClassConfig.model_rebuild()


def load_class_configs(path: str | Path) -> dict[str, ClassConfig]:
    """Read a JSON file holding a list of class configurations.

    An entry may name its parent with `"extends": "<className>"`, which must
    refer to an entry earlier in the same file.
    """
    try:
        entries = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: not valid JSON ({e})") from e
    if not isinstance(entries, list):
        raise ConfigError(f"{path}: expected a list of class configurations")

    configs: dict[str, ClassConfig] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ConfigError(f"{path}: every class configuration must be an object")
        entry = dict(entry)
        parent = entry.get("extends")
        if isinstance(parent, str):
            if parent not in configs:
                raise ConfigError(
                    f"{path}: '{entry.get('className')}' extends unknown class '{parent}'"
                )
            entry["extends"] = configs[parent]
        config = ClassConfig.from_mapping(entry)
        if config.class_name is None:
            raise ConfigError(f"{path}: class configuration without 'className'")
        configs[config.class_name] = config
    return configs


__all__ = [
    "PropertyConfig",
    "IndexConfig",
    "ClassConfig",
    "load_class_configs",
]
