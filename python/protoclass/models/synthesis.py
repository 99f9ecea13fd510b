"""Class synthesis: ClassConfig -> generated class.

    Person = create_class({
        "className": "Person",
        "properties": [{"name": "name", "type": "varchar", "length": 40}],
    })
    Worker = create_class({
        "className": "Worker",
        "extends": Person.__config__,
        "tableName": "workers",
        "properties": [
            {"name": "id", "type": "int"},
            {"name": "salary", "type": "decimal", "length": 10, "decimals": 2},
        ],
    })

    bob = Worker({"name": "Bob", "salary": 1200})
    bob.salary(1300).name()        # "Bob"
    await bob.insert(service)

The generated class gets:
    - init(seed): parent init first, then own properties in declaration order
      (seed value, else configured default, else the kind's default, always
      through the set transform)
    - one accessor per own property (inherited accessors come from the parent
      class): obj.prop() reads, obj.prop(value) writes and returns obj
    - insert/update/load/delete when the config has a tableName
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from protoclass.exceptions import InvalidSignature
from protoclass.models.base import GeneratedObject
from protoclass.models.config import ClassConfig, PropertyConfig
from protoclass.models.registry import class_for_config, register_class
from protoclass.models.serializers import normalize_seed
from protoclass.models.validation import validate_class_config

logger = logging.getLogger(__name__)


def _initial_value(prop: PropertyConfig, data: dict[str, Any]) -> Any:
    if prop.name in data:
        return data[prop.name]
    if prop.has_default:
        return copy.deepcopy(prop.default)
    return copy.deepcopy(prop.descriptor.default)


def _make_initializer(
    config: ClassConfig, parent: type[GeneratedObject]
) -> Callable[..., GeneratedObject]:
    def init(self: GeneratedObject, seed: Any = None) -> GeneratedObject:
        data = normalize_seed(type(self), seed)
        parent.init(self, data)
        for prop in config.properties:
            self._state[prop.name] = prop.set_transform(_initial_value(prop, data), prop)
        return self

    init.__qualname__ = f"{config.class_name}.init"
    init.__doc__ = f"Populate a {config.class_name} from a mapping, JSON string or bytes."
    return init


def _make_accessor(prop: PropertyConfig) -> Callable[..., Any]:
    name = prop.name

    def accessor(self: GeneratedObject, *args: Any) -> Any:
        if not args:
            value = self._state.get(name)
            if prop.get_transform is not None:
                return prop.get_transform(value, prop)
            return value
        if len(args) == 1:
            self._state[name] = prop.set_transform(args[0], prop)
            return self
        raise InvalidSignature(
            f"{prop.qualified_name}(): expected 0 or 1 arguments, received {len(args)}"
        )

    accessor.__name__ = name
    accessor.__qualname__ = f"{prop.class_name}.{name}"
    accessor.__doc__ = f"Get or set '{name}' ({prop.descriptor.label})."
    return accessor


def _parent_class(config: ClassConfig) -> type[GeneratedObject]:
    if config.parent is None:
        return GeneratedObject
    return class_for_config(config.parent) or create_class(config.parent)


def create_class(config: ClassConfig | Any) -> type[GeneratedObject]:
    """Validate `config`, build the class it describes and register it."""
    config = validate_class_config(config)
    parent = _parent_class(config)
    properties = tuple(config.all_properties())

    namespace: dict[str, Any] = {
        "__module__": __name__,
        "__qualname__": config.class_name,
        "__doc__": f"Generated class {config.class_name}.",
        "__class_tag__": config.class_name,
        "__ancestor_tags__": parent.__ancestor_tags__ | {config.class_name},
        "__config__": config,
        "__properties__": properties,
        "__property_names__": frozenset(prop.name for prop in properties),
        "init": _make_initializer(config, parent),
    }
    for prop in config.properties:
        namespace[prop.name] = _make_accessor(prop)

    if config.table_name is not None:
        from protoclass.persistence.methods import build_persistence_methods

        namespace.update(build_persistence_methods(config))

    cls = type(config.class_name, (parent,), namespace)
    register_class(cls, overwrite=True)
    logger.debug(
        "Synthesized %s (%d properties, table=%s)",
        config.class_name,
        len(properties),
        config.table_name,
    )
    return cls


__all__ = ["create_class"]
