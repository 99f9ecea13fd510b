"""protoclass: runtime class generation from declarative property configs.

    from protoclass import create_class

    Worker = create_class({
        "className": "Worker",
        "tableName": "workers",
        "properties": [
            {"name": "id", "type": "int"},
            {"name": "name", "type": "varchar", "length": 40},
            {"name": "tags", "type": "array", "arrayOf": {"type": "int"}},
        ],
    })

    bob = Worker({"name": "Bob", "tags": [1, 3, 5]})
    bob.tags().append(7)
    await bob.insert(service)          # service.query(sql, params)
    same = await Worker().load(bob.id(), service)
"""

from protoclass.core import (
    TYPE_REGISTRY,
    Kind,
    TypeDescriptor,
    TypedList,
    register_callback,
    resolve,
    unregister_callback,
)
from protoclass.exceptions import (
    ConfigError,
    InvalidSignature,
    ProtoclassError,
    TypeMismatch,
    UnknownType,
)
from protoclass.models import (
    ClassConfig,
    GeneratedObject,
    IndexConfig,
    PropertyConfig,
    create_class,
    get_class,
    instance_of,
    load_class_configs,
    validate_class_config,
    validate_property_config,
)
from protoclass.persistence import (
    QueryService,
    build_create_table_sql,
    create_table,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Types
    "Kind",
    "TypeDescriptor",
    "TYPE_REGISTRY",
    "resolve",
    "TypedList",
    "register_callback",
    "unregister_callback",
    # Configuration
    "PropertyConfig",
    "ClassConfig",
    "IndexConfig",
    "load_class_configs",
    "validate_property_config",
    "validate_class_config",
    # Classes
    "GeneratedObject",
    "create_class",
    "get_class",
    "instance_of",
    # Persistence
    "QueryService",
    "build_create_table_sql",
    "create_table",
    # Exceptions
    "ProtoclassError",
    "ConfigError",
    "UnknownType",
    "TypeMismatch",
    "InvalidSignature",
]
