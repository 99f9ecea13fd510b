"""Base class of every generated class.

create_class() subclasses GeneratedObject (or the class generated from the
parent config) and fills in the class attributes below together with one
accessor per property:

    __class_tag__       configured className
    __ancestor_tags__   frozenset of this tag and every ancestor's tag
    __config__          the validated ClassConfig
    __properties__      inherited + own PropertyConfigs, parent-first
    __property_names__  frozenset of their names

Instance state lives in a private dict; accessors are the only public way to
read and write it:

    worker = Worker({"name": "Bob"})
    worker.name()            # "Bob"
    worker.name("Alice")     # returns worker
    worker.to_dict()         # {"__class__": "Worker", "__version__": 1, ...}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from protoclass.core.wire import dumps_json, pack
from protoclass.models.serializers import normalize_seed, to_plain

if TYPE_CHECKING:
    from protoclass.models.config import ClassConfig, PropertyConfig


class GeneratedObject:
    __class_tag__: ClassVar[str] = "GeneratedObject"
    __ancestor_tags__: ClassVar[frozenset[str]] = frozenset()
    __config__: ClassVar[ClassConfig | None] = None
    __properties__: ClassVar[tuple[PropertyConfig, ...]] = ()
    __property_names__: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, seed: Any = None) -> None:
        self._state: dict[str, Any] = {}
        self.init(seed)

    def init(self, seed: Any = None) -> GeneratedObject:
        """Populate properties from `seed`. Generated classes override this."""
        normalize_seed(type(self), seed)
        return self

    def to_dict(self, *, marked: bool = False) -> dict[str, Any]:
        return to_plain(self, marked=marked)

    def to_json(self, *, marked: bool = False) -> str:
        return dumps_json(self.to_dict(marked=marked))

    def to_wire(self) -> bytes:
        return pack(self.to_dict())

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self._state.items())
        return f"{self.__class_tag__}({fields})"


def is_generated(value: Any) -> bool:
    return isinstance(value, GeneratedObject)


def instance_of(value: Any, tag: str) -> bool:
    """True when `value` is a generated instance of class `tag` or a subclass of it."""
    return isinstance(value, GeneratedObject) and tag in type(value).__ancestor_tags__


__all__ = ["GeneratedObject", "is_generated", "instance_of"]
