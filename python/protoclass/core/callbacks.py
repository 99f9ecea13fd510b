"""Named handler table backing the `function` kind.

A `function` property never stores code. Its value must be a callable that
was registered here under a name; storage holds only that name and loading
looks it up again.

    def greet(name):
        return f"Hello {name}"

    register_callback("greet", greet)

    Handler = create_class({"className": "Handler", "properties": [
        {"name": "on_event", "type": "function"},
    ]})
    Handler({"on_event": greet}).on_event()("Bob")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


def noop(*args: Any, **kwargs: Any) -> None:
    """Built-in handler used as the default value of `function` properties."""


_BUILTINS: dict[str, Callable[..., Any]] = {"noop": noop}
_CALLBACKS: dict[str, Callable[..., Any]] = dict(_BUILTINS)


def register_callback(
    name: str, handler: Callable[..., Any], *, overwrite: bool = False
) -> Callable[..., Any]:
    """Register `handler` under `name`. Returns the handler for decorator-style use."""
    if not callable(handler):
        raise TypeError(f"Callback '{name}' must be callable")
    existing = _CALLBACKS.get(name)
    if existing is handler:
        return handler
    if existing is not None and not overwrite:
        raise ValueError(f"Callback '{name}' is already registered")
    _CALLBACKS[name] = handler
    return handler


def unregister_callback(name: str) -> None:
    """Remove a handler if present."""
    _CALLBACKS.pop(name, None)


def get_callback(name: str) -> Callable[..., Any] | None:
    return _CALLBACKS.get(name)


def callback_name(handler: Any) -> str | None:
    """Return the registered name of `handler`, or None if it is not registered."""
    for name, registered in _CALLBACKS.items():
        if registered is handler:
            return name
    return None


def registered_callbacks() -> dict[str, Callable[..., Any]]:
    """Return a copy of the handler table."""
    return dict(_CALLBACKS)


def clear_callbacks() -> None:
    """Reset the handler table to the built-ins (intended for tests)."""
    _CALLBACKS.clear()
    _CALLBACKS.update(_BUILTINS)


__all__ = [
    "noop",
    "register_callback",
    "unregister_callback",
    "get_callback",
    "callback_name",
    "registered_callbacks",
    "clear_callbacks",
]
