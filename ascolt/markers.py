from __future__ import annotations

"""
Declarative markers consumed by `ascolt codegen`.

They exist so that annotated modules import cleanly for editors and type
checkers. The generator rewrites every marker into an `impl(...)`
registration; a marker that actually runs means the module was not expanded.
"""

from typing import Any

from .exceptions import ExpansionRequired


def _not_expanded(marker: str, target: Any) -> ExpansionRequired:
    name = getattr(target, "__qualname__", repr(target))
    return ExpansionRequired(
        f"@{marker} on {name} was executed directly. "
        "Run `ascolt codegen expand` (or `build`) on this module first."
    )


def _handler_marker(marker: str, target: Any = None) -> Any:
    if callable(target):
        raise _not_expanded(marker, target)

    def decorator(func: Any) -> Any:
        raise _not_expanded(marker, func)

    return decorator


def ask_handler(target: Any = None, *, stateful: bool = False) -> Any:
    """
    Mark a function as the request/response handler of its `msg` type.

    `stateful=True` selects the convention where the runtime passes external
    state through a `state` parameter.
    """
    return _handler_marker("ask_handler", target)


def tell_handler(target: Any = None, *, stateful: bool = False) -> Any:
    """
    Mark a function as the fire-and-forget handler of its `msg` type.
    """
    return _handler_marker("tell_handler", target)


def actor(target: Any = None, *, error: Any = None) -> Any:
    """
    Mark a class as an actor whose handlers fail with `error`.
    """
    if isinstance(target, type):
        raise _not_expanded("actor", target)

    def decorator(cls: Any) -> Any:
        raise _not_expanded("actor", cls)

    return decorator
