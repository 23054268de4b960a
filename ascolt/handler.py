from __future__ import annotations

"""
Handler contracts and the implementation registry.

Expanded modules compile against this module only. Each `@ask_handler`,
`@tell_handler` or `@actor(...)` marker is replaced by an `impl(...)`
registration naming one of the traits below, fully parameterized:

    @ascolt.handler.impl(ascolt.handler.AskHandlerTrait[Ping, Pong, WorkerError], Worker)
    async def handle(self: Ref[Worker], msg: Ping) -> Result[Pong, WorkerError]:
        ...

Handlers written inside their actor class pass the actor by name, `impl(..., "Worker")`,
and are registered once the class exists.

The runtime resolves handlers through `registry.lookup(...)`.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, get_args, get_origin, runtime_checkable

from .exceptions import ConflictingImplementation
from .typing import Result

StateT = TypeVar("StateT", contravariant=True)
MessageT = TypeVar("MessageT", contravariant=True)
ResponseT = TypeVar("ResponseT", covariant=True)
ErrorT = TypeVar("ErrorT", covariant=True)


@runtime_checkable
class AskHandlerTrait(Protocol[MessageT, ResponseT, ErrorT]):
    """
    Request/response handler for one message type.

    The caller awaits the `Result` produced by the handler.
    """

    async def handle(self, msg: MessageT) -> Result[ResponseT, ErrorT]: ...


@runtime_checkable
class StatefulAskHandlerTrait(Protocol[StateT, MessageT, ResponseT, ErrorT]):
    """
    Request/response handler receiving externally held state.
    """

    async def handle(self, state: StateT, msg: MessageT) -> Result[ResponseT, ErrorT]: ...


@runtime_checkable
class TellHandlerTrait(Protocol[MessageT, ErrorT]):
    """
    Fire-and-forget handler. Only success or failure is reported back.
    """

    async def handle(self, msg: MessageT) -> Result[None, ErrorT]: ...


@runtime_checkable
class StatefulTellHandlerTrait(Protocol[StateT, MessageT, ErrorT]):
    """
    Fire-and-forget handler receiving externally held state.
    """

    async def handle(self, state: StateT, msg: MessageT) -> Result[None, ErrorT]: ...


class ActorTrait(Generic[ErrorT]):
    """
    Capability marker: the type takes part in the actor system and its
    handlers fail with `ErrorT`.

    It has no members.
    """


HANDLER_TRAITS: tuple[type, ...] = (
    AskHandlerTrait,
    StatefulAskHandlerTrait,
    TellHandlerTrait,
    StatefulTellHandlerTrait,
)


@dataclass(frozen=True, slots=True)
class Implementation:
    """
    One registered trait implementation.

    Attributes
    ----------
    trait:
        The unparameterized trait (e.g. `AskHandlerTrait`).
    arguments:
        The trait parameters, in declaration order.
    actor:
        The implementing type.
    target:
        The handler function, or the actor class itself for `ActorTrait`.
    """

    trait: type
    arguments: tuple[Any, ...]
    actor: type
    target: Any

    @property
    def message_type(self) -> Any:
        """The message type handled, `None` for `ActorTrait`."""
        if self.trait in (AskHandlerTrait, TellHandlerTrait):
            return self.arguments[0]
        if self.trait in (StatefulAskHandlerTrait, StatefulTellHandlerTrait):
            return self.arguments[1]
        return None


class TraitRegistry:
    """
    Index of trait implementations keyed by (trait, actor, arguments).
    """

    def __init__(self) -> None:
        self._impls: dict[tuple[type, type, tuple[Any, ...]], Implementation] = {}

    def add(self, implementation: Implementation) -> Implementation:
        key = (implementation.trait, implementation.actor, implementation.arguments)
        if key in self._impls:
            raise ConflictingImplementation(
                f"{implementation.trait.__name__}{list(implementation.arguments)} "
                f"is already implemented for {implementation.actor.__name__}."
            )
        self._impls[key] = implementation
        return implementation

    def lookup(self, actor: type, message_type: Any) -> Implementation | None:
        """
        Return the handler implementation of `actor` for `message_type`.
        """
        for implementation in self._impls.values():
            if (
                implementation.actor is actor
                and implementation.trait in HANDLER_TRAITS
                and implementation.message_type is message_type
            ):
                return implementation
        return None

    def error_type(self, actor: type) -> Any:
        """
        Return the error type declared through `ActorTrait`, or None.
        """
        for implementation in self._impls.values():
            if implementation.actor is actor and implementation.trait is ActorTrait:
                return implementation.arguments[0]
        return None

    def for_actor(self, actor: type) -> list[Implementation]:
        return [i for i in self._impls.values() if i.actor is actor]

    def clear(self) -> None:
        self._impls.clear()

    def __len__(self) -> int:
        return len(self._impls)


registry = TraitRegistry()


class _DeferredImplementation:
    """
    A handler declared inside the body of the actor class it implements.

    The class does not exist while its body runs, so the registration waits
    for `__set_name__` and then puts the plain function back on the class.
    """

    __slots__ = ("trait", "arguments", "actor_name", "target")

    def __init__(self, trait: type, arguments: tuple[Any, ...], actor_name: str, target: Any) -> None:
        self.trait = trait
        self.arguments = arguments
        self.actor_name = actor_name
        self.target = target

    def __set_name__(self, owner: type, name: str) -> None:
        if owner.__name__ != self.actor_name:
            raise TypeError(
                f"{name} is registered for {self.actor_name!r} but is defined in {owner.__qualname__}."
            )
        registry.add(Implementation(trait=self.trait, arguments=self.arguments, actor=owner, target=self.target))
        setattr(owner, name, self.target)


def impl(trait: Any, for_: type | str | None = None) -> Callable[[Any], Any]:
    """
    Register the decorated object as the implementation of `trait`.

    Parameters
    ----------
    trait:
        A parameterized trait, e.g. `AskHandlerTrait[Ping, Pong, WorkerError]`.
    for_:
        The implementing type. Defaults to the decorated object, which is how
        class-level markers such as `ActorTrait` are implemented. A string
        names the class whose body the decorated function is defined in; the
        registration then happens when that class is created.

    Returns
    -------
    Callable
        A decorator that records the implementation and returns its target
        unchanged.
    """
    origin = get_origin(trait) or trait
    arguments = get_args(trait)

    def decorator(target: Any) -> Any:
        if isinstance(for_, str):
            return _DeferredImplementation(origin, arguments, for_, target)
        actor = for_ if for_ is not None else target
        registry.add(Implementation(trait=origin, arguments=arguments, actor=actor, target=target))
        return target

    return decorator
