from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
ValueT = TypeVar("ValueT", covariant=True)
ErrorT = TypeVar("ErrorT", covariant=True)


class Ref(Generic[T]):
    """
    Marks a parameter as a shared borrow of `T`.

    Purely declarative: the generator strips it when naming the owned type in
    a trait header, and keeps it in the handler's own signature.

    Usage
    -----
    @ask_handler
    async def handle(self: Ref[Worker], msg: Ping) -> Result[Pong, WorkerError]:
        ...
    """


class RefMut(Generic[T]):
    """
    Marks a parameter as an exclusive (mutable) borrow of `T`.
    """


@dataclass(frozen=True, slots=True)
class Ok(Generic[ValueT]):
    """Successful handler outcome."""

    value: ValueT


@dataclass(frozen=True, slots=True)
class Err(Generic[ErrorT]):
    """Failed handler outcome."""

    error: ErrorT


Result = Union[Ok[ValueT], Err[ErrorT]]
