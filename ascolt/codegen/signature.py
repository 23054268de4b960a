from __future__ import annotations

"""
Signature extraction.

A handler's parameters are classified into roles:

- the receiver, the leading positional parameter whatever its name (`self`,
  `this`, ...), annotated with the actor type;
- the message, the parameter named `msg`;
- the external state, the parameter named `state` (stateful handlers only).

Any other parameter is left alone. Matching `msg` and `state` by name is a
convention: a parameter that happens to be called `msg` is always taken as the
message.
"""

import ast
from dataclasses import dataclass
from enum import Enum

from ascolt.conf import settings
from ascolt.exceptions import MissingMessageParameter, MissingReceiver, MissingStateParameter

from .source import SourceText, TypeExpression


class ParameterRole(str, Enum):
    RECEIVER = "receiver"
    EXTERNAL_STATE = "external_state"
    MESSAGE = "message"
    UNCLASSIFIED = "unclassified"


class CallConvention(str, Enum):
    """
    STATELESS
        The actor holds its own state: `(self, msg)`.
    STATEFUL_EXTERNAL
        The runtime threads state through every call: `(self, state, msg)`.
    """

    STATELESS = "stateless"
    STATEFUL_EXTERNAL = "stateful"

    @property
    def required_roles(self) -> frozenset[ParameterRole]:
        roles = {ParameterRole.RECEIVER, ParameterRole.MESSAGE}
        if self is CallConvention.STATEFUL_EXTERNAL:
            roles.add(ParameterRole.EXTERNAL_STATE)
        return frozenset(roles)


class HandlerKind(str, Enum):
    """
    ASK
        Request/response: the success type is part of the contract.
    TELL
        Fire-and-forget: only the error type is.
    """

    ASK = "ask"
    TELL = "tell"


@dataclass(frozen=True, slots=True)
class ClassifiedParameter:
    name: str
    role: ParameterRole
    annotation: TypeExpression | None
    node: ast.arg


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """
    Un-normalized types of the bound roles. `state` is set iff the convention
    is STATEFUL_EXTERNAL.
    """

    receiver: TypeExpression
    message: TypeExpression
    state: TypeExpression | None = None


def classify_parameters(arguments: ast.arguments, source: SourceText) -> list[ClassifiedParameter]:
    """
    Assign a role to each parameter, in declaration order.

    `*args` and `**kwargs` are never classified. A leading positional
    parameter named like the message or the state parameter is not a receiver.
    """
    positional = [*arguments.posonlyargs, *arguments.args]
    classified: list[ClassifiedParameter] = []

    for index, arg in enumerate([*positional, *arguments.kwonlyargs]):
        annotation = TypeExpression(arg.annotation, source) if arg.annotation is not None else None

        if arg.arg == settings.message_parameter:
            role = ParameterRole.MESSAGE
        elif arg.arg == settings.state_parameter:
            role = ParameterRole.EXTERNAL_STATE
        elif index == 0 and arg in positional:
            role = ParameterRole.RECEIVER
        else:
            role = ParameterRole.UNCLASSIFIED

        classified.append(ClassifiedParameter(name=arg.arg, role=role, annotation=annotation, node=arg))

    return classified


def extract_roles(
    arguments: ast.arguments,
    source: SourceText,
    convention: CallConvention,
) -> RoleAssignment:
    """
    Bind the roles required by `convention`, or fail.

    Raises
    ------
    MissingReceiver
        No leading positional parameter, or one without an actor type annotation.
    MissingMessageParameter
        No annotated `msg` parameter.
    MissingStateParameter
        The convention is stateful and there is no annotated `state` parameter.
    """
    found: dict[ParameterRole, ClassifiedParameter] = {}
    for parameter in classify_parameters(arguments, source):
        if parameter.role in convention.required_roles:
            found.setdefault(parameter.role, parameter)

    receiver = found.get(ParameterRole.RECEIVER)
    if receiver is None:
        raise MissingReceiver("missing receiver: the first positional parameter must be `self: <Actor>`.")
    if receiver.annotation is None:
        raise MissingReceiver(f"receiver `{receiver.name}` needs an annotation naming the actor type.")

    message = found.get(ParameterRole.MESSAGE)
    if message is None:
        raise MissingMessageParameter(f"missing `{settings.message_parameter}` parameter.")
    if message.annotation is None:
        raise MissingMessageParameter(
            f"`{settings.message_parameter}` needs an annotation naming the message type."
        )

    state: TypeExpression | None = None
    if ParameterRole.EXTERNAL_STATE in convention.required_roles:
        state_parameter = found.get(ParameterRole.EXTERNAL_STATE)
        if state_parameter is None:
            raise MissingStateParameter(
                f"stateful handlers need a `{settings.state_parameter}` parameter."
            )
        if state_parameter.annotation is None:
            raise MissingStateParameter(
                f"`{settings.state_parameter}` needs an annotation naming the state type."
            )
        state = state_parameter.annotation

    return RoleAssignment(receiver=receiver.annotation, message=message.annotation, state=state)
