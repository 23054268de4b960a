from __future__ import annotations

import ast
import logging
from dataclasses import dataclass

from ascolt.conf import settings
from ascolt.exceptions import (
    InvalidReturnType,
    MissingResultArgument,
    MissingStateParameter,
    UnresolvedReference,
)

from .signature import CallConvention, HandlerKind, extract_roles
from .source import Edit, SourceText, TypeExpression, apply_edits
from .types import decompose_result, normalize

logger = logging.getLogger(__name__)

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef

TRAIT_NAMES: dict[tuple[HandlerKind, CallConvention], str] = {
    (HandlerKind.ASK, CallConvention.STATELESS): "AskHandlerTrait",
    (HandlerKind.ASK, CallConvention.STATEFUL_EXTERNAL): "StatefulAskHandlerTrait",
    (HandlerKind.TELL, CallConvention.STATELESS): "TellHandlerTrait",
    (HandlerKind.TELL, CallConvention.STATEFUL_EXTERNAL): "StatefulTellHandlerTrait",
}


@dataclass(frozen=True, slots=True)
class ResolvedHandlerTypes:
    """
    Fully validated types of one handler.

    `state_type` is set iff the convention is STATEFUL_EXTERNAL and
    `success_type` iff the handler is an ask handler. Actor, state and message
    types are normalized (owned); success and error types are taken as written.
    """

    actor_type: TypeExpression
    message_type: TypeExpression
    error_type: TypeExpression
    state_type: TypeExpression | None = None
    success_type: TypeExpression | None = None


@dataclass(frozen=True, slots=True)
class Synthesis:
    """
    The replacement of one marked declaration.

    `edits` are absolute offsets into the module; `start`/`end` delimit the
    declaration, decorators included.
    """

    declaration: str
    lineno: int
    header: str
    start: int
    end: int
    edits: tuple[Edit, ...]

    def render(self, source: SourceText) -> str:
        """The replacement declaration text."""
        return apply_edits(source.text[self.start : self.end], self.edits, base=self.start)


def declaration_span(node: FunctionNode | ast.ClassDef, source: SourceText) -> tuple[int, int]:
    first_line = min([node.lineno, *(d.lineno for d in node.decorator_list)])
    return source.line_start(first_line), source.end_of(node)


def resolve_handler_types(
    func: FunctionNode,
    source: SourceText,
    kind: HandlerKind,
    convention: CallConvention,
) -> ResolvedHandlerTypes:
    """
    Extract and validate every type a handler contract needs.

    The return type is decomposed for tell handlers too, so a malformed
    return annotation is rejected whatever the kind.
    """
    roles = extract_roles(func.args, source, convention)
    returns = TypeExpression(func.returns, source) if func.returns is not None else None
    success, error = decompose_result(returns)

    return ResolvedHandlerTypes(
        actor_type=normalize(roles.receiver),
        message_type=normalize(roles.message),
        error_type=error,
        state_type=normalize(roles.state) if roles.state is not None else None,
        success_type=success if kind is HandlerKind.ASK else None,
    )


def trait_header(
    types: ResolvedHandlerTypes,
    kind: HandlerKind,
    convention: CallConvention,
    runtime: str | None = None,
) -> str:
    """
    Render the parameterized trait, e.g. `ascolt.handler.AskHandlerTrait[Ping, Pong, E]`.
    """
    runtime = runtime or settings.runtime_module
    parameters: list[TypeExpression] = []

    if convention is CallConvention.STATEFUL_EXTERNAL:
        if types.state_type is None:
            raise MissingStateParameter(f"stateful handlers need a `{settings.state_parameter}` parameter.")
        parameters.append(types.state_type)
    parameters.append(types.message_type)
    if kind is HandlerKind.ASK:
        if types.success_type is None:
            raise MissingResultArgument("missing success type.")
        parameters.append(types.success_type)
    parameters.append(types.error_type)

    arguments = ", ".join(p.text for p in parameters)
    return f"{runtime}.handler.{TRAIT_NAMES[(kind, convention)]}[{arguments}]"


def _names(expression: TypeExpression) -> set[str]:
    return {node.id for node in ast.walk(expression.node) if isinstance(node, ast.Name)}


def implementing_type(types: ResolvedHandlerTypes, enclosing: tuple[str, ...] = ()) -> str:
    """
    Render the implementing type passed to `impl(...)`.

    `enclosing` lists the classes around the handler, outermost first. None of
    them exists yet when the decorator runs, so a receiver naming the class
    directly around the handler is passed as a string and resolved once that
    class is created. Any other reference to an enclosing class is rejected.
    """
    pending = set(enclosing)
    actor = types.actor_type
    deferred = bool(enclosing) and isinstance(actor.node, ast.Name) and actor.node.id == enclosing[-1]

    header_types = [types.message_type, types.error_type, types.state_type, types.success_type]
    if not deferred:
        header_types.append(actor)

    for expression in header_types:
        if expression is None:
            continue
        if unresolved := sorted(_names(expression) & pending):
            raise UnresolvedReference(
                f"`{expression.text}` names `{unresolved[0]}`, which is not defined yet where "
                f"the handler is registered; only the receiver may name the enclosing class."
            )

    return repr(actor.text) if deferred else actor.text


def synthesize_handler(
    func: FunctionNode,
    source: SourceText,
    marker: ast.expr,
    types: ResolvedHandlerTypes,
    kind: HandlerKind,
    convention: CallConvention,
    enclosing: tuple[str, ...] = (),
) -> Synthesis:
    """
    Turn a marked function into a registered trait implementation.

    The marker decorator becomes `impl(<trait>, <actor>)`, the function
    becomes `async` if it was not, and a tell handler's return annotation
    becomes `Result[None, E]`. Parameters, other decorators and the body are
    left byte for byte as written.

    `enclosing` names the classes the function is defined in, outermost first.
    """
    runtime = settings.runtime_module
    header = trait_header(types, kind, convention, runtime)
    actor = implementing_type(types, enclosing)

    edits = [
        Edit(
            source.start_of(marker),
            source.end_of(marker),
            f"{runtime}.handler.impl({header}, {actor})",
        )
    ]

    if isinstance(func, ast.FunctionDef):
        def_offset = source.start_of(func)
        edits.append(Edit(def_offset, def_offset, "async "))

    if kind is HandlerKind.TELL:
        returns = func.returns
        if not isinstance(returns, ast.Subscript):
            raise InvalidReturnType("return type must be `Result[T, E]`.")
        edits.append(
            Edit(
                source.start_of(returns),
                source.end_of(returns),
                f"{source.segment(returns.value)}[None, {types.error_type.text}]",
            )
        )

    start, end = declaration_span(func, source)
    logger.debug("%s:%s: %s implements %s", source.filename, func.lineno, func.name, header)

    return Synthesis(
        declaration=func.name,
        lineno=func.lineno,
        header=header,
        start=start,
        end=end,
        edits=tuple(edits),
    )
