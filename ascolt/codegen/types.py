from __future__ import annotations

import ast
from collections.abc import Iterable

from ascolt.conf import settings
from ascolt.exceptions import InvalidReturnType, MissingResultArgument, MissingReturnType

from .source import TypeExpression


def terminal_name(node: ast.expr) -> str | None:
    """
    The last identifier of a name or dotted path (`Ref`, `ascolt.Ref` -> `"Ref"`).
    """
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def is_reference(expr: TypeExpression, wrappers: Iterable[str] | None = None) -> bool:
    """True if `expr` is a single-argument borrow wrapper such as `Ref[T]`."""
    names = tuple(wrappers) if wrappers is not None else settings.reference_wrappers
    node = expr.node
    return (
        isinstance(node, ast.Subscript)
        and terminal_name(node.value) in names
        and not isinstance(node.slice, ast.Tuple)
    )


def normalize(expr: TypeExpression, wrappers: Iterable[str] | None = None) -> TypeExpression:
    """
    Strip every nested borrow wrapper and return the owned type.

    `Ref[RefMut[Counter]]` normalizes to `Counter`. A type without a wrapper is
    returned as is, so normalizing twice is the same as normalizing once.
    """
    names = tuple(wrappers) if wrappers is not None else settings.reference_wrappers
    while is_reference(expr, names):
        expr = TypeExpression(expr.node.slice, expr.source)  # type: ignore[attr-defined]
    return expr


def decompose_result(
    returns: TypeExpression | None,
    result_names: Iterable[str] | None = None,
) -> tuple[TypeExpression, TypeExpression]:
    """
    Split a `Result[T, E]` annotation into `(T, E)`.

    Raises
    ------
    MissingReturnType
        If the function has no return annotation.
    InvalidReturnType
        If the annotation is not a subscripted result name, or has more than
        two arguments.
    MissingResultArgument
        If the success or the error argument is missing.
    """
    names = tuple(result_names) if result_names is not None else settings.result_type_names
    expected = f"{names[0]}[T, E]"

    if returns is None:
        raise MissingReturnType(f"handlers must declare a return type ({expected}).")

    node = returns.node
    if not isinstance(node, ast.Subscript):
        raise InvalidReturnType(f"return type must be {expected}, got {returns.text!r}.")

    if terminal_name(node.value) not in names:
        raise InvalidReturnType(f"return type must be {expected}, got {returns.text!r}.")

    arguments = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]

    if not arguments:
        raise MissingResultArgument(f"missing success type in {expected}.")
    if len(arguments) == 1:
        raise MissingResultArgument(f"missing error type in {expected}.")
    if len(arguments) > 2:
        raise InvalidReturnType(
            f"{expected} takes exactly two type arguments, got {len(arguments)} in {returns.text!r}."
        )

    success, error = arguments
    return TypeExpression(success, returns.source), TypeExpression(error, returns.source)
