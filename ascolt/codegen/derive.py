from __future__ import annotations

import ast
import logging

from ascolt.conf import settings
from ascolt.exceptions import MissingErrorAttribute

from .source import Edit, SourceText, TypeExpression
from .synthesis import Synthesis, declaration_span

logger = logging.getLogger(__name__)

ERROR_KEY = "error"


def read_error_binding(marker: ast.expr, source: SourceText) -> TypeExpression:
    """
    Return the type bound to `error` in `@actor(error=<ErrorType>)`.

    Raises
    ------
    MissingErrorAttribute
        If the marker is not called, has positional arguments, has a key other
        than `error`, or has no `error` key.
    """
    if not isinstance(marker, ast.Call):
        raise MissingErrorAttribute("missing `actor(error=...)` binding.")

    if marker.args:
        raise MissingErrorAttribute("`actor` takes no positional arguments, use `error=<ErrorType>`.")

    error: ast.expr | None = None
    for keyword in marker.keywords:
        if keyword.arg != ERROR_KEY:
            raise MissingErrorAttribute(f"unsupported attribute `{keyword.arg or '**'}` in `actor(...)`.")
        error = keyword.value

    if error is None:
        raise MissingErrorAttribute("missing `actor(error=...)` binding.")

    return TypeExpression(error, source)


def derive_actor(cls: ast.ClassDef, source: SourceText, markers: list[ast.expr]) -> Synthesis:
    """
    Replace the `actor` marker of `cls` with an empty `ActorTrait[E]` implementation.
    """
    if len(markers) > 1:
        raise MissingErrorAttribute("duplicate `actor` marker, declare `error=...` once.")

    marker = markers[0]
    error = read_error_binding(marker, source)

    runtime = settings.runtime_module
    header = f"{runtime}.handler.ActorTrait[{error.text}]"
    start, end = declaration_span(cls, source)
    logger.debug("%s:%s: %s implements %s", source.filename, cls.lineno, cls.name, header)

    return Synthesis(
        declaration=cls.name,
        lineno=cls.lineno,
        header=header,
        start=start,
        end=end,
        edits=(Edit(source.start_of(marker), source.end_of(marker), f"{runtime}.handler.impl({header})"),),
    )
