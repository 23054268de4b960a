from __future__ import annotations

"""
Module expansion.

Finds every marked declaration in a module, turns each one into its trait
implementation and splices the results back into the original text in a
single pass. Nothing outside the markers, the `def` keyword of synchronous
handlers and the return annotation of tell handlers is touched.

Expansion is all or nothing: the first invalid declaration aborts the module.
"""

import ast
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ascolt.conf import settings
from ascolt.exceptions import ExpansionError, InvalidHandlerMarker, InvalidSource

from .derive import derive_actor
from .signature import CallConvention, HandlerKind
from .source import Edit, SourceText, apply_edits
from .synthesis import FunctionNode, Synthesis, resolve_handler_types, synthesize_handler
from .types import terminal_name

logger = logging.getLogger(__name__)

HANDLER_MARKERS: dict[str, HandlerKind] = {
    "ask_handler": HandlerKind.ASK,
    "tell_handler": HandlerKind.TELL,
}
ACTOR_MARKER = "actor"
STATEFUL_OPTION = "stateful"


@dataclass(frozen=True, slots=True)
class ExpandedDeclaration:
    """
    Summary of one expanded declaration.

    Attributes
    ----------
    name:
        Function or class name.
    lineno:
        Line of the `def`/`class` keyword in the original module.
    kind:
        `"ask"`, `"tell"` or `"actor"`.
    header:
        The parameterized trait that was implemented.
    text:
        The replacement declaration.
    """

    name: str
    lineno: int
    kind: str
    header: str
    text: str
    convention: CallConvention | None = None


@dataclass(frozen=True, slots=True)
class Expansion:
    filename: str
    original: str
    source: str
    declarations: tuple[ExpandedDeclaration, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.declarations)


def marker_name(decorator: ast.expr) -> str | None:
    """Name of a decorator, called or not (`ascolt.ask_handler()` -> `"ask_handler"`)."""
    target = decorator.func if isinstance(decorator, ast.Call) else decorator
    return terminal_name(target)


def handler_convention(marker: ast.expr) -> CallConvention:
    """
    Read the call convention off a handler marker.

    Accepts `@ask_handler`, `@ask_handler()` and `@ask_handler(stateful=<bool literal>)`.
    """
    if not isinstance(marker, ast.Call):
        return CallConvention.STATELESS

    if marker.args:
        raise InvalidHandlerMarker("handler markers take no positional arguments.")

    stateful = False
    for keyword in marker.keywords:
        value = keyword.value
        if (
            keyword.arg != STATEFUL_OPTION
            or not isinstance(value, ast.Constant)
            or not isinstance(value.value, bool)
        ):
            raise InvalidHandlerMarker("handler markers only accept `stateful=True` or `stateful=False`.")
        stateful = value.value

    return CallConvention.STATEFUL_EXTERNAL if stateful else CallConvention.STATELESS


def _expand_function(
    func: FunctionNode,
    source: SourceText,
    enclosing: tuple[str, ...],
) -> tuple[Synthesis, HandlerKind, CallConvention] | None:
    markers = [
        (decorator, HANDLER_MARKERS[name])
        for decorator in func.decorator_list
        if (name := marker_name(decorator)) in HANDLER_MARKERS
    ]
    if not markers:
        return None
    if len(markers) > 1:
        raise InvalidHandlerMarker("a handler takes exactly one of `ask_handler` or `tell_handler`.")

    marker, kind = markers[0]
    convention = handler_convention(marker)
    types = resolve_handler_types(func, source, kind, convention)
    return synthesize_handler(func, source, marker, types, kind, convention, enclosing), kind, convention


def _expand_class(cls: ast.ClassDef, source: SourceText) -> Synthesis | None:
    markers = [d for d in cls.decorator_list if marker_name(d) == ACTOR_MARKER]
    if not markers:
        return None
    return derive_actor(cls, source, markers)


def _declarations(
    node: ast.AST, enclosing: tuple[str, ...] = ()
) -> Iterator[tuple[FunctionNode | ast.ClassDef, tuple[str, ...]]]:
    """
    Yield every function and class with the names of the classes around it.
    """
    for child in ast.iter_child_nodes(node):
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield child, enclosing
            yield from _declarations(child, ())
        elif isinstance(child, ast.ClassDef):
            yield child, enclosing
            yield from _declarations(child, (*enclosing, child.name))
        else:
            yield from _declarations(child, enclosing)


def _statement_start(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", [])
    return min([node.lineno, *(d.lineno for d in decorators)])


def _runtime_import(tree: ast.Module, source: SourceText) -> Edit | None:
    """
    Insert `import <runtime>.handler` after the docstring and `__future__` imports.
    """
    module = f"{settings.runtime_module}.handler"

    for node in tree.body:
        if isinstance(node, ast.Import) and any(a.name == module and a.asname is None for a in node.names):
            return None

    body = list(tree.body)
    if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant):
        if isinstance(body[0].value.value, str):
            body.pop(0)
    while body and isinstance(body[0], ast.ImportFrom) and body[0].module == "__future__":
        body.pop(0)

    line = f"import {module}\n"
    if body:
        offset = source.line_start(_statement_start(body[0]))
        return Edit(offset, offset, line)

    end = len(source.text)
    if source.text and not source.text.endswith(("\n", "\r")):
        line = "\n" + line
    return Edit(end, end, line)


def expand_source(text: str, filename: str = "<unknown>") -> Expansion:
    """
    Expand every marked declaration of a module.

    Returns
    -------
    Expansion
        The new module text and a summary of each expanded declaration. A
        module without markers is returned unchanged.

    Raises
    ------
    ExpansionError
        For the first declaration that cannot be expanded, with its location
        attached. `InvalidSource` if the module does not parse.
    """
    source = SourceText(text, filename)
    try:
        tree = source.parse()
    except SyntaxError as exc:
        raise InvalidSource(f"cannot parse module: {exc.msg}.", filename=filename, lineno=exc.lineno) from exc

    results: list[tuple[Synthesis, str, CallConvention | None]] = []

    declarations_in_order = sorted(_declarations(tree), key=lambda d: (d[0].lineno, d[0].col_offset))

    for node, enclosing in declarations_in_order:
        try:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                expanded = _expand_function(node, source, enclosing)
                if expanded is not None:
                    synthesis, kind, convention = expanded
                    results.append((synthesis, kind.value, convention))
            else:
                synthesis = _expand_class(node, source)
                if synthesis is not None:
                    results.append((synthesis, ACTOR_MARKER, None))
        except ExpansionError as exc:
            raise exc.locate(declaration=node.name, filename=filename, lineno=node.lineno)

    if not results:
        logger.debug("%s: nothing to expand", filename)
        return Expansion(filename=filename, original=text, source=text)

    results.sort(key=lambda r: r[0].start)
    edits = [edit for synthesis, _, _ in results for edit in synthesis.edits]
    runtime_import = _runtime_import(tree, source)
    if runtime_import is not None:
        edits.append(runtime_import)

    declarations = tuple(
        ExpandedDeclaration(
            name=synthesis.declaration,
            lineno=synthesis.lineno,
            kind=kind,
            header=synthesis.header,
            text=synthesis.render(source),
            convention=convention,
        )
        for synthesis, kind, convention in results
    )
    logger.debug("%s: expanded %d declaration(s)", filename, len(declarations))

    return Expansion(
        filename=filename,
        original=text,
        source=apply_edits(text, edits),
        declarations=declarations,
    )


def expand_file(path: str | Path, output: str | Path | None = None) -> Expansion:
    """
    Expand a module on disk, writing the result to `output` when given.

    A module that is not valid UTF-8 raises `InvalidSource`.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidSource(f"cannot decode module as UTF-8: {exc.reason}.", filename=str(path)) from exc
    expansion = expand_source(text, filename=str(path))

    if output is not None:
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(expansion.source, encoding="utf-8")
        logger.info("%s -> %s (%d declaration(s))", path, output, len(expansion.declarations))

    return expansion
