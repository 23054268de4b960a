from __future__ import annotations

"""
Source text helpers.

`ast` reports positions as (line, UTF-8 byte column). Everything the generator
emits is cut from, or spliced into, the original text, so this module converts
those positions into string offsets and applies non-overlapping edits.
"""

import ast
import io
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Edit:
    """
    Replace `source[start:end]` with `text`. A zero-width edit is an insertion.
    """

    start: int
    end: int
    text: str


class SourceText:
    """
    A module's source together with its line table.
    """

    def __init__(self, text: str, filename: str = "<unknown>") -> None:
        self.text = text
        self.filename = filename
        self._lines = io.StringIO(text, newline="").readlines()
        self._starts: list[int] = []
        offset = 0
        for line in self._lines:
            self._starts.append(offset)
            offset += len(line)
        self._starts.append(offset)

    def offset(self, lineno: int, col_offset: int) -> int:
        """
        Convert an `ast` position (1-based line, UTF-8 byte column) to a string offset.
        """
        if lineno - 1 >= len(self._lines):
            return len(self.text)
        line = self._lines[lineno - 1]
        column = len(line.encode("utf-8")[:col_offset].decode("utf-8", errors="replace"))
        return self._starts[lineno - 1] + column

    def line_start(self, lineno: int) -> int:
        return self._starts[min(lineno - 1, len(self._starts) - 1)]

    def start_of(self, node: ast.AST) -> int:
        return self.offset(node.lineno, node.col_offset)  # type: ignore[attr-defined]

    def end_of(self, node: ast.AST) -> int:
        return self.offset(node.end_lineno, node.end_col_offset)  # type: ignore[attr-defined]

    def segment(self, node: ast.AST) -> str:
        """Exact source text of `node`."""
        return self.text[self.start_of(node) : self.end_of(node)]

    def parse(self) -> ast.Module:
        return ast.parse(self.text, filename=self.filename)


def apply_edits(text: str, edits: Iterable[Edit], *, base: int = 0) -> str:
    """
    Apply non-overlapping edits to `text`.

    Edit offsets are absolute; `base` is the absolute offset of `text[0]`, so
    edits computed against a whole module can be applied to one of its slices.
    """
    ordered = sorted(edits, key=lambda e: (e.start, e.end))
    chunks: list[str] = []
    cursor = 0
    for edit in ordered:
        start, end = edit.start - base, edit.end - base
        if start < cursor:
            raise ValueError(f"Overlapping edits at offset {edit.start}.")
        chunks.append(text[cursor:start])
        chunks.append(edit.text)
        cursor = end
    chunks.append(text[cursor:])
    return "".join(chunks)


@dataclass(frozen=True, slots=True, eq=False)
class TypeExpression:
    """
    An opaque type annotation.

    It can be inspected structurally through `node` and re-emitted verbatim
    through `text`. The generator never mutates it.
    """

    node: ast.expr
    source: SourceText

    @property
    def text(self) -> str:
        return self.source.segment(self.node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeExpression):
            return NotImplemented
        return self.node is other.node and self.source is other.source

    def __hash__(self) -> int:
        return hash((id(self.node), id(self.source)))

    def __str__(self) -> str:
        return self.text
