from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import anyio
import anyio.to_thread
import click
from sayer import Argument, Option, error, group, info, success

from ascolt.codegen import Expansion, expand_file
from ascolt.conf import configure_logging, settings
from ascolt.exceptions import ExpansionError

logger = logging.getLogger(__name__)

help = """
Code Generation CLI Module.

**Expand handler and actor markers**

Expansion is a deterministic, build-time rewrite of one module at a time.
Any invalid declaration aborts the module with a diagnostic naming the
declaration and the violated constraint; no partial output is written.
"""


codegen = group(
    name="codegen",
    help=help,
)


def _python_files(path: Path) -> list[Path]:
    """
    Collect the modules under `path` in a stable order.

    A file is returned as is; a directory is walked recursively for `*.py`.
    """
    if path.is_file():
        return [path]
    return sorted(p for p in path.rglob("*.py") if p.is_file())


def _require(path: Path, *, file: bool = False) -> None:
    if not path.exists():
        error(f"No such file or directory: {path}")
        raise SystemExit(1)
    if file and not path.is_file():
        error(f"Not a file: {path}")
        raise SystemExit(1)


def _report(failures: list[ExpansionError]) -> None:
    error(f"Found {len(failures)} invalid declaration(s):")
    for exc in sorted(failures, key=lambda e: (e.filename or "", e.lineno or 0)):
        click.echo(f"- {exc}")


@codegen.command()
def expand(
    path: Annotated[Path, Argument(help="Module to expand")],
    output: Annotated[Path | None, Option(None, help="Write the expanded module to this path")],
) -> None:
    """
    Expand the markers of a single module.

    Without `--output`, the expanded module is printed to stdout.

    Exit Codes:
        0: The module was expanded (or had nothing to expand).
        1: The module is missing or a declaration could not be expanded.
    """
    configure_logging()
    path = Path(path)
    output = Path(output) if output is not None else None
    _require(path, file=True)

    try:
        expansion = expand_file(path, output)
    except ExpansionError as exc:
        _report([exc])
        raise SystemExit(1) from None

    if output is None:
        click.echo(expansion.source, nl=False)
        return

    success(f"Expanded {len(expansion.declarations)} declaration(s) into {output}")


@codegen.command()
def check(
    path: Annotated[Path, Argument(help="Module or directory to validate")],
) -> None:
    """
    Validate every marked declaration without writing anything.

    Exit Codes:
        0: All declarations are valid.
        1: The path is missing or a declaration could not be expanded.
    """
    configure_logging()
    path = Path(path)
    _require(path)

    failures: list[ExpansionError] = []
    expansions: list[Expansion] = []

    for module in _python_files(path):
        try:
            expansions.append(expand_file(module))
        except ExpansionError as exc:
            failures.append(exc)

    if failures:
        _report(failures)
        raise SystemExit(1)

    total = sum(len(e.declarations) for e in expansions)
    success(f"{len(expansions)} module(s) checked, {total} declaration(s) valid.")


@codegen.command()
async def build(
    source: Annotated[Path, Argument(help="Source directory")],
    target: Annotated[Path, Argument(help="Output directory")],
    workers: Annotated[int | None, Option(None, help="Number of worker threads")],
) -> None:
    """
    Expand a whole source tree into `target`, mirroring its layout.

    Modules are expanded concurrently on worker threads. Modules without
    markers are written unchanged. Each module is independent, so one
    failure does not stop the others, but the command exits non-zero.

    Exit Codes:
        0: Every module was written.
        1: At least one module failed to expand.
    """
    configure_logging()
    source, target = Path(source), Path(target)

    if not source.is_dir():
        raise SystemExit(f"{source} is not a directory")

    logger.info("building %s -> %s", source, target)
    limiter = anyio.CapacityLimiter(workers or settings.max_workers)
    failures: list[ExpansionError] = []
    expansions: list[Expansion] = []

    async def expand_one(module: Path) -> None:
        destination = target / module.relative_to(source)
        try:
            expansion = await anyio.to_thread.run_sync(expand_file, module, destination, limiter=limiter)
        except ExpansionError as exc:
            failures.append(exc)
            return
        expansions.append(expansion)

    async with anyio.create_task_group() as tg:
        for module in _python_files(source):
            tg.start_soon(expand_one, module)

    if failures:
        _report(failures)
        raise SystemExit(1)

    changed = sum(1 for e in expansions if e.changed)
    info(f"{len(expansions)} module(s) written, {changed} expanded")
    success(f"Build completed in {target}")
