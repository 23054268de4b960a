import ast
import textwrap

import pytest
from sayer.testing import SayerTestClient

from ascolt import monkay
from ascolt.cli.app import app
from ascolt.codegen import SourceText, TypeExpression
from ascolt.handler import registry


def parse_function(code: str) -> tuple[ast.FunctionDef | ast.AsyncFunctionDef, SourceText]:
    """
    Parse a snippet and return its first function (decorators included) with its source.
    """
    source = SourceText(textwrap.dedent(code).lstrip("\n"), filename="handlers.py")
    node = source.parse().body[0]
    assert isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
    return node, source


def type_expression(text: str) -> TypeExpression:
    """Build a TypeExpression from a standalone annotation such as `Ref[Worker]`."""
    source = SourceText(text)
    node = ast.parse(text, mode="eval").body
    return TypeExpression(node, source)


def run_module(code: str, name: str = "expanded") -> dict:
    """
    Execute an expanded module and return its namespace.
    """
    namespace: dict = {"__name__": name}
    exec(compile(code, f"<{name}>", "exec"), namespace)
    return namespace


@pytest.fixture(autouse=True)
def clean_registry():
    registry.clear()
    yield
    registry.clear()


@pytest.fixture()
def settings(monkeypatch):
    """The live settings object; attribute changes are undone after the test."""
    current = monkay.settings

    class Patcher:
        def __getattr__(self, name):
            return getattr(current, name)

        def __setattr__(self, name, value):
            monkeypatch.setattr(current, name, value)

    return Patcher()


@pytest.fixture()
def cli() -> SayerTestClient:
    return SayerTestClient(app)


@pytest.fixture(scope="module", params=["asyncio", "trio"])
def anyio_backend():
    return ("asyncio", {"debug": True})
