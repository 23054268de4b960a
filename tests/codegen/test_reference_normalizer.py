import pytest

from ascolt.codegen import normalize
from ascolt.codegen.types import is_reference
from tests.conftest import type_expression


@pytest.mark.parametrize(
    "annotation, expected",
    [
        ("Worker", "Worker"),
        ("Ref[Worker]", "Worker"),
        ("RefMut[Counter]", "Counter"),
        ("Ref[RefMut[Ref[Counter]]]", "Counter"),
        ("ascolt.Ref[Worker]", "Worker"),
        ("Ref[list[int]]", "list[int]"),
        ("Ref[pkg.models.Ping]", "pkg.models.Ping"),
    ],
)
def test_normalize_strips_reference_wrappers(annotation, expected):
    assert normalize(type_expression(annotation)).text == expected


def test_normalize_without_wrapper_returns_the_same_expression():
    expr = type_expression("dict[str, Ref[int]]")

    assert normalize(expr) is expr


def test_normalize_is_idempotent():
    for annotation in ("Worker", "Ref[Worker]", "RefMut[Ref[Worker]]", "Optional[Ref[Worker]]"):
        once = normalize(type_expression(annotation))
        assert normalize(once) == once


def test_multi_argument_subscript_is_not_a_reference():
    expr = type_expression("Ref[A, B]")

    assert not is_reference(expr)
    assert normalize(expr) is expr


def test_custom_wrapper_names():
    expr = type_expression("Borrowed[Worker]")

    assert normalize(expr).text == "Borrowed[Worker]"
    assert normalize(expr, wrappers=("Borrowed",)).text == "Worker"


def test_wrappers_come_from_settings(settings):
    settings.reference_wrappers = ("Shared",)

    assert normalize(type_expression("Shared[Worker]")).text == "Worker"
    assert normalize(type_expression("Ref[Worker]")).text == "Ref[Worker]"
