import pytest

from ascolt.codegen import (
    CallConvention,
    HandlerKind,
    resolve_handler_types,
    synthesize_handler,
    trait_header,
)
from ascolt.codegen.expander import HANDLER_MARKERS, marker_name
from ascolt.exceptions import InvalidReturnType, MissingReturnType, MissingStateParameter, UnresolvedReference
from tests.conftest import parse_function

ASK_HANDLER = """
@ask_handler
async def handle(self: Ref[Worker], msg: Ping) -> Result[Pong, WorkerError]:
    return Ok(Pong())
"""

STATEFUL_TELL_HANDLER = """
@tell_handler(stateful=True)
async def handle(self: Ref[Worker], state: RefMut[Counter], msg: Inc) -> Result[None, WorkerError]:
    state.n += 1
    return Ok(None)
"""


def synthesize(code, kind, convention, enclosing=()):
    func, source = parse_function(code)
    marker = next(d for d in func.decorator_list if marker_name(d) in HANDLER_MARKERS)
    types = resolve_handler_types(func, source, kind, convention)
    synthesis = synthesize_handler(func, source, marker, types, kind, convention, enclosing)
    return synthesis, synthesis.render(source)


@pytest.mark.parametrize(
    "kind, convention, expected",
    [
        (HandlerKind.ASK, CallConvention.STATELESS, "ascolt.handler.AskHandlerTrait[M, R, E]"),
        (HandlerKind.ASK, CallConvention.STATEFUL_EXTERNAL, "ascolt.handler.StatefulAskHandlerTrait[S, M, R, E]"),
        (HandlerKind.TELL, CallConvention.STATELESS, "ascolt.handler.TellHandlerTrait[M, E]"),
        (HandlerKind.TELL, CallConvention.STATEFUL_EXTERNAL, "ascolt.handler.StatefulTellHandlerTrait[S, M, E]"),
    ],
)
def test_four_trait_shapes(kind, convention, expected):
    func, source = parse_function("def handle(self: Ref[A], state: Ref[S], msg: Ref[M]) -> Result[R, E]: ...")

    types = resolve_handler_types(func, source, kind, convention)

    assert trait_header(types, kind, convention) == expected


def test_ask_handler_end_to_end():
    synthesis, text = synthesize(ASK_HANDLER, HandlerKind.ASK, CallConvention.STATELESS)

    assert synthesis.header == "ascolt.handler.AskHandlerTrait[Ping, Pong, WorkerError]"
    assert text == (
        "@ascolt.handler.impl(ascolt.handler.AskHandlerTrait[Ping, Pong, WorkerError], Worker)\n"
        "async def handle(self: Ref[Worker], msg: Ping) -> Result[Pong, WorkerError]:\n"
        "    return Ok(Pong())"
    )


def test_stateful_tell_handler_end_to_end():
    synthesis, text = synthesize(STATEFUL_TELL_HANDLER, HandlerKind.TELL, CallConvention.STATEFUL_EXTERNAL)

    assert synthesis.header == "ascolt.handler.StatefulTellHandlerTrait[Counter, Inc, WorkerError]"
    assert "state: RefMut[Counter]" in text
    assert text.endswith("    state.n += 1\n    return Ok(None)")


def test_tell_drops_the_success_type():
    code = """
    @tell_handler
    async def notify(self: Worker, msg: Ping) -> Result[Receipt, WorkerError]:
        return Ok(None)
    """
    synthesis, text = synthesize(code, HandlerKind.TELL, CallConvention.STATELESS)

    assert synthesis.header == "ascolt.handler.TellHandlerTrait[Ping, WorkerError]"
    assert "Receipt" not in synthesis.header
    assert "-> Result[None, WorkerError]:" in text


def test_tell_still_validates_the_return_shape():
    func, source = parse_function("async def notify(self: Worker, msg: Ping) -> Receipt: ...")

    with pytest.raises(InvalidReturnType):
        resolve_handler_types(func, source, HandlerKind.TELL, CallConvention.STATELESS)


def test_missing_return_type():
    func, source = parse_function("async def notify(self: Worker, msg: Ping): ...")

    with pytest.raises(MissingReturnType):
        resolve_handler_types(func, source, HandlerKind.ASK, CallConvention.STATELESS)


def test_synchronous_functions_become_async():
    code = """
    @ask_handler
    def handle(self: Worker, msg: Ping) -> Result[Pong, E]:
        return Ok(Pong())
    """
    _, text = synthesize(code, HandlerKind.ASK, CallConvention.STATELESS)

    assert "\nasync def handle(self: Worker, msg: Ping) -> Result[Pong, E]:\n" in text


def test_body_and_other_decorators_are_copied_verbatim():
    code = '''
    @traced("worker")   # keep me
    @ask_handler()
    @retry(times=3)
    async def handle(self: Ref[Worker], msg: Ref[Ping], *, timeout: float = 1.0) -> Result[Pong, E]:
        """Answer pings."""
        query = """
    SELECT 1
        """
        try:
            value = await self.lookup(msg, query)
        except KeyError as exc:
            return Err(E(str(exc)))
        return Ok(Pong(value))  # done
    '''
    func, source = parse_function(code)
    original_body = source.text[source.start_of(func.body[0]) : source.end_of(func.body[-1])]

    _, text = synthesize(code, HandlerKind.ASK, CallConvention.STATELESS)

    assert text.startswith('@traced("worker")   # keep me\n@ascolt.handler.impl(')
    assert "\n@retry(times=3)\n" in text
    assert "msg: Ref[Ping], *, timeout: float = 1.0" in text
    assert text.endswith(original_body)
    assert "AskHandlerTrait[Ping, Pong, E], Worker)" in text


def test_synthesis_is_deterministic():
    first = synthesize(STATEFUL_TELL_HANDLER, HandlerKind.TELL, CallConvention.STATEFUL_EXTERNAL)[1]
    second = synthesize(STATEFUL_TELL_HANDLER, HandlerKind.TELL, CallConvention.STATEFUL_EXTERNAL)[1]

    assert first == second


def test_runtime_module_comes_from_settings(settings):
    settings.runtime_module = "myruntime"

    synthesis, text = synthesize(ASK_HANDLER, HandlerKind.ASK, CallConvention.STATELESS)

    assert synthesis.header == "myruntime.handler.AskHandlerTrait[Ping, Pong, WorkerError]"
    assert text.startswith("@myruntime.handler.impl(")


def test_stateful_header_requires_a_state_type():
    func, source = parse_function("def handle(self: Worker, msg: Ping) -> Result[Pong, E]: ...")
    types = resolve_handler_types(func, source, HandlerKind.ASK, CallConvention.STATELESS)

    with pytest.raises(MissingStateParameter):
        trait_header(types, HandlerKind.ASK, CallConvention.STATEFUL_EXTERNAL)


def test_receiver_naming_the_enclosing_class_is_passed_by_name():
    synthesis, text = synthesize(ASK_HANDLER, HandlerKind.ASK, CallConvention.STATELESS, enclosing=("Worker",))

    assert synthesis.header == "ascolt.handler.AskHandlerTrait[Ping, Pong, WorkerError]"
    assert text.startswith("@ascolt.handler.impl(ascolt.handler.AskHandlerTrait[Ping, Pong, WorkerError], 'Worker')\n")


def test_receiver_naming_another_class_is_passed_as_is():
    _, text = synthesize(ASK_HANDLER, HandlerKind.ASK, CallConvention.STATELESS, enclosing=("Handlers",))

    assert "WorkerError], Worker)\n" in text


@pytest.mark.parametrize(
    "signature, enclosing",
    [
        ("def handle(self: Worker, msg: Worker.Ping) -> Result[Pong, E]: ...", ("Worker",)),
        ("def handle(self: Worker, msg: Ping) -> Result[Pong, Worker]: ...", ("Worker",)),
        ("def handle(self: Outer, msg: Ping) -> Result[Pong, E]: ...", ("Outer", "Worker")),
    ],
)
def test_types_still_being_defined_are_rejected(signature, enclosing):
    with pytest.raises(UnresolvedReference):
        synthesize(f"@ask_handler\n{signature}\n", HandlerKind.ASK, CallConvention.STATELESS, enclosing)
