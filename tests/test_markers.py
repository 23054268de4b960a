import pytest

from ascolt import ExpansionRequired, actor, ask_handler, tell_handler
from tests.conftest import run_module


def test_bare_handler_marker_requires_expansion():
    with pytest.raises(ExpansionRequired, match="ascolt codegen expand"):

        @ask_handler
        async def handle(self, msg):
            return None


def test_called_handler_marker_requires_expansion():
    with pytest.raises(ExpansionRequired, match="tell_handler"):

        @tell_handler(stateful=True)
        async def handle(self, state, msg):
            return None


def test_actor_marker_requires_expansion():
    with pytest.raises(ExpansionRequired, match="Worker"):

        @actor(error=ValueError)
        class Worker:
            pass


def test_unexpanded_module_fails_on_import():
    code = "from ascolt import actor\n\n@actor(error=ValueError)\nclass Worker:\n    pass\n"

    with pytest.raises(ExpansionRequired):
        run_module(code)
