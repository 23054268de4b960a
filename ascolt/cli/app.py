from __future__ import annotations

from sayer import Sayer

from ascolt.cli.codegen.app import codegen

help = """
Ascolt command line.

Expands `@ask_handler`, `@tell_handler` and `@actor(...)` markers into the
trait implementations consumed by the actor runtime.
"""

app = Sayer(name="ascolt", help=help)
app.add_command(codegen)
