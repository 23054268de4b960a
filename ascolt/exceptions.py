from __future__ import annotations


class AscoltError(Exception):
    """Base exception for all Ascolt errors."""


class ExpansionError(AscoltError):
    """
    Raised when a marked declaration cannot be expanded.

    Expansion errors are build-time diagnostics. They abort the expansion of the
    whole module: no partial output is ever produced.

    Attributes
    ----------
    declaration:
        Name of the offending function or class.
    filename:
        Source file the declaration lives in.
    lineno:
        Line of the declaration (the `def`/`class` line).
    """

    def __init__(
        self,
        message: str,
        *,
        declaration: str | None = None,
        filename: str | None = None,
        lineno: int | None = None,
    ) -> None:
        self.reason = message
        self.declaration = declaration
        self.filename = filename
        self.lineno = lineno
        super().__init__(self._format())

    def locate(self, *, declaration: str, filename: str, lineno: int) -> ExpansionError:
        """
        Attach the offending declaration's location and return `self`.

        Components raise without location; the expander fills it in before
        the error leaves the module.
        """
        self.declaration = declaration
        self.filename = filename
        self.lineno = lineno
        self.args = (self._format(),)
        return self

    def _format(self) -> str:
        location = self.filename or "<unknown>"
        if self.lineno is not None:
            location = f"{location}:{self.lineno}"
        if self.declaration:
            return f"{location}: {self.declaration}: {self.reason}"
        return f"{location}: {self.reason}"


class MissingReceiver(ExpansionError):
    """
    Raised when a handler has no annotated receiver.

    Every handler acts on an actor instance; the receiver annotation is what
    names the actor type.
    """


class MissingMessageParameter(ExpansionError):
    """Raised when a handler has no annotated `msg` parameter."""


class MissingStateParameter(ExpansionError):
    """Raised when a stateful handler has no annotated `state` parameter."""


class MissingReturnType(ExpansionError):
    """Raised when a handler declares no return annotation."""


class InvalidReturnType(ExpansionError):
    """
    Raised when the return annotation is not `Result[T, E]`.

    Bare types, other generics and `Result` with the wrong number of
    arguments all end up here.
    """


class MissingResultArgument(InvalidReturnType):
    """Raised when `Result[...]` lacks its success or error argument."""


class MissingErrorAttribute(ExpansionError):
    """
    Raised when the `actor` marker carries no well-formed `error=...` binding.

    This covers a bare marker, an unsupported key, positional arguments and
    duplicate markers.
    """


class InvalidHandlerMarker(ExpansionError):
    """
    Raised when a handler marker is malformed.

    For example, both `ask_handler` and `tell_handler` on the same function,
    or marker arguments other than a literal `stateful=True/False`.
    """


class InvalidSource(ExpansionError):
    """Raised when the module to expand is not valid Python."""


class UnresolvedReference(ExpansionError):
    """
    Raised when a handler inside a class body names a class that is still
    being defined where the handler gets registered.

    Only the receiver may name the class that directly encloses the handler;
    its registration is deferred until the class exists.
    """


class ExpansionRequired(AscoltError):
    """
    Raised when a marker runs without the module having been expanded.

    Markers are consumed by `ascolt codegen`; they do nothing useful at runtime.
    """


class ConflictingImplementation(AscoltError):
    """
    Raised when the same parameterized trait is implemented twice for a type.
    """
