__version__ = "0.1.0"

from . import handler
from .conf import monkay
from .exceptions import (
    AscoltError,
    ConflictingImplementation,
    ExpansionError,
    ExpansionRequired,
    InvalidHandlerMarker,
    InvalidReturnType,
    MissingErrorAttribute,
    MissingMessageParameter,
    MissingReceiver,
    MissingResultArgument,
    MissingReturnType,
    MissingStateParameter,
    UnresolvedReference,
)
from .handler import (
    ActorTrait,
    AskHandlerTrait,
    StatefulAskHandlerTrait,
    StatefulTellHandlerTrait,
    TellHandlerTrait,
    impl,
    registry,
)
from .markers import actor, ask_handler, tell_handler
from .typing import Err, Ok, Ref, RefMut, Result

__all__ = [
    "ActorTrait",
    "AscoltError",
    "AskHandlerTrait",
    "ConflictingImplementation",
    "Err",
    "ExpansionError",
    "ExpansionRequired",
    "InvalidHandlerMarker",
    "InvalidReturnType",
    "MissingErrorAttribute",
    "MissingMessageParameter",
    "MissingReceiver",
    "MissingResultArgument",
    "MissingReturnType",
    "MissingStateParameter",
    "Ok",
    "Ref",
    "RefMut",
    "Result",
    "StatefulAskHandlerTrait",
    "StatefulTellHandlerTrait",
    "TellHandlerTrait",
    "UnresolvedReference",
    "actor",
    "ask_handler",
    "handler",
    "impl",
    "monkay",
    "registry",
    "tell_handler",
]
