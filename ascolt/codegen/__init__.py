from .derive import derive_actor, read_error_binding
from .expander import ExpandedDeclaration, Expansion, expand_file, expand_source
from .signature import (
    CallConvention,
    ClassifiedParameter,
    HandlerKind,
    ParameterRole,
    RoleAssignment,
    classify_parameters,
    extract_roles,
)
from .source import SourceText, TypeExpression
from .synthesis import (
    ResolvedHandlerTypes,
    Synthesis,
    implementing_type,
    resolve_handler_types,
    synthesize_handler,
    trait_header,
)
from .types import decompose_result, normalize

__all__ = [
    "CallConvention",
    "ClassifiedParameter",
    "ExpandedDeclaration",
    "Expansion",
    "HandlerKind",
    "ParameterRole",
    "ResolvedHandlerTypes",
    "RoleAssignment",
    "SourceText",
    "Synthesis",
    "TypeExpression",
    "classify_parameters",
    "decompose_result",
    "derive_actor",
    "expand_file",
    "expand_source",
    "extract_roles",
    "implementing_type",
    "normalize",
    "read_error_binding",
    "resolve_handler_types",
    "synthesize_handler",
    "trait_header",
]
