from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Settings:
    """
    Global configuration for the Ascolt code generator.

    Attributes
    ----------
    runtime_module:
        Import path of the module providing the handler traits. Expanded code
        imports `<runtime_module>.handler` and references its names.
    message_parameter:
        Name of the parameter carrying the message.
    state_parameter:
        Name of the parameter carrying external state (stateful handlers).
    result_type_names:
        Accepted names for the two-argument result shape.
    reference_wrappers:
        Borrow wrappers stripped by the reference normalizer.
    max_workers:
        Number of worker threads used by `ascolt codegen build`.
    logging_level:
        Level applied by `configure_logging()`.
    """

    runtime_module: str = "ascolt"
    message_parameter: str = "msg"
    state_parameter: str = "state"
    result_type_names: tuple[str, ...] = ("Result",)
    reference_wrappers: tuple[str, ...] = ("Ref", "RefMut")
    max_workers: int = 4
    logging_level: str = "WARNING"


settings = Settings()
