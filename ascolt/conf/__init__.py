from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, cast

from monkay import Monkay

if TYPE_CHECKING:  # pragma: no cover
    from .global_settings import Settings

ENVIRONMENT_VARIABLE = "ASCOLT_SETTINGS_MODULE"

monkay: Monkay[None, Settings] = Monkay(
    globals(),
    settings_path=os.environ.get(ENVIRONMENT_VARIABLE) or "ascolt.conf.global_settings:settings",
)


class SettingsForward:
    """
    Proxy forwarding attribute access to the currently loaded settings.

    Lets modules do `from ascolt.conf import settings` once while tests and
    applications swap or patch `monkay.settings` afterwards.
    """

    def __getattribute__(self, name: str) -> Any:
        return getattr(monkay.settings, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(monkay.settings, name, value)


settings: Settings = cast("Settings", SettingsForward())


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure the `ascolt` logger hierarchy.

    Uses `settings.logging_level` unless an explicit level is given.
    """
    level = level if level is not None else settings.logging_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("ascolt").setLevel(level)


__all__ = ["ENVIRONMENT_VARIABLE", "configure_logging", "monkay", "settings"]
