"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .helper import SafeHelper
from .settings import SafeHelperSettings


@dataclass
class AppState:
    """Container for CLI-wide state and dependencies.

    Passed to every command through the Typer context.
    """

    settings: SafeHelperSettings
    logger: logging.Logger
    helper: SafeHelper
    key: str | None = None
