"""Command and environment registry.

Each markup command maps to a :class:`Handler`: the function to call and
a per-command code that selects the variant (for example the citation
flavour or the section level).  Command handlers are called as
``func(converter, code)``, environment handlers as
``func(converter, code, on)`` with ``on`` False at ``\\end{...}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .converter import Converter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Handler:
    func: Callable[..., None]
    code: Any = None


class CommandRegistry:
    """Name -> handler lookup for commands and environments."""

    def __init__(self):
        self._commands: dict[str, Handler] = {}
        self._environments: dict[str, Handler] = {}

    def add(self, name: str, func: Callable[..., None], code: Any = None) -> None:
        if name in self._commands:
            logger.debug("Replacing handler for \\%s", name)
        self._commands[name] = Handler(func, code)

    def add_env(self, name: str, func: Callable[..., None], code: Any = None) -> None:
        self._environments[name] = Handler(func, code)

    def call(self, name: str, conv: Converter) -> bool:
        """Run the handler for ``\\name``; return False if there is none."""
        handler = self._commands.get(name)
        if handler is None:
            return False
        handler.func(conv, handler.code)
        return True

    def call_env(self, name: str, conv: Converter, on: bool) -> bool:
        handler = self._environments.get(name)
        if handler is None:
            return False
        handler.func(conv, handler.code, on)
        return True
