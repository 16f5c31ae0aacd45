"""Diagnostics sink shared by every component of a conversion run.

Messages are routed to the standard ``logging`` machinery and prefixed
with the current source position.  Warnings can additionally be embedded
in the RTF stream as red annotation text, and a fatal message raises
:class:`FatalConversionError` so the driver can close the output cleanly.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Callable

from .errors import FatalConversionError

if TYPE_CHECKING:
    from .output import OutputFilter

logger = logging.getLogger(__name__)


class Severity(enum.IntEnum):
    FATAL = 0
    WARNING = 1
    INFO = 2
    DEBUG = 4


_LOG_LEVELS = {
    Severity.FATAL: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.INFO: logging.INFO,
    Severity.DEBUG: logging.DEBUG,
}


class Diagnostics:
    """Severity-based reporting with optional echo into the output stream."""

    def __init__(self, rtf_warnings: bool = False):
        self.rtf_warnings = rtf_warnings
        self.output: OutputFilter | None = None
        self.position: Callable[[], tuple[str, int]] | None = None
        self.warning_count = 0
        self._seen: set[str] = set()

    def _where(self) -> str:
        if self.position is None:
            return ""
        name, line = self.position()
        return f"{name}:{line} " if name else f"line={line} "

    def report(self, severity: Severity, msg: str, *args) -> None:
        text = msg % args if args else msg
        logger.log(_LOG_LEVELS[severity], "%s%s", self._where(), text)

        if severity == Severity.WARNING:
            self.warning_count += 1
            if self.rtf_warnings and self.output is not None:
                self.output.write("{\\plain\\cf2 [latex2rtf:")
                self.output.put_text(text)
                self.output.write("]}")

        if severity == Severity.FATAL:
            raise FatalConversionError(text)

    def fatal(self, msg: str, *args) -> None:
        self.report(Severity.FATAL, msg, *args)

    def warning(self, msg: str, *args) -> None:
        self.report(Severity.WARNING, msg, *args)

    def warn_once(self, key: str, msg: str, *args) -> bool:
        """Report *msg* only the first time *key* is seen; return True if reported."""
        if key in self._seen:
            return False
        self._seen.add(key)
        self.warning(msg, *args)
        return True

    def info(self, msg: str, *args) -> None:
        self.report(Severity.INFO, msg, *args)

    def debug(self, msg: str, *args) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            self.report(Severity.DEBUG, msg, *args)
