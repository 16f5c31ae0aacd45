"""Bookmark registry for cross-reference targets.

RTF readers reject a document that defines the same bookmark twice, so
every label is normalized and recorded the first time it is emitted.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from .diagnostics import Diagnostics
    from .output import OutputFilter

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")

Emitter = Union[str, Callable[[], None]]


def normalize_signet(label: str) -> str:
    """Strip characters that are not allowed in an RTF bookmark name."""
    return _UNSAFE.sub("", label)


class BookmarkRegistry:
    """Append-only set of emitted bookmark names."""

    def __init__(
        self,
        output: OutputFilter,
        diagnostics: Diagnostics,
        use_fields: bool = True,
        capacity: int = 5000,
    ):
        self.output = output
        self.diagnostics = diagnostics
        self.use_fields = use_fields
        self.capacity = capacity
        self._names: dict[str, None] = {}

    def __contains__(self, label: str) -> bool:
        return "BM" + normalize_signet(label) in self._names

    def __len__(self) -> int:
        return len(self._names)

    def _record(self, name: str) -> None:
        if len(self._names) >= self.capacity:
            self.diagnostics.warn_once(
                "bookmark-capacity",
                "Too many labels (%d) ... some cross-references will fail", self.capacity,
            )
            return
        self._names[name] = None

    def _emit(self, text: Emitter) -> None:
        if callable(text):
            text()
        elif text:
            self.output.write(text)

    def ensure(self, label: str, text: Emitter = "", prefix: str = "BM") -> bool:
        """Emit *text*, wrapped in a bookmark the first time *label* is seen.

        *text* is raw RTF or a callable that writes it.  Returns True when
        bookmark markers were written.
        """
        signet = normalize_signet(label)
        if prefix + signet in self._names:
            logger.debug("Bookmark %s%s already exists", prefix, signet)
            self._emit(text)
            return False

        # past capacity the name is not recorded, so later uses bookmark again
        self._record(prefix + signet)
        if not self.use_fields:
            self._emit(text)
            return False

        logger.debug("Inserting bookmark %s%s", prefix, signet)
        self.output.write(f"{{\\*\\bkmkstart {prefix}{signet}}}")
        self._emit(text)
        self.output.write(f"{{\\*\\bkmkend {prefix}{signet}}}")
        return True
