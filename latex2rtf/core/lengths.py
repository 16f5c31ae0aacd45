"""Named lengths (in twips) and integer counters."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# twips per unit
_UNITS = {
    "pt": 20.0,
    "bp": 20.0 * 72.27 / 72,
    "in": 1440.0,
    "cm": 1440.0 / 2.54,
    "mm": 144.0 / 2.54,
    "pc": 240.0,
    "em": 200.0,
    "ex": 90.0,
    "sp": 20.0 / 65536,
}

_DIMENSION = re.compile(r"^\s*([-+]?\s*(?:\d+\.?\d*|\.\d+))\s*([a-z]{2})?")

DEFAULT_LENGTHS = {
    "pageheight": 795 * 20,
    "pagewidth": 614 * 20,
    "textheight": 550 * 20,
    "textwidth": 345 * 20,
    "baselineskip": 12 * 20,
    "parindent": 15 * 20,
    "parskip": 0,
    "smallskipamount": 3 * 20,
    "medskipamount": 6 * 20,
    "bigskipamount": 12 * 20,
}

DEFAULT_COUNTERS = (
    "page", "chapter", "section", "subsection", "subsubsection",
    "paragraph", "subparagraph", "figure", "table", "equation", "footnote",
)


def parse_dimension(text: str) -> int | None:
    """Convert a TeX dimension such as ``1.5cm`` or ``12pt`` to twips.

    A bare number is taken as points.  Returns ``None`` if *text* does not
    start with a number.
    """
    m = _DIMENSION.match(text)
    if not m:
        return None
    value = float(m.group(1).replace(" ", ""))
    unit = m.group(2) or "pt"
    scale = _UNITS.get(unit)
    if scale is None:
        logger.debug("Unknown unit %r in dimension %r, assuming pt", unit, text)
        scale = _UNITS["pt"]
    return int(round(value * scale))


class Lengths:
    """Registry of named lengths and counters."""

    def __init__(self, parindent: int | None = None):
        self._lengths: dict[str, int] = dict(DEFAULT_LENGTHS)
        if parindent is not None:
            self._lengths["parindent"] = parindent
        self._counters: dict[str, int] = {name: 0 for name in DEFAULT_COUNTERS}

    def get_length(self, name: str) -> int:
        if name not in self._lengths:
            logger.debug("Length \\%s undefined, using 0", name)
        return self._lengths.get(name, 0)

    def set_length(self, name: str, value: int) -> None:
        self._lengths[name] = value

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def set_counter(self, name: str, value: int) -> None:
        self._counters[name] = value

    def increment_counter(self, name: str) -> int:
        self._counters[name] = self._counters.get(name, 0) + 1
        return self._counters[name]

    def zero_prefixed(self, prefix: str) -> None:
        """Reset every counter whose name starts with *prefix*."""
        for name in self._counters:
            if name.startswith(prefix):
                self._counters[name] = 0
