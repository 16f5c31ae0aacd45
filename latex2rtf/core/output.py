"""Output filter for the RTF stream.

All output goes through :class:`OutputFilter`.  ``put_char``/``put_text``
escape document text; ``write`` emits raw RTF while tracking the group
nesting depth and a shadow stack of font settings, so later code can ask
which font attributes are active without re-reading emitted output.
"""

from __future__ import annotations

import contextlib
import io
import logging
import re
from dataclasses import dataclass, replace
from typing import IO, Iterator

logger = logging.getLogger(__name__)

_CONTROL_WORD = re.compile(r"\\([a-z]+)(-?\d+)?")

_ESCAPES = {
    "\\": "\\\\",
    "{": "\\{",
    "}": "\\}",
    "\n": "\\par \n",
}


@dataclass
class FontState:
    """Character formatting active inside the current RTF group."""
    family: int = 0
    size: int = 20          # half-points
    bold: bool = False
    italic: bool = False
    underline: bool = False


def encode_eight_bit(c: str, codepage: str = "cp1252") -> str:
    r"""Encode a non-ASCII character as ``\'xx`` or ``\uN?``."""
    try:
        raw = c.encode(codepage)
    except UnicodeEncodeError:
        n = ord(c)
        if n > 0x7FFF:
            n -= 0x10000
        return f"\\u{n}?"
    return "".join(f"\\'{b:02x}" for b in raw)


def unescape_text(rtf: str) -> str:
    """Invert :meth:`OutputFilter.put_text` for 7-bit text."""
    out = []
    i = 0
    while i < len(rtf):
        if rtf.startswith("\\par \n", i):
            out.append("\n")
            i += 6
        elif rtf[i] == "\\" and i + 1 < len(rtf) and rtf[i + 1] in "\\{}":
            out.append(rtf[i + 1])
            i += 2
        else:
            out.append(rtf[i])
            i += 1
    return "".join(out)


class OutputFilter:
    """Escaping writer with brace-depth and font tracking."""

    def __init__(self, stream: IO[str], codepage: str = "cp1252"):
        self.stream = stream
        self.codepage = codepage
        self.depth = 0
        self._fonts: list[FontState] = [FontState()]

    # ── Escaped text ─────────────────────────────────────────────────

    def put_char(self, c: str) -> None:
        """Write one character of document text."""
        if c in _ESCAPES:
            self.stream.write(_ESCAPES[c])
        elif ord(c) > 127:
            self.stream.write(encode_eight_bit(c, self.codepage))
        else:
            self.stream.write(c)

    def put_text(self, text: str) -> None:
        for c in text:
            self.put_char(c)

    # ── Raw RTF ──────────────────────────────────────────────────────

    def write(self, rtf: str) -> None:
        """Write raw RTF, tracking ``{``/``}`` nesting and font changes."""
        i = 0
        n = len(rtf)
        while i < n:
            c = rtf[i]
            if ord(c) > 127:
                self.stream.write(encode_eight_bit(c, self.codepage))
                i += 1
                continue

            self.stream.write(c)
            if c == "{":
                self._push_font()
            elif c == "}":
                self._pop_font()
            elif c == "\\" and i + 1 < n:
                nxt = rtf[i + 1]
                if nxt in "\\{}":
                    # escaped literal, not a group delimiter
                    self.stream.write(nxt)
                    i += 2
                    continue
                self._monitor_font(rtf, i)
            i += 1

    def _push_font(self) -> None:
        self.depth += 1
        self._fonts.append(replace(self._fonts[-1]))

    def _pop_font(self) -> None:
        self.depth -= 1
        if len(self._fonts) > 1:
            self._fonts.pop()
        else:
            logger.debug("Unbalanced '}' written to RTF stream")

    def _monitor_font(self, rtf: str, i: int) -> None:
        m = _CONTROL_WORD.match(rtf, i)
        if not m:
            return
        word, arg = m.group(1), m.group(2)
        font = self._fonts[-1]
        on = arg != "0"
        if word == "b":
            font.bold = on
        elif word == "i":
            font.italic = on
        elif word == "ul":
            font.underline = on
        elif word == "ulnone":
            font.underline = False
        elif word == "f" and arg is not None:
            font.family = int(arg)
        elif word == "fs" and arg is not None:
            font.size = int(arg)
        elif word == "plain":
            self._fonts[-1] = FontState()

    @property
    def font(self) -> FontState:
        return self._fonts[-1]

    # ── Redirection ──────────────────────────────────────────────────

    @contextlib.contextmanager
    def redirected(self, stream: IO[str] | None = None) -> Iterator[IO[str]]:
        """Temporarily send output to *stream* (a throw-away buffer by default)."""
        saved = self.stream
        self.stream = stream if stream is not None else io.StringIO()
        try:
            yield self.stream
        finally:
            self.stream = saved

    def flush(self) -> None:
        with contextlib.suppress(AttributeError, ValueError):
            self.stream.flush()
