"""Stack of open input contexts.

Each context is either an open file or an in-memory string and keeps its
own cursor, line counter and pushback buffer.  Included files and
synthesized strings are pushed on top of the stack and fully drained
before the parent context is resumed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from .errors import SourceError

logger = logging.getLogger(__name__)

# Returned by next_char() when the current context is exhausted
END = ""


@dataclass
class SourceContext:
    """A single input context (file or string)."""
    name: str
    handle: IO[str] | None = None
    text: str = ""
    pos: int = 0
    line: int = 1
    pushback: list[str] = field(default_factory=list)
    _ahead: list[str] = field(default_factory=list, repr=False)

    @property
    def is_file(self) -> bool:
        return self.handle is not None

    def _raw(self) -> str:
        if self._ahead:
            return self._ahead.pop()
        if self.handle is not None:
            return self.handle.read(1)
        if self.pos < len(self.text):
            c = self.text[self.pos]
            self.pos += 1
            return c
        return END

    def _unraw(self, c: str) -> None:
        """Return a raw character that was read one step too far."""
        self._ahead.append(c)

    def close(self) -> None:
        if self.handle is not None:
            self.handle.close()
            self.handle = None


class SourceStack:
    """LIFO stack of :class:`SourceContext` objects."""

    def __init__(self, base_dir: str | Path | None = None, encoding: str = "utf-8"):
        self.base_dir = Path(base_dir) if base_dir else None
        self.encoding = encoding
        self._stack: list[SourceContext] = []

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> SourceContext:
        if not self._stack:
            raise IndexError("source stack is empty")
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack)

    # ── Push / pop ───────────────────────────────────────────────────

    def resolve_path(self, name: str) -> Path:
        """Resolve *name* against the base directory, adding ``.tex`` if needed."""
        path = Path(name)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        if not path.exists() and not path.suffix:
            with_tex = path.with_suffix(".tex")
            if with_tex.exists():
                return with_tex
        return path

    def push_file(self, name: str) -> SourceContext:
        """Open *name* and make it the current context.

        Raises :class:`SourceError` if the file cannot be opened.
        """
        path = self.resolve_path(name)
        try:
            handle = open(path, "r", encoding=self.encoding, errors="replace", newline="")
        except OSError as e:
            raise SourceError(str(path), e.strerror or str(e)) from e

        ctx = SourceContext(name=str(path), handle=handle)
        self._stack.append(ctx)
        logger.debug("Pushed file <%s> (depth %d)", path, len(self._stack))
        return ctx

    def push_string(self, text: str, name: str | None = None) -> SourceContext:
        """Make the in-memory *text* the current context."""
        parent_name = self._stack[-1].name if self._stack else ""
        parent_line = self._stack[-1].line if self._stack else 1
        ctx = SourceContext(name=name or parent_name, text=text, line=parent_line)
        self._stack.append(ctx)
        return ctx

    def pop(self) -> None:
        """Close the current context and resume its parent."""
        ctx = self._stack.pop()
        ctx.close()
        logger.debug("Popped <%s> (depth %d)", ctx.name, len(self._stack))

    def close_all(self) -> None:
        while self._stack:
            self.pop()

    # ── Character access ─────────────────────────────────────────────

    def next_char(self) -> str:
        """Return the next character of the current context.

        CR, LF and CR LF all read as a single ``"\\n"``; a tab reads as a
        space.  Returns :data:`END` when the context is exhausted.
        """
        ctx = self.current
        if ctx.pushback:
            c = ctx.pushback.pop()
            if c == "\n":
                ctx.line += 1
            return c

        c = ctx._raw()
        if c == "\r":
            nxt = ctx._raw()
            if nxt != "\n" and nxt != END:
                ctx._unraw(nxt)
            c = "\n"
        elif c == "\t":
            c = " "

        if c == "\n":
            ctx.line += 1
        return c

    def pushback(self, c: str) -> None:
        """Return *c* so that the next call to :meth:`next_char` yields it."""
        if c == END:
            return
        ctx = self.current
        if c == "\n":
            ctx.line -= 1
        ctx.pushback.append(c)

    def pushback_text(self, text: str) -> None:
        for c in reversed(text):
            self.pushback(c)

    def peek_char(self) -> str:
        c = self.next_char()
        self.pushback(c)
        return c

    # ── Diagnostics ──────────────────────────────────────────────────

    def line_number(self) -> int:
        return self._stack[-1].line if self._stack else 0

    def file_name(self) -> str:
        for ctx in reversed(self._stack):
            if ctx.is_file:
                return ctx.name
        return self._stack[-1].name if self._stack else ""

    def position(self) -> tuple[str, int]:
        return self.file_name(), self.line_number()
