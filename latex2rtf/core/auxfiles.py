"""Lookups in the LaTeX ``.aux`` and ``.bbl`` files.

Both files are written by a previous LaTeX run.  Lookups rewind and scan
the file from the top on every call; the files are small compared to
the document.  A missing file is reported once and every later lookup
quietly returns ``None``.

Record shapes understood by :meth:`AuxResolver.lookup`::

    \\bibcite{key}{number}                    SCALAR         -> number
    \\newlabel{key}{{number}{page}{...}}      FIRST_OF_PAIR  -> number
    \\harvardcite{key}{a}{b}{c}               RAW_GROUPS     -> {a}{b}{c}
    \\newacro{key}[short]long                 BRACKET        -> short]long
"""

from __future__ import annotations

import contextlib
import enum
import logging
import re
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)

_INPUT = re.compile(r"\\@input\{([^}]*)\}")


class AuxShape(enum.IntEnum):
    SCALAR = 0
    FIRST_OF_PAIR = 1
    RAW_GROUPS = 2
    BRACKET = 3


# ---------------------------------------------------------------------------
# Line reading
# ---------------------------------------------------------------------------

def _read_record(handle: IO[str]) -> str | None:
    """Read one line; a backslash before the line break joins the next line.

    The trailing line break is removed and tabs read as spaces.  Returns
    ``None`` at end of file.
    """
    parts: list[str] = []
    while True:
        line = handle.readline()
        if not line:
            return "".join(parts) if parts else None
        line = line.replace("\t", " ")
        if line.endswith("\\\n"):
            parts.append(line[:-2])
            continue
        parts.append(line.rstrip("\n"))
        return "".join(parts)


def _first_group(text: str) -> str | None:
    """Content of the ``{...}`` group at the start of *text*, or None if unbalanced."""
    if not text.startswith("{"):
        return None
    depth = 0
    for i, c in enumerate(text):
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[1:i]
    return None


def _extract_payload(rest: str, shape: AuxShape) -> str | None:
    """Cut the wanted part out of the text that follows ``\\tag{key}``."""
    if shape == AuxShape.RAW_GROUPS:
        return rest.rstrip()
    if shape == AuxShape.BRACKET:
        return rest[1:] if rest else None
    if shape == AuxShape.FIRST_OF_PAIR:
        rest = rest[1:]
    return _first_group(rest)


# ---------------------------------------------------------------------------
# Handle cache
# ---------------------------------------------------------------------------

class _HandleCache:
    """Lazily opened, rewindable file handles, closed at teardown."""

    def __init__(self):
        self._handles: dict[Path, IO[str]] = {}
        self._busy: list[Path] = []

    def busy(self, path: Path) -> bool:
        return path in self._busy

    @contextlib.contextmanager
    def scanning(self, path: Path) -> Iterator[IO[str] | None]:
        """Yield a rewound handle for *path*, or None if it cannot be opened.

        The handle belongs to the scope until it exits; callers check
        :meth:`busy` before scanning a file that is already being scanned.
        """
        handle = self._handles.get(path)
        if handle is None:
            try:
                handle = open(path, "r", encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Cannot open %s: %s", path, e)
                yield None
                return
            self._handles[path] = handle

        handle.seek(0)
        self._busy.append(path)
        try:
            yield handle
        finally:
            self._busy.pop()

    def close(self) -> None:
        for handle in self._handles.values():
            handle.close()
        self._handles.clear()


# ---------------------------------------------------------------------------
# Resolver and retriever
# ---------------------------------------------------------------------------

class AuxResolver:
    """Find ``\\tag{key}{payload}`` records in the ``.aux`` file tree."""

    def __init__(self, aux_path: str | Path, diagnostics: Diagnostics):
        self.aux_path = Path(aux_path)
        self.diagnostics = diagnostics
        self.missing = False
        self._cache = _HandleCache()

    def lookup(
        self,
        tag: str,
        key: str,
        shape: AuxShape = AuxShape.SCALAR,
        aux_path: str | Path | None = None,
    ) -> str | None:
        """Return the payload recorded for *key*, or None."""
        if self.missing or not tag or not key:
            return None
        path = Path(aux_path) if aux_path else self.aux_path
        target = f"\\{tag}{{{key}}}"
        logger.debug("Seeking %r in %s", target, path)

        with self._cache.scanning(path) as handle:
            if handle is None:
                if path == self.aux_path:
                    self.missing = True
                    self.diagnostics.warning("No .aux file.  Run LaTeX to create one.")
                else:
                    self.diagnostics.warn_once(
                        f"aux:{path}", "Cannot open included .aux file <%s>", path
                    )
                return None
            return self._scan(handle, path, target, shape, tag, key)

    def _scan(
        self, handle: IO[str], path: Path, target: str,
        shape: AuxShape, tag: str, key: str,
    ) -> str | None:
        while True:
            line = _read_record(handle)
            if line is None:
                return None

            m = _INPUT.search(line)
            if m:
                included = Path(m.group(1))
                if not included.is_absolute():
                    included = path.parent / included
                if self._cache.busy(included):
                    logger.debug("Skipping recursive \\@input{%s}", m.group(1))
                else:
                    logger.debug("Following \\@input{%s}", m.group(1))
                    found = self.lookup(tag, key, shape, included)
                    if found is not None:
                        return found

            idx = line.find(target)
            if idx >= 0:
                found = _extract_payload(line[idx + len(target):], shape)
                logger.debug("Found %r for %r", found, target)
                return found

    def close(self) -> None:
        self._cache.close()


class BblRetriever:
    """Fetch the full text of a bibliography entry from the ``.bbl`` file."""

    def __init__(self, bbl_path: str | Path, diagnostics: Diagnostics):
        self.bbl_path = Path(bbl_path)
        self.diagnostics = diagnostics
        self.missing = False
        self._cache = _HandleCache()

    def fetch(self, key: str) -> str | None:
        """Return the entry text following the line containing ``{key}``.

        The entry runs until the next blank line.  Trailing blanks and at
        most one trailing period are removed.
        """
        if self.missing or not key:
            return None
        target = f"{{{key}}}"

        with self._cache.scanning(self.bbl_path) as handle:
            if handle is None:
                self.missing = True
                self.diagnostics.warning("No .bbl file.  Run LaTeX to create one.")
                return None

            while True:
                line = _read_record(handle)
                if line is None:
                    return None
                if target in line:
                    break

            lines: list[str] = []
            for raw in iter(handle.readline, ""):
                if raw == "\n":
                    break
                lines.append(raw.replace("\t", " "))

        text = "".join(lines).rstrip(" \n")
        if text.endswith("."):
            text = text[:-1]
        return text

    def close(self) -> None:
        self._cache.close()
