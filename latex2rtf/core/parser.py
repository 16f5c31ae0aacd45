"""Reading command names and arguments from the source stack.

The stream functions (``get_*``) consume characters from a
:class:`~latex2rtf.core.source.SourceStack`; the string helpers work on
text that has already been read (aux file records, stored arguments).
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .lengths import parse_dimension
from .source import END, SourceStack

if TYPE_CHECKING:
    from .lengths import Lengths

logger = logging.getLogger(__name__)


def _is_name_char(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == "@")


# ---------------------------------------------------------------------------
# Stream readers
# ---------------------------------------------------------------------------

def skip_blanks(src: SourceStack) -> None:
    """Skip spaces and at most one line break (never a blank line)."""
    seen_newline = False
    while True:
        c = src.next_char()
        if c == " ":
            continue
        if c == "\n" and not seen_newline:
            seen_newline = True
            continue
        if c == "\n":
            # blank line: leave both breaks for the paragraph logic
            src.pushback(c)
            src.pushback("\n")
            return
        src.pushback(c)
        return


def get_command_name(src: SourceStack) -> str:
    """Read the name following a backslash.

    A name is a run of letters (``@`` included); otherwise the single
    following character is the name.  Returns ``""`` at end of input.
    """
    c = src.next_char()
    if c == END:
        return ""
    if not _is_name_char(c):
        return c
    chars = [c]
    while True:
        c = src.next_char()
        if c != END and _is_name_char(c):
            chars.append(c)
            continue
        src.pushback(c)
        break
    return "".join(chars)


def get_star(src: SourceStack) -> bool:
    """Consume a ``*`` directly after a command name, if present."""
    c = src.next_char()
    if c == "*":
        return True
    src.pushback(c)
    return False


def _read_balanced(src: SourceStack, close: str, open_: str | None = None) -> str:
    """Read up to the matching *close*, keeping braces balanced."""
    parts: list[str] = []
    braces = 0
    nested = 0
    while True:
        c = src.next_char()
        if c == END:
            logger.debug("End of input inside argument (expected %r)", close)
            break
        if c == "\\":
            parts.append(c)
            nxt = src.next_char()
            if nxt != END:
                parts.append(nxt)
            continue
        if c == "{":
            braces += 1
        elif c == "}":
            if braces == 0 and close == "}":
                break
            braces -= 1
        elif braces == 0 and open_ is not None and c == open_:
            nested += 1
        elif braces == 0 and c == close:
            if nested == 0:
                break
            nested -= 1
        parts.append(c)
    return "".join(parts)


def get_brace_param(src: SourceStack) -> str:
    """Read a required argument.

    Returns the contents of a ``{...}`` group, or a single token when the
    argument is not braced (``\\name`` or one character).
    """
    skip_blanks(src)
    c = src.next_char()
    if c == "{":
        return _read_balanced(src, "}")
    if c == "\\":
        return "\\" + get_command_name(src)
    if c in (END, "}"):
        src.pushback(c)
        return ""
    return c


def get_bracket_param(src: SourceStack) -> str | None:
    """Read an optional ``[...]`` argument, or return ``None`` if absent."""
    skip_blanks(src)
    c = src.next_char()
    if c != "[":
        src.pushback(c)
        return None
    return _read_balanced(src, "]", "[")


def get_angle_param(src: SourceStack) -> str | None:
    """Read an optional ``<...>`` argument (apacite prefix text)."""
    skip_blanks(src)
    c = src.next_char()
    if c != "<":
        src.pushback(c)
        return None
    return _read_balanced(src, ">", "<")


def get_dimension(src: SourceStack, lengths: Lengths) -> int:
    """Read a braced or bare dimension and return it in twips."""
    skip_blanks(src)
    c = src.next_char()
    if c == "{":
        return dimension_value(_read_balanced(src, "}"), lengths)
    src.pushback(c)

    chars: list[str] = []
    while True:
        c = src.next_char()
        if c != END and (c.isdigit() or c in ".+- "):
            chars.append(c)
            continue
        if c == "\\":
            chars.append(c + get_command_name(src))
            break
        if c != END and c.isalpha():
            chars.append(c)
            nxt = src.next_char()
            if nxt != END and nxt.isalpha():
                chars.append(nxt)
            else:
                src.pushback(nxt)
            break
        src.pushback(c)
        break
    return dimension_value("".join(chars), lengths)


def dimension_value(text: str, lengths: Lengths) -> int:
    r"""Evaluate ``12pt``, ``\parindent`` or ``0.5\textwidth`` in twips."""
    text = text.strip()
    m = re.match(r"^([-+]?\s*(?:\d+\.?\d*|\.\d+)?)\s*\\([a-zA-Z@]+)$", text)
    if m:
        factor_text = m.group(1).replace(" ", "")
        if factor_text in ("", "+"):
            factor = 1.0
        elif factor_text == "-":
            factor = -1.0
        else:
            factor = float(factor_text)
        return int(round(factor * lengths.get_length(m.group(2))))
    value = parse_dimension(text)
    if value is None:
        logger.debug("Cannot parse dimension %r, using 0", text)
        return 0
    return value


# ---------------------------------------------------------------------------
# String helpers
# ---------------------------------------------------------------------------

def extract_brace_content(text: str, start: int) -> tuple[str, int]:
    """Extract the content of the balanced ``{...}`` starting at *start*.

    Returns ``(content, end_position)`` where *end_position* is the index
    immediately after the closing ``}``.
    """
    if start >= len(text) or text[start] != "{":
        return ("", start)
    depth = 1
    i = start + 1
    while i < len(text) and depth > 0:
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
        i += 1
    return (text[start + 1 : i - 1], i)


def extract_all_brace_groups(text: str, start: int = 0) -> list[str]:
    """Extract all top-level ``{...}`` groups from *text*."""
    groups: list[str] = []
    i = start
    while i < len(text):
        if text[i] == "{":
            content, i = extract_brace_content(text, i)
            groups.append(content)
        else:
            i += 1
    return groups


def brace_params(text: str, count: int) -> list[str]:
    """Read *count* consecutive arguments from *text*.

    Works like repeated :func:`get_brace_param` calls on a string source:
    a braced group loses one level of braces, anything else yields a
    single character, and missing arguments are ``""``.
    """
    params: list[str] = []
    i = 0
    for _ in range(count):
        while i < len(text) and text[i] in " \n":
            i += 1
        if i >= len(text):
            params.append("")
        elif text[i] == "{":
            content, i = extract_brace_content(text, i)
            params.append(content)
        else:
            params.append(text[i])
            i += 1
    return params


def strip_comments(text: str) -> str:
    """Drop ``%`` comments (not ``\\%``) from every line of *text*."""
    return re.sub(r"(?<!\\)%[^\n]*", "", text)


def strip_outer_braces(text: str) -> str:
    """Remove surrounding blanks and one pair of enclosing braces."""
    text = text.strip()
    if text.startswith("{"):
        content, end = extract_brace_content(text, 0)
        if end == len(text):
            return content.strip()
    return text


def split_keys(text: str) -> list[str]:
    """Split a comma-separated key list, dropping blanks around keys."""
    return [k.strip() for k in text.split(",") if k.strip()]
