"""One-pass LaTeX → RTF converter.

Characters are read from the source stack and either written straight
to the output filter or dispatched to a command handler.  Handlers that
need to convert an argument push it back as a string source and call
:meth:`Converter.convert_string`, so nested conversions share the same
mode and paragraph state as the surrounding text.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

from ..config import settings
from . import preamble, vertical, xrefs
from .commands import CommandRegistry
from .context import ConversionOptions, create_context
from .errors import SourceError
from .parser import get_brace_param, get_bracket_param, get_command_name, get_star, skip_blanks
from .profile import RtfProfile, load_profile
from .source import END
from .styles import rtf_header
from .text_utils import ACCENTS, DASHES, QUOTES, SYMBOL_MAP, accented
from .vertical import Alignment, Indent, IndentPolicy, Mode

logger = logging.getLogger(__name__)

_MATH_MODES = (Mode.MATH, Mode.DISPLAY_MATH)

# \{ \} \% ... written as the literal character
_ESCAPED_SPECIALS = "{}%&$#_"


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    vertical.register(registry)
    xrefs.register(registry)
    preamble.register(registry)

    registry.add("input", cmd_input, "input")
    registry.add("include", cmd_input, "include")
    for letter in ("c", "u", "v", "H", "r"):
        registry.add(letter, cmd_accent, letter)
    registry.add_env("equation", env_display_math, True)
    registry.add_env("equation*", env_display_math, False)
    registry.add_env("displaymath", env_display_math, False)
    return registry


class Converter:
    """Drives one conversion run over a :class:`ConversionContext`."""

    def __init__(
        self,
        options: ConversionOptions,
        stream: IO[str],
        profile: RtfProfile | None = None,
    ):
        if profile is None:
            profile = load_profile(options.profile_path)
        self.registry = build_registry()
        self.ctx = create_context(options, profile, stream, self.convert_string)
        self._after_space = False
        self._math_saved: list[Mode] = []

    # ── Entry points ─────────────────────────────────────────────────

    def run(self) -> int:
        """Convert the source already pushed on the stack; return the warning count."""
        ctx = self.ctx
        ctx.output.write(rtf_header(ctx.styles))
        try:
            self.convert_current()
            self._finish()
        finally:
            ctx.close()
            ctx.output.flush()
        logger.info("Conversion finished with %d warning(s)", ctx.diagnostics.warning_count)
        return ctx.diagnostics.warning_count

    def convert_current(self) -> None:
        """Convert until the current source context is exhausted or the document ends."""
        src = self.ctx.source
        while not self.ctx.finished:
            c = src.next_char()
            if c == END:
                return
            self._dispatch(c)

    def convert_string(self, text: str) -> None:
        """Convert *text* as if it appeared at the current position."""
        if not text:
            return
        self.ctx.source.push_string(text)
        try:
            self.convert_current()
        finally:
            self.ctx.source.pop()

    def insert_style(self, name: str) -> None:
        codes = self.ctx.styles.codes(name)
        if codes is None:
            self.ctx.diagnostics.warn_once(f"style:{name}", "Style <%s> is not defined", name)
            return
        self.ctx.output.write(codes + " ")

    def _finish(self) -> None:
        ctx = self.ctx
        ctx.preamble.close()
        ctx.paragraph.end_paragraph()
        if ctx.output.depth > 1:
            ctx.diagnostics.warning("Mismatched '{' in RTF file, Conversion may cause problems.")
            ctx.diagnostics.warning(
                "Try translating with 'latex2rtf -Z%d %s'",
                ctx.output.depth - 1, ctx.options.input_path or "",
            )
        ctx.output.write("}\n")
        ctx.output.write("}" * ctx.options.safety_braces)

    # ── Characters ───────────────────────────────────────────────────

    def _horizontal(self) -> None:
        if self.ctx.paragraph.mode == Mode.VERTICAL:
            self.ctx.paragraph.set_mode(Mode.HORIZONTAL)

    def _dispatch(self, c: str) -> None:
        ctx = self.ctx
        src = ctx.source
        out = ctx.output
        in_math = ctx.paragraph.mode in _MATH_MODES

        if c == " ":
            self._space()
            return
        if c == "\n":
            self._newline()
            return
        self._after_space = False

        if c == "\\":
            self._command()
        elif c == "%":
            self._comment()
        elif c == "{":
            out.write("{")
        elif c == "}":
            out.write("}")
        elif c == "$":
            self._dollar()
        elif in_math and c in "^_":
            self._script(c)
        elif c == "~":
            self._horizontal()
            out.write("\\~")
        elif not in_math and c in "`'":
            self._horizontal()
            nxt = src.next_char()
            if c + nxt in QUOTES:
                out.write(QUOTES[c + nxt])
            else:
                src.pushback(nxt)
                out.write(QUOTES[c])
        elif not in_math and c == "-":
            self._horizontal()
            self._dash()
        else:
            self._horizontal()
            out.put_char(c)

    def _space(self) -> None:
        mode = self.ctx.paragraph.mode
        if mode == Mode.VERTICAL or mode in _MATH_MODES or self._after_space:
            return
        self.ctx.output.put_char(" ")
        self._after_space = True

    def _newline(self) -> None:
        """A single line break is a space; an empty line ends the paragraph."""
        src = self.ctx.source
        c = src.next_char()
        while c == " ":
            c = src.next_char()
        if c != "\n":
            src.pushback(c)
            self._space()
            return
        while c in (" ", "\n"):
            c = src.next_char()
        src.pushback(c)
        self._paragraph_break()

    def _paragraph_break(self) -> None:
        fmt = self.ctx.paragraph
        self._after_space = False
        if fmt.mode in _MATH_MODES:
            logger.debug("Ignoring paragraph break in math mode")
            return
        fmt.end_paragraph()

    def _comment(self) -> None:
        src = self.ctx.source
        c = src.next_char()
        while c not in ("\n", END):
            c = src.next_char()
        c = src.next_char()
        while c == " ":
            c = src.next_char()
        if c == "\n":
            self._paragraph_break()
        else:
            src.pushback(c)

    def _dash(self) -> None:
        src = self.ctx.source
        c2 = src.next_char()
        if c2 != "-":
            src.pushback(c2)
            self.ctx.output.put_char("-")
            return
        c3 = src.next_char()
        if c3 == "-":
            self.ctx.output.write(DASHES["---"])
        else:
            src.pushback(c3)
            self.ctx.output.write(DASHES["--"])

    # ── Math ─────────────────────────────────────────────────────────

    def _dollar(self) -> None:
        src = self.ctx.source
        mode = self.ctx.paragraph.mode
        if mode == Mode.DISPLAY_MATH:
            nxt = src.next_char()
            if nxt != "$":
                src.pushback(nxt)
            self.end_display(numbered=False)
        elif mode == Mode.MATH:
            self.end_inline()
        else:
            nxt = src.next_char()
            if nxt == "$":
                self.begin_display()
            else:
                src.pushback(nxt)
                self.begin_inline()

    def begin_inline(self) -> None:
        fmt = self.ctx.paragraph
        self._horizontal()
        self._math_saved.append(fmt.mode)
        fmt.set_mode(Mode.MATH, forced=True)
        self.ctx.output.write("{\\i ")

    def end_inline(self) -> None:
        self.ctx.output.write("}")
        previous = self._math_saved.pop() if self._math_saved else Mode.HORIZONTAL
        self.ctx.paragraph.set_mode(previous, forced=True)

    def begin_display(self) -> None:
        ctx = self.ctx
        fmt = ctx.paragraph
        fmt.end_paragraph()
        ctx.equation_label = None
        fmt.push_alignment(Alignment.CENTER)
        fmt.start_paragraph("equation", IndentPolicy.NO_INDENT_EVER)
        fmt.set_mode(Mode.DISPLAY_MATH, forced=True)
        ctx.output.write("{\\i ")

    def end_display(self, numbered: bool) -> None:
        ctx = self.ctx
        fmt = ctx.paragraph
        out = ctx.output
        out.write("}")

        label = ctx.equation_label
        ctx.equation_label = None
        if numbered:
            number = ctx.lengths.increment_counter("equation")
            out.write("\\tab ")
            if label:
                ctx.bookmarks.ensure(label, lambda: out.put_text(f"({number})"))
            else:
                out.put_text(f"({number})")
        elif label:
            ctx.bookmarks.ensure(label, "")

        fmt.set_mode(Mode.HORIZONTAL, forced=True)
        fmt.end_paragraph()
        fmt.pop_alignment()
        fmt.indent(Indent.INHIBIT)

    def _script(self, c: str) -> None:
        arg = get_brace_param(self.ctx.source)
        self.ctx.output.write("{\\super " if c == "^" else "{\\sub ")
        self.convert_string(arg)
        self.ctx.output.write("}")

    # ── Commands ─────────────────────────────────────────────────────

    def _command(self) -> None:
        ctx = self.ctx
        src = ctx.source
        name = get_command_name(src)
        if not name:
            return

        if not (name[0].isalpha() or (name[0] == "@" and len(name) > 1)):
            self._control_symbol(name)
            return

        skip_blanks(src)
        if name in ("begin", "end"):
            self._environment(name == "begin")
            return
        if self.registry.call(name, self):
            return

        symbol = SYMBOL_MAP.get(name)
        if symbol is not None:
            self._horizontal()
            ctx.output.put_text(symbol)
            return
        ctx.diagnostics.warn_once(f"command:{name}", "Command \\%s ignored", name)

    def _control_symbol(self, c: str) -> None:
        ctx = self.ctx
        src = ctx.source
        out = ctx.output
        mode = ctx.paragraph.mode

        if c == "\\":
            get_star(src)
            get_bracket_param(src)
            if mode in (Mode.HORIZONTAL, Mode.RESTRICTED_HORIZONTAL):
                out.write("\\line ")
        elif c in _ESCAPED_SPECIALS:
            self._horizontal()
            out.put_char(c)
        elif c == "[":
            self.begin_display()
        elif c == "]":
            if mode == Mode.DISPLAY_MATH:
                self.end_display(numbered=False)
        elif c == "(":
            if mode != Mode.MATH:
                self.begin_inline()
        elif c == ")":
            if mode == Mode.MATH:
                self.end_inline()
        elif c in ACCENTS:
            self._horizontal()
            out.put_text(accented(get_brace_param(src), c))
        elif c in (" ", ",", "\n"):
            self._horizontal()
            out.put_char(" ")
        elif c in "-/@":
            pass
        else:
            ctx.diagnostics.warn_once(f"command:{c}", "Command \\%s ignored", c)

    def _environment(self, begin: bool) -> None:
        ctx = self.ctx
        name = get_brace_param(ctx.source).strip()
        logger.debug("%s{%s}", "\\begin" if begin else "\\end", name)
        if self.registry.call_env(name, self, begin):
            return
        if begin:
            ctx.diagnostics.warn_once(f"env:{name}", "Environment <%s> ignored", name)


# ---------------------------------------------------------------------------
# Handlers owned by the converter
# ---------------------------------------------------------------------------

def cmd_input(conv: Converter, code: str) -> None:
    """``\\input{file}`` and ``\\include{file}`` (which also starts a new page)."""
    ctx = conv.ctx
    name = get_brace_param(ctx.source).strip()
    if not name:
        return
    if code == "include":
        ctx.paragraph.end_paragraph()
        ctx.paragraph.new_page()
    try:
        ctx.source.push_file(name)
    except SourceError as e:
        ctx.diagnostics.warning("%s ... skipping \\%s", e, code)
        return
    try:
        conv.convert_current()
    finally:
        ctx.source.pop()


def cmd_accent(conv: Converter, code: str) -> None:
    conv._horizontal()
    conv.ctx.output.put_text(accented(get_brace_param(conv.ctx.source), code))


def env_display_math(conv: Converter, code: bool, on: bool) -> None:
    if on:
        conv.begin_display()
    else:
        conv.end_display(numbered=code)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _options(options: ConversionOptions | None) -> ConversionOptions:
    return options if options is not None else ConversionOptions.from_settings(settings)


def convert_stream(
    latex_content: str,
    stream: IO[str],
    options: ConversionOptions | None = None,
    profile: RtfProfile | None = None,
) -> int:
    """Convert *latex_content* and write RTF to *stream*; return the warning count."""
    conv = Converter(_options(options), stream, profile)
    conv.ctx.source.push_string(latex_content, conv.ctx.options.input_path or "<string>")
    return conv.run()


def convert_latex_to_rtf(
    latex_content: str,
    output_path: str | Path,
    options: ConversionOptions | None = None,
    profile: RtfProfile | None = None,
) -> int:
    """Convert LaTeX content to an RTF file.

    Parameters
    ----------
    latex_content : str
        LaTeX source, a full document or a fragment of body text.
    output_path : str | Path
        Where to save the generated .rtf file.
    options : ConversionOptions, optional
        Run options; defaults come from :data:`latex2rtf.config.settings`.
    profile : RtfProfile, optional
        Document defaults; loaded from ``options.profile_path`` when omitted.

    Returns the number of warnings reported.
    """
    output_path = Path(output_path)
    with open(output_path, "w", encoding="ascii", errors="replace", newline="\n") as f:
        count = convert_stream(latex_content, f, options, profile)
    logger.info("Saved RTF to %s", output_path)
    return count


def convert_file(
    tex_path: str | Path,
    output_path: str | Path | None = None,
    options: ConversionOptions | None = None,
    profile: RtfProfile | None = None,
) -> int:
    """Convert the file *tex_path*; the output defaults to ``<name>.rtf``.

    Raises :class:`FatalConversionError` if the input cannot be opened.
    """
    opts = _options(options)
    opts.input_path = str(tex_path)
    tex = Path(tex_path)
    if not tex.exists() and not tex.suffix and tex.with_suffix(".tex").exists():
        tex = tex.with_suffix(".tex")
        opts.input_path = str(tex)
    if output_path is None:
        output_path = opts.output_path or tex.with_suffix(".rtf")

    output_path = Path(output_path)
    with open(output_path, "w", encoding="ascii", errors="replace", newline="\n") as f:
        conv = Converter(opts, f, profile)
        try:
            conv.ctx.source.push_file(str(tex.resolve()))
        except SourceError as e:
            conv.ctx.close()
            conv.ctx.diagnostics.fatal("%s", e)
        count = conv.run()
    logger.info("Saved RTF to %s", output_path)
    return count
