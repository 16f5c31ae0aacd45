"""Document modes, paragraph formatting and the vertical-space commands.

The converter works in one pass, so a paragraph's RTF setup (alignment,
line spacing, space above, margins and first-line indent) has to be
written the moment the first character of the paragraph is seen.  The
commands in this module only change :class:`ParagraphState`; the
:class:`ParagraphFormatter` turns that state into ``\\pard...`` when the
mode moves from vertical to horizontal.
"""

from __future__ import annotations

import contextlib
import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from .output import OutputFilter
from .parser import get_bracket_param, get_brace_param, get_dimension, get_star

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .converter import Converter
    from .lengths import Lengths
    from .profile import ParagraphConfig

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    VERTICAL = "vertical"
    INTERNAL_VERTICAL = "internal vertical"
    HORIZONTAL = "horizontal"
    RESTRICTED_HORIZONTAL = "restricted horizontal"
    MATH = "math"
    DISPLAY_MATH = "displaymath"


class Alignment(str, enum.Enum):
    LEFT = "l"
    RIGHT = "r"
    CENTER = "c"
    JUSTIFIED = "j"


class IndentPolicy(enum.Enum):
    DEFAULT = "default"
    FIRST_OF_SECTION = "first"
    NO_INDENT_EVER = "title"


class Indent(enum.Enum):
    """Arguments of :meth:`ParagraphFormatter.indent`."""
    NONE = "none"
    INHIBIT = "inhibit"
    USUAL = "usual"


@dataclass
class ParagraphState:
    """Formatting applied to the next paragraph that opens."""
    alignment: Alignment = Alignment.JUSTIFIED
    line_spacing: int = 240
    left_indent: int = 0
    right_indent: int = 0
    vspace: int = 0                 # consumed by the next paragraph
    no_indent: bool = False
    inhibit_indent: bool = False
    suppress_next: bool = False     # set by a title paragraph, one shot
    new_page: bool = False
    new_column: bool = False
    next_policy: IndentPolicy = IndentPolicy.DEFAULT
    saved_alignments: list[Alignment] = field(default_factory=list)


class ParagraphFormatter:
    """Mode state machine plus the paragraph-opening RTF."""

    def __init__(
        self,
        output: OutputFilter,
        lengths: Lengths,
        config: ParagraphConfig | None = None,
    ):
        self.output = output
        self.lengths = lengths
        self.state = ParagraphState()
        self.first_paragraph_indent = False
        if config is not None:
            self.state.alignment = Alignment(config.alignment)
            self.state.line_spacing = config.line_spacing
            self.first_paragraph_indent = config.first_paragraph_indent
        self.mode = Mode.VERTICAL
        self.field_depth = 0
        self.list_depth = 0
        self.paragraphs_started = 0

    # ── Mode ─────────────────────────────────────────────────────────

    def current_mode(self) -> Mode:
        return self.mode

    def set_mode(self, target: Mode, forced: bool = False) -> None:
        """Switch to *target*, opening or closing a paragraph on the way.

        A forced change only assigns the mode.
        """
        if forced:
            logger.debug("Forcing mode change [%s] -> [%s]", self.mode.value, target.value)
            self.mode = target
            return

        if self.mode == Mode.VERTICAL and target == Mode.HORIZONTAL:
            policy = self.state.next_policy
            self.state.next_policy = IndentPolicy.DEFAULT
            self.start_paragraph("body", policy)

        if self.mode == Mode.HORIZONTAL and target == Mode.VERTICAL:
            self.end_paragraph()

        self.mode = target

    # ── Paragraphs ───────────────────────────────────────────────────

    def _first_line_indent(self, policy: IndentPolicy) -> int:
        st = self.state
        parindent = self.lengths.get_length("parindent")
        suppress = st.suppress_next
        st.suppress_next = False

        if policy == IndentPolicy.NO_INDENT_EVER:
            st.suppress_next = True
            return 0
        if policy == IndentPolicy.FIRST_OF_SECTION:
            if self.first_paragraph_indent or self.list_depth > 0:
                return parindent
            return 0
        if st.no_indent or st.inhibit_indent or suppress:
            return 0
        return parindent

    def start_paragraph(
        self,
        style: str = "body",
        policy: IndentPolicy = IndentPolicy.DEFAULT,
    ) -> None:
        """Write the RTF that opens a paragraph and enter horizontal mode."""
        st = self.state
        indent = self._first_line_indent(policy)
        logger.debug(
            "start_paragraph style=%s policy=%s mode=%s indent=%d",
            style, policy.value, self.mode.value, indent,
        )

        if st.new_page:
            self.output.write("\\page{} ")
            st.new_page = False
            st.new_column = False
        if st.new_column:
            self.output.write("\\column ")
            st.new_column = False

        parts = [f"\\pard\\q{st.alignment.value}\\sl{st.line_spacing}\\slmult1 "]
        if st.vspace > 0:
            parts.append(f"\\sb{st.vspace} ")
        st.vspace = 0
        if st.left_indent != 0:
            parts.append(f"\\li{st.left_indent}")
        if st.right_indent != 0:
            parts.append(f"\\ri{st.right_indent}")
        parts.append(f"\\fi{indent} ")
        self.output.write("".join(parts))
        self.paragraphs_started += 1

        self.set_mode(Mode.HORIZONTAL, forced=True)

        if self.list_depth == 0:
            st.no_indent = False
            st.inhibit_indent = policy == IndentPolicy.NO_INDENT_EVER

    def end_paragraph(self) -> None:
        """Close the current paragraph unless already vertical or inside a field."""
        if self.mode != Mode.VERTICAL and self.field_depth == 0:
            self.output.write("\\par\n")
            self.set_mode(Mode.VERTICAL, forced=True)
        self.state.inhibit_indent = False

    @contextlib.contextmanager
    def field(self) -> Iterator[None]:
        """Scope in which a paragraph break must not be written."""
        self.field_depth += 1
        try:
            yield
        finally:
            self.field_depth -= 1

    @property
    def in_field(self) -> bool:
        return self.field_depth > 0

    # ── State changes used by commands ───────────────────────────────

    def add_vspace(self, twips: int) -> None:
        self.end_paragraph()
        self.state.vspace = twips

    def indent(self, how: Indent) -> None:
        st = self.state
        if how == Indent.NONE:
            st.no_indent = True
        elif how == Indent.INHIBIT:
            st.inhibit_indent = True
        else:
            st.no_indent = False
            st.inhibit_indent = False

    def new_page(self) -> None:
        self.state.new_page = True

    def new_column(self) -> None:
        self.state.new_column = True

    def push_alignment(self, alignment: Alignment) -> None:
        self.state.saved_alignments.append(self.state.alignment)
        self.state.alignment = alignment

    def pop_alignment(self) -> None:
        if self.state.saved_alignments:
            self.state.alignment = self.state.saved_alignments.pop()
        else:
            logger.debug("Alignment stack empty, keeping %s", self.state.alignment.value)

    def begin_list(self, left_indent: int, parindent: int) -> tuple[int, int]:
        """Enter a hanging-indent list; returns the values to restore."""
        saved = (self.state.left_indent, self.lengths.get_length("parindent"))
        self.list_depth += 1
        self.state.left_indent = left_indent
        self.lengths.set_length("parindent", parindent)
        return saved

    def end_list(self, saved: tuple[int, int]) -> None:
        self.end_paragraph()
        self.list_depth = max(0, self.list_depth - 1)
        self.state.left_indent, parindent = saved
        self.lengths.set_length("parindent", parindent)
        self.indent(Indent.INHIBIT)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

VSPACE = "vspace"
SMALL_SKIP = "smallskipamount"
MEDIUM_SKIP = "medskipamount"
BIG_SKIP = "bigskipamount"

_SECTION_LEVELS = ("chapter", "section", "subsection", "subsubsection")


def cmd_par(conv: Converter, code) -> None:
    conv.ctx.paragraph.end_paragraph()


def cmd_indent(conv: Converter, code: Indent) -> None:
    conv.ctx.paragraph.indent(code)


def cmd_vspace(conv: Converter, code: str) -> None:
    """\\vspace{}, \\vspace*{}, \\smallskip, \\medskip and \\bigskip."""
    ctx = conv.ctx
    if code == VSPACE:
        get_star(ctx.source)
        amount = get_dimension(ctx.source, ctx.lengths)
    else:
        amount = ctx.lengths.get_length(code)
    ctx.paragraph.add_vspace(amount)


def cmd_new_page(conv: Converter, code: str) -> None:
    fmt = conv.ctx.paragraph
    fmt.end_paragraph()
    if code == "column":
        fmt.new_column()
    else:
        fmt.new_page()


def cmd_line_spacing(conv: Converter, code: int) -> None:
    conv.ctx.paragraph.state.line_spacing = code


def cmd_centering(conv: Converter, code: Alignment) -> None:
    fmt = conv.ctx.paragraph
    fmt.indent(Indent.NONE)
    fmt.state.alignment = code


def env_alignment(conv: Converter, code: Alignment, on: bool) -> None:
    """``center``, ``flushleft`` and ``flushright`` environments."""
    fmt = conv.ctx.paragraph
    fmt.end_paragraph()
    if on:
        fmt.push_alignment(code)
        fmt.indent(Indent.NONE)
    else:
        fmt.pop_alignment()
        fmt.indent(Indent.INHIBIT)


def _section_number(conv: Converter, level: str) -> str:
    lengths = conv.ctx.lengths
    value = lengths.increment_counter(level)
    idx = _SECTION_LEVELS.index(level)
    for lower in _SECTION_LEVELS[idx + 1:]:
        lengths.set_counter(lower, 0)

    top = 0 if conv.ctx.document_type in ("report", "book") else 1
    if idx < top:
        return str(value)
    parts = [str(lengths.get_counter(name)) for name in _SECTION_LEVELS[top:idx]]
    parts.append(str(value))
    return ".".join(parts)


def cmd_section(conv: Converter, level: str) -> None:
    """\\chapter, \\section, \\subsection and \\subsubsection (starred: unnumbered)."""
    ctx = conv.ctx
    starred = get_star(ctx.source)
    get_bracket_param(ctx.source)       # short title for the table of contents
    title = get_brace_param(ctx.source)

    if level == "chapter" and ctx.document_type == "article":
        level = "section"

    fmt = ctx.paragraph
    fmt.end_paragraph()
    if level == "chapter":
        fmt.new_page()
    number = "" if starred else _section_number(conv, level)
    fmt.start_paragraph(level, IndentPolicy.NO_INDENT_EVER)
    ctx.output.write("{")
    conv.insert_style(level)
    if level == "chapter" and number:
        ctx.output.put_text(f"Chapter {number}")
        ctx.output.write("\\line ")
    elif number:
        ctx.output.put_text(f"{number}  ")
    conv.convert_string(title)
    ctx.output.write("}")
    fmt.end_paragraph()
    fmt.state.next_policy = IndentPolicy.FIRST_OF_SECTION


def cmd_text_format(conv: Converter, code: str) -> None:
    """\\textbf{} and friends: convert the argument inside an RTF group."""
    ctx = conv.ctx
    text = get_brace_param(ctx.source)
    if ctx.paragraph.mode == Mode.VERTICAL:
        ctx.paragraph.set_mode(Mode.HORIZONTAL)
    ctx.output.write("{" + code + " ")
    conv.convert_string(text)
    ctx.output.write("}")


def cmd_font_declaration(conv: Converter, code: str) -> None:
    conv.ctx.output.write(code + " ")


def register(registry: CommandRegistry) -> None:
    registry.add("par", cmd_par)
    registry.add("noindent", cmd_indent, Indent.NONE)
    registry.add("indent", cmd_indent, Indent.USUAL)
    registry.add("vspace", cmd_vspace, VSPACE)
    registry.add("smallskip", cmd_vspace, SMALL_SKIP)
    registry.add("medskip", cmd_vspace, MEDIUM_SKIP)
    registry.add("bigskip", cmd_vspace, BIG_SKIP)
    registry.add("newpage", cmd_new_page, "page")
    registry.add("clearpage", cmd_new_page, "page")
    registry.add("cleardoublepage", cmd_new_page, "page")
    registry.add("newcolumn", cmd_new_page, "column")
    registry.add("doublespacing", cmd_line_spacing, 480)
    registry.add("singlespacing", cmd_line_spacing, 240)
    registry.add("centering", cmd_centering, Alignment.CENTER)
    registry.add("raggedright", cmd_centering, Alignment.LEFT)
    registry.add("raggedleft", cmd_centering, Alignment.RIGHT)
    for level in _SECTION_LEVELS:
        registry.add(level, cmd_section, level)

    registry.add("textbf", cmd_text_format, "\\b")
    registry.add("textit", cmd_text_format, "\\i")
    registry.add("emph", cmd_text_format, "\\i")
    registry.add("underline", cmd_text_format, "\\ul")
    registry.add("texttt", cmd_text_format, "\\f2")
    registry.add("bf", cmd_font_declaration, "\\b")
    registry.add("it", cmd_font_declaration, "\\i")
    registry.add("em", cmd_font_declaration, "\\i")

    registry.add_env("center", env_alignment, Alignment.CENTER)
    registry.add_env("flushleft", env_alignment, Alignment.LEFT)
    registry.add_env("flushright", env_alignment, Alignment.RIGHT)
