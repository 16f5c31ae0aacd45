"""Commands for cross references, citations, bibliographies and acronyms.

Labels and citations are resolved through the ``.aux`` file written by
a previous LaTeX run.  With fields enabled, references become RTF
REF/PAGEREF fields pointing at bookmarks so that a word processor can
update them; the field result is the number LaTeX computed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .auxfiles import AuxShape
from .bookmarks import normalize_signet
from .citations import BibStyle, CiteCode, PunctStyle
from .errors import SourceError
from .parser import (
    extract_all_brace_groups,
    get_angle_param,
    get_brace_param,
    get_bracket_param,
    get_star,
    skip_blanks,
    strip_outer_braces,
)
from .vertical import IndentPolicy, Mode

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .context import ConversionContext
    from .converter import Converter

logger = logging.getLogger(__name__)


def _enter_horizontal(ctx: ConversionContext) -> None:
    if ctx.paragraph.mode == Mode.VERTICAL:
        ctx.paragraph.set_mode(Mode.HORIZONTAL)


# ---------------------------------------------------------------------------
# Labels and references
# ---------------------------------------------------------------------------

LABEL = "label"
REF = "ref"
EQREF = "eqref"
VREF = "vref"
PAGEREF = "pageref"
NAMEREF = "nameref"


def _field(conv: Converter, instruction: str, emit) -> None:
    """Write a field whose result is produced by *emit* (or plain text without fields)."""
    ctx = conv.ctx
    with ctx.paragraph.field():
        if ctx.options.use_fields:
            ctx.output.write(f"{{\\field{{\\*\\fldinst{{\\lang1024 {instruction} }}}}{{\\fldrslt{{")
        emit()
        if ctx.options.use_fields:
            ctx.output.write("}}}")


def cmd_label(conv: Converter, code: str) -> None:
    """\\label, \\ref, \\eqref, \\vref, \\pageref and \\nameref."""
    ctx = conv.ctx
    get_bracket_param(ctx.source)
    text = get_brace_param(ctx.source).strip()
    if not text:
        return

    if code == LABEL:
        if ctx.paragraph.mode == Mode.DISPLAY_MATH:
            ctx.equation_label = text
            logger.debug("Equation label is <%s>", text)
        else:
            ctx.bookmarks.ensure(text, "")
        return

    _enter_horizontal(ctx)
    signet = normalize_signet(text)

    if code in (REF, EQREF, VREF):
        found = ctx.aux.lookup("newlabel", text, AuxShape.FIRST_OF_PAIR)
        if code == EQREF:
            ctx.output.write("(")

        def emit_number():
            if found is not None:
                conv.convert_string(found)
            else:
                ctx.output.write("?")

        _field(conv, f"REF BM{signet} \\\\* MERGEFORMAT", emit_number)
        if code == EQREF:
            ctx.output.write(")")
        if code == VREF:
            ctx.output.write(" ")
            _field(conv, f"PAGEREF BM{signet} \\\\p", lambda: ctx.output.write(signet))
        return

    if code == PAGEREF:
        _field(conv, f"PAGEREF BM{signet} \\\\* MERGEFORMAT", lambda: ctx.output.write(signet))
        return

    if code == NAMEREF:
        # {2}{1}{Section title\relax }{section.2}{}
        found = ctx.aux.lookup("newlabel", text, AuxShape.SCALAR)
        groups = extract_all_brace_groups(found) if found else []
        if len(groups) >= 3:
            conv.convert_string(groups[2])


# ---------------------------------------------------------------------------
# Bibliography
# ---------------------------------------------------------------------------

def cmd_bibliography(conv: Converter, code) -> None:
    """\\bibliography{...}: convert the ``.bbl`` file in place."""
    ctx = conv.ctx
    get_brace_param(ctx.source)
    bbl_path = str(ctx.bbl.bbl_path)
    try:
        ctx.source.push_file(bbl_path)
    except SourceError:
        ctx.diagnostics.warning("Cannot open bibliography file.  Create %s using BibTeX", bbl_path)
        return

    ctx.citations.in_bibliography = True
    try:
        conv.convert_current()
    finally:
        ctx.source.pop()
        ctx.citations.in_bibliography = False


def env_thebibliography(conv: Converter, code, on: bool) -> None:
    ctx = conv.ctx
    fmt = ctx.paragraph
    if on:
        get_brace_param(ctx.source)     # widest label
        fmt.end_paragraph()
        fmt.add_vspace(ctx.lengths.get_length("medskipamount"))
        fmt.start_paragraph("bibliography", IndentPolicy.NO_INDENT_EVER)
        ctx.output.write("{\\plain\\b\\fs32 ")
        conv.convert_string(ctx.profile.bibliography_title(ctx.document_type))
        ctx.output.write("}")
        fmt.end_paragraph()
        fmt.add_vspace(ctx.lengths.get_length("smallskipamount"))

        hang = ctx.profile.paragraph.bibliography_hang
        ctx.list_saves.append(fmt.begin_list(fmt.state.left_indent + hang, -hang))
    else:
        fmt.end_paragraph()
        fmt.add_vspace(ctx.lengths.get_length("smallskipamount"))
        if ctx.list_saves:
            fmt.end_list(ctx.list_saves.pop())


def cmd_bibitem(conv: Converter, code) -> None:
    ctx = conv.ctx
    engine = ctx.citations
    fmt = ctx.paragraph

    fmt.end_paragraph()
    fmt.start_paragraph("bibitem", IndentPolicy.FIRST_OF_SECTION)

    label = get_bracket_param(ctx.source)
    key = get_brace_param(ctx.source).strip()
    found = ctx.aux.lookup("bibcite", key, AuxShape.SCALAR)

    if label is not None and found is None:
        if not ctx.aux.missing:
            ctx.diagnostics.warn_once(
                "bibitem-unresolved",
                "Cannot locate \\bibcite{%s} in .aux file ... the .tex file probably needs to be LaTeXed again",
                key,
            )
        ctx.output.write("[")
        conv.convert_string(label)
        ctx.output.write("]")
    elif engine.bib_style == BibStyle.STANDARD or (
        engine.bib_style == BibStyle.NATBIB and engine.punct.style != PunctStyle.ALPHA
    ):
        number = found if found is not None else key
        if engine.bib_style == BibStyle.NATBIB:
            number = extract_all_brace_groups(number)[0] if number.startswith("{") else number
        ctx.output.write("[")
        ctx.bookmarks.ensure(key, lambda: conv.convert_string(number), prefix="BIB_")
        ctx.output.write("]\\tab\n")

    skip_blanks(ctx.source)


def cmd_bibentry(conv: Converter, code) -> None:
    ctx = conv.ctx
    key = get_brace_param(ctx.source).strip()
    entry = ctx.bbl.fetch(key)
    if entry is not None:
        _enter_horizontal(ctx)
        conv.convert_string(entry)


def cmd_discard(conv: Converter, code: int) -> None:
    """Read and drop *code* brace arguments (\\nocite, \\bibliographystyle, ...)."""
    for _ in range(code or 1):
        get_brace_param(conv.ctx.source)


def cmd_nothing(conv: Converter, code) -> None:
    pass


def cmd_bibpunct(conv: Converter, code) -> None:
    r"""\bibpunct[postnote]{open}{close}{sep}{style}{author-date}{numbers}."""
    src = conv.ctx.source
    punct = conv.ctx.citations.punct
    post = get_bracket_param(src)
    if post is not None:
        punct.postnote_sep = post
    punct.open = get_brace_param(src)
    punct.close = get_brace_param(src)
    punct.cite_sep = get_brace_param(src)
    style = get_brace_param(src)
    if style.startswith("s"):
        punct.style = PunctStyle.SUPER
    elif style.startswith("n"):
        punct.style = PunctStyle.NUMBER
    elif style.startswith("a"):
        punct.style = PunctStyle.ALPHA
    punct.author_date_sep = get_brace_param(src)
    punct.numbers_sep = get_brace_param(src)
    punct.cite_sep_touched = True
    punct.paren_touched = True


def cmd_natexlab(conv: Converter, code) -> None:
    letter = get_brace_param(conv.ctx.source)
    if conv.ctx.citations.punct.style == PunctStyle.ALPHA:
        conv.convert_string(letter)


def cmd_harvard(conv: Converter, code: str) -> None:
    """\\harvarditem, \\harvardyearleft, \\harvardyearright and \\harvardand."""
    ctx = conv.ctx
    if code == "item":
        get_bracket_param(ctx.source)
        for _ in range(3):
            get_brace_param(ctx.source)
    elif code == "left":
        ctx.output.write("(")
    elif code == "right":
        ctx.output.write(")")
    elif code == "and":
        ctx.output.write("&")


def cmd_citename(conv: Converter, code) -> None:
    """authordate ``\\citename{}``: dropped inside ``\\shortcite``."""
    name = get_brace_param(conv.ctx.source)
    if not conv.ctx.citations.suppress_name:
        conv.convert_string(name)


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------

def cmd_cite(conv: Converter, code: CiteCode) -> None:
    """\\cite for standard LaTeX, apalike, authordate and apacite."""
    ctx = conv.ctx
    engine = ctx.citations
    pretext = None
    if engine.bib_style == BibStyle.APACITE:
        pretext = get_angle_param(ctx.source)
    option = get_bracket_param(ctx.source)
    text = get_brace_param(ctx.source)
    _enter_horizontal(ctx)
    engine.cite(code, text, option, pretext)


def cmd_natbib_cite(conv: Converter, code: tuple[CiteCode, CiteCode]) -> None:
    ctx = conv.ctx
    plain, starred = code
    cite_code = starred if get_star(ctx.source) else plain
    pretext = get_bracket_param(ctx.source)
    option = get_bracket_param(ctx.source)
    text = get_brace_param(ctx.source)
    _enter_horizontal(ctx)
    ctx.citations.cite_natbib(cite_code, text, pretext, option)


def cmd_harvard_cite(conv: Converter, code: tuple[CiteCode, CiteCode]) -> None:
    ctx = conv.ctx
    plain, starred = code
    cite_code = starred if get_star(ctx.source) else plain
    posttext = get_bracket_param(ctx.source)
    text = get_brace_param(ctx.source)
    pretext = get_brace_param(ctx.source) if cite_code == CiteCode.AFFIXED else None
    _enter_horizontal(ctx)
    ctx.citations.cite_harvard(cite_code, text, posttext, pretext)


def cmd_bcay(conv: Converter, code) -> None:
    src = conv.ctx.source
    long_names = get_brace_param(src)
    short_names = get_brace_param(src)
    year = get_brace_param(src)
    conv.ctx.citations.bcay(long_names, short_names, year)


_NATBIB_COMMANDS = {
    "cite": (CiteCode.CITE, CiteCode.CITE),
    "citet": (CiteCode.T, CiteCode.T_STAR),
    "Citet": (CiteCode.T_CAP, CiteCode.T_CAP),
    "citep": (CiteCode.P, CiteCode.P_STAR),
    "Citep": (CiteCode.P_CAP, CiteCode.P_CAP),
    "citealt": (CiteCode.ALT, CiteCode.ALT_STAR),
    "Citealt": (CiteCode.ALT_CAP, CiteCode.ALT_CAP),
    "citealp": (CiteCode.ALP, CiteCode.ALP_STAR),
    "Citealp": (CiteCode.ALP_CAP, CiteCode.ALP_CAP),
    "citeauthor": (CiteCode.AUTHOR, CiteCode.AUTHOR_STAR),
    "Citeauthor": (CiteCode.AUTHOR_CAP, CiteCode.AUTHOR_CAP),
    "citeyear": (CiteCode.YEAR, CiteCode.YEAR),
    "citeyearpar": (CiteCode.YEAR_P, CiteCode.YEAR_P),
    "citenum": (CiteCode.NUM, CiteCode.NUM),
}

_HARVARD_COMMANDS = {
    "cite": (CiteCode.CITE, CiteCode.CITE),
    "citeasnoun": (CiteCode.AS_NOUN, CiteCode.AS_NOUN),
    "possessivecite": (CiteCode.POSSESSIVE, CiteCode.POSSESSIVE),
    "citeyear": (CiteCode.YEAR, CiteCode.YEAR_STAR),
    "citename": (CiteCode.NAME, CiteCode.NAME),
    "citeaffixed": (CiteCode.AFFIXED, CiteCode.AFFIXED),
}

_APACITE_COMMANDS = {
    "cite": CiteCode.CITE,
    "citeA": CiteCode.CITE_A,
    "citeauthor": CiteCode.CITE_AUTHOR,
    "citeNP": CiteCode.CITE_NP,
    "fullcite": CiteCode.FULL,
    "fullciteA": CiteCode.FULL_A,
    "fullciteauthor": CiteCode.FULL_AUTHOR,
    "fullciteNP": CiteCode.FULL_NP,
    "shortcite": CiteCode.SHORT,
    "shortciteA": CiteCode.SHORT_A,
    "shortciteauthor": CiteCode.SHORT_AUTHOR,
    "shortciteNP": CiteCode.SHORT_NP,
    "citeyear": CiteCode.YEAR,
    "citeyearNP": CiteCode.YEAR_NP,
}


def use_natbib(registry: CommandRegistry) -> None:
    for name, codes in _NATBIB_COMMANDS.items():
        registry.add(name, cmd_natbib_cite, codes)


def use_harvard(registry: CommandRegistry) -> None:
    for name, codes in _HARVARD_COMMANDS.items():
        registry.add(name, cmd_harvard_cite, codes)


def use_apacite(registry: CommandRegistry) -> None:
    for name, code in _APACITE_COMMANDS.items():
        registry.add(name, cmd_cite, code)


def use_authordate(registry: CommandRegistry) -> None:
    registry.add("shortcite", cmd_cite, CiteCode.SHORT)
    registry.add("citename", cmd_citename)


# ---------------------------------------------------------------------------
# apacite text macros
# ---------------------------------------------------------------------------

_APA_TEXT = {
    "BBOP": " (", "BBAA": "&", "BBAB": "and", "BBAY": ", ", "BBC": "; ",
    "BBN": ", ", "BBCP": ")", "BBOQ": "", "BBCQ": "", "BCBT": ",", "BCBL": ",",
    "BIP": "in press", "BAnd": "and", "BED": "Ed.", "BEDS": "Eds.",
    "BTRANS": "Trans.", "BTRANSS": "Trans.", "BCHAIR": "Chair", "BCHAIRS": "Chairs",
    "BVOL": "Vol.", "BVOLS": "Vols.", "BNUM": "No.", "BNUMS": "Nos.",
    "BEd": "ed.", "BPG": "p.", "BPGS": "pp.", "BTR": "Tech. Rep.",
    "BPhD": "Doctoral dissertation", "BUPhD": "Unpublished doctoral dissertation",
    "BMTh": "Master's thesis", "BUMTh": "Unpublished master's thesis",
    "BOWP": "Original work published ", "BREPR": "Reprinted from ",
    "BPBI": ". ", "BIn": "In",
}

# name -> (text before, [(pre, post) per argument or None to drop it], text after)
_APA_ARGS = {
    "APACyear": ("", [("", "")], ""),
    "APACciteatitle": ("", [("\\ldblquote ", "\\rdblquote ")], ""),
    "APACcitebtitle": ("", [("{\\i ", "}")], ""),
    "APACinsertmetastar": ("", [None], ""),
    "APACrefYearMonthDay": ("(", [("", ""), (", ", ""), (" ", "")], ")"),
    "APACrefatitle": ("", [None, ("", "")], ""),
    "APACrefbtitle": ("", [None, ("{\\i ", "}")], ""),
    "APACjournalVolNumPages": ("", [("{\\i ", "}"), (", {\\i ", "}"), ("(", ")"), (", ", "")], ""),
    "APACrefYear": ("", [("(", ")")], ""),
    "APACaddressPublisher": ("", [("", ": "), ("", "")], ""),
    "PrintBackRefs": ("", [None], ""),
    "PrintOrdinal": ("", [("", "")], ""),
    "PrintCardinal": ("", [("", "")], ""),
    "APACaddressPublisherEqAuth": ("", [("", ": Author"), None], ""),
    "APACrefaetitle": ("", [None, ("[", "]")], ""),
    "APACrefbetitle": ("", [None, ("[", "]")], ""),
    "APACbVolEdTR": ("", [None, ("(", ")")], ""),
    "APACbVolEdTRpgs": ("(", [None, ("", ""), (", ", "")], ")"),
    "APACaddressInstitution": ("", [("", ""), (": ", "")], ""),
    "APAChowpublished": ("", [("", "")], ""),
    "APACorigyearnote": ("", [("(Original work published ", ")"), None], ""),
    "APACrefnote": ("", [("(", ")")], ""),
    "AX": ("", [None], ""),
}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def cmd_apa_text(conv: Converter, code: str) -> None:
    conv.ctx.output.write(code)


def cmd_apa_args(conv: Converter, code: tuple) -> None:
    ctx = conv.ctx
    before, params, after = code
    ctx.output.write(before)
    for wrap in params:
        arg = get_brace_param(ctx.source)
        if wrap is None or not arg:
            continue
        ctx.output.write(wrap[0])
        conv.convert_string(arg)
        ctx.output.write(wrap[1])
    ctx.output.write(after)


def cmd_apa_special(conv: Converter, code: str) -> None:
    ctx = conv.ctx
    engine = ctx.citations
    if code == "BOthers":
        get_brace_param(ctx.source)
        ctx.output.write("et al.")
    elif code == "BCnt":
        n = get_brace_param(ctx.source).strip()
        if n.isdigit() and int(n) > 0:
            ctx.output.write(chr(ord("a") + int(n) - 1))
    elif code == "BBA":
        ctx.output.write("&" if engine.paren or engine.in_bibliography else "and")
    elif code == "APACmonth":
        month = get_brace_param(ctx.source).strip()
        if month.isdigit() and 1 <= int(month) <= 12:
            conv.convert_string(_MONTHS[int(month) - 1])
    elif code == "APACmetastar":
        conv.convert_string("$\\star$")
    elif code == "APACorigjournalnote":
        year = get_brace_param(ctx.source)
        journal = get_brace_param(ctx.source)
        if journal:
            ctx.output.write("(Reprinted from {\\i ")
            conv.convert_string(journal)
            ctx.output.write("}")
        if year:
            ctx.output.write(", ")
            conv.convert_string(year)
        cmd_apa_args(conv, ("", [(", {\\i ", "}"), ("(", ")"), (", ", "")], ")"))


# ---------------------------------------------------------------------------
# Acronyms
# ---------------------------------------------------------------------------

AC, ACF, ACS, ACL = "ac", "acf", "acs", "acl"


def _acronym_from_aux(ctx: ConversionContext, key: str) -> tuple[str, str] | None:
    """Split ``\\newacro{key}[short]{long}`` into (short, long)."""
    found = ctx.aux.lookup("newacro", key, AuxShape.BRACKET)
    if found is None:
        return None
    depth = 0
    for i, c in enumerate(found):
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
        elif c == "]" and depth == 0:
            return found[:i], strip_outer_braces(found[i + 1:])
    return None


def _acro_counter(key: str) -> str:
    return f"ACRO~{key}"


def cmd_acronym(conv: Converter, code: tuple[str, bool]) -> None:
    r"""\ac, \acf, \acs, \acl and the plural forms; a star does not mark the acronym used."""
    ctx = conv.ctx
    kind, plural = code
    star = get_star(ctx.source)
    key = get_brace_param(ctx.source).strip()

    names = _acronym_from_aux(ctx, key)
    if names is None:
        ctx.diagnostics.warning("Undefined acronym '%s' not defined in .aux file", key)
        return
    short, long = names
    _enter_horizontal(ctx)

    if kind == AC:
        kind = ACS if ctx.lengths.get_counter(_acro_counter(key)) else ACF

    s = "s" if plural else ""
    if kind == ACF:
        conv.convert_string(long)
        conv.convert_string(f"{s} (")
        conv.convert_string(short)
        conv.convert_string(f"{s})")
    elif kind == ACS:
        conv.convert_string(short + s)
    elif kind == ACL:
        conv.convert_string(long + s)

    if not star:
        ctx.lengths.increment_counter(_acro_counter(key))


def cmd_acronym_used(conv: Converter, code) -> None:
    key = get_brace_param(conv.ctx.source).strip()
    conv.ctx.lengths.increment_counter(_acro_counter(key))


def cmd_acronym_reset(conv: Converter, code) -> None:
    conv.ctx.lengths.zero_prefixed("ACRO~")


def cmd_acrodef(conv: Converter, code) -> None:
    src = conv.ctx.source
    get_brace_param(src)
    get_bracket_param(src)
    get_brace_param(src)


def cmd_ac_hyperlink(conv: Converter, code) -> None:
    get_brace_param(conv.ctx.source)
    conv.convert_string(get_brace_param(conv.ctx.source))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register(registry: CommandRegistry) -> None:
    for name in (LABEL, REF, EQREF, VREF, PAGEREF, NAMEREF):
        registry.add(name, cmd_label, name)

    registry.add("cite", cmd_cite, CiteCode.CITE)
    registry.add("bibliography", cmd_bibliography)
    registry.add("bibitem", cmd_bibitem)
    registry.add("bibentry", cmd_bibentry)
    registry.add("nocite", cmd_discard, 1)
    registry.add("bibliographystyle", cmd_discard, 1)
    registry.add("newblock", cmd_nothing)
    registry.add("bibpunct", cmd_bibpunct)
    registry.add("natexlab", cmd_natexlab)
    registry.add("harvarditem", cmd_harvard, "item")
    registry.add("harvardyearleft", cmd_harvard, "left")
    registry.add("harvardyearright", cmd_harvard, "right")
    registry.add("harvardand", cmd_harvard, "and")
    registry.add("BCAY", cmd_bcay)
    registry.add_env("thebibliography", env_thebibliography)

    for name, text in _APA_TEXT.items():
        registry.add(name, cmd_apa_text, text)
    for name, args in _APA_ARGS.items():
        registry.add(name, cmd_apa_args, args)
    for name in ("BOthers", "BCnt", "BBA", "APACmonth", "APACmetastar", "APACorigjournalnote"):
        registry.add(name, cmd_apa_special, name)
    registry.add("unskip", cmd_nothing)

    for kind in (AC, ACF, ACS, ACL):
        registry.add(kind, cmd_acronym, (kind, False))
        registry.add(kind + "p", cmd_acronym, (kind, True))
    registry.add("acused", cmd_acronym_used)
    registry.add("acresetall", cmd_acronym_reset)
    registry.add("acrodef", cmd_acrodef)
    registry.add("AC@hyperlink", cmd_ac_hyperlink)
