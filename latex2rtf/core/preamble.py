"""Preamble commands: document class, packages and the document environment.

Everything between ``\\documentclass`` and ``\\begin{document}`` is
converted into a throw-away buffer, so only the side effects of the
preamble commands (document type, bibliography package, punctuation)
reach the RTF file.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import xrefs
from .citations import BibStyle, PunctStyle
from .parser import get_brace_param, get_bracket_param, split_keys
from .vertical import Mode

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .converter import Converter

logger = logging.getLogger(__name__)

_DOCUMENT_TYPES = ("article", "report", "book")

_NATBIB_PARENS = {
    "round": ("(", ")"),
    "square": ("[", "]"),
    "curly": ("\\{", "\\}"),
    "angle": ("<", ">"),
}

# natbib documents "colon" as a synonym for "semicolon"
_NATBIB_SEPARATORS = {"semicolon": ";", "colon": ";", "comma": ","}

_AUTHORDATE = ("authordate1", "authordate2", "authordate3", "authordate4", "authordate1-4")

# Commands that take no arguments and should be silently skipped
_SKIP_COMMANDS = (
    "maketitle", "tableofcontents", "protect", "relax", "normalfont",
    "frontmatter", "mainmatter", "backmatter", "appendix", "hfill", "vfill",
)

# Commands that take one {} arg but should be skipped entirely
_SKIP_WITH_ARG = (
    "pagestyle", "thispagestyle", "pagenumbering", "hypersetup",
    "title", "author", "date", "linespread",
)


def cmd_documentclass(conv: Converter, code) -> None:
    """``\\documentclass[opts]{class}``: record the type and start discarding output."""
    ctx = conv.ctx
    get_bracket_param(ctx.source)
    name = get_brace_param(ctx.source).strip()
    ctx.document_type = name if name in _DOCUMENT_TYPES else "article"
    logger.info("Document class %s (type %s)", name, ctx.document_type)

    ctx.preamble.close()
    ctx.preamble.enter_context(ctx.output.redirected())


def _use_natbib(conv: Converter, options: list[str]) -> None:
    engine = conv.ctx.citations
    engine.bib_style = BibStyle.NATBIB
    xrefs.use_natbib(conv.registry)

    for opt in options:
        if opt == "numbers":
            engine.punct.style = PunctStyle.NUMBER
        elif opt == "super":
            engine.punct.style = PunctStyle.SUPER
        elif opt == "sort":
            engine.sorted = True
        elif opt == "compress":
            engine.compressed = True
        elif opt == "sort&compress":
            engine.sorted = True
            engine.compressed = True
        elif opt == "longnamesfirst":
            engine.longnamesfirst = True
        elif opt in _NATBIB_PARENS:
            engine.punct.set_parens(*_NATBIB_PARENS[opt])
        elif opt in _NATBIB_SEPARATORS:
            engine.punct.set_separator(_NATBIB_SEPARATORS[opt])
        else:
            logger.debug("Ignoring natbib option %r", opt)


def _use_package(conv: Converter, package: str, options: list[str]) -> None:
    ctx = conv.ctx
    engine = ctx.citations
    logger.debug("Package %s %s", package, options)

    if package == "natbib":
        _use_natbib(conv, options)
    elif package == "cite":
        engine.sorted = True
        engine.compressed = True
    elif package == "harvard":
        engine.bib_style = BibStyle.HARVARD
        xrefs.use_harvard(conv.registry)
    elif package == "apacite":
        engine.bib_style = BibStyle.APACITE
        xrefs.use_apacite(conv.registry)
    elif package == "apalike":
        engine.bib_style = BibStyle.APALIKE
    elif package in _AUTHORDATE:
        engine.bib_style = BibStyle.AUTHORDATE
        xrefs.use_authordate(conv.registry)
    elif package == "babel":
        if "french" in options or "francais" in options:
            ctx.paragraph.first_paragraph_indent = True


def cmd_usepackage(conv: Converter, code) -> None:
    """``\\usepackage[opts]{pkg1,pkg2}``; unknown packages are accepted silently."""
    src = conv.ctx.source
    options = split_keys(get_bracket_param(src) or "")
    for package in split_keys(get_brace_param(src)):
        _use_package(conv, package, options)


def env_document(conv: Converter, code, on: bool) -> None:
    ctx = conv.ctx
    if on:
        ctx.preamble.close()
        ctx.paragraph.set_mode(Mode.VERTICAL, forced=True)
        logger.debug("Body starts at line %d", ctx.source.line_number())
    else:
        ctx.finished = True


def cmd_skip(conv: Converter, code: int) -> None:
    for _ in range(code):
        get_brace_param(conv.ctx.source)


def register(registry: CommandRegistry) -> None:
    registry.add("documentclass", cmd_documentclass)
    registry.add("documentstyle", cmd_documentclass)
    registry.add("usepackage", cmd_usepackage)
    registry.add_env("document", env_document)
    for name in _SKIP_COMMANDS:
        registry.add(name, cmd_skip, 0)
    for name in _SKIP_WITH_ARG:
        registry.add(name, cmd_skip, 1)
