"""Citation engine.

Turns the key list of one citation command into text for the active
bibliography package (standard LaTeX, natbib, harvard, apacite, apalike
or authordate).  Keys are resolved through the ``.aux`` file; a key that
cannot be resolved is written literally.

Within one multi-key citation the engine remembers the last author and
year it wrote, so that ``\\citet{a,b}`` with two papers by the same
authors reads "Smith (2004a, b)" rather than repeating the name.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence, Union

from .auxfiles import AuxShape
from .bookmarks import normalize_signet
from .parser import brace_params, split_keys, strip_comments

if TYPE_CHECKING:
    from .auxfiles import AuxResolver
    from .diagnostics import Diagnostics
    from .output import OutputFilter
    from .profile import BibliographyConfig
    from .vertical import ParagraphFormatter

logger = logging.getLogger(__name__)


class _Dash:
    """Marks a compressed range inside an ordered key list."""

    def __repr__(self) -> str:
        return "DASH"


DASH = _Dash()

KeyItem = Union[str, _Dash]


class BibStyle(enum.Enum):
    STANDARD = "standard"
    NATBIB = "natbib"
    HARVARD = "harvard"
    APACITE = "apacite"
    APALIKE = "apalike"
    AUTHORDATE = "authordate"


class PunctStyle(enum.Enum):
    ALPHA = "alpha"
    NUMBER = "number"
    SUPER = "super"


class CiteCode(enum.Enum):
    CITE = "cite"
    # natbib
    T = "citet"
    T_STAR = "citet*"
    T_CAP = "Citet"
    ALT = "citealt"
    ALT_STAR = "citealt*"
    ALT_CAP = "Citealt"
    P = "citep"
    P_STAR = "citep*"
    P_CAP = "Citep"
    ALP = "citealp"
    ALP_STAR = "citealp*"
    ALP_CAP = "Citealp"
    AUTHOR = "citeauthor"
    AUTHOR_STAR = "citeauthor*"
    AUTHOR_CAP = "Citeauthor"
    YEAR = "citeyear"
    YEAR_STAR = "citeyear*"
    YEAR_P = "citeyearpar"
    NUM = "citenum"
    # harvard
    AFFIXED = "citeaffixed"
    NAME = "citename"
    AS_NOUN = "citeasnoun"
    POSSESSIVE = "possessivecite"
    # apacite
    CITE_A = "citeA"
    CITE_NP = "citeNP"
    CITE_AUTHOR = "apaciteauthor"
    FULL = "fullcite"
    FULL_A = "fullciteA"
    FULL_NP = "fullciteNP"
    FULL_AUTHOR = "fullciteauthor"
    SHORT = "shortcite"
    SHORT_A = "shortciteA"
    SHORT_NP = "shortciteNP"
    SHORT_AUTHOR = "shortciteauthor"
    YEAR_NP = "citeyearNP"


_NATBIB_PAREN = {CiteCode.P, CiteCode.P_STAR, CiteCode.P_CAP, CiteCode.YEAR_P}
_HARVARD_NO_PAREN = {CiteCode.AS_NOUN, CiteCode.YEAR_STAR, CiteCode.NAME, CiteCode.POSSESSIVE}
_APACITE_PAREN = {CiteCode.CITE, CiteCode.FULL, CiteCode.SHORT, CiteCode.YEAR}
_CAPITALIZED = {CiteCode.T_CAP, CiteCode.ALT_CAP, CiteCode.P_CAP, CiteCode.ALP_CAP, CiteCode.AUTHOR_CAP}

_NUMBER = re.compile(r"\s*([-+]?\d+)")


@dataclass
class BibPunct:
    """Citation punctuation, as set by ``\\bibpunct`` or package options."""
    open: str = "("
    close: str = ")"
    cite_sep: str = ","
    author_date_sep: str = ","
    numbers_sep: str = ","
    postnote_sep: str = ", "
    style: PunctStyle = PunctStyle.ALPHA
    cite_sep_touched: bool = False
    paren_touched: bool = False

    @classmethod
    def from_config(cls, cfg: BibliographyConfig) -> "BibPunct":
        return cls(
            open=cfg.open,
            close=cfg.close,
            cite_sep=cfg.cite_sep,
            author_date_sep=cfg.author_date_sep,
            numbers_sep=cfg.numbers_sep,
            postnote_sep=cfg.postnote_sep,
            style=PunctStyle(cfg.style),
            cite_sep_touched=cfg.cite_sep != ",",
            paren_touched=(cfg.open, cfg.close) != ("(", ")"),
        )

    def set_separator(self, sep: str) -> None:
        self.cite_sep = sep
        self.cite_sep_touched = True

    def set_parens(self, open_: str, close: str) -> None:
        self.open = open_
        self.close = close
        self.paren_touched = True


# ---------------------------------------------------------------------------
# Key ordering
# ---------------------------------------------------------------------------

def parse_cite_number(text: str | None) -> int | None:
    """Leading integer of a resolved citation, or None."""
    if text is None:
        return None
    m = _NUMBER.match(text)
    return int(m.group(1)) if m else None


def order_keys(
    keys: Sequence[str],
    number_of: Callable[[str], int | None],
    compress: bool = False,
) -> list[KeyItem]:
    """Sort *keys* by citation number, optionally compressing runs.

    With fewer than two resolvable keys the list is returned unchanged.
    Keys that do not resolve keep their relative order after the sorted
    ones.  A run of three or more consecutive numbers becomes
    ``first, DASH, last``.
    """
    numbered: list[tuple[int, str]] = []
    unresolved: list[str] = []
    for key in keys:
        n = number_of(key)
        if n is None:
            unresolved.append(key)
        else:
            numbered.append((n, key))

    if len(numbered) <= 1:
        return list(keys)

    numbered.sort(key=lambda item: item[0])
    nums = [n for n, _ in numbered]
    out: list[KeyItem] = [numbered[0][1]]
    dash = False
    last = len(numbered) - 1
    for i in range(1, len(numbered)):
        if compress and dash and i != last and nums[i] + 1 == nums[i + 1]:
            continue
        if (compress and not dash and i != last
                and nums[i - 1] + 1 == nums[i] and nums[i] + 1 == nums[i + 1]):
            dash = True
            out.append(DASH)
        else:
            dash = False
            out.append(numbered[i][1])

    logger.debug("Ordered citation keys %s -> %s", list(keys), out)
    return out + unresolved


def _is_empty_name(s: str | None) -> bool:
    return not s or s.startswith("{}")


def _capitalize(s: str) -> str:
    for i, c in enumerate(s):
        if c.isalpha():
            return s[:i] + c.upper() + s[i + 1:]
    return s


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CitationEngine:
    """Formats citation commands for the active bibliography package."""

    def __init__(
        self,
        aux: AuxResolver,
        output: OutputFilter,
        diagnostics: Diagnostics,
        convert: Callable[[str], None],
        config: BibliographyConfig,
        paragraph: ParagraphFormatter | None = None,
        use_fields: bool = True,
        capacity: int = 1000,
    ):
        self.aux = aux
        self.output = output
        self.diagnostics = diagnostics
        self.convert = convert
        self.paragraph = paragraph
        self.use_fields = use_fields
        self.capacity = capacity

        self.punct = BibPunct.from_config(config)
        self.bib_style = BibStyle.STANDARD
        self.sorted = config.sorted
        self.compressed = config.compressed
        self.longnamesfirst = config.longnamesfirst

        # per-citation state, also read by \BCAY and \citename
        self.last_author = ""
        self.last_year = ""
        self.current_code = CiteCode.CITE
        self.current_seen = False
        self.current_item = 0
        self.paren = True
        self.suppress_name = False
        self.in_bibliography = False

        self._cited: dict[str, None] = {}

    # ── Bookkeeping ──────────────────────────────────────────────────

    def citation_used(self, key: str) -> bool:
        """Return True if *key* was cited before; otherwise record it."""
        if key in self._cited:
            return True
        if len(self._cited) >= self.capacity:
            self.diagnostics.warn_once(
                "citation-capacity", "Too many citations (%d) ... not recording more", self.capacity
            )
        else:
            self._cited[key] = None
        return False

    def _begin(self, code: CiteCode) -> None:
        self.last_author = ""
        self.last_year = ""
        self.current_code = code
        self.current_item = 0
        self.paren = True

    def _unresolved(self, key: str) -> None:
        if self.aux.missing:
            return
        self.diagnostics.warn_once(
            "unresolved-citation",
            "Cannot locate \\bibcite{%s} in .aux file ... the .tex file probably needs to be LaTeXed again",
            key,
        )

    def _lookup(self, key: str, tag: str = "bibcite", shape: AuxShape = AuxShape.SCALAR) -> str | None:
        found = self.aux.lookup(tag, key, shape)
        if found is None:
            self._unresolved(key)
        return found

    def _ordered(self, text: str, shape: AuxShape) -> list[KeyItem]:
        keys = split_keys(strip_comments(text))
        if not (self.sorted and keys):
            return list(keys)
        return order_keys(
            keys,
            lambda k: parse_cite_number(self.aux.lookup("bibcite", k, shape)),
            compress=self.compressed,
        )

    def _separator(self, first: bool) -> None:
        if not first:
            self.convert(self.punct.cite_sep)
            self.output.write(" ")

    def _field_scope(self):
        if self.paragraph is None:
            return contextlib.nullcontext()
        return self.paragraph.field()

    def _postnote(self, post: str | None) -> None:
        if post and not _is_empty_name(post):
            self.convert(self.punct.postnote_sep)
            self.convert(post)

    # ── Standard, apalike, authordate and apacite ────────────────────

    def cite(
        self,
        code: CiteCode,
        text: str,
        option: str | None = None,
        pretext: str | None = None,
    ) -> None:
        """``\\cite`` and the apacite/authordate variants."""
        self._begin(code)
        style = self.bib_style

        if style == BibStyle.STANDARD:
            self.punct.open, self.punct.close = "[", "]"
        if style == BibStyle.APACITE and code not in _APACITE_PAREN:
            self.paren = False

        keys = self._ordered(text, AuxShape.SCALAR)
        if not keys:
            return

        if self.paren:
            self.convert(self.punct.open)
        if pretext and style == BibStyle.APACITE:
            self.convert(pretext)
            self.output.write(" ")

        first = True
        for key in keys:
            self.current_item += 1
            if key is DASH:
                self.output.write("-")
                first = True
                continue

            resolved = self._lookup(key)
            self._separator(first)
            if style == BibStyle.STANDARD:
                self._standard_item(key, resolved)
            elif style == BibStyle.AUTHORDATE:
                self.suppress_name = code == CiteCode.SHORT
                try:
                    self.convert(resolved if resolved is not None else key)
                finally:
                    self.suppress_name = False
            else:
                if style == BibStyle.APACITE:
                    self.current_seen = self.citation_used(key)
                self.convert(resolved if resolved is not None else key)
            first = False

        if option:
            self.convert(self.punct.postnote_sep)
            self.convert(option)
        if self.paren:
            self.convert(self.punct.close)

    def _standard_item(self, key: str, resolved: str | None) -> None:
        signet = normalize_signet(key)
        with self._field_scope():
            if self.use_fields:
                self.output.write(
                    f"{{\\field{{\\*\\fldinst{{\\lang1024 REF BIB_{signet} \\\\* MERGEFORMAT }}}}"
                    "{\\fldrslt{"
                )
            self.convert(resolved if resolved is not None else key)
            if self.use_fields:
                self.output.write("}}}")

    # ── natbib ───────────────────────────────────────────────────────

    def script_shift(self) -> int:
        return self.output.font.size // 3

    def script_size(self) -> int:
        return max(2, self.output.font.size * 2 // 3)

    def cite_natbib(
        self,
        code: CiteCode,
        text: str,
        pretext: str | None = None,
        option: str | None = None,
    ) -> None:
        """natbib citation commands.

        With a single optional argument it is the postnote; with two the
        first is the prenote.
        """
        self._begin(code)
        punct = self.punct
        if not punct.cite_sep_touched:
            punct.cite_sep = ";"
        if option is None:
            option, pretext = pretext, None

        self.paren = code in _NATBIB_PAREN
        if punct.style == PunctStyle.SUPER:
            self.paren = False
        if punct.style == PunctStyle.NUMBER:
            self.paren = True

        keys = self._ordered(text, AuxShape.FIRST_OF_PAIR)
        if not keys:
            return

        if punct.style == PunctStyle.SUPER:
            self.output.write(f"{{\\up{self.script_shift()}\\fs{self.script_size()} ")
        if self.paren:
            self.convert(punct.open)

        first = True
        for i, key in enumerate(keys):
            self.current_item += 1
            last = i == len(keys) - 1
            if key is DASH:
                self.output.write("-")
                first = True
                continue

            resolved = self._lookup(key)
            logger.debug("natbib key=[%s] <%s>", key, resolved)
            if resolved is not None:
                self.current_seen = self.citation_used(key)
                self._natbib_item(resolved, code, pretext, option, first, last)
            else:
                self._separator(first)
                self.convert(key)
            first = False

        if self.paren:
            self.convert(punct.close)
        if punct.style == PunctStyle.SUPER:
            self.output.write("}")

    def _natbib_item(
        self, payload: str, code: CiteCode,
        pre: str | None, post: str | None, first: bool, last: bool,
    ) -> None:
        n, year, abbv, full = brace_params(payload, 4)
        punct = self.punct
        write = self.output.write
        convert = self.convert

        if punct.style != PunctStyle.ALPHA:
            if not first:
                convert(punct.cite_sep)
                if punct.style == PunctStyle.NUMBER:
                    write(" ")
            convert(n)
            return

        author_repeated = False
        year_repeated = year[:4] == self.last_year[:4] and bool(self.last_year)

        if code == CiteCode.CITE:
            v = full if self.longnamesfirst and not _is_empty_name(full) else abbv
            if _is_empty_name(v):
                v = n
            author_repeated = v == self.last_author
            self._separator(first or author_repeated)
            convert(v)
            write(" ")
            convert(punct.open)
            convert(year)
            convert(punct.close)
            return

        if code in (CiteCode.T, CiteCode.T_STAR, CiteCode.T_CAP):
            v = abbv
            if code == CiteCode.T and self.longnamesfirst and not self.current_seen \
                    and not _is_empty_name(full):
                v = full
            if code == CiteCode.T_STAR and not _is_empty_name(full):
                v = full
            author_repeated = v == self.last_author
            if not first and not author_repeated:
                convert(punct.close)
                convert(punct.cite_sep)
                write(" ")
            if code in _CAPITALIZED:
                v = _capitalize(v)
            if not author_repeated:
                convert(v)
                self._remember(v, year)
                write(" ")
                convert(punct.open)
                if pre:
                    convert(pre)
                    write(" ")
                convert(year)
            else:
                self._repeated_year(year, year_repeated)
            if last:
                self._postnote(post)
                convert(punct.close)
            return

        if code in (CiteCode.ALT, CiteCode.ALT_STAR, CiteCode.ALT_CAP):
            v = abbv
            author_repeated = v == self.last_author
            if not first and not author_repeated:
                convert(punct.cite_sep)
                write(" ")
            if code in _CAPITALIZED:
                v = _capitalize(v)
            if not author_repeated:
                convert(v)
                self._remember(v, year)
                write(" ")
                if pre:
                    convert(pre)
                    write(" ")
                convert(year)
            else:
                self._repeated_year(year, year_repeated)
            if last:
                self._postnote(post)
            return

        if code in (CiteCode.P, CiteCode.P_CAP, CiteCode.P_STAR,
                    CiteCode.ALP, CiteCode.ALP_STAR, CiteCode.ALP_CAP):
            v = abbv
            if code in (CiteCode.P_STAR, CiteCode.ALP_STAR) and not _is_empty_name(full):
                v = full
            author_repeated = v == self.last_author
            if not first and not author_repeated:
                convert(punct.cite_sep)
                write(" ")
            if pre and self.current_item == 1:
                convert(pre)
                write(" ")
            if code in _CAPITALIZED:
                v = _capitalize(v)
            if not author_repeated:
                convert(v)
                self._remember(v, year)
                convert(punct.author_date_sep)
                write(" ")
                convert(year)
            else:
                self._repeated_year(year, year_repeated)
            if last:
                self._postnote(post)
            return

        if code in (CiteCode.AUTHOR, CiteCode.AUTHOR_STAR, CiteCode.AUTHOR_CAP):
            v = abbv
            self._separator(first)
            if code == CiteCode.AUTHOR and self.longnamesfirst and not self.current_seen \
                    and not _is_empty_name(full):
                v = full
            if code == CiteCode.AUTHOR_CAP:
                v = _capitalize(v)
            if code == CiteCode.AUTHOR_STAR and not _is_empty_name(full):
                v = full
            convert(v)
            if last:
                self._postnote(post)
            return

        if code == CiteCode.NUM:
            self._separator(first)
            convert(n)
            return

        # \citeyear, \citeyearpar
        self._separator(first)
        if code == CiteCode.YEAR_P and pre and self.current_item == 1:
            convert(pre)
            write(" ")
        convert(year)
        if last:
            self._postnote(post)

    def _remember(self, author: str, year: str) -> None:
        self.last_author = author
        self.last_year = year

    def _repeated_year(self, year: str, year_repeated: bool) -> None:
        self.convert(self.punct.numbers_sep)
        if year_repeated:
            self.convert(year[4:])
        else:
            self.output.write(" ")
            self.convert(year)

    # ── harvard ──────────────────────────────────────────────────────

    def cite_harvard(
        self,
        code: CiteCode,
        text: str,
        posttext: str | None = None,
        pretext: str | None = None,
    ) -> None:
        self._begin(code)
        if code in _HARVARD_NO_PAREN:
            self.paren = False

        keys = self._ordered(text, AuxShape.SCALAR)
        if not keys:
            return
        if self.paren:
            self.convert(self.punct.open)

        first = True
        for key in keys:
            self.current_item += 1
            if key is DASH:
                self.output.write("-")
                first = True
                continue
            resolved = self._lookup(key, "harvardcite", AuxShape.RAW_GROUPS)
            logger.debug("harvard key=[%s] <%s>", key, resolved)
            self._separator(first)
            if resolved is not None:
                self.current_seen = self.citation_used(key)
                self._harvard_item(resolved, code, pretext, first)
            else:
                self.convert(key)
            first = False

        if posttext:
            self.output.write(self.punct.postnote_sep)
            self.convert(posttext)
        if self.paren:
            self.convert(self.punct.close)

    def _harvard_item(self, payload: str, code: CiteCode, pre: str | None, first: bool) -> None:
        full, _abbv, year = brace_params(payload, 3)
        convert = self.convert
        write = self.output.write

        if code == CiteCode.AFFIXED:
            if first and pre:
                convert(pre)
                write(" ")
            convert(full)
            write(" ")
            convert(year)
        elif code in (CiteCode.YEAR, CiteCode.YEAR_STAR):
            convert(year)
        elif code == CiteCode.NAME:
            convert(full)
        elif code == CiteCode.AS_NOUN:
            convert(full)
            write(" (")
            convert(year)
            write(")")
        elif code == CiteCode.POSSESSIVE:
            convert(full)
            write("\\rquote s (")
            convert(year)
            write(")")
        else:
            convert(full)
            write(" ")
            convert(year)

    # ── apacite ──────────────────────────────────────────────────────

    def bcay(self, long_names: str, short_names: str, year: str) -> None:
        """Expand ``\\BCAY{long}{short}{year}`` for the citation in progress."""
        v = short_names if self.current_seen else long_names
        code = self.current_code
        convert = self.convert
        write = self.output.write
        logger.debug(
            "BCAY code=%s seen=%s item=%d", code.value, self.current_seen, self.current_item
        )

        if code in (CiteCode.CITE, CiteCode.CITE_NP, CiteCode.CITE_A):
            if v != self.last_author:
                convert(v)
                self._remember(v, year)
                write(" (" if code == CiteCode.CITE_A else ", ")
            convert(year)
            if code == CiteCode.CITE_A:
                write(")")
        elif code == CiteCode.CITE_AUTHOR:
            convert(v)
        elif code in (CiteCode.FULL, CiteCode.FULL_NP, CiteCode.FULL_A):
            convert(long_names)
            write(" (" if code == CiteCode.FULL_A else ", ")
            convert(year)
            if code == CiteCode.FULL_A:
                write(")")
        elif code == CiteCode.FULL_AUTHOR:
            convert(long_names)
        elif code in (CiteCode.SHORT, CiteCode.SHORT_NP, CiteCode.SHORT_A, CiteCode.SHORT_AUTHOR):
            convert(short_names)
            write(" (" if code == CiteCode.SHORT_A else ", ")
            convert(year)
            if code == CiteCode.SHORT_A:
                write(")")
        elif code in (CiteCode.YEAR, CiteCode.YEAR_NP):
            convert(year)
