"""Options and shared state for one conversion run."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Callable

from .auxfiles import AuxResolver, BblRetriever
from .bookmarks import BookmarkRegistry
from .citations import CitationEngine
from .diagnostics import Diagnostics
from .lengths import Lengths
from .output import OutputFilter
from .source import SourceStack
from .styles import StyleSheet
from .vertical import ParagraphFormatter

if TYPE_CHECKING:
    from ..config import Settings
    from .profile import RtfProfile

logger = logging.getLogger(__name__)


@dataclass
class ConversionOptions:
    """Values one run uses, merged from settings, profile and CLI flags."""
    input_path: str | None = None
    aux_path: str | None = None
    bbl_path: str | None = None
    output_path: str | None = None
    base_dir: str | None = None
    use_fields: bool = True
    rtf_warnings: bool = False
    safety_braces: int = 0
    max_bookmarks: int = 5000
    max_citations: int = 1000
    profile_path: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "ConversionOptions":
        opts = cls(
            use_fields=settings.USE_FIELDS,
            rtf_warnings=settings.RTF_WARNINGS,
            safety_braces=settings.SAFETY_BRACES,
            max_bookmarks=settings.MAX_BOOKMARKS,
            max_citations=settings.MAX_CITATIONS,
            profile_path=settings.PROFILE_PATH or None,
        )
        for name, value in overrides.items():
            if value is not None:
                setattr(opts, name, value)
        return opts

    def resolve_names(self) -> None:
        """Fill in aux/bbl/base_dir from the input file name where not given."""
        stem = "latex2rtf"
        if self.input_path:
            path = Path(self.input_path)
            stem = str(path.with_suffix("")) if path.suffix == ".tex" else str(path)
            if self.base_dir is None:
                self.base_dir = str(path.parent)
        if self.aux_path is None:
            self.aux_path = stem + ".aux"
        if self.bbl_path is None:
            self.bbl_path = stem + ".bbl"
        self.safety_braces = max(0, min(9, self.safety_braces))


@dataclass
class ConversionContext:
    """Components shared by the command handlers of one run."""
    options: ConversionOptions
    profile: RtfProfile
    diagnostics: Diagnostics
    source: SourceStack
    output: OutputFilter
    lengths: Lengths
    styles: StyleSheet
    paragraph: ParagraphFormatter
    aux: AuxResolver
    bbl: BblRetriever
    bookmarks: BookmarkRegistry
    citations: CitationEngine
    document_type: str = "article"
    equation_label: str | None = None
    finished: bool = False
    list_saves: list[tuple[int, int]] = field(default_factory=list)
    preamble: contextlib.ExitStack = field(default_factory=contextlib.ExitStack)

    def close(self) -> None:
        self.preamble.close()
        self.aux.close()
        self.bbl.close()
        self.source.close_all()


def create_context(
    options: ConversionOptions,
    profile: RtfProfile,
    stream: IO[str],
    convert: Callable[[str], None],
) -> ConversionContext:
    """Build the components of a run, wired to one output stream."""
    options.resolve_names()
    output = OutputFilter(stream)
    diagnostics = Diagnostics(options.rtf_warnings)
    diagnostics.output = output
    source = SourceStack(options.base_dir)
    diagnostics.position = source.position

    lengths = Lengths(parindent=profile.paragraph.parindent)
    paragraph = ParagraphFormatter(output, lengths, profile.paragraph)
    aux = AuxResolver(options.aux_path, diagnostics)
    bbl = BblRetriever(options.bbl_path, diagnostics)
    bookmarks = BookmarkRegistry(output, diagnostics, options.use_fields, options.max_bookmarks)
    citations = CitationEngine(
        aux, output, diagnostics, convert, profile.bibliography,
        paragraph=paragraph,
        use_fields=options.use_fields,
        capacity=options.max_citations,
    )
    logger.debug("Context created: aux=%s bbl=%s", options.aux_path, options.bbl_path)

    return ConversionContext(
        options=options,
        profile=profile,
        diagnostics=diagnostics,
        source=source,
        output=output,
        lengths=lengths,
        styles=StyleSheet(profile.styles),
        paragraph=paragraph,
        aux=aux,
        bbl=bbl,
        bookmarks=bookmarks,
        citations=citations,
    )
