"""RtfProfile: data-driven defaults for a LaTeX→RTF conversion.

Document-level behaviour (bibliography punctuation, paragraph geometry,
section and bibliography titles) is driven by an ``RtfProfile`` instance
loaded from a JSON file.  Every field has a default that reproduces the
built-in behaviour, so conversions work without any profile at all.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field as dc_field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sub-configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class BibliographyConfig:
    """Initial citation punctuation and ordering (see ``\\bibpunct``)."""
    open: str = "("
    close: str = ")"
    cite_sep: str = ","
    author_date_sep: str = ","
    numbers_sep: str = ","
    postnote_sep: str = ", "
    style: str = "alpha"            # alpha | number | super
    sorted: bool = False
    compressed: bool = False
    longnamesfirst: bool = False


@dataclass
class ParagraphConfig:
    """Paragraph geometry in twips."""
    alignment: str = "j"            # l | r | c | j
    line_spacing: int = 240
    parindent: int = 300
    bibliography_hang: int = 450
    first_paragraph_indent: bool = False


@dataclass
class LabelsConfig:
    """Titles generated by the converter."""
    references: str = "References"
    bibliography: str = "Bibliography"
    notes: str = "Notes"


@dataclass
class RtfProfile:
    """Complete conversion profile."""
    language: str = "english"
    bibliography: BibliographyConfig = dc_field(default_factory=BibliographyConfig)
    paragraph: ParagraphConfig = dc_field(default_factory=ParagraphConfig)
    labels: LabelsConfig = dc_field(default_factory=LabelsConfig)
    styles: dict[str, str] = dc_field(default_factory=dict)

    def bibliography_title(self, document_type: str) -> str:
        if document_type in ("book", "report"):
            return self.labels.bibliography
        return self.labels.references


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _build_bibliography(data: dict) -> BibliographyConfig:
    defaults = BibliographyConfig()
    style = data.get("style", defaults.style)
    if style not in ("alpha", "number", "super"):
        logger.warning("Unknown bibliography style %r in profile, using %r", style, defaults.style)
        style = defaults.style
    return BibliographyConfig(
        open=data.get("open", defaults.open),
        close=data.get("close", defaults.close),
        cite_sep=data.get("cite_sep", defaults.cite_sep),
        author_date_sep=data.get("author_date_sep", defaults.author_date_sep),
        numbers_sep=data.get("numbers_sep", defaults.numbers_sep),
        postnote_sep=data.get("postnote_sep", defaults.postnote_sep),
        style=style,
        sorted=bool(data.get("sorted", defaults.sorted)),
        compressed=bool(data.get("compressed", defaults.compressed)),
        longnamesfirst=bool(data.get("longnamesfirst", defaults.longnamesfirst)),
    )


def _build_paragraph(data: dict) -> ParagraphConfig:
    defaults = ParagraphConfig()
    alignment = data.get("alignment", defaults.alignment)
    if alignment not in ("l", "r", "c", "j"):
        logger.warning("Unknown alignment %r in profile, using %r", alignment, defaults.alignment)
        alignment = defaults.alignment
    return ParagraphConfig(
        alignment=alignment,
        line_spacing=int(data.get("line_spacing", defaults.line_spacing)),
        parindent=int(data.get("parindent", defaults.parindent)),
        bibliography_hang=int(data.get("bibliography_hang", defaults.bibliography_hang)),
        first_paragraph_indent=bool(
            data.get("first_paragraph_indent", defaults.first_paragraph_indent)
        ),
    )


def _build_labels(data: dict) -> LabelsConfig:
    defaults = LabelsConfig()
    return LabelsConfig(
        references=data.get("references", defaults.references),
        bibliography=data.get("bibliography", defaults.bibliography),
        notes=data.get("notes", defaults.notes),
    )


def _build_profile_from_dict(data: dict) -> RtfProfile:
    """Build an RtfProfile from a raw dict (the profile JSON value)."""
    return RtfProfile(
        language=data.get("language", "english"),
        bibliography=_build_bibliography(data.get("bibliography", {})),
        paragraph=_build_paragraph(data.get("paragraph", {})),
        labels=_build_labels(data.get("labels", {})),
        styles=dict(data.get("styles", {})),
    )


def load_profile(path: str | Path | None) -> RtfProfile:
    """Load an RtfProfile from a JSON file.

    Returns the default profile when *path* is empty or the file cannot
    be read or parsed.
    """
    if not path:
        return RtfProfile()

    profile_path = Path(path)
    try:
        data: Any = json.loads(profile_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load profile %s: %s", profile_path, e)
        return RtfProfile()

    if not isinstance(data, dict):
        logger.warning("Profile %s is not a JSON object, using defaults", profile_path)
        return RtfProfile()

    return _build_profile_from_dict(data)
