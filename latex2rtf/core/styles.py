"""Named paragraph/character styles and the RTF document header."""

import logging

logger = logging.getLogger(__name__)

FONT_TABLE = (
    "{\\fonttbl"
    "{\\f0\\froman\\fcharset0 Times New Roman;}"
    "{\\f1\\fswiss\\fcharset0 Arial;}"
    "{\\f2\\fmodern\\fcharset0 Courier New;}"
    "{\\f3\\ftech\\fcharset2 Symbol;}"
    "}\n"
)

# cf1 black, cf2 red (embedded warnings)
COLOR_TABLE = "{\\colortbl;\\red0\\green0\\blue0;\\red255\\green0\\blue0;}\n"

# style name -> (stylesheet number, RTF codes)
DEFAULT_STYLES: dict[str, tuple[int, str]] = {
    "Normal": (0, "\\f0\\fs20"),
    "chapter": (1, "\\sb240\\sa120\\keepn\\b\\f0\\fs32"),
    "section": (2, "\\sb240\\sa60\\keepn\\b\\f0\\fs28"),
    "subsection": (3, "\\sb240\\sa60\\keepn\\b\\f0\\fs24"),
    "subsubsection": (4, "\\sb240\\sa60\\keepn\\b\\i\\f0\\fs22"),
    "bibitem": (5, "\\f0\\fs20"),
    "equation": (6, "\\qc\\f0\\fs20"),
}


class StyleSheet:
    """Style lookup used by ``insert_style`` and the RTF header."""

    def __init__(self, overrides: dict[str, str] | None = None):
        self._styles = dict(DEFAULT_STYLES)
        for name, codes in (overrides or {}).items():
            number = self._styles.get(name, (len(self._styles), ""))[0]
            self._styles[name] = (number, codes)

    def codes(self, name: str) -> str | None:
        entry = self._styles.get(name)
        if entry is None:
            return None
        number, codes = entry
        prefix = "\\plain" if number == 0 else f"\\plain\\s{number}"
        return f"{prefix}{codes}"

    def header(self) -> str:
        parts = ["{\\stylesheet\n"]
        for name, (number, codes) in sorted(self._styles.items(), key=lambda kv: kv[1][0]):
            tag = "" if number == 0 else f"\\s{number}"
            parts.append(f"{{{tag}{codes} {name};}}\n")
        parts.append("}\n")
        return "".join(parts)


def rtf_header(styles: StyleSheet) -> str:
    """Opening group of the RTF document, left open until the trailer."""
    return (
        "{\\rtf1\\ansi\\ansicpg1252\\deff0\\deflang1033\n"
        + FONT_TABLE
        + COLOR_TABLE
        + styles.header()
        + "\\paperw12240\\paperh15840\\margl1800\\margr1800\\margt1440\\margb1440\n"
        + "\\pard\\plain\\f0\\fs20\n"
    )
