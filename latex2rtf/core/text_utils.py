"""LaTeX symbol, accent and ligature tables.

Shared between converter.py and the command modules.
"""

import unicodedata

# LaTeX symbol commands → Unicode
SYMBOL_MAP = {
    "geq": "\u2265",      # ≥
    "leq": "\u2264",      # ≤
    "neq": "\u2260",      # ≠
    "approx": "\u2248",   # ≈
    "times": "\u00d7",    # ×
    "div": "\u00f7",      # ÷
    "pm": "\u00b1",       # ±
    "cdot": "\u00b7",     # ·
    "ldots": "\u2026",    # …
    "dots": "\u2026",     # …
    "rightarrow": "\u2192",  # →
    "leftarrow": "\u2190",   # ←
    "Rightarrow": "\u21d2",  # ⇒
    "Leftarrow": "\u21d0",   # ⇐
    "infty": "\u221e",    # ∞
    "partial": "\u2202",  # ∂
    "forall": "\u2200",   # ∀
    "exists": "\u2203",   # ∃
    "in": "\u2208",       # ∈
    "subset": "\u2282",   # ⊂
    "cup": "\u222a",      # ∪
    "cap": "\u2229",      # ∩
    "alpha": "\u03b1",    # α
    "beta": "\u03b2",     # β
    "gamma": "\u03b3",    # γ
    "delta": "\u03b4",    # δ
    "epsilon": "\u03b5",  # ε
    "lambda": "\u03bb",   # λ
    "mu": "\u03bc",       # μ
    "sigma": "\u03c3",    # σ
    "omega": "\u03c9",    # ω
    "pi": "\u03c0",       # π
    "theta": "\u03b8",    # θ
    "phi": "\u03c6",      # φ
    "sum": "\u2211",      # ∑
    "prod": "\u220f",     # ∏
    "int": "\u222b",      # ∫
    "star": "\u22c6",     # ⋆
    "dag": "\u2020",      # †
    "ddag": "\u2021",     # ‡
    "S": "\u00a7",        # §
    "P": "\u00b6",        # ¶
    "pounds": "\u00a3",   # £
    "copyright": "\u00a9",
    "textregistered": "\u00ae",
    "texttrademark": "\u2122",
    "textdegree": "\u00b0",
    "ss": "\u00df",       # ß
    "ae": "\u00e6",
    "AE": "\u00c6",
    "o": "\u00f8",
    "O": "\u00d8",
    "i": "\u0131",        # dotless i, for \'{\i}
    "LaTeX": "LaTeX",
    "TeX": "TeX",
}

# RTF control words for typographic characters, longest first
QUOTES = {
    "``": "\\ldblquote ",
    "''": "\\rdblquote ",
    "`": "\\lquote ",
    "'": "\\rquote ",
}

DASHES = {
    "---": "\\emdash ",
    "--": "\\endash ",
}

# accent command → combining mark
ACCENTS = {
    "'": "\u0301",
    "`": "\u0300",
    "^": "\u0302",
    '"': "\u0308",
    "~": "\u0303",
    "=": "\u0304",
    ".": "\u0307",
    "c": "\u0327",
    "u": "\u0306",
    "v": "\u030c",
    "H": "\u030b",
    "r": "\u030a",
}


def accented(base: str, accent: str) -> str:
    """Compose *base* (``e`` or ``\\i``) with the accent command *accent*."""
    if base.startswith("\\"):
        base = SYMBOL_MAP.get(base[1:], base[1:])
    if not base:
        return ""
    return unicodedata.normalize("NFC", base[0] + ACCENTS[accent]) + base[1:]
