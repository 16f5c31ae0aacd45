"""LaTeX → RTF converter.

Public API: ``convert_latex_to_rtf()``, ``convert_file()``
"""

from .core.context import ConversionOptions
from .core.converter import convert_file, convert_latex_to_rtf, convert_stream
from .core.errors import FatalConversionError, Latex2RtfError, SourceError

__version__ = "2.3.0"

__all__ = [
    "ConversionOptions",
    "FatalConversionError",
    "Latex2RtfError",
    "SourceError",
    "convert_file",
    "convert_latex_to_rtf",
    "convert_stream",
]
