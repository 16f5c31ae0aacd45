import io
from pathlib import Path

import pytest

from latex2rtf.core.context import ConversionOptions
from latex2rtf.core.converter import convert_stream
from latex2rtf.core.diagnostics import Diagnostics
from latex2rtf.core.output import OutputFilter
from latex2rtf.core.source import SourceStack


@pytest.fixture
def rtf_out():
    buf = io.StringIO()
    return buf, OutputFilter(buf)


@pytest.fixture
def string_source():
    def _make(text: str) -> SourceStack:
        src = SourceStack()
        src.push_string(text, "<test>")
        return src
    return _make


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def convert(tmp_path: Path):
    """Convert a LaTeX string, with optional .aux/.bbl contents, and return the RTF."""
    def _convert(latex: str, aux: str | None = None, bbl: str | None = None, **kwargs) -> str:
        aux_path = tmp_path / "doc.aux"
        bbl_path = tmp_path / "doc.bbl"
        if aux is not None:
            aux_path.write_text(aux, encoding="utf-8")
        if bbl is not None:
            bbl_path.write_text(bbl, encoding="utf-8")
        options = ConversionOptions(
            aux_path=str(aux_path),
            bbl_path=str(bbl_path),
            base_dir=str(tmp_path),
            **kwargs,
        )
        buf = io.StringIO()
        convert_stream(latex, buf, options)
        return buf.getvalue()
    return _convert
