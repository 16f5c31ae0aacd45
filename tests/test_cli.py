import pytest

from latex2rtf.core.context import ConversionOptions
from latex2rtf.core.converter import convert_file, convert_latex_to_rtf
from latex2rtf.core.errors import FatalConversionError
from latex2rtf.main import build_parser, main

DOC = "\\documentclass{article}\n\\begin{document}\n\\section{One}\\label{one}\nSee \\ref{one}.\n\\end{document}\n"


@pytest.fixture
def paper(tmp_path):
    tex = tmp_path / "paper.tex"
    tex.write_text(DOC, encoding="utf-8")
    (tmp_path / "paper.aux").write_text("\\newlabel{one}{{1}{1}}\n", encoding="utf-8")
    return tex


def test_main_writes_output_without_fields(paper, tmp_path):
    out = tmp_path / "out.rtf"
    assert main([str(paper), "-o", str(out), "--no-fields"]) == 0
    rtf = out.read_text(encoding="ascii")
    assert rtf.startswith("{\\rtf1")
    assert "See 1." in rtf
    assert "\\field" not in rtf


def test_main_missing_input_returns_error(tmp_path):
    assert main([str(tmp_path / "nothere.tex")]) == 1


def test_parser_rejects_out_of_range_safety_braces():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["x.tex", "-Z", "12"])


def test_convert_file_defaults_output_and_suffix(paper):
    options = ConversionOptions()
    warnings = convert_file(paper.with_suffix(""), options=options)
    rtf = paper.with_suffix(".rtf").read_text(encoding="ascii")
    assert warnings == 0
    assert "{\\fldrslt{1}}}" in rtf
    assert options.aux_path == str(paper.with_suffix(".aux"))


def test_convert_file_missing_input_raises(tmp_path):
    with pytest.raises(FatalConversionError):
        convert_file(tmp_path / "absent.tex", options=ConversionOptions())


def test_convert_latex_to_rtf_writes_ascii(tmp_path):
    out = tmp_path / "frag.rtf"
    convert_latex_to_rtf("na\\\"ive caf\\'e", out, ConversionOptions(base_dir=str(tmp_path)))
    rtf = out.read_text(encoding="ascii")
    assert "na\\'efve caf\\'e9" in rtf
