import logging

from latex2rtf.core.context import ConversionOptions


def test_section_label_and_ref_resolve_through_aux(convert):
    rtf = convert(
        r"\section{A}text\label{s1}\ref{s1}",
        aux=r"\newlabel{s1}{{1}{1}{}{}{}}",
    )
    assert rtf.startswith("{\\rtf1")
    assert "1  A}" in rtf
    assert "{\\*\\bkmkstart BMs1}{\\*\\bkmkend BMs1}" in rtf
    assert "REF BMs1" in rtf
    assert "{\\fldrslt{1}}}" in rtf
    assert rtf.rstrip().endswith("}")


def test_unresolved_reference_prints_question_mark_and_warns_once(convert, caplog):
    caplog.set_level(logging.WARNING)
    rtf = convert(r"See \ref{a} and \pageref{b}.", use_fields=False)
    assert "See ? and b." in rtf
    messages = [r.getMessage() for r in caplog.records]
    assert sum("No .aux file" in m for m in messages) == 1


def test_preamble_output_is_discarded(convert):
    rtf = convert(
        "\\documentclass{article}\n"
        "\\usepackage{foo}\n"
        "PREAMBLE\n"
        "\\begin{document}\n"
        "Body\n"
        "\\end{document}\n"
        "AFTER\n"
    )
    assert "PREAMBLE" not in rtf
    assert "AFTER" not in rtf
    assert "\\pard\\qj\\sl240\\slmult1 \\fi300 Body" in rtf


def test_blank_line_separates_paragraphs_and_spaces_collapse(convert):
    rtf = convert("one   two\nthree\n\n  four")
    assert "one two three\\par\n" in rtf
    assert rtf.count("\\pard\\q") == 2


def test_ligatures_quotes_and_specials(convert):
    rtf = convert(r"``Hi''---there--now 50\% a~b \{x\} 10-2")
    assert "\\ldblquote Hi\\rdblquote \\emdash there\\endash now" in rtf
    assert "50% a\\~b \\{x\\} 10-2" in rtf


def test_inline_and_display_math(convert):
    rtf = convert(
        r"Let $x^2_i$ hold."
        r"\begin{equation}E=mc^{2}\label{eq1}\end{equation}"
        r"By \eqref{eq1}.",
        aux=r"\newlabel{eq1}{{1}{1}}",
    )
    assert "{\\i x{\\super 2}{\\sub i}}" in rtf
    assert "\\qc" in rtf
    assert "{\\*\\bkmkstart BMeq1}(1){\\*\\bkmkend BMeq1}" in rtf
    assert "({\\field" in rtf
    assert "{\\fldrslt{1}}})" in rtf


def test_unknown_command_is_reported_once(convert, caplog):
    caplog.set_level(logging.WARNING)
    rtf = convert(r"\foo x \foo{y}")
    assert "x {y}" in rtf
    assert sum("Command \\foo ignored" in r.getMessage() for r in caplog.records) == 1


def test_symbols_and_accents_are_encoded(convert):
    rtf = convert(r"caf\'e \c{c} $\alpha$")
    assert "caf\\'e9 \\'e7 {\\i \\u945?}" in rtf


def test_mismatched_braces_warn_and_safety_braces_are_added(convert, caplog):
    caplog.set_level(logging.WARNING)
    rtf = convert("{unclosed", safety_braces=2)
    assert rtf.endswith("}\n}}")
    messages = [r.getMessage() for r in caplog.records]
    assert any("Mismatched '{' in RTF file" in m for m in messages)
    assert any("latex2rtf -Z1" in m for m in messages)


def test_input_converts_included_file_and_skips_missing_one(convert, tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    (tmp_path / "part.tex").write_text("Included text.", encoding="utf-8")
    rtf = convert(r"Start \input{part} \input{nothere} end")
    assert "Included text." in rtf
    assert " end" in rtf
    assert any("nothere" in r.getMessage() for r in caplog.records)


def test_report_chapters_number_sections(convert):
    rtf = convert(
        "\\documentclass{report}\n\\begin{document}\n"
        "\\chapter{Intro}\n\\section{Scope}\nText\n\\end{document}"
    )
    assert "Chapter 1\\line Intro" in rtf
    assert "1.1  Scope" in rtf
    assert "\\page{} " in rtf


def test_paragraph_commands(convert):
    rtf = convert(r"\noindent First\par\vspace{12pt}Second\begin{center}Mid\end{center}Last")
    assert "\\fi0 First" in rtf
    assert "\\sb240 \\fi300 Second" in rtf
    assert "\\pard\\qc" in rtf
    assert "\\pard\\qj\\sl240\\slmult1 \\fi0 Last" in rtf


def test_embedded_warnings_appear_in_rtf(convert):
    rtf = convert(r"\ref{missing}", rtf_warnings=True)
    assert "{\\plain\\cf2 [latex2rtf:" in rtf
    assert "No .aux file." in rtf


def test_options_derive_file_names_from_input():
    options = ConversionOptions(input_path="/tmp/paper.tex", safety_braces=12)
    options.resolve_names()
    assert options.aux_path == "/tmp/paper.aux"
    assert options.bbl_path == "/tmp/paper.bbl"
    assert options.base_dir == "/tmp"
    assert options.safety_braces == 9
