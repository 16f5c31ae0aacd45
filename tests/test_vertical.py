from latex2rtf.core.lengths import Lengths
from latex2rtf.core.profile import ParagraphConfig
from latex2rtf.core.vertical import Alignment, Indent, IndentPolicy, Mode, ParagraphFormatter


def _formatter(rtf_out, config=None):
    buf, out = rtf_out
    return buf, ParagraphFormatter(out, Lengths(), config)


def test_vertical_to_horizontal_starts_exactly_one_paragraph(rtf_out):
    buf, fmt = _formatter(rtf_out)
    fmt.set_mode(Mode.HORIZONTAL)
    fmt.set_mode(Mode.HORIZONTAL)
    assert fmt.paragraphs_started == 1
    assert buf.getvalue() == "\\pard\\qj\\sl240\\slmult1 \\fi300 "

    fmt.set_mode(Mode.VERTICAL)
    assert fmt.mode == Mode.VERTICAL
    assert buf.getvalue().endswith("\\par\n")


def test_end_paragraph_is_suppressed_inside_a_field(rtf_out):
    buf, fmt = _formatter(rtf_out)
    fmt.set_mode(Mode.HORIZONTAL)
    before = len(buf.getvalue())
    with fmt.field():
        assert fmt.in_field
        fmt.end_paragraph()
    assert len(buf.getvalue()) == before
    assert fmt.mode == Mode.HORIZONTAL
    fmt.end_paragraph()
    assert buf.getvalue().endswith("\\par\n")


def test_title_paragraph_suppresses_indent_of_the_next_paragraph_only(rtf_out):
    buf, fmt = _formatter(rtf_out)
    fmt.start_paragraph("section", IndentPolicy.NO_INDENT_EVER)
    fmt.end_paragraph()
    fmt.set_mode(Mode.HORIZONTAL)
    fmt.end_paragraph()
    fmt.set_mode(Mode.HORIZONTAL)
    rtf = buf.getvalue()
    assert rtf.count("\\fi0 ") == 2
    assert rtf.count("\\fi300 ") == 1


def test_first_of_section_indent_follows_profile(rtf_out):
    buf, fmt = _formatter(rtf_out, ParagraphConfig(first_paragraph_indent=True))
    fmt.start_paragraph("body", IndentPolicy.FIRST_OF_SECTION)
    assert "\\fi300 " in buf.getvalue()

    buf2, fmt2 = _formatter(rtf_out)
    fmt2.start_paragraph("body", IndentPolicy.FIRST_OF_SECTION)
    assert buf2.getvalue().endswith("\\fi0 ")


def test_vspace_alignment_and_margins_apply_to_next_paragraph(rtf_out):
    buf, fmt = _formatter(rtf_out)
    fmt.add_vspace(120)
    fmt.push_alignment(Alignment.CENTER)
    fmt.indent(Indent.NONE)
    fmt.set_mode(Mode.HORIZONTAL)
    assert buf.getvalue() == "\\pard\\qc\\sl240\\slmult1 \\sb120 \\fi0 "

    fmt.end_paragraph()
    fmt.pop_alignment()
    fmt.set_mode(Mode.HORIZONTAL)
    assert buf.getvalue().endswith("\\pard\\qj\\sl240\\slmult1 \\fi300 ")


def test_list_sets_hanging_indent_and_restores_it(rtf_out):
    buf, fmt = _formatter(rtf_out)
    saved = fmt.begin_list(450, -450)
    fmt.start_paragraph("bibitem", IndentPolicy.FIRST_OF_SECTION)
    assert buf.getvalue().endswith("\\li450\\fi-450 ")
    fmt.end_list(saved)
    assert fmt.state.left_indent == 0
    assert fmt.lengths.get_length("parindent") == 300
    assert fmt.list_depth == 0


def test_new_page_is_written_before_the_paragraph(rtf_out):
    buf, fmt = _formatter(rtf_out)
    fmt.new_page()
    fmt.set_mode(Mode.HORIZONTAL)
    assert buf.getvalue().startswith("\\page{} \\pard")
