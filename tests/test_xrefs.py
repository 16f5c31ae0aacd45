import logging

ACRO_AUX = r"\newacro{SW}[\AC@hyperlink{SW}{SW}]{Scientific Word}"

NATBIB_AUX = "\n".join([
    r"\bibcite{smith04a}{{1}{2004a}{{Smith}}{{John Smith}}}",
    r"\bibcite{smith04b}{{2}{2004b}{{Smith}}{{John Smith}}}",
    r"\bibcite{jones99}{{3}{1999}{{Jones et~al.}}{{Jones, Brown, and Lee}}}",
])

BBL = "\n".join([
    r"\begin{thebibliography}{1}",
    "",
    r"\bibitem{knuth}",
    r"D.~Knuth.",
    r"\newblock The TeXbook.",
    "",
    r"\end{thebibliography}",
    "",
])


def _document(body: str, preamble: str = "", doc_class: str = "article") -> str:
    return "\\documentclass{%s}\n%s\n\\begin{document}\n%s\n\\end{document}\n" % (
        doc_class, preamble, body,
    )


# ── Acronyms ──

def test_acronym_full_form_on_first_use_only(convert):
    rtf = convert(r"\ac{SW} and \ac{SW}", aux=ACRO_AUX)
    assert "Scientific Word (SW) and SW" in rtf


def test_acronym_plural_and_reset(convert):
    rtf = convert(r"\acp{SW}; \acl{SW}; \acresetall \ac{SW}", aux=ACRO_AUX)
    assert "Scientific Words (SWs); Scientific Word; Scientific Word (SW)" in rtf


def test_starred_acronym_is_not_marked_used(convert):
    rtf = convert(r"\ac*{SW} \ac{SW}", aux=ACRO_AUX)
    assert rtf.count("Scientific Word (SW)") == 2


def test_undefined_acronym_warns(convert, caplog):
    caplog.set_level(logging.WARNING)
    convert(r"\ac{XY}", aux=ACRO_AUX)
    assert "Undefined acronym 'XY'" in caplog.text


# ── Bibliography ──

def test_bibliography_converts_bbl_with_bookmarked_numbers(convert):
    rtf = convert(
        _document("As \\cite{knuth} shows.\n\\bibliography{refs}"),
        aux=r"\bibcite{knuth}{1}",
        bbl=BBL,
    )
    assert "{\\plain\\b\\fs32 References}" in rtf
    assert "[{\\*\\bkmkstart BIB_knuth}1{\\*\\bkmkend BIB_knuth}]\\tab" in rtf
    assert "D.\\~Knuth." in rtf


def test_report_bibliography_title(convert):
    rtf = convert(
        _document("\\bibliography{refs}", doc_class="report"),
        aux=r"\bibcite{knuth}{1}",
        bbl=BBL,
    )
    assert "{\\plain\\b\\fs32 Bibliography}" in rtf


def test_missing_bbl_warns(convert, caplog):
    caplog.set_level(logging.WARNING)
    convert(_document("\\bibliography{refs}"), aux="")
    assert "Cannot open bibliography file" in caplog.text


# ── natbib ──

def test_natbib_package_installs_author_year_citations(convert):
    rtf = convert(
        _document("\\citet{smith04a,smith04b}", preamble="\\usepackage{natbib}"),
        aux=NATBIB_AUX,
        use_fields=False,
    )
    assert "{Smith} (2004a,b)" in rtf


def test_natbib_citep_with_notes(convert):
    rtf = convert(
        _document("\\citep[see][p.~2]{jones99}", preamble="\\usepackage{natbib}"),
        aux=NATBIB_AUX,
        use_fields=False,
    )
    assert "(see {Jones et\\~al.}, 1999, p.\\~2)" in rtf


def test_bibpunct_switches_to_numbers(convert):
    body = "\\bibpunct{[}{]}{,}{n}{}{,}\\citep{smith04a,jones99}"
    rtf = convert(_document(body, preamble="\\usepackage{natbib}"), aux=NATBIB_AUX, use_fields=False)
    assert "[1, 3]" in rtf


# ── References ──

def test_nameref_uses_section_title(convert):
    aux = r"\newlabel{intro}{{1}{1}{Introduction\relax }{section.1}{}}"
    rtf = convert(r"See \nameref{intro}.", aux=aux)
    assert "See Introduction." in rtf


def test_vref_adds_page_reference(convert):
    rtf = convert(r"\vref{intro}", aux=r"\newlabel{intro}{{1}{1}}")
    assert "{\\fldrslt{1}}} {\\field" in rtf
    assert "PAGEREF BMintro" in rtf


def test_pageref_without_fields_writes_label(convert):
    rtf = convert(r"page \pageref{intro}", aux=r"\newlabel{intro}{{1}{1}}", use_fields=False)
    assert "page intro" in rtf
    assert "\\field" not in rtf


# ── apacite, harvard and authordate ──

def test_apacite_long_names_then_short_names(convert):
    body = "\\cite{smith01} \\cite{smith01} \\citeA{smith01}"
    rtf = convert(
        _document(body, preamble="\\usepackage{apacite}"),
        aux=r"\bibcite{smith01}{\BCAY{Smith, Jones}{Smith et al.}{2001}}",
        use_fields=False,
    )
    assert "(Smith, Jones, 2001) (Smith et al., 2001) Smith et al. (2001)" in rtf


def test_harvard_citeasnoun_uses_full_names(convert):
    rtf = convert(
        _document("\\citeasnoun{jones}", preamble="\\usepackage{harvard}"),
        aux=r"\harvardcite{jones}{Jones and Brown}{Jones et al.}{1999}",
        use_fields=False,
    )
    assert "Jones and Brown (1999)" in rtf


def test_authordate_shortcite_drops_citename(convert):
    rtf = convert(
        _document("\\cite{knuth} and \\shortcite{knuth}", preamble="\\usepackage{authordate1-4}"),
        aux=r"\bibcite{knuth}{\citename{Knuth, }1984}",
        use_fields=False,
    )
    assert "(Knuth, 1984) and (1984)" in rtf
