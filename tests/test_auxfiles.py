import logging
from pathlib import Path

from latex2rtf.core.auxfiles import AuxResolver, AuxShape, BblRetriever


def _aux(tmp_path: Path, text: str, name: str = "doc.aux") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_lookup_shapes(tmp_path: Path, diagnostics):
    aux = _aux(tmp_path, "\n".join([
        r"\relax",
        r"\bibcite{knuth}{1}",
        r"\newlabel{sec:intro}{{2.1}{3}{Intro\relax }{section.2}{}}",
        r"\harvardcite{jones}{Jones and Brown}{Jones et al.}{1999}",
        r"\newacro{SW}[\AC@hyperlink{SW}{SW}]{Scientific Word}",
    ]))
    resolver = AuxResolver(aux, diagnostics)

    assert resolver.lookup("bibcite", "knuth") == "1"
    assert resolver.lookup("newlabel", "sec:intro", AuxShape.FIRST_OF_PAIR) == "2.1"
    assert resolver.lookup("harvardcite", "jones", AuxShape.RAW_GROUPS) == (
        "{Jones and Brown}{Jones et al.}{1999}"
    )
    assert resolver.lookup("newacro", "SW", AuxShape.BRACKET) == (
        r"\AC@hyperlink{SW}{SW}]{Scientific Word}"
    )
    assert resolver.lookup("bibcite", "nobody") is None
    resolver.close()


def test_lookup_follows_input_records_relative_to_aux_dir(tmp_path: Path, diagnostics):
    (tmp_path / "sub").mkdir()
    _aux(tmp_path, r"\bibcite{deep}{7}", "sub/chap.aux")
    aux = _aux(tmp_path, "\\relax\n\\@input{sub/chap.aux}\n")
    resolver = AuxResolver(aux, diagnostics)
    assert resolver.lookup("bibcite", "deep") == "7"
    # repeated lookups rewind the cached handles
    assert resolver.lookup("bibcite", "deep") == "7"
    resolver.close()


def test_lookup_survives_recursive_input(tmp_path: Path, diagnostics):
    _aux(tmp_path, "\\@input{a.aux}\n\\bibcite{b}{2}\n", "b.aux")
    aux = _aux(tmp_path, "\\@input{b.aux}\n\\bibcite{a}{1}\n", "a.aux")
    resolver = AuxResolver(aux, diagnostics)
    assert resolver.lookup("bibcite", "b") == "2"
    assert resolver.lookup("bibcite", "a") == "1"
    assert resolver.lookup("bibcite", "zzz") is None
    assert not resolver.missing
    resolver.close()


def test_missing_aux_file_warns_once(tmp_path: Path, diagnostics, caplog):
    caplog.set_level(logging.WARNING)
    resolver = AuxResolver(tmp_path / "nothing.aux", diagnostics)

    assert resolver.lookup("bibcite", "a") is None
    assert resolver.lookup("newlabel", "b", AuxShape.FIRST_OF_PAIR) is None
    assert resolver.missing

    messages = [r.getMessage() for r in caplog.records]
    assert messages.count("No .aux file.  Run LaTeX to create one.") == 1
    assert diagnostics.warning_count == 1


def test_missing_included_aux_file_does_not_disable_lookups(tmp_path: Path, diagnostics):
    aux = _aux(tmp_path, "\\@input{gone.aux}\n\\bibcite{k}{3}\n")
    resolver = AuxResolver(aux, diagnostics)
    assert resolver.lookup("bibcite", "k") == "3"
    assert resolver.lookup("bibcite", "k") == "3"
    assert not resolver.missing
    assert diagnostics.warning_count == 1


BBL = r"""\begin{thebibliography}{2}

\bibitem{knuth}
D.~E. Knuth.
\newblock {\em The Art of Computer Programming}.

\bibitem{lamport}
L.~Lamport.
\newblock {\em \LaTeX: A Document Preparation System}.

\end{thebibliography}
"""


def test_bbl_fetch_returns_entry_without_trailing_period(tmp_path: Path, diagnostics):
    bbl = tmp_path / "doc.bbl"
    bbl.write_text(BBL, encoding="utf-8")
    retriever = BblRetriever(bbl, diagnostics)

    assert retriever.fetch("lamport") == (
        "L.~Lamport.\n\\newblock {\\em \\LaTeX: A Document Preparation System}"
    )
    assert retriever.fetch("knuth").startswith("D.~E. Knuth.")
    assert retriever.fetch("nobody") is None
    retriever.close()


def test_missing_bbl_file_warns_once(tmp_path: Path, diagnostics, caplog):
    caplog.set_level(logging.WARNING)
    retriever = BblRetriever(tmp_path / "none.bbl", diagnostics)
    assert retriever.fetch("a") is None
    assert retriever.fetch("b") is None
    messages = [r.getMessage() for r in caplog.records]
    assert messages.count("No .bbl file.  Run LaTeX to create one.") == 1


def test_backslash_line_continuation_joins_record(tmp_path: Path, diagnostics):
    aux = _aux(tmp_path, "\\newlabel{eq:long}{{4}\\\n{7}}\n\\bibcite{long}{Smith and \\\nJones}\n")
    resolver = AuxResolver(aux, diagnostics)
    assert resolver.lookup("newlabel", "eq:long", AuxShape.FIRST_OF_PAIR) == "4"
    assert resolver.lookup("bibcite", "long") == "Smith and Jones"
    resolver.close()
