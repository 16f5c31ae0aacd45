from pathlib import Path

import pytest

from latex2rtf.core.errors import SourceError
from latex2rtf.core.source import END, SourceStack


def _drain(src: SourceStack) -> str:
    chars = []
    while True:
        c = src.next_char()
        if c == END:
            return "".join(chars)
        chars.append(c)


def test_file_source_normalizes_line_endings_and_tabs(tmp_path: Path):
    tex = tmp_path / "a.tex"
    tex.write_bytes(b"a\r\nb\rc\td\n")

    src = SourceStack()
    src.push_file(str(tex))
    assert _drain(src) == "a\nb\nc d\n"
    assert src.line_number() == 4


def test_pushback_restores_characters_and_line_count(string_source):
    src = string_source("x\ny")
    assert src.next_char() == "x"
    assert src.next_char() == "\n"
    assert src.line_number() == 2
    src.pushback("\n")
    assert src.line_number() == 1
    assert src.peek_char() == "\n"
    src.pushback_text("ab")
    assert _drain(src) == "ab\ny"


def test_string_context_drains_before_parent_resumes(string_source):
    src = string_source("outer")
    assert src.next_char() == "o"
    src.push_string("IN")
    assert _drain(src) == "IN"
    src.pop()
    assert _drain(src) == "uter"


def test_push_file_missing_raises_source_error(tmp_path: Path):
    src = SourceStack(tmp_path)
    with pytest.raises(SourceError) as exc:
        src.push_file("missing")
    assert "missing" in str(exc.value)
    assert src.depth == 0


def test_resolve_path_appends_tex_suffix(tmp_path: Path):
    (tmp_path / "chapter1.tex").write_text("hi", encoding="utf-8")
    src = SourceStack(tmp_path)
    assert src.resolve_path("chapter1") == tmp_path / "chapter1.tex"
    ctx = src.push_file("chapter1")
    assert ctx.is_file
    assert src.file_name().endswith("chapter1.tex")
    src.close_all()
    assert len(src) == 0
