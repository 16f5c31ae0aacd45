import logging

from latex2rtf.core.bookmarks import BookmarkRegistry, normalize_signet


def test_normalize_signet_keeps_only_safe_characters():
    assert normalize_signet("sec:intro-1") == "secintro1"
    assert normalize_signet("fig_a.b") == "fig_ab"


def test_bookmark_is_emitted_once_per_label(rtf_out, diagnostics):
    buf, out = rtf_out
    registry = BookmarkRegistry(out, diagnostics)

    assert registry.ensure("sec:1", "text")
    assert buf.getvalue() == "{\\*\\bkmkstart BMsec1}text{\\*\\bkmkend BMsec1}"

    assert not registry.ensure("sec:1", "again")
    assert buf.getvalue().endswith("{\\*\\bkmkend BMsec1}again")
    assert "sec:1" in registry
    assert len(registry) == 1


def test_bibliography_prefix_does_not_collide_with_labels(rtf_out, diagnostics):
    buf, out = rtf_out
    registry = BookmarkRegistry(out, diagnostics)
    assert registry.ensure("knuth", "")
    assert registry.ensure("knuth", lambda: out.put_text("1"), prefix="BIB_")
    assert "{\\*\\bkmkstart BIB_knuth}1{\\*\\bkmkend BIB_knuth}" in buf.getvalue()
    assert len(registry) == 2


def test_without_fields_text_is_written_and_label_recorded(rtf_out, diagnostics):
    buf, out = rtf_out
    registry = BookmarkRegistry(out, diagnostics, use_fields=False)
    assert not registry.ensure("eq1", "(1)")
    assert buf.getvalue() == "(1)"
    assert "eq1" in registry


def test_capacity_warns_once_and_keeps_writing_markers(rtf_out, diagnostics, caplog):
    caplog.set_level(logging.WARNING)
    buf, out = rtf_out
    registry = BookmarkRegistry(out, diagnostics, capacity=1)
    registry.ensure("a", "A")
    assert registry.ensure("b", "B")
    registry.ensure("c", "C")

    assert len(registry) == 1
    assert "b" not in registry
    assert buf.getvalue().endswith(
        "{\\*\\bkmkstart BMb}B{\\*\\bkmkend BMb}"
        "{\\*\\bkmkstart BMc}C{\\*\\bkmkend BMc}"
    )
    assert sum("Too many labels" in r.getMessage() for r in caplog.records) == 1
