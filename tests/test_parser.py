from latex2rtf.core.lengths import Lengths, parse_dimension
from latex2rtf.core.parser import (
    brace_params,
    dimension_value,
    get_angle_param,
    get_brace_param,
    get_bracket_param,
    get_command_name,
    get_dimension,
    skip_blanks,
    split_keys,
    strip_comments,
    strip_outer_braces,
)


def test_get_brace_param_keeps_nested_groups(string_source):
    src = string_source("  {a{b}c} rest")
    assert get_brace_param(src) == "a{b}c"
    assert src.next_char() == " "


def test_get_brace_param_reads_single_token_when_unbraced(string_source):
    src = string_source("x\\alpha")
    assert get_brace_param(src) == "x"
    assert get_brace_param(src) == "\\alpha"


def test_get_bracket_param_absent_returns_none_without_consuming(string_source):
    src = string_source("{y}")
    assert get_bracket_param(src) is None
    assert get_brace_param(src) == "y"


def test_get_bracket_param_allows_blanks_and_nested_brackets(string_source):
    src = string_source(" [see [1], p.~3]{k}")
    assert get_bracket_param(src) == "see [1], p.~3"
    assert get_brace_param(src) == "k"


def test_get_angle_param_reads_apacite_prefix(string_source):
    src = string_source("<e.g.,>[p. 3]{key}")
    assert get_angle_param(src) == "e.g.,"
    assert get_bracket_param(src) == "p. 3"


def test_get_command_name_letters_at_sign_and_symbols(string_source):
    src = string_source("AC@hyperlink{x}")
    assert get_command_name(src) == "AC@hyperlink"
    src = string_source("{x")
    assert get_command_name(src) == "{"
    src = string_source("")
    assert get_command_name(src) == ""


def test_skip_blanks_never_consumes_a_blank_line(string_source):
    src = string_source("  \n\nx")
    skip_blanks(src)
    assert src.next_char() == "\n"
    assert src.next_char() == "\n"
    assert src.next_char() == "x"


def test_skip_blanks_consumes_a_single_line_break(string_source):
    src = string_source(" \n  x")
    skip_blanks(src)
    assert src.next_char() == "x"


def test_parse_dimension_units_in_twips():
    assert parse_dimension("1in") == 1440
    assert parse_dimension("12pt") == 240
    assert parse_dimension("2.54cm") == 1440
    assert parse_dimension("10") == 200
    assert parse_dimension("wide") is None


def test_dimension_value_scales_named_lengths():
    lengths = Lengths()
    assert dimension_value("0.5\\textwidth", lengths) == 3450
    assert dimension_value("\\parindent", lengths) == 300
    assert dimension_value("-\\smallskipamount", lengths) == -60


def test_get_dimension_reads_bare_and_braced_values(string_source):
    lengths = Lengths()
    assert get_dimension(string_source("{1cm}"), lengths) == 567
    assert get_dimension(string_source("6pt plus"), lengths) == 120


def test_string_helpers():
    assert brace_params("{1}{2004}{{Smith}}", 4) == ["1", "2004", "{Smith}", ""]
    assert strip_comments("a % note\nb\\% c") == "a \nb\\% c"
    assert strip_outer_braces("  {Scientific Word} ") == "Scientific Word"
    assert strip_outer_braces("{a}{b}") == "{a}{b}"
    assert split_keys(" a, b ,,c ") == ["a", "b", "c"]


def test_lengths_counters_and_prefixed_reset():
    lengths = Lengths(parindent=420)
    assert lengths.get_length("parindent") == 420
    assert lengths.increment_counter("ACRO~SW") == 1
    lengths.increment_counter("ACRO~CPU")
    lengths.increment_counter("section")
    lengths.zero_prefixed("ACRO~")
    assert lengths.get_counter("ACRO~SW") == 0
    assert lengths.get_counter("ACRO~CPU") == 0
    assert lengths.get_counter("section") == 1
