import pytest

from anchorscope.matcher import (
    Match,
    MatchError,
    MultipleMatches,
    NoMatch,
    extract_function_body,
    find_all,
    normalize_line_endings,
    resolve,
)


def test_normalize_crlf_to_lf():
    assert normalize_line_endings(b"a\r\nb\r\n") == b"a\nb\n"


def test_normalize_keeps_lone_cr():
    assert normalize_line_endings(b"a\rb\r\r\nc") == b"a\rb\r\nc"


def test_find_all_overlapping():
    assert find_all(b"aaaa", b"aa") == [0, 1, 2]


def test_find_all_empty_needle_and_too_long():
    assert find_all(b"abc", b"") == []
    assert find_all(b"ab", b"abc") == []


def test_anchor_at_start_of_file():
    m = resolve(b"ANCHOR_CONTENT\nrest of file", b"ANCHOR_CONTENT")
    assert (m.start_line, m.end_line) == (1, 1)
    assert (m.byte_start, m.byte_end) == (0, 14)


def test_anchor_at_end_of_file():
    content = b"some content\nANCHOR"
    m = resolve(content, b"ANCHOR")
    assert m.start_line == 2
    assert m.end_line == 2
    assert content[m.byte_start:m.byte_end] == b"ANCHOR"


def test_multiline_anchor_spans_lines():
    m = resolve(b"a\nb\nc\nd", b"b\nc")
    assert m == Match(start_line=2, end_line=3, byte_start=2, byte_end=5)


def test_non_ascii_content():
    m = resolve(b"B\n\xc3\xa9", b"B")
    assert (m.start_line, m.end_line) == (1, 1)


def test_anchor_ending_in_newline_stays_on_its_line():
    m = resolve(b"line1\nTARGET\nline3", b"TARGET\n")
    assert (m.start_line, m.end_line) == (2, 2)


def test_no_match():
    with pytest.raises(NoMatch) as info:
        resolve(b"hello", b"xyz")
    assert str(info.value) == "NO_MATCH"


def test_multiple_matches_counts_overlaps():
    with pytest.raises(MultipleMatches) as info:
        resolve(b"aaa", b"aa")
    assert info.value.count == 2
    assert str(info.value) == "MULTIPLE_MATCHES"
    assert isinstance(info.value, MatchError)


def test_extract_whole_function_from_def_anchor():
    content = b"def foo():\n    x\n"
    assert extract_function_body(content, 0, 9) == content


def test_extract_widens_back_to_def_line():
    content = b"def foo():\n    return 1\n"
    assert extract_function_body(content, 4, 9) == content


def test_extract_stops_before_next_def():
    content = b"def a():\n    x\ndef b():\n    y\n"
    assert extract_function_body(content, 0, 7) == b"def a():\n"


def test_extract_normalizes_crlf():
    content = b"def foo():\r\n    x\r\n"
    assert extract_function_body(content, 0, 9) == b"def foo():\n    x\n"