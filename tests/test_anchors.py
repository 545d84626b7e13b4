import pytest

from anchorscope.anchors import load_anchor
from anchorscope.errors import AnchorScopeError, ErrorKind
from anchorscope.matcher import resolve


def test_single_line_anchor_from_file(tmp_path):
    anchor_path = tmp_path / "anchor.txt"
    anchor_path.write_text("Line 2: ANCHOR")
    anchor = load_anchor(None, str(anchor_path))
    assert anchor == b"Line 2: ANCHOR"
    m = resolve(b"Line 1\nLine 2: ANCHOR\nLine 3\n", anchor)
    assert (m.start_line, m.end_line) == (2, 2)


def test_multiline_anchor_from_file(tmp_path):
    anchor_path = tmp_path / "anchor.txt"
    anchor_path.write_text("Line 2: start\nLine 3: middle\nLine 4: end")
    anchor = load_anchor(None, anchor_path)
    content = b"Line 1\nLine 2: start\nLine 3: middle\nLine 4: end\nLine 5\n"
    m = resolve(content, anchor)
    assert (m.start_line, m.end_line) == (2, 4)
    assert content[m.byte_start:m.byte_end] == b"Line 2: start\nLine 3: middle\nLine 4: end"


def test_empty_anchor_file_is_no_match(tmp_path):
    anchor_path = tmp_path / "empty_anchor.txt"
    anchor_path.write_bytes(b"")
    with pytest.raises(AnchorScopeError) as info:
        load_anchor(None, anchor_path)
    assert info.value.spec() == "NO_MATCH"


def test_nonexistent_anchor_file_is_io_error(tmp_path):
    with pytest.raises(AnchorScopeError) as info:
        load_anchor(None, tmp_path / "nonexistent" / "anchor.txt")
    assert info.value.kind is ErrorKind.FILE_NOT_FOUND
    assert info.value.starts_with("IO_ERROR:")


def test_anchor_file_crlf_normalized(tmp_path):
    anchor_path = tmp_path / "anchor_crlf.txt"
    anchor_path.write_bytes(b"TARGET\r\n")
    anchor = load_anchor(None, anchor_path)
    assert anchor == b"TARGET\n"
    m = resolve(b"line1\nTARGET\nline3", anchor)
    assert m.byte_start == 6


def test_anchor_and_anchor_file_mutually_exclusive(tmp_path):
    anchor_path = tmp_path / "anchor.txt"
    anchor_path.write_text("Line 2: ANCHOR")
    with pytest.raises(ValueError, match="mutually exclusive"):
        load_anchor("SOME_ANCHOR", anchor_path)


def test_neither_anchor_nor_file():
    with pytest.raises(ValueError, match="--anchor-file must be provided"):
        load_anchor(None, None)


def test_anchor_file_invalid_utf8(tmp_path):
    anchor_path = tmp_path / "bad_anchor.txt"
    anchor_path.write_bytes(bytes([0x80, 0x81, 0x82]))
    with pytest.raises(AnchorScopeError) as info:
        load_anchor(None, anchor_path)
    assert info.value.spec() == "IO_ERROR: invalid UTF-8"


def test_inline_anchor_normalized():
    assert load_anchor("a\r\nb", None) == b"a\nb"


def test_inline_empty_anchor_is_no_match():
    with pytest.raises(AnchorScopeError) as info:
        load_anchor("", None)
    assert info.value.kind is ErrorKind.NO_MATCH


def test_inline_non_ascii_anchor():
    assert load_anchor("é", None) == b"\xc3\xa9"