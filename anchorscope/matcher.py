"""Exact byte-level anchor matching over line-ending-normalized text."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Match:
    """The single exact occurrence of an anchor in a file."""

    start_line: int
    """1-based line number of the first byte of the anchor."""
    end_line: int
    """1-based line number of the last byte of the anchor."""
    byte_start: int
    """Offset of the match start in the normalized content."""
    byte_end: int
    """Offset one past the match end in the normalized content."""


class MatchError(Exception):
    """An anchor did not resolve to exactly one location."""

    code = ""

    def __str__(self) -> str:
        return self.code


class NoMatch(MatchError):
    """The anchor does not occur in the content."""

    code = "NO_MATCH"


class MultipleMatches(MatchError):
    """The anchor occurs more than once in the content."""

    code = "MULTIPLE_MATCHES"

    def __init__(self, count: int) -> None:
        super().__init__(count)
        self.count = count


def normalize_line_endings(raw: bytes) -> bytes:
    """Turn every CRLF into LF; the only implicit normalization applied."""
    return bytes(raw).replace(b"\r\n", b"\n")


def _line_at(haystack: bytes, pos: int) -> int:
    return haystack.count(b"\n", 0, pos) + 1


def find_all(haystack: bytes, needle: bytes) -> list[int]:
    """Offsets of every occurrence of ``needle``, overlapping ones included."""
    if not needle or len(needle) > len(haystack):
        return []
    positions = []
    pos = haystack.find(needle)
    while pos != -1:
        positions.append(pos)
        pos = haystack.find(needle, pos + 1)
    return positions


def resolve(haystack: bytes, anchor: bytes) -> Match:
    """Resolve ``anchor`` to its unique match, raising NoMatch or MultipleMatches."""
    positions = find_all(haystack, anchor)
    if not positions:
        raise NoMatch()
    if len(positions) > 1:
        raise MultipleMatches(len(positions))
    byte_start = positions[0]
    byte_end = byte_start + len(anchor)
    return Match(
        start_line=_line_at(haystack, byte_start),
        end_line=_line_at(haystack, max(byte_end - 1, 0)),
        byte_start=byte_start,
        byte_end=byte_end,
    )


def extract_function_body(content: bytes, anchor_start: int, anchor_end: int) -> bytes:
    """Widen an anchor in Python source to its surrounding ``def`` block."""
    normalized = normalize_line_endings(content)
    start = anchor_start
    end = anchor_end

    search_start = start - 10 if start >= 10 else 0
    def_pos = normalized[search_start:start].rfind(b"def ")
    if def_pos != -1:
        actual_def_pos = search_start + def_pos
        if actual_def_pos > 0:
            start = normalized.rfind(b"\n", 0, actual_def_pos) + 1
        else:
            start = actual_def_pos

    current_pos = end
    length = len(normalized)
    while current_pos < length:
        newline_pos = normalized.find(b"\n", current_pos)
        if newline_pos == -1:
            end = length
            break
        line_end = newline_pos + 1
        if line_end >= length:
            end = length
            break
        if normalized.startswith(b"def ", line_end):
            end = current_pos
            break
        current_pos = line_end

    return normalized[start:end]