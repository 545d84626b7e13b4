"""Loading the anchor text given inline or in a file."""

from __future__ import annotations

import os

from .errors import AnchorScopeError, ErrorKind, from_io_error_read, validate_utf8
from .matcher import normalize_line_endings

_MISSING_ANCHOR = "ERROR: either --anchor or --anchor-file must be provided"
_BOTH_ANCHORS = "IO_ERROR: mutually exclusive options"


def load_anchor(
    anchor: str | None,
    anchor_file: str | os.PathLike | None,
) -> bytes:
    """Return the normalized anchor bytes from ``anchor`` or ``anchor_file``.

    Raises ValueError when neither or both sources are given, and
    AnchorScopeError for an empty anchor, unreadable file or invalid UTF-8.
    """
    if anchor is None and anchor_file is None:
        raise ValueError(_MISSING_ANCHOR)
    if anchor is not None and anchor_file is not None:
        raise ValueError(_BOTH_ANCHORS)

    if anchor is not None:
        if not anchor:
            raise AnchorScopeError(ErrorKind.NO_MATCH)
        try:
            data = anchor.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise AnchorScopeError(ErrorKind.INVALID_UTF8) from exc
        return normalize_line_endings(data)

    try:
        with open(anchor_file, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise from_io_error_read(exc) from exc
    if not validate_utf8(data):
        raise AnchorScopeError(ErrorKind.NO_MATCH)
    return normalize_line_endings(data)