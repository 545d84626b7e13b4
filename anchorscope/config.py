"""Settings read from the environment."""

from __future__ import annotations

import os
import re

DEFAULT_MAX_DEPTH = 5
_DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024
_MAX_FILE_SIZE_LIMIT = 1024 * 1024 * 1024
_DEFAULT_NESTING_DEPTH = 100
_DEFAULT_ALLOWED_TOOLS = ("sed", "awk", "perl", "python3", "node")

_UNSIGNED = re.compile(r"\+?[0-9]+")
_U64_MAX = (1 << 64) - 1


def _env_unsigned(name: str) -> int | None:
    """Read an unsigned 64-bit integer from the environment, or None."""
    raw = os.environ.get(name)
    if raw is None or not _UNSIGNED.fullmatch(raw):
        return None
    value = int(raw)
    return value if value <= _U64_MAX else None


def _clamped(name: str, low: int, high: int, default: int) -> int:
    value = _env_unsigned(name)
    if value is None:
        return default
    return min(max(value, low), high)


def max_depth() -> int:
    """Maximum anchor nesting depth, from ANCHORSCOPE_MAX_DEPTH (1..100)."""
    return _clamped("ANCHORSCOPE_MAX_DEPTH", 1, 100, DEFAULT_MAX_DEPTH)


def max_file_size() -> int:
    """Maximum file size in bytes, from ANCHORSCOPE_MAX_FILE_SIZE (1 B..1 GiB)."""
    return _clamped("ANCHORSCOPE_MAX_FILE_SIZE", 1, _MAX_FILE_SIZE_LIMIT, _DEFAULT_MAX_FILE_SIZE)


def max_nesting_depth() -> int:
    """Security nesting limit, from ANCHORSCOPE_MAX_NESTING_DEPTH (1..1000)."""
    return _clamped("ANCHORSCOPE_MAX_NESTING_DEPTH", 1, 1000, _DEFAULT_NESTING_DEPTH)


def allowed_tools() -> list[str]:
    """Tools the pipe command may run, from ANCHORSCOPE_ALLOWED_TOOLS."""
    raw = os.environ.get("ANCHORSCOPE_ALLOWED_TOOLS")
    if raw is None:
        return list(_DEFAULT_ALLOWED_TOOLS)
    return [name for name in (part.strip() for part in raw.split(",")) if name]