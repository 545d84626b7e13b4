"""Path, file-size and tool-name checks applied before touching files."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from . import config
from .errors import AnchorScopeError, ErrorKind

MAX_PATH_LENGTH = 2048
MAX_FILE_SIZE = 100 * 1024 * 1024

_DANGEROUS_CHARS = (";", "|", "&", "$", "`", "\n", "\r", "\t")


def ensure_no_symlinks(path: str | os.PathLike) -> None:
    """Raise PERMISSION_DENIED if ``path`` is a symbolic link."""
    try:
        info = os.lstat(path)
    except OSError as exc:
        raise AnchorScopeError(ErrorKind.FILE_NOT_FOUND, cause=exc) from exc
    if stat.S_ISLNK(info.st_mode):
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)


def validate_file_size(path: str | os.PathLike) -> None:
    """Raise PERMISSION_DENIED if the file is larger than MAX_FILE_SIZE."""
    try:
        size = os.stat(path).st_size
    except OSError as exc:
        raise AnchorScopeError(ErrorKind.FILE_NOT_FOUND, cause=exc) from exc
    if size > MAX_FILE_SIZE:
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)


def validate_tool_name(tool: str) -> None:
    """Reject tool names with paths or shell metacharacters, or not allowed."""
    if "/" in tool or "\\" in tool:
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)
    if any(char in tool for char in _DANGEROUS_CHARS):
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)
    if tool not in config.allowed_tools():
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)


def validate_file_path(path: str | os.PathLike, working_dir: str | os.PathLike) -> Path:
    """Check ``path`` for length, traversal and symlinks; return it resolved."""
    candidate = Path(path)
    if len(os.fsencode(candidate)) > MAX_PATH_LENGTH:
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)
    if ".." in str(candidate) or ".." in os.fspath(path):
        raise AnchorScopeError(ErrorKind.PERMISSION_DENIED)
    resolved = candidate if candidate.is_absolute() else Path(working_dir) / candidate
    if resolved.exists():
        ensure_no_symlinks(resolved)
    return resolved