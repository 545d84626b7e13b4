"""The write command: replace an anchored scope in a file or in a buffer."""

from __future__ import annotations

import os
import tempfile
from collections import deque
from pathlib import Path

from . import hashing
from .anchors import load_anchor
from .errors import AnchorScopeError, ErrorKind, from_io_error_read, validate_utf8
from .lookup import (
    check_duplicate_true_id_in_file_hash,
    file_hash_for_true_id,
    load_anchor_metadata_by_true_id,
    load_buffer_metadata,
)
from .matcher import normalize_line_endings, resolve
from .security import ensure_no_symlinks, validate_file_path, validate_file_size
from .storage import (
    BufferMeta,
    file_dir,
    invalidate_anchor,
    invalidate_label,
    invalidate_true_id_hierarchy,
    load_label_target,
    load_replacement_content,
    load_source_path,
    save_buffer_metadata,
    true_id_dir,
)

_CONTENT = "content"
_REPLACEMENT = "replacement"


def atomic_write_file(path: str | os.PathLike, content: bytes) -> None:
    """Write ``content`` to ``path`` through a temporary file and a rename."""
    target = Path(path)
    if not target.name:
        raise AnchorScopeError(
            ErrorKind.WRITE_FAILURE, cause=ValueError("path has no parent")
        )
    try:
        fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp")
    except OSError as exc:
        raise AnchorScopeError(
            ErrorKind.WRITE_FAILURE,
            cause=OSError(f"tempfile creation error for '{target}': {exc}"),
        ) from exc
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(bytes(content))
    except OSError as exc:
        _discard(temp_name)
        raise AnchorScopeError(ErrorKind.WRITE_FAILURE, cause=exc) from exc
    try:
        os.replace(temp_name, target)
    except OSError as exc:
        _discard(temp_name)
        raise AnchorScopeError(
            ErrorKind.WRITE_FAILURE,
            cause=OSError(f"tempfile persist error for '{target}': {exc}"),
        ) from exc


def _discard(name: str) -> None:
    try:
        os.unlink(name)
    except OSError:
        pass


def _encode(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise AnchorScopeError(ErrorKind.INVALID_UTF8) from exc


def _subdirectories(directory: Path) -> list[Path]:
    try:
        with os.scandir(directory) as entries:
            return sorted(
                Path(entry.path)
                for entry in entries
                if entry.is_dir(follow_symlinks=False)
            )
    except OSError:
        return []


def _nested_container(file_hash: str, true_id: str) -> Path | None:
    """Directory holding ``true_id`` as a child below the file's directory, if any."""
    queue = deque([file_dir(file_hash)])
    while queue:
        for child in _subdirectories(queue.popleft()):
            if (child / true_id / _CONTENT).exists():
                return child
            queue.append(child)
    return None


def _write_buffer(
    true_id: str, expected_hash: str, replacement: str, from_replacement: bool
) -> str:
    file_hash = file_hash_for_true_id(true_id)

    try:
        source_path = load_source_path(file_hash)
    except AnchorScopeError as exc:
        if exc.kind is ErrorKind.DUPLICATE_TRUE_ID:
            raise
        raise AnchorScopeError(ErrorKind.CANNOT_LOAD_SOURCE_PATH, str(exc)) from exc

    try:
        meta = load_buffer_metadata(file_hash, true_id)
    except AnchorScopeError as exc:
        if exc.kind is ErrorKind.DUPLICATE_TRUE_ID:
            raise
        raise AnchorScopeError(
            ErrorKind.PARENT_BUFFER_METADATA_CORRUPTED, str(exc)
        ) from exc

    if expected_hash != meta.scope_hash:
        raise AnchorScopeError(ErrorKind.HASH_MISMATCH)

    container = _nested_container(file_hash, true_id)
    flat_dir = true_id_dir(file_hash, true_id)

    if from_replacement:
        buffer_dir = container / true_id if container is not None else flat_dir
        try:
            data = (buffer_dir / _REPLACEMENT).read_bytes()
        except OSError as exc:
            raise AnchorScopeError(ErrorKind.REPLACEMENT_NOT_FOUND, cause=exc) from exc
    else:
        data = _encode(replacement)

    scope_dir = container if container is not None else flat_dir
    atomic_write_file(scope_dir / _CONTENT, data)

    updated = BufferMeta(
        true_id=meta.true_id,
        parent_true_id=meta.parent_true_id,
        scope_hash=hashing.compute(data),
        anchor=meta.anchor,
    )
    try:
        save_buffer_metadata(file_hash, true_id, updated)
    except AnchorScopeError as exc:
        raise AnchorScopeError(ErrorKind.CANNOT_SAVE_BUFFER_METADATA, str(exc)) from exc

    try:
        invalidate_true_id_hierarchy(file_hash, true_id)
    except AnchorScopeError:
        pass

    atomic_write_file(Path(source_path), data)
    return f"OK: buffer updated for true_id '{true_id}'"


def _resolve_label(
    label: str, replacement: str, from_replacement: bool
) -> tuple[str, bytes, str, bytes]:
    true_id = load_label_target(label)

    try:
        file_hash: str | None = file_hash_for_true_id(true_id)
    except AnchorScopeError:
        file_hash = None
    if file_hash is not None:
        check_duplicate_true_id_in_file_hash(file_hash, true_id)

    meta = load_anchor_metadata_by_true_id(true_id)

    if from_replacement:
        if file_hash is None:
            raise ValueError(
                "IO_ERROR: --from-replacement not supported for v1.1.0 format anchors"
            )
        replacement_bytes = load_replacement_content(file_hash, true_id)
    else:
        replacement_bytes = normalize_line_endings(_encode(replacement))

    return meta.file, _encode(meta.anchor), meta.hash, replacement_bytes


def _resolve_direct(
    file_path: str,
    anchor: str | None,
    anchor_file: str | None,
    expected_hash: str | None,
    replacement: str,
    from_replacement: bool,
) -> tuple[str, bytes, str, bytes]:
    try:
        working_dir = os.getcwd()
    except OSError as exc:
        raise AnchorScopeError(ErrorKind.READ_FAILURE, cause=exc) from exc

    target_path = validate_file_path(file_path, working_dir)
    ensure_no_symlinks(target_path)
    validate_file_size(target_path)

    if anchor_file is not None:
        anchor_path = validate_file_path(anchor_file, working_dir)
        ensure_no_symlinks(anchor_path)

    anchor_bytes = load_anchor(anchor, anchor_file)
    if expected_hash is None:
        raise AnchorScopeError(ErrorKind.NO_REPLACEMENT)
    if from_replacement:
        raise ValueError("IO_ERROR: cannot use --from-replacement without --label")

    replacement_bytes = normalize_line_endings(_encode(replacement))
    return str(target_path), anchor_bytes, expected_hash, replacement_bytes


def _cleanup_after_label_write(label: str) -> None:
    try:
        true_id = load_label_target(label)
        file_hash = file_hash_for_true_id(true_id)
        invalidate_true_id_hierarchy(file_hash, true_id)
    except AnchorScopeError:
        pass


def write(
    file_path: str | None = None,
    anchor: str | None = None,
    anchor_file: str | None = None,
    expected_hash: str | None = None,
    label: str | None = None,
    true_id: str | None = None,
    replacement: str = "",
    from_replacement: bool = False,
) -> str:
    """Replace the scope an anchor, label or True ID points to.

    Returns the success message. Raises AnchorScopeError or MatchError for
    failures the specification names, and ValueError for invalid option use.
    """
    if from_replacement and replacement:
        raise AnchorScopeError(ErrorKind.AMBIGUOUS_REPLACEMENT)
    if not from_replacement and not replacement:
        raise AnchorScopeError(ErrorKind.NO_REPLACEMENT)

    if true_id is not None:
        if label is not None:
            raise ValueError("IO_ERROR: cannot specify both --label and --true-id")
        if file_path is not None:
            raise ValueError("IO_ERROR: cannot specify both --file and --true-id")
        if expected_hash is None:
            raise ValueError("EXPECTED_HASH_REQUIRED")
        return _write_buffer(true_id, expected_hash, replacement, from_replacement)

    if file_path is None:
        raise ValueError("IO_ERROR: must specify either --file or --true-id")

    if label is not None:
        target_file, anchor_bytes, scope_hash, replacement_bytes = _resolve_label(
            label, replacement, from_replacement
        )
    else:
        target_file, anchor_bytes, scope_hash, replacement_bytes = _resolve_direct(
            file_path, anchor, anchor_file, expected_hash, replacement, from_replacement
        )

    try:
        with open(target_file, "rb") as handle:
            raw = handle.read()
    except OSError as exc:
        raise from_io_error_read(exc) from exc
    validate_utf8(raw)

    normalized = normalize_line_endings(raw)
    match = resolve(normalized, anchor_bytes)
    scope = normalized[match.byte_start : match.byte_end]
    if hashing.compute(scope) != scope_hash:
        raise AnchorScopeError(ErrorKind.HASH_MISMATCH)

    result = normalized[: match.byte_start] + replacement_bytes + normalized[match.byte_end :]
    atomic_write_file(target_file, result)

    if label is not None:
        _cleanup_after_label_write(label)
        invalidate_label(label)
    invalidate_anchor(scope_hash)

    return f"OK: written {len(result)} bytes"