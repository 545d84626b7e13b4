"""Locating buffers by True ID anywhere in the store, with duplicate detection."""

from __future__ import annotations

import os
from collections import deque
from collections.abc import Iterator
from pathlib import Path

from .errors import AnchorScopeError, ErrorKind
from .storage import (
    AnchorMeta,
    BufferMeta,
    anchors_dir,
    file_dir,
    root_dir,
    true_id_dir,
)

_CONTENT = "content"
_METADATA = "metadata.json"
_SOURCE_PATH = "source_path"
_RESERVED = frozenset({"anchors", "labels"})


class AmbiguousAnchorError(Exception):
    """The same True ID exists in more than one location."""

    def __init__(self, true_id: str, locations: list[Path]) -> None:
        self.true_id = true_id
        self.locations = list(locations)
        super().__init__(
            f"true_id '{true_id}' found in multiple locations: "
            + ", ".join(str(p) for p in self.locations)
        )


def _io_error(exc: OSError | UnicodeDecodeError) -> AnchorScopeError:
    if isinstance(exc, FileNotFoundError):
        return AnchorScopeError(ErrorKind.FILE_NOT_FOUND, cause=exc)
    if isinstance(exc, PermissionError):
        return AnchorScopeError(ErrorKind.PERMISSION_DENIED, cause=exc)
    return AnchorScopeError(ErrorKind.WRITE_FAILURE, cause=exc)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise _io_error(exc) from exc


def _read_text(path: Path) -> str:
    data = _read_bytes(path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _io_error(exc) from exc


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


def _walk(start: Path) -> Iterator[Path]:
    """Yield ``start`` and every directory beneath it, breadth first."""
    queue = deque([start])
    while queue:
        current = queue.popleft()
        yield current
        queue.extend(_subdirectories(current))


def _holds_buffer(directory: Path) -> bool:
    return (directory / _CONTENT).exists() or (directory / _METADATA).exists()


def find_true_id_dir(file_hash: str, true_id: str) -> Path | None:
    """Return the directory of ``true_id`` under a file, flat or nested.

    Raises AmbiguousAnchorError if it exists in more than one place.
    """
    found: list[Path] = []
    for current in _walk(file_dir(file_hash)):
        target = current / true_id
        if _holds_buffer(target):
            found.append(target)
            if len(found) > 1:
                raise AmbiguousAnchorError(true_id, found)
    return found[0] if found else None


def _buffer_content_path(file_hash: str, true_id: str) -> Path | None:
    flat = true_id_dir(file_hash, true_id) / _CONTENT
    if flat.exists():
        return flat
    walk = _walk(file_dir(file_hash))
    next(walk)
    for child in walk:
        candidate = child / true_id / _CONTENT
        if candidate.exists():
            return candidate
    return None


def find_buffer_content(file_hash: str, true_id: str) -> bytes:
    """Return the content of ``true_id``, searching flat then nested locations."""
    path = _buffer_content_path(file_hash, true_id)
    if path is None:
        raise AnchorScopeError(ErrorKind.CANNOT_LOAD_BUFFER_CONTENT)
    return _read_bytes(path)


def load_buffer_content(file_hash: str, true_id: str) -> bytes:
    """Load buffer content from its flat or nested location."""
    return find_buffer_content(file_hash, true_id)


def file_hash_exists_in_dir_with_count(
    directory: str | os.PathLike, true_id: str
) -> tuple[bool, int]:
    """Return whether ``true_id`` has content under ``directory``, and how often.

    Counting stops as soon as a second occurrence is found.
    """
    count = 0
    for current in _walk(Path(directory)):
        if (current / true_id / _CONTENT).exists():
            count += 1
            if count > 1:
                return True, count
    return count > 0, count


def find_file_hash_for_true_id(true_id: str) -> str | None:
    """Return the file hash whose directory holds ``true_id``, or None.

    Raises AmbiguousAnchorError if several file hashes hold it.
    """
    found: list[str] = []
    for entry in _subdirectories(root_dir()):
        name = entry.name
        present, _count = file_hash_exists_in_dir_with_count(file_dir(name), true_id)
        if present:
            found.append(name)
            if len(found) > 1:
                raise AmbiguousAnchorError(true_id, [file_dir(h) for h in found])
    return found[0] if found else None


def file_hash_for_true_id(true_id: str) -> str:
    """Return the file hash holding ``true_id``.

    Raises BUFFER_NOT_FOUND if absent and DUPLICATE_TRUE_ID if ambiguous.
    """
    try:
        found = find_file_hash_for_true_id(true_id)
    except AmbiguousAnchorError as exc:
        raise AnchorScopeError(ErrorKind.DUPLICATE_TRUE_ID) from exc
    if found is None:
        raise AnchorScopeError(ErrorKind.BUFFER_NOT_FOUND)
    return found


def load_buffer_metadata(file_hash: str, true_id: str) -> BufferMeta:
    """Load the metadata of ``true_id`` from its flat or nested location."""
    try:
        directory = find_true_id_dir(file_hash, true_id)
    except AmbiguousAnchorError as exc:
        raise AnchorScopeError(ErrorKind.DUPLICATE_TRUE_ID) from exc
    if directory is None:
        raise AnchorScopeError(ErrorKind.FILE_NOT_FOUND)
    text = _read_text(directory / _METADATA)
    try:
        meta = BufferMeta.from_json(text)
    except ValueError as exc:
        raise AnchorScopeError(
            ErrorKind.PARENT_BUFFER_METADATA_CORRUPTED, "metadata"
        ) from exc
    if true_id in (meta.true_id, meta.scope_hash):
        return meta
    raise AnchorScopeError(ErrorKind.FILE_NOT_FOUND)


def _has_content_anywhere(directory: Path, true_id: str) -> bool:
    return any((current / true_id / _CONTENT).exists() for current in _walk(directory))


def _anchor_meta_from_buffer(file_hash: str, meta: BufferMeta) -> AnchorMeta:
    source = _read_text(file_dir(file_hash) / _SOURCE_PATH)
    return AnchorMeta(file=source, anchor=meta.anchor, hash=meta.scope_hash, line_range=(0, 0))


def _search_anchor_meta(file_hash: str, true_id: str) -> AnchorMeta | None:
    for current in _walk(file_dir(file_hash)):
        if not (current / true_id / _METADATA).exists():
            continue
        try:
            meta = load_buffer_metadata(file_hash, true_id)
        except AnchorScopeError:
            continue
        if true_id in (meta.true_id, meta.scope_hash):
            return _anchor_meta_from_buffer(file_hash, meta)
    return None


def load_anchor_metadata_by_true_id(true_id: str) -> AnchorMeta:
    """Find anchor metadata for ``true_id`` in the anchors directory or any buffer.

    Raises DUPLICATE_TRUE_ID when it is found in more than one place and
    BUFFER_NOT_FOUND when it is found nowhere.
    """
    legacy_path = anchors_dir() / f"{true_id}.json"
    legacy = legacy_path.exists()
    hashes = [
        entry.name
        for entry in _subdirectories(root_dir())
        if entry.name not in _RESERVED and _has_content_anywhere(entry, true_id)
    ]

    if int(legacy) + len(hashes) > 1:
        raise AnchorScopeError(ErrorKind.DUPLICATE_TRUE_ID)

    if legacy:
        text = _read_text(legacy_path)
        try:
            return AnchorMeta.from_json(text)
        except ValueError as exc:
            raise AnchorScopeError(
                ErrorKind.PARENT_BUFFER_METADATA_CORRUPTED, "anchor metadata"
            ) from exc

    if hashes:
        found = _search_anchor_meta(hashes[0], true_id)
        if found is not None:
            return found
    raise AnchorScopeError(ErrorKind.BUFFER_NOT_FOUND)


def check_duplicate_true_id_in_file_hash(file_hash: str, true_id: str) -> None:
    """Raise DUPLICATE_TRUE_ID if ``true_id`` sits both flat and one level down."""
    count = 0
    candidates = [true_id_dir(file_hash, true_id)]
    candidates.extend(child / true_id for child in _subdirectories(file_dir(file_hash)))
    for candidate in candidates:
        if _holds_buffer(candidate):
            count += 1
            if count > 1:
                raise AnchorScopeError(ErrorKind.DUPLICATE_TRUE_ID)


def true_id_exists(file_hash: str, true_id: str) -> bool:
    """Whether ``true_id`` has content flat or one level down under a file."""
    if (true_id_dir(file_hash, true_id) / _CONTENT).exists():
        return True
    return any(
        (child / true_id / _CONTENT).exists()
        for child in _subdirectories(file_dir(file_hash))
    )