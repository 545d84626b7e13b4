"""On-disk buffer store under ``{TMPDIR}/anchorscope``: layout, saving and invalidation."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .errors import AnchorScopeError, ErrorKind, from_io_error_read

_ROOT_NAME = "anchorscope"
_ANCHORS = "anchors"
_LABELS = "labels"
_CONTENT = "content"
_SOURCE_PATH = "source_path"
_METADATA = "metadata.json"
_REPLACEMENT = "replacement"


# --------------------------------------------------------------------------
# Layout
# --------------------------------------------------------------------------


def root_dir() -> Path:
    """The store's root directory inside the system temporary directory."""
    return Path(tempfile.gettempdir()) / _ROOT_NAME


def anchors_dir() -> Path:
    """Directory holding anchor metadata files named ``{hash}.json``."""
    return root_dir() / _ANCHORS


def labels_dir() -> Path:
    """Directory holding label mappings named ``{name}.json``."""
    return root_dir() / _LABELS


def file_dir(file_hash: str) -> Path:
    """Directory holding the buffers of one file."""
    return root_dir() / file_hash


def true_id_dir(file_hash: str, true_id: str) -> Path:
    """Top-level (flat) directory of a True ID within a file's directory."""
    return file_dir(file_hash) / true_id


# --------------------------------------------------------------------------
# Metadata records
# --------------------------------------------------------------------------


def _dump(record: dict[str, Any]) -> str:
    return json.dumps(record, indent=2, ensure_ascii=False)


def _load_object(text: str) -> dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _require_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError("line numbers must be non-negative integers")
    return value


@dataclass(frozen=True)
class AnchorMeta:
    """Where an anchor was found: file, anchor text, scope hash and lines."""

    file: str
    anchor: str
    hash: str
    line_range: tuple[int, int]

    def to_json(self) -> str:
        """Serialize as pretty-printed JSON."""
        record = asdict(self)
        record["line_range"] = list(self.line_range)
        return _dump(record)

    @classmethod
    def from_json(cls, text: str) -> AnchorMeta:
        """Parse JSON produced by :meth:`to_json`; raise ValueError if malformed."""
        data = _load_object(text)
        line_range = data.get("line_range")
        if not isinstance(line_range, list) or len(line_range) != 2:
            raise ValueError("field 'line_range' must be a pair")
        return cls(
            file=_require_str(data, "file"),
            anchor=_require_str(data, "anchor"),
            hash=_require_str(data, "hash"),
            line_range=(_require_count(line_range[0]), _require_count(line_range[1])),
        )


@dataclass(frozen=True)
class BufferMeta:
    """Metadata of one buffer: its True ID, parent, scope hash and anchor."""

    true_id: str
    parent_true_id: str | None
    scope_hash: str
    anchor: str

    def to_json(self) -> str:
        """Serialize as pretty-printed JSON."""
        return _dump(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> BufferMeta:
        """Parse JSON produced by :meth:`to_json`; raise ValueError if malformed."""
        data = _load_object(text)
        parent = data.get("parent_true_id")
        if parent is not None and not isinstance(parent, str):
            raise ValueError("field 'parent_true_id' must be a string or null")
        return cls(
            true_id=_require_str(data, "true_id"),
            parent_true_id=parent,
            scope_hash=_require_str(data, "scope_hash"),
            anchor=_require_str(data, "anchor"),
        )


@dataclass(frozen=True)
class LabelMeta:
    """A label's target True ID."""

    true_id: str


def _label_to_json(meta: LabelMeta) -> str:
    return _dump(asdict(meta))


def _label_from_json(text: str) -> LabelMeta:
    try:
        return LabelMeta(true_id=_require_str(_load_object(text), "true_id"))
    except ValueError as exc:
        raise AnchorScopeError(ErrorKind.LABEL_MAPPING_CORRUPTED, "label") from exc


# --------------------------------------------------------------------------
# File helpers
# --------------------------------------------------------------------------


def _io_error(exc: OSError | UnicodeDecodeError) -> AnchorScopeError:
    if isinstance(exc, FileNotFoundError):
        return AnchorScopeError(ErrorKind.FILE_NOT_FOUND, cause=exc)
    if isinstance(exc, PermissionError):
        return AnchorScopeError(ErrorKind.PERMISSION_DENIED, cause=exc)
    return AnchorScopeError(ErrorKind.WRITE_FAILURE, cause=exc)


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise from_io_error_read(exc) from exc


def _write(path: Path, data: bytes | str) -> None:
    payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    try:
        path.write_bytes(payload)
    except OSError as exc:
        raise _io_error(exc) from exc


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
            return [
                Path(entry.path)
                for entry in entries
                if entry.is_dir(follow_symlinks=False)
            ]
    except OSError:
        return []


# --------------------------------------------------------------------------
# Saving and loading
# --------------------------------------------------------------------------


def save_anchor_metadata(meta: AnchorMeta) -> None:
    """Write anchor metadata to ``anchors/{hash}.json``."""
    directory = anchors_dir()
    _ensure_dir(directory)
    _write(directory / f"{meta.hash}.json", meta.to_json())


def save_label_mapping(name: str, true_id: str) -> None:
    """Map label ``name`` to ``true_id``; LABEL_EXISTS if it maps elsewhere."""
    directory = labels_dir()
    _ensure_dir(directory)
    path = directory / f"{name}.json"
    if path.exists():
        existing = _label_from_json(_read_text(path))
        if existing.true_id != true_id:
            raise AnchorScopeError(ErrorKind.LABEL_EXISTS)
    _write(path, _label_to_json(LabelMeta(true_id=true_id)))


def load_label_target(name: str) -> str:
    """Return the True ID that label ``name`` points to."""
    directory = labels_dir()
    _ensure_dir(directory)
    return _label_from_json(_read_text(directory / f"{name}.json")).true_id


def save_file_content(file_hash: str, content: bytes) -> None:
    """Store the normalized content of a whole file."""
    directory = file_dir(file_hash)
    _ensure_dir(directory)
    _write(directory / _CONTENT, content)


def save_source_path(file_hash: str, path: str) -> None:
    """Record the path of the file the buffers came from."""
    directory = file_dir(file_hash)
    _ensure_dir(directory)
    _write(directory / _SOURCE_PATH, path)


def save_buffer_content(file_hash: str, true_id: str, content: bytes) -> None:
    """Store a buffer's content in its flat True ID directory."""
    directory = true_id_dir(file_hash, true_id)
    _ensure_dir(directory)
    _write(directory / _CONTENT, content)


def save_scope_content(file_hash: str, true_id: str, content: bytes) -> None:
    """Store a matched scope; the same as :func:`save_buffer_content`."""
    save_buffer_content(file_hash, true_id, content)


def save_buffer_metadata(file_hash: str, true_id: str, meta: BufferMeta) -> None:
    """Store a buffer's metadata in its flat True ID directory."""
    directory = true_id_dir(file_hash, true_id)
    _ensure_dir(directory)
    _write(directory / _METADATA, meta.to_json())


def load_source_path(file_hash: str) -> str:
    """Return the recorded source path of a file's buffers."""
    return _read_text(file_dir(file_hash) / _SOURCE_PATH)


def load_replacement_content(file_hash: str, true_id: str) -> bytes:
    """Return the replacement prepared for a flat True ID."""
    return _read_bytes(true_id_dir(file_hash, true_id) / _REPLACEMENT)


# --------------------------------------------------------------------------
# Invalidation
# --------------------------------------------------------------------------


def invalidate_anchor(hash_value: str) -> None:
    """Delete anchor metadata for ``hash_value``, if present."""
    try:
        (anchors_dir() / f"{hash_value}.json").unlink()
    except OSError:
        pass


def invalidate_label(name: str) -> None:
    """Delete the label mapping ``name``, if present."""
    try:
        (labels_dir() / f"{name}.json").unlink()
    except OSError:
        pass


def invalidate_true_id_hierarchy(file_hash: str, true_id: str) -> None:
    """Remove every directory named ``true_id`` under a file, with descendants."""
    queue = deque([file_dir(file_hash)])
    while queue:
        current = queue.popleft()
        target = current / true_id
        if target.exists():
            try:
                shutil.rmtree(target)
            except OSError as exc:
                raise AnchorScopeError(ErrorKind.WRITE_FAILURE, cause=exc) from exc
        queue.extend(_subdirectories(current))