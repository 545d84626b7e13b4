"""Error kinds and the exception raised throughout the package."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Every failure the tool reports, valued by its specification string."""

    NO_MATCH = "NO_MATCH"
    MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
    HASH_MISMATCH = "HASH_MISMATCH"
    DUPLICATE_TRUE_ID = "DUPLICATE_TRUE_ID"
    LABEL_EXISTS = "LABEL_EXISTS"
    AMBIGUOUS_REPLACEMENT = "AMBIGUOUS_REPLACEMENT"
    NO_REPLACEMENT = "NO_REPLACEMENT"
    FILE_NOT_FOUND = "IO_ERROR: file not found"
    PERMISSION_DENIED = "IO_ERROR: permission denied"
    INVALID_UTF8 = "IO_ERROR: invalid UTF-8"
    READ_FAILURE = "IO_ERROR: read failure"
    WRITE_FAILURE = "IO_ERROR: write failure"
    BUFFER_METADATA_NOT_FOUND = "IO_ERROR: buffer metadata for true_id not found"
    PARENT_BUFFER_METADATA_CORRUPTED = "IO_ERROR: parent buffer metadata corrupted"
    CANNOT_LOAD_SOURCE_PATH = "IO_ERROR: cannot load source path"
    CANNOT_SAVE_FILE_CONTENT = "IO_ERROR: cannot save file content"
    CANNOT_SAVE_SOURCE_PATH = "IO_ERROR: cannot save source path"
    CANNOT_SAVE_SCOPE_CONTENT = "IO_ERROR: cannot save scope content"
    CANNOT_SAVE_BUFFER_METADATA = "IO_ERROR: cannot save buffer metadata"
    JSON_SERIALIZATION_FAILED = "IO_ERROR: JSON serialization failed"
    LABEL_MAPPING_CORRUPTED = "IO_ERROR: label mapping corrupted"
    CANNOT_LOAD_BUFFER_CONTENT = "IO_ERROR: cannot load buffer content"
    PARENT_DIRECTORY_NOT_FOUND = "IO_ERROR: parent directory for true_id not found"
    MAXIMUM_NESTING_DEPTH_EXCEEDED = "IO_ERROR: maximum nesting depth exceeded"
    EXTERNAL_TOOL_FAILED = "IO_ERROR: external tool failed"
    CANNOT_EXECUTE_EXTERNAL_TOOL = "IO_ERROR: cannot execute external tool"
    CANNOT_CREATE_TEMP_DIRECTORY = "IO_ERROR: cannot create temporary directory"
    BUFFER_NOT_FOUND = "IO_ERROR: buffer not found"
    REPLACEMENT_NOT_FOUND = "IO_ERROR: replacement not found"
    LABEL_MAPPING_NOT_FOUND = "IO_ERROR: label mapping not found"


# Human-readable forms for kinds that carry a detail value.
_DETAILED = {
    ErrorKind.BUFFER_METADATA_NOT_FOUND: "IO_ERROR: buffer metadata for true_id '{0}' not found",
    ErrorKind.PARENT_BUFFER_METADATA_CORRUPTED: "IO_ERROR: parent buffer metadata corrupted: {0}",
    ErrorKind.CANNOT_LOAD_SOURCE_PATH: "IO_ERROR: cannot load source path: {0}",
    ErrorKind.CANNOT_SAVE_FILE_CONTENT: "IO_ERROR: cannot save file content: {0}",
    ErrorKind.CANNOT_SAVE_SOURCE_PATH: "IO_ERROR: cannot save source path: {0}",
    ErrorKind.CANNOT_SAVE_SCOPE_CONTENT: "IO_ERROR: cannot save scope content: {0}",
    ErrorKind.CANNOT_SAVE_BUFFER_METADATA: "IO_ERROR: cannot save buffer metadata: {0}",
    ErrorKind.JSON_SERIALIZATION_FAILED: "IO_ERROR: JSON serialization failed: {0}",
    ErrorKind.LABEL_MAPPING_CORRUPTED: "IO_ERROR: label mapping corrupted: {0}",
    ErrorKind.PARENT_DIRECTORY_NOT_FOUND: "IO_ERROR: parent directory for true_id '{0}' not found",
    ErrorKind.MAXIMUM_NESTING_DEPTH_EXCEEDED: "IO_ERROR: maximum nesting depth ({0}) exceeded",
    ErrorKind.LABEL_MAPPING_NOT_FOUND: "IO_ERROR: label mapping for '{0}' not found",
}


def _is_plain_write_cause(cause: BaseException | None) -> bool:
    """True for causes whose write-failure message carries no extra text."""
    if cause is None:
        return True
    if isinstance(cause, (FileNotFoundError, InterruptedError)):
        return True
    return type(cause) is OSError


class AnchorScopeError(Exception):
    """An error with a fixed kind, an optional detail and an optional I/O cause."""

    def __init__(
        self,
        kind: ErrorKind,
        detail: object = None,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.cause = cause
        super().__init__(self._display())

    def _display(self) -> str:
        template = _DETAILED.get(self.kind)
        if template is not None and self.detail is not None:
            return template.format(self.detail)
        return self.kind.value

    def __str__(self) -> str:
        return self._display()

    def spec(self) -> str:
        """Return the specification string reported on standard error."""
        if self.kind is ErrorKind.WRITE_FAILURE and not _is_plain_write_cause(self.cause):
            return f"{self.kind.value}: {self.cause}"
        return self.kind.value

    def starts_with(self, prefix: str) -> bool:
        """Whether the specification string begins with ``prefix``."""
        return self.spec().startswith(prefix)


def from_io_error_read(exc: OSError) -> AnchorScopeError:
    """Classify an OS error raised while reading."""
    if isinstance(exc, FileNotFoundError):
        return AnchorScopeError(ErrorKind.FILE_NOT_FOUND, cause=exc)
    if isinstance(exc, PermissionError):
        return AnchorScopeError(ErrorKind.PERMISSION_DENIED, cause=exc)
    return AnchorScopeError(ErrorKind.READ_FAILURE, cause=exc)


def from_io_error_write(exc: OSError) -> AnchorScopeError:
    """Classify an OS error raised while writing."""
    if isinstance(exc, PermissionError):
        return AnchorScopeError(ErrorKind.PERMISSION_DENIED, cause=exc)
    return AnchorScopeError(ErrorKind.WRITE_FAILURE, cause=exc)


def map_io_error_read(exc: OSError) -> str:
    """Specification string for an OS error raised while reading."""
    return from_io_error_read(exc).spec()


def map_io_error_write(exc: OSError) -> str:
    """Specification string for an OS error raised while writing."""
    return from_io_error_write(exc).spec()


def validate_utf8(data: bytes) -> str:
    """Decode ``data`` as UTF-8, raising INVALID_UTF8 if it is not valid."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise AnchorScopeError(ErrorKind.INVALID_UTF8) from exc