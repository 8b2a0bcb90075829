"""
Exceptions raised by the file organization engine.

Per-file errors carry a :class:`FailureKind` so the batch runner can turn them
into failed results; ``OutputRootError`` aborts a whole run.
"""

from pathlib import Path
from typing import Optional

from .types import FailureKind


class FileSorterError(Exception):
    """Base error for file-sorter."""

    kind: Optional[FailureKind] = None


class SourceNotFoundError(FileSorterError):
    """Source file vanished before it could be processed."""

    kind = FailureKind.NOT_FOUND

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"File does not exist: {path}")


class InvalidNameError(FileSorterError):
    """Path has no usable file name or stem."""

    kind = FailureKind.INVALID_NAME

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Invalid file name: {path}")


class DirectoryCreateError(FileSorterError):
    """Category folder could not be created."""

    kind = FailureKind.DIRECTORY_CREATE_FAILED

    def __init__(self, directory: Path, reason: str):
        self.directory = directory
        super().__init__(f"Could not create folder {directory}: {reason}")


class MoveError(FileSorterError):
    """Every move technique failed.

    ``kind`` is ``COPY_FAILED`` when nothing reached the destination and
    ``ORPHANED_COPY`` when the destination holds a copy but the source is
    still present.
    """

    def __init__(self, source: Path, destination: Path, kind: FailureKind, reason: str):
        self.source = source
        self.destination = destination
        self.kind = kind
        self.reason = reason
        if kind == FailureKind.ORPHANED_COPY:
            message = (
                f"Copied to {destination} but could not remove source "
                f"(orphaned copy): {reason}"
            )
        else:
            message = f"Copy failed: {reason}"
        super().__init__(message)


class OutputRootError(FileSorterError):
    """Output root cannot be created or accessed; aborts the run."""

    def __init__(self, output_root: Path, reason: str):
        self.output_root = output_root
        super().__init__(f"Cannot use output folder {output_root}: {reason}")


class ConfigError(FileSorterError):
    """Persisted configuration could not be read or written."""
