"""Core types, settings and exceptions shared across file-sorter."""

from .config import OrganizerSettings, SorterConfig, load_config, save_config
from .exceptions import (
    ConfigError,
    DirectoryCreateError,
    FileSorterError,
    InvalidNameError,
    MoveError,
    OutputRootError,
    SourceNotFoundError,
)
from .types import (
    BatchState,
    CancellationToken,
    CategoryMap,
    FailureKind,
    MoveResult,
    MoveTask,
    ProgressEvent,
)

__all__ = [
    "OrganizerSettings",
    "SorterConfig",
    "load_config",
    "save_config",
    "ConfigError",
    "DirectoryCreateError",
    "FileSorterError",
    "InvalidNameError",
    "MoveError",
    "OutputRootError",
    "SourceNotFoundError",
    "BatchState",
    "CancellationToken",
    "CategoryMap",
    "FailureKind",
    "MoveResult",
    "MoveTask",
    "ProgressEvent",
]
