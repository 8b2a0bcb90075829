"""
Type definitions for the file organization engine.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Category name -> extensions (with leading dot, compared case-insensitively)
CategoryMap = Dict[str, List[str]]

# Implicit category for extensions no category claims
DEFAULT_CATEGORY = "Others"


class FailureKind(str, Enum):
    """Why a single file could not be organized."""

    NOT_FOUND = "not_found"
    INVALID_NAME = "invalid_name"
    DIRECTORY_CREATE_FAILED = "directory_create_failed"
    COPY_FAILED = "copy_failed"
    ORPHANED_COPY = "orphaned_copy"
    UNEXPECTED = "unexpected"


class MoveTask(BaseModel):
    """A single file waiting to be organized into an output root."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    output_root: Path


class MoveResult(BaseModel):
    """Outcome of one MoveTask.

    ``detail`` is the category name on success and a human-readable reason
    on failure.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    source_path: Path
    succeeded: bool
    detail: str
    destination: Optional[Path] = None
    category: Optional[str] = None
    failure: Optional[FailureKind] = None


class ProgressEvent(BaseModel):
    """Snapshot of a running batch, delivered to observers."""

    model_config = ConfigDict(frozen=True)

    total_files: int
    processed_files: int = 0
    current_result: Optional[MoveResult] = None
    finished: bool = False
    cancelled: bool = False
    results: List[MoveResult] = Field(
        default_factory=list,
        description="All results of the run; only populated on the terminal event",
    )


@dataclass
class BatchState:
    """Mutable state of one batch run. Owned by the runner's worker thread."""

    total_files: int
    processed_files: int = 0
    finished: bool = False
    cancelled: bool = False
    current_result: Optional[MoveResult] = None
    results: List[MoveResult] = field(default_factory=list)

    def record(self, result: MoveResult) -> ProgressEvent:
        """Account for one processed file and return its progress event."""
        if self.finished:
            raise RuntimeError("Cannot record results on a finished batch")
        self.results.append(result)
        self.processed_files += 1
        self.current_result = result
        return ProgressEvent(
            total_files=self.total_files,
            processed_files=self.processed_files,
            current_result=result,
        )

    def finish(self, cancelled: bool = False) -> ProgressEvent:
        """Mark the batch finished and return the terminal event."""
        if self.finished:
            raise RuntimeError("Batch already finished")
        self.finished = True
        self.cancelled = cancelled
        self.current_result = None
        return ProgressEvent(
            total_files=self.total_files,
            processed_files=self.processed_files,
            finished=True,
            cancelled=cancelled,
            results=list(self.results),
        )

    @property
    def percent_complete(self) -> int:
        if self.total_files == 0:
            return 100
        return int((self.processed_files / self.total_files) * 100)


class CancellationToken:
    """Cooperative cancellation flag for a single run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
