"""
File organizer: sorts a list of files into category folders.

Runs either synchronously (:meth:`FileOrganizer.organize`) or on a background
thread that streams :class:`ProgressEvent` objects
(:meth:`FileOrganizer.organize_async`). Both paths process each file through
the same steps: existence check, classification, destination resolution, move.
"""

import logging
import queue
import threading
import time
from pathlib import Path
from typing import (
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..core.config import OrganizerSettings
from ..core.exceptions import FileSorterError, OutputRootError, SourceNotFoundError
from ..core.types import (
    BatchState,
    CancellationToken,
    FailureKind,
    MoveResult,
    MoveTask,
    ProgressEvent,
)
from .classifier import category_names, classify_path
from .destination import resolve_destination
from .mover import MoveStrategy
from .path_filter import is_in_category_folder

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class OrganizeRun:
    """Handle on a background organization run.

    The worker thread owns the sending side of ``event_queue``; callers read
    events with :meth:`events` or block for the final results with
    :meth:`wait`.
    """

    def __init__(self, total_files: int, token: CancellationToken):
        self.total_files = total_files
        self.token = token
        self.event_queue: "queue.Queue[ProgressEvent]" = queue.Queue()
        self.thread: Optional[threading.Thread] = None
        self._final: Optional[ProgressEvent] = None

    def cancel(self) -> None:
        """Request cancellation. Safe to call any number of times."""
        self.token.cancel()

    @property
    def done(self) -> bool:
        return self._final is not None

    @property
    def final_event(self) -> Optional[ProgressEvent]:
        return self._final

    def events(self, timeout: Optional[float] = None) -> Iterator[ProgressEvent]:
        """
        Yield progress events until the terminal one.

        Args:
            timeout: Max seconds to wait for each event

        Raises:
            queue.Empty: If no event arrives within ``timeout``
        """
        while self._final is None:
            yield self.next_event(timeout=timeout)

    def next_event(self, timeout: Optional[float] = None) -> ProgressEvent:
        """Take the next event off the queue, noting the terminal one."""
        event = self.event_queue.get(timeout=timeout)
        if event.finished:
            self._final = event
        return event

    def wait(self, timeout: Optional[float] = None) -> List[MoveResult]:
        """Drain events until the run finishes and return all results."""
        for _ in self.events(timeout=timeout):
            pass
        assert self._final is not None
        return list(self._final.results)


class FileOrganizer:
    """Organize files into ``<output_directory>/<category>/``."""

    def __init__(
        self,
        categories: Mapping[str, Sequence[str]],
        output_directory: Path,
        settings: Optional[OrganizerSettings] = None,
        strategy: Optional[MoveStrategy] = None,
        output_roots: Iterable[Union[str, Path]] = (),
    ):
        """
        Initialize file organizer.

        Args:
            categories: Category name -> extensions
            output_directory: Root under which category folders are created
            settings: Batching and retry settings
            strategy: Move strategy; built from ``settings`` if omitted
            output_roots: Output folders of earlier runs; files inside their
                category folders are skipped, as are those under
                ``output_directory``
        """
        self.categories = {name: list(exts) for name, exts in categories.items()}
        self.output_directory = Path(output_directory)
        self.settings = settings or OrganizerSettings()
        self.strategy = strategy or MoveStrategy(self.settings)
        self.output_roots = [self.output_directory]
        for root in output_roots:
            if Path(root) not in self.output_roots:
                self.output_roots.append(Path(root))
        self.current_run: Optional[OrganizeRun] = None

    @property
    def category_names(self) -> List[str]:
        return category_names(self.categories)

    def plan(self, files: Iterable[Path]) -> List[Path]:
        """Files that would be processed, after removing already-organized ones."""
        candidates = list(files)
        names = self.category_names
        remaining = [
            Path(f)
            for f in candidates
            if not is_in_category_folder(f, self.output_roots, names)
        ]
        skipped = len(candidates) - len(remaining)
        if skipped:
            logger.info(f"Skipping {skipped} files already in category folders")
        return remaining

    def preview(self, files: Iterable[Path]) -> List[Tuple[Path, str]]:
        """Classify files without touching the filesystem."""
        return [(path, classify_path(path, self.categories)) for path in self.plan(files)]

    def organize(self, files: Iterable[Path]) -> List[MoveResult]:
        """
        Organize files synchronously.

        Returns:
            One result per file that passed the filter, in order

        Raises:
            OutputRootError: If the output directory cannot be used
        """
        self._prepare_output_directory()
        tasks = self.plan(files)
        logger.info(f"Organizing {len(tasks)} files into {self.output_directory}")
        return [self.process_task(self._task(path)) for path in tasks]

    def organize_async(
        self,
        files: Iterable[Path],
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OrganizeRun:
        """
        Start organizing on a background thread and return immediately.

        An initial event (``processed_files=0``) is queued before this returns;
        the worker then emits one event per file and exactly one terminal event.

        Args:
            files: Candidate file paths
            token: Cancellation token; a fresh one is created if omitted
            on_progress: Optional callback invoked from the worker for each event

        Raises:
            OutputRootError: If the output directory cannot be used. Nothing
                is processed and no event is emitted in that case.
        """
        self._prepare_output_directory()
        tasks = self.plan(files)

        token = token or CancellationToken()
        token.reset()
        run = OrganizeRun(total_files=len(tasks), token=token)
        self.current_run = run

        def emit(event: ProgressEvent) -> None:
            run.event_queue.put(event)
            if on_progress is not None:
                try:
                    on_progress(event)
                except Exception as e:
                    logger.error(f"Progress callback failed: {e}")

        emit(ProgressEvent(total_files=len(tasks)))

        run.thread = threading.Thread(
            target=self._run_batches,
            args=(tasks, token, emit),
            name="file-sorter-batch",
            daemon=True,
        )
        run.thread.start()
        logger.info(f"Started organizing {len(tasks)} files into {self.output_directory}")
        return run

    def cancel(self) -> None:
        """Request cancellation of the current background run, if any."""
        if self.current_run is not None:
            self.current_run.cancel()

    def _run_batches(
        self,
        files: List[Path],
        token: CancellationToken,
        emit: Callable[[ProgressEvent], None],
    ) -> None:
        state = BatchState(total_files=len(files))
        batch_size = self.settings.batch_size
        cancelled = False

        try:
            for start in range(0, len(files), batch_size):
                if token.is_cancelled:
                    cancelled = True
                    break

                for path in files[start : start + batch_size]:
                    if token.is_cancelled:
                        cancelled = True
                        break
                    emit(state.record(self.process_task(self._task(path))))

                if cancelled:
                    break
                if start + batch_size < len(files):
                    time.sleep(self.settings.batch_delay)
        finally:
            if cancelled:
                logger.warning(
                    f"Organization cancelled after {state.processed_files}/"
                    f"{state.total_files} files"
                )
            else:
                logger.info(f"Organization finished: {state.processed_files} files")
            emit(state.finish(cancelled=cancelled))

    def _task(self, path: Path) -> MoveTask:
        return MoveTask(source_path=path, output_root=self.output_directory)

    def process_task(self, task: MoveTask) -> MoveResult:
        """
        Organize one file. Never raises; every outcome becomes a result.
        """
        source = task.source_path
        try:
            if not source.exists():
                raise SourceNotFoundError(source)

            category = classify_path(source, self.categories)
            destination = resolve_destination(task.output_root / category, source.name)
            self.strategy.move(source, destination)
        except FileSorterError as e:
            logger.warning(f"Failed to organize {source}: {e}")
            return MoveResult(
                source_path=source,
                succeeded=False,
                detail=str(e),
                failure=e.kind,
            )
        except Exception as e:
            logger.error(f"Error processing {source}: {e}")
            return MoveResult(
                source_path=source,
                succeeded=False,
                detail=f"Unexpected error: {e}",
                failure=FailureKind.UNEXPECTED,
            )

        logger.info(f"Moved {source} → {destination}")
        return MoveResult(
            source_path=source,
            succeeded=True,
            detail=category,
            destination=destination,
            category=category,
        )

    def _prepare_output_directory(self) -> None:
        try:
            self.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create output folder {self.output_directory}: {e}")
            raise OutputRootError(self.output_directory, str(e)) from e

        if not self.output_directory.is_dir():
            raise OutputRootError(self.output_directory, "not a directory")
