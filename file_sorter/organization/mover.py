"""
Resilient single-file relocation.

A move is attempted through a fallback chain, and the whole chain is retried
with linear backoff:

1. copy with metadata, then delete (relaxing permissions once if the delete
   is refused)
2. direct rename (same filesystem only)
3. plain copy, then delete, with a privileged move as last resort when the
   delete is refused

The source is only ever deleted once the destination exists. A complete copy
made earlier in the same move is reused rather than copied over, so a
write-protected copy of a read-only source cannot block the later steps.
"""

import errno
import logging
import os
import shutil
import stat
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..core.config import OrganizerSettings
from ..core.exceptions import MoveError
from ..core.types import FailureKind

logger = logging.getLogger(__name__)

# (source, destination) -> True if the file was moved
PrivilegedMove = Callable[[Path, Path], bool]


@dataclass
class _MoveState:
    """Progress of one call to :meth:`MoveStrategy.move`."""

    source: Path
    destination: Path
    copied: bool = False


def shell_force_move(source: Path, destination: Path) -> bool:
    """Move a file with ``mv -f``. Returns False if the command fails."""
    try:
        result = subprocess.run(
            ["mv", "-f", str(source), str(destination)],
            capture_output=True,
            text=True,
            timeout=60,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"mv -f {source} failed to run: {e}")
        return False

    if result.returncode != 0:
        logger.debug(f"mv -f {source} exited {result.returncode}: {result.stderr.strip()}")
        return False
    return not source.exists() and destination.exists()


def default_privileged_move() -> Optional[PrivilegedMove]:
    """Platform default for the last-resort move; None where unavailable."""
    if sys.platform == "darwin" and shutil.which("mv"):
        return shell_force_move
    return None


def relax_permissions(path: Path) -> None:
    """
    Give the owner read/write on ``path``.

    On macOS the parent directory also gets owner write, which stays in
    place afterwards, and the ``com.apple.provenance`` attribute is stripped;
    either can block deletion of downloaded files. Failures are logged, not
    raised.
    """
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        logger.debug(f"Could not relax permissions on {path}: {e}")

    if sys.platform != "darwin":
        return

    parent = path.parent
    try:
        mode = parent.stat().st_mode
        parent.chmod(mode | stat.S_IWUSR)
    except OSError as e:
        logger.debug(f"Could not relax permissions on {parent}: {e}")

    if shutil.which("xattr"):
        # Attribute may simply be absent
        subprocess.run(
            ["xattr", "-d", "com.apple.provenance", str(path)],
            capture_output=True,
            check=False,
        )


def _is_permission_error(error: OSError) -> bool:
    return isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM)


class MoveStrategy:
    """Move files using an ordered fallback chain."""

    def __init__(
        self,
        settings: Optional[OrganizerSettings] = None,
        privileged_move: Optional[PrivilegedMove] = None,
        use_default_privileged_move: bool = True,
    ):
        """
        Initialize the move strategy.

        Args:
            settings: Retry configuration; defaults to ``OrganizerSettings()``
            privileged_move: Last-resort move used when deleting the source is
                refused; ``None`` uses the platform default
            use_default_privileged_move: If False and no ``privileged_move`` is
                given, no last resort is attempted
        """
        self.settings = settings or OrganizerSettings()
        if privileged_move is None and use_default_privileged_move:
            privileged_move = default_privileged_move()
        self.privileged_move = privileged_move

    # Thin wrappers so failure modes can be injected in tests
    def _copy_with_metadata(self, source: Path, destination: Path) -> None:
        shutil.copy2(source, destination)

    def _copy_contents(self, source: Path, destination: Path) -> None:
        shutil.copyfile(source, destination)

    def _rename(self, source: Path, destination: Path) -> None:
        os.rename(source, destination)

    def _unlink(self, path: Path) -> None:
        os.unlink(path)

    def move(self, source: Path, destination: Path) -> None:
        """
        Move ``source`` to ``destination``.

        Raises:
            MoveError: ``ORPHANED_COPY`` if the destination holds a copy but the
                source could not be removed, ``COPY_FAILED`` otherwise
        """
        source = Path(source)
        destination = Path(destination)
        state = _MoveState(source, destination)
        last_error: Optional[OSError] = None

        for attempt in range(self.settings.max_retries):
            if attempt > 0:
                delay = self.settings.retry_backoff * attempt
                logger.debug(
                    f"Retrying move of {source} (attempt {attempt + 1}) in {delay:.2f}s"
                )
                time.sleep(delay)

            for technique in (
                self._copy_then_delete,
                self._rename_in_place,
                self._copy_then_force_delete,
            ):
                try:
                    technique(state)
                except OSError as e:
                    logger.debug(f"{technique.__name__} failed for {source}: {e}")
                    last_error = e
                    continue
                logger.debug(f"Moved {source} -> {destination} via {technique.__name__}")
                return

        reason = str(last_error) if last_error else "unknown error"
        if source.exists() and destination.exists():
            raise MoveError(source, destination, FailureKind.ORPHANED_COPY, reason)
        raise MoveError(source, destination, FailureKind.COPY_FAILED, reason)

    def _copy(self, copy: Callable[[Path, Path], None], state: _MoveState) -> None:
        """Make sure ``state.destination`` holds a complete copy of the source.

        A copy finished earlier in this move is kept as is. A partial file left
        by a failed copy is removed unless the destination existed beforehand.
        """
        destination = state.destination
        if state.copied and destination.exists():
            logger.debug(f"Reusing copy at {destination}")
            return

        had_file = destination.exists()
        try:
            copy(state.source, destination)
        except OSError:
            if not had_file and destination.exists():
                try:
                    destination.unlink()
                except OSError as e:
                    logger.debug(f"Could not remove partial copy {destination}: {e}")
            raise
        if not destination.exists():
            raise FileNotFoundError(
                errno.ENOENT, "Destination missing after copy", str(destination)
            )
        state.copied = True

    def _copy_then_delete(self, state: _MoveState) -> None:
        self._copy(self._copy_with_metadata, state)
        try:
            self._unlink(state.source)
        except OSError as e:
            logger.debug(f"Delete of {state.source} refused ({e}), relaxing permissions")
            relax_permissions(state.source)
            self._unlink(state.source)

    def _rename_in_place(self, state: _MoveState) -> None:
        self._rename(state.source, state.destination)

    def _copy_then_force_delete(self, state: _MoveState) -> None:
        self._copy(self._copy_contents, state)
        try:
            self._unlink(state.source)
        except OSError as e:
            if not _is_permission_error(e) or self.privileged_move is None:
                raise
            logger.warning(
                f"Permission denied removing {state.source}, trying privileged move"
            )
            if not self.privileged_move(state.source, state.destination):
                raise
