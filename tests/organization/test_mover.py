"""Tests for the move fallback chain."""

import errno
import os
import stat
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from file_sorter.core.config import OrganizerSettings
from file_sorter.core.exceptions import MoveError
from file_sorter.core.types import FailureKind
from file_sorter.organization import mover as mover_module
from file_sorter.organization.mover import (
    MoveStrategy,
    default_privileged_move,
    relax_permissions,
    shell_force_move,
)


def cross_device_error() -> OSError:
    return OSError(errno.EXDEV, "Invalid cross-device link")


def permission_error(path="file") -> PermissionError:
    return PermissionError(errno.EACCES, "Permission denied", str(path))


@pytest.fixture
def strategy(fast_settings):
    """Strategy with no privileged fallback and no backoff."""
    return MoveStrategy(fast_settings, use_default_privileged_move=False)


@pytest.fixture
def source_file(tmp_path) -> Path:
    path = tmp_path / "src" / "photo.jpg"
    path.parent.mkdir()
    path.write_bytes(b"\x89image-bytes")
    return path


@pytest.fixture
def destination(tmp_path) -> Path:
    path = tmp_path / "dst" / "Images" / "photo.jpg"
    path.parent.mkdir(parents=True)
    return path


class TestMoveSuccess:
    """Test successful moves."""

    def test_moves_file(self, strategy, source_file, destination):
        """Test source disappears and destination has identical content."""
        strategy.move(source_file, destination)

        assert not source_file.exists()
        assert destination.read_bytes() == b"\x89image-bytes"

    def test_first_technique_wins(self, strategy, source_file, destination):
        """Test rename is never tried once copy-then-delete succeeds."""
        with patch.object(strategy, "_rename") as rename:
            strategy.move(source_file, destination)

        rename.assert_not_called()
        assert destination.exists()

    def test_falls_back_to_rename_when_copy_fails(self, strategy, source_file, destination):
        with patch.object(
            strategy, "_copy_with_metadata", side_effect=OSError(errno.EIO, "I/O error")
        ):
            strategy.move(source_file, destination)

        assert not source_file.exists()
        assert destination.read_bytes() == b"\x89image-bytes"

    def test_readonly_cross_filesystem_source(self, strategy, source_file, destination):
        """Test read-only source on another filesystem is moved by copy,
        permission relax and delete rather than by rename."""
        source_file.chmod(stat.S_IRUSR)
        real_unlink = os.unlink
        attempts = []

        def refuse_first_delete(path):
            attempts.append(path)
            if len(attempts) == 1:
                raise permission_error(path)
            real_unlink(path)

        with patch.object(strategy, "_rename", side_effect=cross_device_error()) as rename, \
                patch.object(strategy, "_unlink", side_effect=refuse_first_delete), \
                patch.object(mover_module, "relax_permissions", wraps=relax_permissions) as relax:
            strategy.move(source_file, destination)

        rename.assert_not_called()
        relax.assert_called_once_with(source_file)
        assert len(attempts) == 2
        assert not source_file.exists()
        assert destination.read_bytes() == b"\x89image-bytes"

    def test_privileged_move_used_when_delete_denied(self, fast_settings, source_file, destination):
        """Test the last resort runs only after a permission-denied delete."""

        def force_move(src, dst):
            os.remove(src)
            return True

        privileged = MagicMock(side_effect=force_move)
        strategy = MoveStrategy(fast_settings, privileged_move=privileged)

        with patch.object(strategy, "_unlink", side_effect=permission_error()), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            strategy.move(source_file, destination)

        privileged.assert_called_once_with(source_file, destination)
        assert not source_file.exists()
        assert destination.exists()

    def test_readonly_source_reaches_privileged_move(
        self, fast_settings, source_file, destination
    ):
        """Test a write-protected copy from the first step is reused, so the
        privileged move still runs when the source cannot be deleted."""
        source_file.chmod(stat.S_IRUSR)

        def refuse_readonly_destination(copy):
            # Root may write to any file; refuse as an ordinary user would
            def guarded(src, dst):
                if Path(dst).exists() and not Path(dst).stat().st_mode & stat.S_IWUSR:
                    raise permission_error(dst)
                copy(src, dst)

            return guarded

        def force_move(src, dst):
            os.remove(src)
            return True

        privileged = MagicMock(side_effect=force_move)
        strategy = MoveStrategy(fast_settings, privileged_move=privileged)
        copy2 = refuse_readonly_destination(strategy._copy_with_metadata)
        copyfile = refuse_readonly_destination(strategy._copy_contents)

        with patch.object(strategy, "_copy_with_metadata", side_effect=copy2), \
                patch.object(strategy, "_copy_contents", side_effect=copyfile) as contents, \
                patch.object(strategy, "_unlink", side_effect=permission_error()), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            strategy.move(source_file, destination)

        contents.assert_not_called()
        privileged.assert_called_once_with(source_file, destination)
        assert not source_file.exists()
        assert destination.read_bytes() == b"\x89image-bytes"

    def test_orphaned_copy_reason_names_source(self, strategy, source_file, destination):
        """Test the reported reason is the refused delete, not a copy error."""
        source_file.chmod(stat.S_IRUSR)
        denied = permission_error(source_file)

        with patch.object(strategy, "_unlink", side_effect=denied), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            with pytest.raises(MoveError) as exc_info:
                strategy.move(source_file, destination)

        assert exc_info.value.kind == FailureKind.ORPHANED_COPY
        assert str(source_file) in exc_info.value.reason


class TestMoveFailure:
    """Test failure classification."""

    def test_copy_failed(self, strategy, source_file, destination):
        """Test nothing reaching the destination is a copy failure."""
        io_error = OSError(errno.EIO, "I/O error")
        with patch.object(strategy, "_copy_with_metadata", side_effect=io_error) as copy2, \
                patch.object(strategy, "_rename", side_effect=cross_device_error()), \
                patch.object(strategy, "_copy_contents", side_effect=io_error):
            with pytest.raises(MoveError) as exc_info:
                strategy.move(source_file, destination)

        assert exc_info.value.kind == FailureKind.COPY_FAILED
        assert copy2.call_count == 3
        assert source_file.exists()
        assert not destination.exists()

    def test_orphaned_copy(self, strategy, source_file, destination):
        """Test a copy left behind with an undeletable source is reported distinctly."""
        with patch.object(strategy, "_unlink", side_effect=permission_error()), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            with pytest.raises(MoveError) as exc_info:
                strategy.move(source_file, destination)

        error = exc_info.value
        assert error.kind == FailureKind.ORPHANED_COPY
        assert "orphaned copy" in str(error)
        assert source_file.exists()
        assert destination.exists()

    def test_failure_messages_differ(self, tmp_path):
        copy_failed = MoveError(tmp_path / "a", tmp_path / "b", FailureKind.COPY_FAILED, "x")
        orphaned = MoveError(tmp_path / "a", tmp_path / "b", FailureKind.ORPHANED_COPY, "x")
        assert str(copy_failed) != str(orphaned)
        assert str(copy_failed).startswith("Copy failed")

    def test_partial_copy_removed(self, strategy, source_file, destination):
        """Test a half-written destination does not count as a copy."""

        def partial_copy(src, dst):
            Path(dst).write_bytes(b"\x89ima")
            raise OSError(errno.ENOSPC, "No space left on device")

        with patch.object(strategy, "_copy_with_metadata", side_effect=partial_copy), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()), \
                patch.object(strategy, "_copy_contents", side_effect=partial_copy):
            with pytest.raises(MoveError) as exc_info:
                strategy.move(source_file, destination)

        assert exc_info.value.kind == FailureKind.COPY_FAILED
        assert not destination.exists()
        assert source_file.exists()

    def test_source_never_deleted_without_copy(self, strategy, source_file, destination):
        """Test a copy that silently produced nothing does not delete the source."""
        with patch.object(strategy, "_copy_with_metadata"), \
                patch.object(strategy, "_copy_contents"), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()), \
                patch.object(strategy, "_unlink") as unlink:
            with pytest.raises(MoveError):
                strategy.move(source_file, destination)

        unlink.assert_not_called()
        assert source_file.exists()

    def test_privileged_move_skipped_for_other_errors(self, fast_settings, source_file, destination):
        privileged = MagicMock(return_value=True)
        strategy = MoveStrategy(fast_settings, privileged_move=privileged)

        with patch.object(strategy, "_unlink", side_effect=OSError(errno.EBUSY, "Busy")), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            with pytest.raises(MoveError):
                strategy.move(source_file, destination)

        privileged.assert_not_called()

    def test_privileged_move_failure_reported(self, fast_settings, source_file, destination):
        privileged = MagicMock(return_value=False)
        strategy = MoveStrategy(fast_settings, privileged_move=privileged)

        with patch.object(strategy, "_unlink", side_effect=permission_error()), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()):
            with pytest.raises(MoveError) as exc_info:
                strategy.move(source_file, destination)

        assert privileged.call_count == 3
        assert exc_info.value.kind == FailureKind.ORPHANED_COPY


class TestRetryBackoff:
    """Test retry rounds and linear backoff."""

    def test_linear_backoff_between_rounds(self, source_file, destination):
        settings = OrganizerSettings(max_retries=3, retry_backoff=0.5, batch_delay=0)
        strategy = MoveStrategy(settings, use_default_privileged_move=False)
        io_error = OSError(errno.EIO, "I/O error")

        with patch.object(strategy, "_copy_with_metadata", side_effect=io_error), \
                patch.object(strategy, "_rename", side_effect=io_error), \
                patch.object(strategy, "_copy_contents", side_effect=io_error), \
                patch.object(mover_module.time, "sleep") as sleep:
            with pytest.raises(MoveError):
                strategy.move(source_file, destination)

        assert sleep.call_args_list == [call(0.5), call(1.0)]

    def test_succeeds_on_later_round(self, strategy, source_file, destination):
        real_copy = strategy._copy_with_metadata
        attempts = []

        def flaky_copy(src, dst):
            attempts.append(src)
            if len(attempts) < 2:
                raise OSError(errno.EAGAIN, "Resource temporarily unavailable")
            real_copy(src, dst)

        with patch.object(strategy, "_copy_with_metadata", side_effect=flaky_copy), \
                patch.object(strategy, "_rename", side_effect=cross_device_error()), \
                patch.object(strategy, "_copy_contents", side_effect=OSError(errno.EIO, "I/O")):
            strategy.move(source_file, destination)

        assert len(attempts) == 2
        assert not source_file.exists()


class TestHelpers:
    """Test permission relaxing and the shell fallback."""

    def test_relax_permissions_grants_owner_write(self, source_file):
        source_file.chmod(stat.S_IRUSR)
        relax_permissions(source_file)
        mode = source_file.stat().st_mode
        assert mode & stat.S_IWUSR
        assert mode & stat.S_IRUSR

    def test_relax_permissions_leaves_parent_off_macos(self, source_file):
        parent = source_file.parent
        parent.chmod(stat.S_IRUSR | stat.S_IXUSR)
        try:
            with patch.object(mover_module.sys, "platform", "linux"):
                relax_permissions(source_file)
            assert not parent.stat().st_mode & stat.S_IWUSR
        finally:
            parent.chmod(stat.S_IRWXU)

    def test_relax_permissions_parent_on_macos(self, source_file):
        parent = source_file.parent
        parent.chmod(stat.S_IRUSR | stat.S_IXUSR)
        with patch.object(mover_module.sys, "platform", "darwin"), \
                patch.object(mover_module.shutil, "which", return_value=None):
            relax_permissions(source_file)
        assert parent.stat().st_mode & stat.S_IWUSR

    def test_relax_permissions_missing_file(self, tmp_path):
        """Test a missing file is tolerated."""
        relax_permissions(tmp_path / "gone.txt")

    @patch("file_sorter.organization.mover.subprocess.run")
    def test_shell_force_move_nonzero_exit(self, mock_run, source_file, destination):
        mock_run.return_value = subprocess.CompletedProcess([], 1, stdout="", stderr="denied")
        assert shell_force_move(source_file, destination) is False

    @patch("file_sorter.organization.mover.subprocess.run")
    def test_shell_force_move_missing_command(self, mock_run, source_file, destination):
        mock_run.side_effect = FileNotFoundError("mv")
        assert shell_force_move(source_file, destination) is False

    def test_shell_force_move_real(self, source_file, destination):
        if os.name != "posix":
            pytest.skip("mv only on POSIX")
        assert shell_force_move(source_file, destination) is True
        assert destination.exists()

    def test_no_default_privileged_move_off_macos(self):
        with patch.object(mover_module.sys, "platform", "linux"):
            assert default_privileged_move() is None

    def test_default_privileged_move_on_macos(self):
        with patch.object(mover_module.sys, "platform", "darwin"), \
                patch.object(mover_module.shutil, "which", return_value="/bin/mv"):
            assert default_privileged_move() is shell_force_move
