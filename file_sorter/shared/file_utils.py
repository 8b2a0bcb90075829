"""
File utilities for file-sorter: directory scanning and logging setup.
"""

import logging
import os
from pathlib import Path
from typing import Collection, Iterable, List, Union

from ..organization.path_filter import is_in_category_folder

logger = logging.getLogger(__name__)


def collect_files(
    directory: Path,
    recursive: bool = True,
    output_folders: Iterable[Union[str, Path]] = (),
    category_names: Collection[str] = (),
) -> List[Path]:
    """
    Collect candidate files from a directory.

    Entries inside a category folder of any output folder are skipped, so
    files sorted by an earlier run are not picked up again even when the
    input and output folders overlap.

    Args:
        directory: Directory to scan
        recursive: If True, scan subdirectories recursively
        output_folders: Output roots of previous runs
        category_names: Category folder names under those roots

    Returns:
        Sorted list of file paths
    """
    directory = Path(directory)
    output_folders = [Path(f) for f in output_folders]
    files: List[Path] = []

    if not directory.exists():
        logger.error(f"Directory does not exist: {directory}")
        return files

    if not directory.is_dir():
        logger.error(f"Path is not a directory: {directory}")
        return files

    def excluded(path: Path) -> bool:
        return is_in_category_folder(path, output_folders, category_names)

    try:
        if recursive:
            for root, dirs, names in os.walk(directory):
                root_path = Path(root)
                # Prune category folders so os.walk never descends into them
                dirs[:] = sorted(d for d in dirs if not excluded(root_path / d))
                for name in names:
                    file_path = root_path / name
                    if not excluded(file_path):
                        files.append(file_path)
        else:
            for file_path in directory.iterdir():
                if file_path.is_file() and not excluded(file_path):
                    files.append(file_path)

        logger.info(f"Found {len(files)} files in {directory}")
    except PermissionError as e:
        logger.error(f"Permission denied accessing {directory}: {e}")

    return sorted(files)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "file_sorter"


def setup_logging(verbose: bool = False, quiet: bool = False) -> int:
    """
    Configure logging for file-sorter.

    The level is applied to the ``file_sorter`` logger directly, so it takes
    effect even when the root logger was configured by someone else.

    Args:
        verbose: Log DEBUG and up (fallback steps of each move)
        quiet: Log WARNING and up (failed files, cancellation); wins over
            ``verbose``

    Returns:
        The level that was applied
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    return level
