"""
Collision-free destination naming.
"""

import logging
from pathlib import Path, PurePath
from typing import Union

from ..core.exceptions import DirectoryCreateError, InvalidNameError

logger = logging.getLogger(__name__)


def ensure_directory(directory: Path) -> Path:
    """
    Create a directory (and parents) if missing.

    Raises:
        DirectoryCreateError: If it cannot be created
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(directory, str(e)) from e
    return directory


def numbered_name(file_name: str, counter: int) -> str:
    """``photo.jpg`` -> ``photo_<counter>.jpg``; ``README`` -> ``README_<counter>``."""
    name = PurePath(file_name)
    return f"{name.stem}_{counter}{name.suffix}"


def resolve_destination(category_dir: Path, file_name: Union[str, PurePath]) -> Path:
    """
    Compute a destination path inside ``category_dir`` that does not exist yet.

    The directory is created if needed. When ``file_name`` is taken, ``_1``,
    ``_2``, ... is appended to the stem until a free name is found.

    Args:
        category_dir: Target category directory
        file_name: Name of the source file (directory parts are ignored)

    Returns:
        Free destination path

    Raises:
        InvalidNameError: If no file name or stem can be extracted
        DirectoryCreateError: If ``category_dir`` cannot be created
    """
    name = PurePath(file_name).name
    if not name or name in (".", "..") or not PurePath(name).stem:
        raise InvalidNameError(Path(str(file_name)))

    category_dir = Path(category_dir)
    ensure_directory(category_dir)

    destination = category_dir / name
    counter = 1
    # No upper bound on the suffix; every call terminates once a free name exists
    while destination.exists():
        destination = category_dir / numbered_name(name, counter)
        counter += 1

    if counter > 1:
        logger.debug(f"Name conflict for {name}, using {destination.name}")
    return destination
