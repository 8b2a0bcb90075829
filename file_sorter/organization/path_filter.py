"""
Exclusion of files that a previous run already placed into category folders.
"""

from pathlib import Path, PurePath
from typing import Collection, Iterable, List, Optional, Union

PathLike = Union[str, PurePath]


def _first_segment_below(path: PurePath, root: PurePath) -> Optional[str]:
    try:
        relative = path.relative_to(root)
    except ValueError:
        return None
    return relative.parts[0] if relative.parts else None


def is_in_category_folder(
    path: PathLike,
    output_roots: Iterable[PathLike],
    category_names: Collection[str],
) -> bool:
    """
    Check whether ``path`` sits inside ``<root>/<category>/`` for any root.

    Segments are compared exactly (no case folding).
    """
    path = PurePath(path)
    for root in output_roots:
        segment = _first_segment_below(path, PurePath(root))
        if segment is not None and segment in category_names:
            return True
    return False


def filter_organized(
    files: Iterable[PathLike],
    output_root: PathLike,
    category_names: Collection[str],
) -> List[Path]:
    """
    Drop files already organized under ``output_root``.

    Args:
        files: Candidate file paths
        output_root: Output folder of the run
        category_names: Folder names the run can produce

    Returns:
        Remaining files, in input order
    """
    return [
        Path(f)
        for f in files
        if not is_in_category_folder(f, [output_root], category_names)
    ]
