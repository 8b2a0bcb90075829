"""
Extension-based classification.

Categories are scanned in lexicographic order of their names so that an
extension listed under several categories always lands in the same one.
"""

from pathlib import PurePath
from typing import List, Mapping, Sequence, Union

from ..core.types import DEFAULT_CATEGORY


def extension_of(path: Union[str, PurePath]) -> str:
    """Return the file extension with its leading dot, or ``""``."""
    return PurePath(path).suffix


def classify(
    extension: str,
    categories: Mapping[str, Sequence[str]],
    default: str = DEFAULT_CATEGORY,
) -> str:
    """
    Map an extension to a category name.

    Args:
        extension: Raw suffix including the dot (``".JPG"``), or ``""``
        categories: Category name -> extensions
        default: Category returned when nothing matches

    Returns:
        First matching category name, or ``default``
    """
    if not extension:
        return default

    ext_lower = extension.lower()
    for category in sorted(categories):
        if any(ext.lower() == ext_lower for ext in categories[category]):
            return category
    return default


def classify_path(
    path: Union[str, PurePath],
    categories: Mapping[str, Sequence[str]],
    default: str = DEFAULT_CATEGORY,
) -> str:
    """Classify a file by its path's extension."""
    return classify(extension_of(path), categories, default)


def category_names(
    categories: Mapping[str, Sequence[str]], default: str = DEFAULT_CATEGORY
) -> List[str]:
    """All folder names a run can produce, default category included once."""
    names = sorted(categories)
    if default not in categories:
        names.append(default)
    return names
