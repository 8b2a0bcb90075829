"""
Organization module for sorting files into category folders.

Classification is by extension only. Moves go through a fallback chain that
survives cross-filesystem and permission problems, and batch runs report
progress per file and can be cancelled between files.
"""

from .classifier import category_names, classify, classify_path, extension_of
from .destination import ensure_directory, resolve_destination
from .file_organizer import FileOrganizer, OrganizeRun
from .mover import MoveStrategy, relax_permissions, shell_force_move
from .path_filter import filter_organized, is_in_category_folder

__all__ = [
    "category_names",
    "classify",
    "classify_path",
    "extension_of",
    "ensure_directory",
    "resolve_destination",
    "FileOrganizer",
    "OrganizeRun",
    "MoveStrategy",
    "relax_permissions",
    "shell_force_move",
    "filter_organized",
    "is_in_category_folder",
]
