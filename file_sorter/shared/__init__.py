"""
Shared utilities for file-sorter.
"""

from .file_utils import collect_files, setup_logging

__all__ = [
    "collect_files",
    "setup_logging",
]
