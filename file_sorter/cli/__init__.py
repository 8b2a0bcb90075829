"""Command-line interface for file-sorter."""
