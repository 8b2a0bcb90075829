"""
file-sorter: sort files into category folders by extension.

The organization engine lives in :mod:`file_sorter.organization`; the
command-line front end in :mod:`file_sorter.cli`.
"""

__version__ = "1.0.0"
