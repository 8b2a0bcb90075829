"""
Main CLI entry point for file-sorter.
"""

import click

from .. import __version__
from .config_cli import config_group
from .organize import organize, scan


@click.group()
@click.version_option(__version__, prog_name="file-sorter")
def cli() -> None:
    """
    file-sorter - sort files into category folders by extension.
    """


cli.add_command(organize)
cli.add_command(scan)
cli.add_command(config_group)


if __name__ == "__main__":
    cli()
