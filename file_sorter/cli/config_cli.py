"""
CLI commands for viewing and editing the persisted configuration.
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from ..core.config import SorterConfig, get_config_path, load_config, save_config
from ..core.exceptions import ConfigError
from .organize import config_option

console = Console()


def _load(config_path: Optional[Path]) -> SorterConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


def _save(config: SorterConfig, config_path: Optional[Path]) -> None:
    try:
        save_config(config, config_path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


@click.group(name="config")
def config_group() -> None:
    """View or edit categories and folders."""


@config_group.command()
@config_option
def show(config_path: Optional[Path]) -> None:
    """Show categories and configured folders."""
    config = _load(config_path)

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Extensions")
    for name in sorted(config.categories):
        table.add_row(name, ", ".join(config.categories[name]))
    console.print(table)

    console.print(f"\n[cyan]Config file:[/cyan] {config_path or get_config_path()}")
    console.print(f"[cyan]Input folder:[/cyan] {config.input_folder or '(not set)'}")
    console.print("[cyan]Output folders:[/cyan]")
    if not config.output_folders:
        console.print("  (none)")
    for folder in config.output_folders:
        console.print(f"  • {folder}")


@config_group.command("add-category")
@click.argument("name")
@click.argument("extensions", nargs=-1, required=True)
@config_option
def add_category(name: str, extensions: Tuple[str, ...], config_path: Optional[Path]) -> None:
    """
    Add or replace category NAME with EXTENSIONS.

    Extensions may be given as separate arguments or comma separated;
    the leading dot is optional (``jpg`` and ``.jpg`` are the same).
    """
    config = _load(config_path)
    try:
        config.add_category(name, ",".join(extensions))
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    _save(config, config_path)
    console.print(
        f"[green]✓ {name}: {', '.join(config.categories[name.strip()])}[/green]"
    )


@config_group.command("remove-category")
@click.argument("name")
@config_option
def remove_category(name: str, config_path: Optional[Path]) -> None:
    """Remove category NAME."""
    config = _load(config_path)
    if not config.remove_category(name):
        console.print(f"[red]✗ No category named {name!r}[/red]")
        sys.exit(1)
    _save(config, config_path)
    console.print(f"[green]✓ Removed {name}[/green]")


@config_group.command("set-input")
@click.argument("folder", type=click.Path(exists=True, file_okay=False, path_type=Path))
@config_option
def set_input(folder: Path, config_path: Optional[Path]) -> None:
    """Set the folder scanned when organize gets no files."""
    config = _load(config_path)
    config.set_input_folder(folder.expanduser().resolve())
    _save(config, config_path)
    console.print(f"[green]✓ Input folder: {config.input_folder}[/green]")


@config_group.command("add-output")
@click.argument("folder", type=click.Path(file_okay=False, path_type=Path))
@config_option
def add_output(folder: Path, config_path: Optional[Path]) -> None:
    """Remember an output folder so its category folders are never rescanned."""
    config = _load(config_path)
    config.add_output_folder(folder.expanduser().resolve())
    _save(config, config_path)
    console.print(f"[green]✓ Output folders: {len(config.output_folders)}[/green]")
