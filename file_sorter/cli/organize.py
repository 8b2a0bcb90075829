"""
CLI commands for organizing files.

Sorts files into category folders under an output directory.
"""

import queue
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from ..core.config import OrganizerSettings, SorterConfig, load_config, save_config
from ..core.exceptions import ConfigError, OutputRootError
from ..core.types import ProgressEvent
from ..organization import FileOrganizer, OrganizeRun, category_names, classify_path
from ..shared import collect_files, setup_logging

console = Console()

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.file-sorter.json)",
)


def _load_config_or_exit(config_path: Optional[Path]) -> SorterConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


def _gather_files(
    files: Tuple[Path, ...],
    input_dir: Optional[Path],
    recursive: bool,
    config: SorterConfig,
    extra_outputs: List[Path],
) -> List[Path]:
    """Explicit files win; otherwise scan the input folder."""
    if files:
        return [f.expanduser().resolve() for f in files]

    directory = input_dir or (Path(config.input_folder) if config.input_folder else None)
    if directory is None:
        console.print("[red]✗ No files given and no input folder configured[/red]")
        sys.exit(1)

    outputs = [Path(f) for f in config.output_folders] + extra_outputs
    return collect_files(
        directory.expanduser().resolve(),
        recursive=recursive,
        output_folders=outputs,
        category_names=category_names(config.categories),
    )


@click.command()
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "-o",
    "--output",
    "output_directory",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Output folder; category folders are created inside it",
)
@click.option(
    "-i",
    "--input",
    "input_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Folder to scan when no FILES are given (default: configured input folder)",
)
@click.option(
    "--recursive/--no-recursive",
    default=True,
    help="Scan subdirectories of the input folder",
)
@config_option
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show the category of each file without moving anything",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Verbose output",
)
def organize(
    files: Tuple[Path, ...],
    output_directory: Path,
    input_dir: Optional[Path],
    recursive: bool,
    config_path: Optional[Path],
    dry_run: bool,
    verbose: bool,
) -> None:
    """
    Sort FILES (or the input folder) into category folders under --output.

    \b
    Examples:
        # Preview where files would go
        file-sorter organize -i ~/Downloads -o ~/Sorted --dry-run

        # Sort a folder
        file-sorter organize -i ~/Downloads -o ~/Sorted

        # Sort specific files
        file-sorter organize a.jpg b.pdf -o ~/Sorted

    Press Ctrl-C during a run to stop after the current file.
    """
    setup_logging(verbose=verbose, quiet=not verbose)

    config = _load_config_or_exit(config_path)
    output_directory = output_directory.expanduser().resolve()
    candidates = _gather_files(files, input_dir, recursive, config, [output_directory])

    organizer = FileOrganizer(
        categories=config.categories,
        output_directory=output_directory,
        settings=OrganizerSettings(),
        output_roots=[Path(f) for f in config.output_folders],
    )

    if dry_run:
        _display_preview(organizer.preview(candidates))
        return

    try:
        run = organizer.organize_async(candidates)
    except OutputRootError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    config.add_output_folder(output_directory)
    try:
        save_config(config, config_path)
    except ConfigError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")

    final = _follow_run(run)
    _display_result(final)


def _follow_run(run: OrganizeRun) -> ProgressEvent:
    """Render progress until the run finishes; Ctrl-C requests cancellation."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Organizing files...", total=run.total_files)

        while not run.done:
            try:
                event = run.next_event(timeout=0.1)
                progress.update(task, completed=event.processed_files)
            except queue.Empty:
                continue
            except KeyboardInterrupt:
                run.cancel()
                progress.update(task, description="Cancelling...")

    assert run.final_event is not None
    return run.final_event


def _display_preview(plan: List[Tuple[Path, str]]) -> None:
    table = Table(title="Dry run")
    table.add_column("File", style="cyan")
    table.add_column("Category", style="green")
    for path, category in plan:
        table.add_row(str(path), category)
    console.print(table)
    console.print(f"\n[yellow]DRY RUN - {len(plan)} files, nothing was moved[/yellow]")


def _display_result(final: ProgressEvent) -> None:
    """Display organization result."""
    if final.cancelled:
        console.print("\n[yellow]⚠ Organization cancelled[/yellow]\n")
    else:
        console.print("\n[green]✓ Organization complete![/green]\n")

    moved = [r for r in final.results if r.succeeded]
    failed = [r for r in final.results if not r.succeeded]

    table = Table(title="Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")

    table.add_row("Total files", str(final.total_files))
    table.add_row("Processed", str(final.processed_files))
    table.add_row("Moved", str(len(moved)))
    table.add_row("Failed", str(len(failed)))
    for category, count in sorted(Counter(r.category for r in moved).items()):
        table.add_row(f"  {category}", str(count))

    console.print(table)

    if failed:
        console.print("\n[red]Errors:[/red]")
        for result in failed[:10]:
            console.print(f"  [red]• {result.source_path}: {result.detail}[/red]")
        if len(failed) > 10:
            console.print(f"  [dim]... and {len(failed) - 10} more[/dim]")


@click.command()
@click.option(
    "-i",
    "--input",
    "input_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Folder to scan (default: configured input folder)",
)
@click.option("--recursive/--no-recursive", default=True)
@config_option
def scan(input_dir: Optional[Path], recursive: bool, config_path: Optional[Path]) -> None:
    """List the files an organize run would pick up, with their categories."""
    config = _load_config_or_exit(config_path)
    candidates = _gather_files((), input_dir, recursive, config, [])

    table = Table(title=f"{len(candidates)} files")
    table.add_column("File", style="cyan")
    table.add_column("Category", style="green")
    for path in candidates:
        table.add_row(str(path), classify_path(path, config.categories))
    console.print(table)
