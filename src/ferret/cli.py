"""Command line interface for Ferret."""

from __future__ import annotations

import contextlib
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ferret.config import AppConfig
from ferret.errors import FerretError
from ferret.models import EntryKind, FilterSpec, PatternKind, SizeRange
from ferret.output.sink import ActionSink, OutputMode, ReportSink
from ferret.output.stats import NO_EXTENSION, collect_stats
from ferret.search.pattern import Matcher, compile_pattern
from ferret.search.walker import walk
from ferret.utils.size import format_size, parse_size


console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="Ferret - fast file finder for Linux/Unix systems")

_TYPE_ALIASES = {
    "f": EntryKind.FILE,
    "file": EntryKind.FILE,
    "d": EntryKind.DIR,
    "dir": EntryKind.DIR,
    "directory": EntryKind.DIR,
    "l": EntryKind.SYMLINK,
    "link": EntryKind.SYMLINK,
    "symlink": EntryKind.SYMLINK,
}


class OutputFormat(str, Enum):
    DEFAULT = "default"
    JSON = "json"
    DETAILED = "detailed"


def _setup_logging(verbose: bool, quiet: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _passthrough_undecodable_names(stream) -> None:
    """Write filenames that are not valid in the locale encoding as their raw bytes."""
    reconfigure = getattr(stream, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(errors="surrogateescape")


def _parse_type(value: Optional[str]) -> Optional[EntryKind]:
    if value is None:
        return None
    try:
        return _TYPE_ALIASES[value.lower()]
    except KeyError:
        raise FerretError(f"invalid file type {value!r} (expected file, dir or symlink)") from None


def build_filter(
    pattern: str,
    *,
    ignore_case: bool = False,
    regex: bool = False,
    file_type: Optional[str] = None,
    min_size: Optional[str] = None,
    max_size: Optional[str] = None,
    modified_days: Optional[int] = None,
    recursive: bool = True,
    max_depth: Optional[int] = None,
    hidden: bool = False,
    follow_links: bool = False,
) -> tuple[FilterSpec, Matcher]:
    """Validate user input and compile it before any filesystem access."""
    kind = PatternKind.REGEX if regex else PatternKind.GLOB
    matcher = compile_pattern(pattern, kind, ignore_case)

    size_range = None
    if min_size is not None or max_size is not None:
        size_range = SizeRange(
            min_bytes=parse_size(min_size) if min_size is not None else None,
            max_bytes=parse_size(max_size) if max_size is not None else None,
        )

    spec = FilterSpec(
        pattern=pattern,
        pattern_kind=kind,
        case_insensitive=ignore_case,
        type_filter=_parse_type(file_type),
        size_range=size_range,
        max_age_days=modified_days,
        include_hidden=hidden,
        recursive=recursive,
        max_depth=max_depth,
        follow_symlinks=follow_links,
    )
    return spec, matcher


@app.command()
def find(
    pattern: str = typer.Argument(..., help="Pattern to search for (glob unless --regex)."),
    path: Path = typer.Option(
        Path("."), "--path", "-p", help="Directory to search in.", exists=True, file_okay=False
    ),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i", help="Case-insensitive search"),
    regex: bool = typer.Option(False, "--regex", "-r", help="Use regex pattern matching"),
    file_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="File type filter (file, dir, symlink)"
    ),
    min_size: Optional[str] = typer.Option(None, "--min-size", help="Minimum size (e.g. 500K)"),
    max_size: Optional[str] = typer.Option(None, "--max-size", help="Maximum size (e.g. 1M)"),
    modified_days: Optional[int] = typer.Option(
        None, "--modified-days", "-m", min=0, help="Modified within last N days"
    ),
    recursive: bool = typer.Option(True, "--recursive/--no-recursive", help="Search recursively"),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", "-d", min=0, help="Maximum depth for recursive search"
    ),
    hidden: bool = typer.Option(False, "--hidden", "-H", help="Include hidden files"),
    output: OutputFormat = typer.Option(OutputFormat.DEFAULT, "--output", "-o", help="Output format"),
    exec_command: Optional[str] = typer.Option(
        None, "--exec", "-x", help="Command to run on each match ({} is replaced by the path)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show file paths"),
    follow_links: bool = typer.Option(False, "--follow-links", "-l", help="Follow symbolic links"),
    color: Optional[bool] = typer.Option(None, "--color/--no-color", help="Force colored output"),
) -> None:
    """Find files with filters and pattern matching."""
    _setup_logging(verbose, quiet)
    _passthrough_undecodable_names(sys.stdout)
    config = AppConfig(color=color)

    try:
        spec, matcher = build_filter(
            pattern,
            ignore_case=ignore_case,
            regex=regex,
            file_type=file_type,
            min_size=min_size,
            max_size=max_size,
            modified_days=modified_days,
            recursive=recursive,
            max_depth=max_depth,
            hidden=hidden,
            follow_links=follow_links,
        )
        if exec_command is not None:
            sink = ActionSink(exec_command, placeholder=config.placeholder, stream=sys.stdout)
        else:
            mode = OutputMode.QUIET if quiet else OutputMode(output.value)
            sink = ReportSink(
                mode, sys.stdout, color=config.color, width=config.width, verbose=verbose
            )
    except FerretError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        summary = sink.consume(walk(path, spec, matcher))
    except KeyboardInterrupt:
        raise typer.Exit(code=130)
    except BrokenPipeError:
        with contextlib.suppress(Exception):
            sys.stdout.close()
        return

    if quiet:
        return
    if summary.matched == 0:
        err_console.print("[yellow]No matches found.[/yellow]")
    elif summary.failed:
        err_console.print(
            f"[yellow]Command failed for {summary.failed} of {summary.matched} matches.[/yellow]"
        )
    elif verbose:
        err_console.print(f"[dim]Found {summary.matched} matches.[/dim]")


@app.command()
def stats(
    path: Path = typer.Argument(Path("."), help="Directory to analyze.", exists=True, file_okay=False),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Analyze recursively"),
    hidden: bool = typer.Option(False, "--hidden", "-H", help="Include hidden files"),
    top: int = typer.Option(15, help="Number of extensions to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show statistics about files in a directory."""
    _setup_logging(verbose)
    _passthrough_undecodable_names(sys.stdout)
    spec = FilterSpec(pattern="*", include_hidden=hidden, recursive=recursive)
    result = collect_stats(walk(path, spec, compile_pattern("*")))

    console.print(f"Analyzing directory: [bold]{escape(str(path))}[/bold]")
    console.print(f"Total files: {result.total_files}")
    console.print(f"Total directories: {result.total_dirs}")
    console.print(f"Total size: {format_size(result.total_size)}")

    if not result.total_files:
        console.print("[yellow]No files found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Extension")
    table.add_column("Count", justify="right")
    table.add_column("Total Size", justify="right")
    for ext, ext_stats in result.top_extensions(top):
        label = ext if ext == NO_EXTENSION else f".{ext}"
        table.add_row(label, str(ext_stats.count), format_size(ext_stats.size))
    console.print(table)

    largest = Table(show_header=True, header_style="bold magenta")
    largest.add_column("File")
    largest.add_column("Size", justify="right")
    for size, file_path in result.largest():
        largest.add_row(str(file_path), format_size(size))
    console.print(largest)
