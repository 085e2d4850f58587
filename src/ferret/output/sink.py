"""Per-match output: rendering results or running a command on them."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Iterable, List

from rich.console import Console
from rich.text import Text

from ferret.errors import ActionNonZeroExit, ActionSpawnFailure, FerretError
from ferret.models import DEFAULT_PLACEHOLDER, ActionOutcome, EntryKind, FilesystemEntry
from ferret.utils.size import format_size

LOGGER = logging.getLogger(__name__)

_KIND_STYLES = {
    EntryKind.DIR: "bold cyan",
    EntryKind.SYMLINK: "magenta",
}


class OutputMode(str, Enum):
    DEFAULT = "default"
    QUIET = "quiet"
    JSON = "json"
    DETAILED = "detailed"


@dataclass(slots=True)
class SinkStats:
    matched: int = 0
    failed: int = 0
    outcomes: List[ActionOutcome] = field(default_factory=list)

    def record(self, outcome: ActionOutcome) -> None:
        self.matched += 1
        if not outcome.ok:
            self.failed += 1
        self.outcomes.append(outcome)


def _format_mtime(entry: FilesystemEntry) -> str:
    modified = entry.modified
    return modified.strftime("%Y-%m-%d %H:%M:%S") if modified else "-"


class ReportSink:
    """Render each match as exactly one line or record."""

    def __init__(
        self,
        mode: OutputMode = OutputMode.DEFAULT,
        stream: IO[str] | None = None,
        *,
        color: bool = False,
        width: int | None = None,
        verbose: bool = False,
    ) -> None:
        self.mode = mode
        self.verbose = verbose
        self.stream = stream if stream is not None else sys.stdout
        self.console = Console(
            file=self.stream,
            width=width,
            no_color=not color,
            color_system="standard" if color else None,
            force_terminal=True if color else None,
            highlight=False,
            soft_wrap=True,
        )

    def emit(self, entry: FilesystemEntry) -> None:
        if self.mode is OutputMode.QUIET:
            self.stream.write(f"{entry.path}\n")
        elif self.mode is OutputMode.JSON:
            self.stream.write(json.dumps(entry.to_record()) + "\n")
        elif self.mode is OutputMode.DETAILED:
            self.stream.write(
                f"{entry.kind.value}\t{entry.size}\t{_format_mtime(entry)}\t{entry.path}\n"
            )
        else:
            line = Text(str(entry.path), style=_KIND_STYLES.get(entry.kind, ""))
            if self.verbose:
                line.append(
                    f"  {format_size(entry.size)}  {entry.kind.value}  {_format_mtime(entry)}",
                    style="dim",
                )
            self.console.print(line)

    def consume(self, entries: Iterable[FilesystemEntry]) -> SinkStats:
        stats = SinkStats()
        for entry in entries:
            self.emit(entry)
            stats.matched += 1
        self.stream.flush()
        return stats


def build_argv(template: List[str], path: str, placeholder: str = DEFAULT_PLACEHOLDER) -> List[str]:
    """Substitute ``path`` for every placeholder, or append it if there is none."""
    argv = [arg.replace(placeholder, path) for arg in template]
    if not any(placeholder in arg for arg in template):
        argv.append(path)
    return argv


class ActionSink:
    """Run an external command once per match, in traversal order.

    Each child is awaited before the next match is processed. Spawn failures
    and non-zero exits are recorded for that match only.
    """

    def __init__(
        self,
        command: str,
        *,
        placeholder: str = DEFAULT_PLACEHOLDER,
        stream: IO[str] | None = None,
    ) -> None:
        try:
            template = shlex.split(command)
        except ValueError as exc:
            raise FerretError(f"invalid exec command {command!r}: {exc}") from exc
        if not template:
            raise FerretError("exec command cannot be empty")
        self.command = command
        self.template = template
        self.placeholder = placeholder
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, entry: FilesystemEntry) -> ActionOutcome:
        argv = build_argv(self.template, str(entry.path), self.placeholder)
        outcome = ActionOutcome(entry=entry, argv=argv)
        self.stream.flush()
        LOGGER.debug("Running: %s", shlex.join(argv))
        try:
            proc = subprocess.run(argv, check=False)
        except OSError as exc:
            outcome.error = ActionSpawnFailure(argv, exc.strerror or str(exc))
            LOGGER.error("%s", outcome.error)
            return outcome

        outcome.returncode = proc.returncode
        if proc.returncode != 0:
            outcome.error = ActionNonZeroExit(argv, proc.returncode)
            LOGGER.warning("%s (on %s)", outcome.error, entry.path)
        return outcome

    def consume(self, entries: Iterable[FilesystemEntry]) -> SinkStats:
        stats = SinkStats()
        for entry in entries:
            stats.record(self.emit(entry))
        return stats
