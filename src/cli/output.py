"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, spinners and operation summaries. Supports verbosity
levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from src.ops.models import DatasetValidationResult, PathSetup, SyncResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Copied docs/guides -> docs/manual")
        >>> with handler.spinner("Copying..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single operation runs.

        Args:
            message: Message to display with spinner

        Yields:
            None
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    def print_sync_summary(self, operation: str, result: SyncResult) -> None:
        """Display the outcome of a copy or move.

        Args:
            operation: "copy" or "move"
            result: Result returned by the operation
        """
        verb = "Moved" if operation == "move" else "Copied"
        self.console.print(f"\n[bold]{operation.capitalize()} Summary:[/bold]")
        self.console.print(f"  [green]→[/green] {verb}: {result.files_copied} file(s)")
        if result.links_updated > 0:
            self.console.print(f"  [blue]↻[/blue] Links updated: {result.links_updated}")

        if self.verbosity >= 1:
            for entry in result.path_mapping:
                original = entry.original_dir or '.'
                new = entry.new_dir or '.'
                self.console.print(f"  • {original} → {new} ({len(entry.files)} file(s))")

        if result.skill_name_map:
            self.console.print(f"  [magenta]✎[/magenta] Renamed: {len(result.skill_name_map)} skill(s)")
            for old, new in sorted(result.skill_name_map.items()):
                self.console.print(f"    /{old} → /{new}")

        if result.files_copied == 0:
            self.console.print("\n[yellow]Nothing was copied[/yellow]")
        else:
            self.console.print(f"\n[green]{operation.capitalize()} completed successfully[/green]")

    def print_check_result(self, operation: str, setup: PathSetup) -> None:
        """Display the resolved paths of a successful pre-flight check."""
        if setup.should_skip:
            self.console.print(
                f"[yellow]Source and target are the same ({setup.norm_source}); "
                f"{operation} would do nothing[/yellow]"
            )
            return
        self.success(f"{operation} {setup.norm_source or '.'} → {setup.norm_target or '.'} is valid")
        self.info(f"  Source: {setup.src_path}")
        self.info(f"  Target: {setup.dest_path}")
        self.info(f"  Default behavior: {setup.default_behavior.value}")
        for key, behavior in sorted((setup.folder_behavior or {}).items()):
            self.info(f"  Folder '{key or '.'}': {behavior.value}")

    def print_validation_summary(self, result: DatasetValidationResult) -> None:
        """Display the report of a dataset link validation."""
        self.console.print("\n[bold]Link Validation Summary:[/bold]")
        for line in result.logs:
            self.console.print(line)

        if result.errors:
            self.console.print(f"\n[red]{len(result.errors)} broken link(s) remain[/red]")
        else:
            self.console.print("\n[green]All links are valid[/green]")
