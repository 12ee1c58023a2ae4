"""Console output for the pmp command line.

Wraps a rich Console with a small theme, status-line helpers, progress
bars and the end-of-run summary.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.text import Text
from rich.theme import Theme

from ..core.models import AnalysisResult
from ..core.streaming import StreamingStats
from .sizes import format_size


class StatusType(Enum):
    """Standard status types with associated symbols."""
    SUCCESS = ("[✓]", "success", "green")
    ERROR = ("[x]", "error", "red")
    WARNING = ("[!]", "warning", "yellow")
    INFO = ("[i]", "info", "cyan")


@dataclass
class ThemeColors:
    """Color definitions for a theme."""
    info: str
    warning: str
    error: str
    success: str
    highlight: str
    path: str
    number: str
    dim: str
    heading: str


DEFAULT_THEME = ThemeColors(
    info='cyan',
    warning='yellow',
    error='red',
    success='green',
    highlight='bright_cyan',
    path='white',
    number='bright_blue',
    dim='bright_black',
    heading='bright_yellow',
)


class ConsoleManager:
    """Themed rich console used by the CLI."""

    def __init__(self, file: Optional[Any] = None, theme_colors: ThemeColors = DEFAULT_THEME):
        """
        Args:
            file: Output file (defaults to sys.stdout)
            theme_colors: Styles for the markup tags used in messages
        """
        self.theme_colors = theme_colors
        self.file = file or sys.stdout
        self.console = Console(theme=self._create_rich_theme(), file=self.file, highlight=False)

    def _create_rich_theme(self) -> Theme:
        colors = self.theme_colors
        return Theme({
            'info': colors.info,
            'warning': colors.warning,
            'error': colors.error,
            'success': colors.success,
            'highlight': colors.highlight,
            'path': colors.path,
            'number': colors.number,
            'dim': colors.dim,
            'heading': colors.heading,
        })

    def print(self, *args, **kwargs):
        """Print with rich markup."""
        self.console.print(*args, **kwargs)

    def print_status(self, status: StatusType, message: str):
        """Print a status line with icon."""
        icon, _, color = status.value
        status_text = Text()
        status_text.append(f"{icon} ", style=color)
        status_text.append(message)
        self.console.print(status_text)

    def print_error(self, message: str):
        self.print_status(StatusType.ERROR, message)

    def print_warning(self, message: str):
        self.print_status(StatusType.WARNING, message)

    def print_separator(self, char: str = "─", width: int = 60):
        """Print a separator line."""
        self.console.print(char * width, style="dim")

    def print_exception(self):
        """Print exception traceback with rich formatting."""
        self.console.print_exception()

    def create_progress(self) -> Progress:
        """Progress display for the collection and reading phases."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[info]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def print_summary(self, result: AnalysisResult, stream_stats: Optional[StreamingStats] = None,
                      output_path: Optional[str] = None, show_warnings: bool = False):
        """
        Print the end-of-run summary.

        Always reports how many files were considered, skipped by limits and
        failed, so dropped files are never silent.
        """
        stats = result.stats
        rows = [
            ("Files considered", f"{stats.considered:,}"),
            ("Files included", f"{stats.file_count:,}"),
            ("Skipped by limits", f"{stats.skipped_by_limits:,}"),
            ("Failed", f"{stats.failed:,}"),
            ("Streamed", f"{stats.streamed:,}"),
            ("Total size", format_size(stats.total_size)),
            ("Tokens", f"{stats.token_count:,}"),
            ("Characters", f"{stats.char_count:,}"),
            ("Time", f"{stats.process_time:.2f}s ({stats.files_per_sec:.1f} files/s)"),
        ]

        self.print_separator("═")
        self.print(f"[success]ANALYSIS COMPLETE[/success] [path]{result.project_name}[/path]")
        self.print_separator("═")
        for label, value in rows:
            self.print(f"[heading]{label + ':':<20}[/heading] [number]{value}[/number]")

        if stream_stats is not None and stream_stats.files_streamed:
            self.print(f"[dim]Streamed {stream_stats.files_streamed} files in "
                       f"{stream_stats.chunks_processed} chunks "
                       f"({format_size(stream_stats.bytes_processed)})[/dim]")

        if output_path:
            self.print(f"\n[info]Output:[/info] [path]{output_path}[/path]")

        if result.has_warnings():
            self.print_warning(f"{len(result.warnings)} warnings")
            limit = len(result.warnings) if show_warnings else 5
            for warning in result.warnings[:limit]:
                # Warnings carry file paths, which may contain markup brackets
                self.console.print(Text(f"  > {warning}", style="dim"))
            if len(result.warnings) > limit:
                self.print(f"  [dim]... +{len(result.warnings) - limit} more[/dim]")
