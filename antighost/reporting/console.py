"""Console output: banner, startup spinner and progress, coloured reports."""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn
from rich.text import Text

from ..models import LoginResult
from .diff import CHANGE_MARKER, GhostPingReport


def _style(color: Optional[str], bold: bool = False) -> str:
    parts = []
    if bold:
        parts.append("bold")
    if color and color.startswith("#") and len(color) == 7:
        parts.append(color)
    return " ".join(parts)


class ConsoleDisplay:
    """Everything the user sees on the terminal goes through here."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def logged_in(self, user: LoginResult):
        self.console.print(
            f"Logged on account {user.handle} ({user.user_id})!", style="bold green"
        )

    @contextmanager
    def fetching_channels(self) -> Iterator[None]:
        with self.console.status("[bold green]Fetching channels..."):
            yield
        self.console.print("Successfully fetched channels!", style="bold green")

    @contextmanager
    def subscribing(self, total: int) -> Iterator[Callable[[], None]]:
        """Progress bar over channel subscriptions; yields a tick callback."""
        progress = Progress(
            BarColumn(bar_width=50, complete_style="green", style="red"),
            TextColumn("[bold green]Subscribing to events..."),
            TimeRemainingColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            MofNCompleteColumn(),
            console=self.console,
        )
        with progress:
            task = progress.add_task("subscribe", total=total)
            yield lambda: progress.advance(task)
        self.console.print("Successfully subscribed to events!", style="bold green")

    def render(self, report: GhostPingReport) -> Text:
        """Colour a report: author colour for the original, bold red marker."""
        line = Text()
        bold = report.kind == 'update'
        line.append(f"{report.header} {report.original_content}",
                    style=_style(report.author.color, bold=bold))
        if report.kind == 'update':
            line.append(" ")
            line.append(CHANGE_MARKER, style="bold red")
            line.append(" ")
            line.append(report.new_content or "", style=_style(report.new_color))
        return line

    def report(self, report: GhostPingReport):
        self.console.print(self.render(report))

    def error(self, message: str):
        self.console.print(message, style="bold red")

    def info(self, message: str):
        self.console.print(message, style="bold green")
