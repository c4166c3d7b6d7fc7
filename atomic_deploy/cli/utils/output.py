# atomic_deploy/cli/utils/output.py
"""Output formatting utilities"""

from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

from ...api.exceptions import AtomicDeployError
from ...constants import EMOJI_SUCCESS
from ...models import LifecycleResult, ReleaseSet

console = Console()


class ConsoleSink:
    """OutputSink that renders lifecycle progress on a rich console"""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def header(self, text: str) -> None:
        self.console.print(Rule(f"[bold yellow]{escape(text)}[/bold yellow]", style="yellow"))

    def step(self, text: str) -> None:
        self.console.print(escape(text))

    def command_output(self, line: str) -> None:
        # Command output is not markup
        self.console.print("[green]>>[/green] ", end="")
        self.console.print(line, markup=False, highlight=False)

    def success(self, text: str) -> None:
        self.console.print(f"[green]{escape(text)}[/green]")

    def warning(self, text: str) -> None:
        self.console.print(f"[yellow]Warning:[/yellow] {escape(text)}")


def format_lifecycle_result(result: LifecycleResult) -> None:
    """Format and display a deploy or rollback result"""
    lines = [
        f"[green]{EMOJI_SUCCESS}[/green] {result.operation.capitalize()} completed successfully!",
        "",
    ]

    if result.release:
        lines.append(f"[bold]Release:[/bold] {result.release.name}")
        lines.append(f"[bold]Path:[/bold] {escape(str(result.release.path))}")

    if result.linked:
        lines.append(f"[bold]Shared links:[/bold] {len(result.linked)}")

    if result.removed:
        lines.append(f"[bold]Removed:[/bold] {', '.join(r.name for r in result.removed)}")

    if result.duration is not None:
        lines.append(f"[dim]Duration: {result.duration:.2f}s[/dim]")

    panel = Panel(
        "\n".join(lines),
        title=f"{result.operation.capitalize()} Result",
        border_style="green"
    )
    console.print(panel)


def format_release_list(releases: ReleaseSet, current: Optional[Path]) -> None:
    """Format and display release list"""
    if not len(releases):
        console.print("[yellow]No releases found[/yellow]")
        return

    table = Table(title=escape(f"Releases in {releases.root}"), box=box.SIMPLE)
    table.add_column("Name", style="cyan")
    table.add_column("Created", style="dim")
    table.add_column("Current", style="green")

    live = current.resolve() if current else None
    for release in releases:
        created = release.created_at.strftime("%Y-%m-%d %H:%M:%S") if release.created_at else "N/A"
        is_current = live is not None and release.path.resolve() == live
        table.add_row(release.name, created, EMOJI_SUCCESS if is_current else "")

    console.print(table)


def print_failure(error: AtomicDeployError) -> None:
    """Print a lifecycle failure naming the step that failed"""
    if error.step:
        console.print(f"[red]Error:[/red] {error.step} failed: {escape(str(error))}")
    else:
        console.print(f"[red]Error:[/red] {escape(str(error))}")


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]Error:[/red] {message}: {escape(str(error))}")
    else:
        console.print(f"[red]Error:[/red] {message}")
