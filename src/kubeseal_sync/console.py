"""Rich console utilities for styled terminal output.

All user-facing output of kubeseal-sync goes through the helpers below
so messages share one theme. Developer tracing uses ``icecream`` instead.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from kubeseal_sync.manifests.records import ManifestRecord
    from kubeseal_sync.models import ReconcileReport

_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message."""
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    console.print(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation."""
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def create_task_progress() -> Progress:
    """Create a progress bar configured for batch processing.

    Returns:
        A configured Progress instance for batch operations.

    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("[muted]{task.completed}/{task.total}[/muted]"),
        console=console,
        transient=True,
    )


def summary_panel(title: str, items: dict[str, str]) -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="green"))


def report_table(report: ReconcileReport) -> None:
    """Print one row per reconciled Secret with its result.

    Succeeded rows show the SealedSecret file written; failed rows show
    the record error or every key that could not be sealed.

    Args:
        report: The reconciliation report to render.

    """
    table = Table(title="SealedSecrets", title_justify="left", show_lines=False)
    table.add_column("Namespace", style="cyan")
    table.add_column("Secret", style="bold")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")

    for outcome in report.outcomes:
        if outcome.ok:
            status = "[success]sealed[/success]"
            details = str(outcome.path) if outcome.path else ""
        else:
            status = "[error]failed[/error]"
            if outcome.error:
                details = outcome.error
            else:
                details = "\n".join(f"{f.key}: {f.error}" for f in outcome.failures)
        table.add_row(outcome.ref.namespace or "-", outcome.ref.name, status, details)

    console.print(table)
    border = "green" if report.ok else "red"
    console.print(
        Panel(
            f"{len(report.succeeded)} succeeded, {len(report.failed)} failed",
            border_style=border,
            expand=False,
        )
    )


def records_table(records: Sequence[ManifestRecord]) -> None:
    """Print indexed manifest records, one row each."""
    if not records:
        warning("No manifests indexed")
        return

    table = Table(title="Manifests", title_justify="left")
    table.add_column("Kind", style="bold")
    table.add_column("Namespace", style="cyan")
    table.add_column("Name")
    table.add_column("Path", style="muted", overflow="fold")

    for record in sorted(records, key=lambda r: (r.kind, r.metadata.namespace or "", r.metadata.name)):
        table.add_row(record.kind, record.metadata.namespace or "-", record.metadata.name, record.path)

    console.print(table)
