"""Rich console output helpers."""

from rich.console import Console
from rich.table import Table

console = Console()


def ok(msg: str):
    """Print success message."""
    console.print(f"  [green]✓[/green] {msg}")


def fail(msg: str):
    """Print failure message."""
    console.print(f"  [red]✗[/red] {msg}")


def header(msg: str):
    """Print bold header."""
    console.print(f"\n[bold]{msg}[/bold]")


def make_summary_table(title: str, values: dict) -> Table:
    """Two column table of run results."""
    table = Table(title=title, show_header=True, header_style="bold cyan", border_style="dim")
    table.add_column("Quantity", style="bold")
    table.add_column("Value", justify="right")

    for key, value in values.items():
        text = f"{value:.6g}" if isinstance(value, float) else str(value)
        table.add_row(key, text)

    return table


def print_summary(title: str, values: dict):
    console.print(make_summary_table(title, values))
