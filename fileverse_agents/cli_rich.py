"""Rich UI components for the Fileverse agent CLI."""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# Create a global console instance
console = Console()


def log(message: str, style: Optional[str] = None) -> None:
    """Log a message to the console with optional styling.

    Args:
        message: The message to log
        style: Optional style to apply to the message
    """
    console.print(message, style=style)


def info(message: str) -> None:
    console.print(f"[blue]INFO:[/blue] {message}")


def success(message: str) -> None:
    console.print(f"[green]SUCCESS:[/green] {message}")


def warning(message: str) -> None:
    console.print(f"[yellow]WARNING:[/yellow] {message}")


def error(message: str) -> None:
    console.print(f"[bold red]ERROR:[/bold red] {message}")


def print_table(title: str, data: List[Dict[str, Any]], columns: List[str]) -> None:
    """Print a table of data.

    Args:
        title: The title of the table
        data: List of dictionaries containing the data
        columns: List of column names to include
    """
    table = Table(title=title, expand=True, show_edge=True)

    for column in columns:
        table.add_column(column)

    for row in data:
        table.add_row(*[str(row.get(column, "")) for column in columns])

    console.print(table)


def print_record(title: str, record: Dict[str, Any]) -> None:
    """Print a single record as a two-column Field/Value table."""
    print_table(
        title,
        [{"Field": key, "Value": value} for key, value in record.items()],
        ["Field", "Value"],
    )


def print_panel(content: str, title: Optional[str] = None, markup: bool = True) -> None:
    """Print content in a panel; pass markup=False for raw file content."""
    console.print(Panel(content if markup else Text(content), title=title))
