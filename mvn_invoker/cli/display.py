"""Display components for CLI using Rich."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mvn_invoker.models.result import InvocationResult

console = Console()


def show_error(title: str, message: str) -> None:
    """Display an error message."""
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(message)}[/]",
            title=f"[bold]{escape(title)}[/]",
            border_style="red",
        )
    )


def show_command(command: str) -> None:
    """Display the command line about to run."""
    console.print(f"[dim]$ {escape(command)}[/]")
    console.print()


def show_result(result: InvocationResult) -> None:
    """Display the outcome of an invocation.

    Args:
        result: The invocation result.
    """
    if result.success:
        status, border = "[bold green]SUCCESS[/]", "green"
    elif result.timed_out:
        status, border = "[bold yellow]TIMED OUT[/]", "yellow"
    elif result.execution_exception is not None:
        status, border = "[bold red]ERROR[/]", "red"
    else:
        status, border = "[bold red]FAILURE[/]", "red"

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Status", status)
    table.add_row(
        "Exit Code",
        str(result.exit_code) if result.exit_code is not None else "[dim]N/A[/]",
    )
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    if result.command:
        table.add_row("Command", escape(result.command))
    if result.execution_exception is not None:
        table.add_row("Error", f"[red]{escape(str(result.execution_exception))}[/]")

    console.print()
    console.print(Panel(table, title="[bold]Invocation Summary[/]", border_style=border))
