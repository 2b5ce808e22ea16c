"""Rich display functions for the envar CLI."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from envar.errors import EnvarError
from envar.models import DELIMITER, MutationResult, SetMode, VariableSet
from envar.process import PID_REUSE_WARNING, ProcessInfo

console = Console()

# Variables whose values are long search lists, shown one token per segment
LIST_VARIABLES = {"path", "psmodulepath"}


def format_value(name: str, value: str) -> str:
    """Return a display form of a value, spacing out search lists."""
    if name.casefold() in LIST_VARIABLES:
        return f"{DELIMITER} ".join(value.split(DELIMITER))
    return value


# Listing
def display_store_header(location: str) -> None:
    """Display the store a listing was read from."""
    console.print(f"\n[bold blue]Path:[/bold blue] [cyan]{escape(location)}[/cyan]\n")


def display_process_header(info: ProcessInfo) -> None:
    """Display the process a listing was read from, with the pid caveat."""
    table = Table(show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Name", escape(info.name))
    table.add_row("Pid", str(info.pid))
    table.add_row("Status", escape(info.status))
    table.add_row("File", escape(info.exe or "unknown"))
    console.print(table)
    display_warning(PID_REUSE_WARNING)


def display_variables(variables: VariableSet, plain: bool = False) -> None:
    """Display a variable set as a table or as NAME=VALUE lines.

    Args:
        variables: Variables to display
        plain: Use plain text output (for scripting)
    """
    if plain:
        for variable in variables.variables():
            typer.echo(f"{variable.name}={variable.value}")
        return

    if not variables:
        console.print("📋 [yellow]No variables found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Value", style="white", overflow="fold")

    for variable in variables.variables():
        table.add_row(
            escape(variable.name), escape(format_value(variable.name, variable.value))
        )

    console.print(table)
    console.print(f"[dim]{len(variables)} variable(s)[/dim]")


# Mutation and broadcast
def display_mutation_result(result: MutationResult) -> None:
    """Display the outcome of a set command."""
    if result.created:
        action = "created"
    elif result.mode is not None:
        action = "appended" if result.mode is SetMode.APPEND else "overwritten"
    else:
        action = "updated"

    console.print(
        f"✅ [bold green]Variable '{escape(result.name)}' {action}[/bold green]"
    )
    display_info_panel(
        f"{result.scope.value.title()} variable",
        f"Name: {result.name}\nValue: {format_value(result.name, result.value)}\n"
        f"Store: {result.location}",
        "green",
    )


def display_broadcast_success() -> None:
    """Display a successful change broadcast."""
    console.print("📣 [green]Change broadcast delivered[/green]")


# Errors
def display_envar_error(error: EnvarError) -> None:
    """Display an envar error with its suggestions."""
    console.print(f"❌ [bold red]ERROR: {escape(error.message)}[/bold red]")

    if error.suggestions:
        console.print("💡 [bold yellow]Suggestions:[/bold yellow]")
        for suggestion in error.suggestions:
            console.print(f"   • {escape(suggestion)}")


def display_generic_error(error: Exception, context: str = "") -> None:
    """Display generic error with context.

    Args:
        error: Exception that occurred
        context: Optional context about where the error occurred
    """
    context_text = f" during {context}" if context else ""
    console.print(f"❌ [bold red]Error{context_text}[/bold red]")
    console.print(f"🔍 [dim]{escape(str(error))}[/dim]")


def display_warning(message: str) -> None:
    """Display warning message."""
    console.print(f"⚠️  [bold yellow]{escape(message)}[/bold yellow]")


# Utility Display Functions
def display_info_panel(title: str, content: str, style: str = "blue") -> None:
    """Display an information panel.

    Args:
        title: Panel title
        content: Panel content
        style: Rich style for the panel border
    """
    panel = Panel(escape(content), title=escape(title), border_style=style)
    console.print(panel)


def display_examples(program: Optional[str] = None) -> None:
    """Display usage examples after the help text."""
    cli = program or "envar"
    examples = [
        ("List the system environment variables.", f"{cli} -l -m"),
        ("List the environment for the process with ID 15222.", f"{cli} -l -p 15222"),
        (
            'Append a directory to the current user\'s "Path" variable.',
            f'{cli} -s -u -a -n Path -v "/opt/tools/bin"',
        ),
        (
            'Replace the "EDITOR" variable for the current user.',
            f"{cli} -s -u -o -n EDITOR -v vim",
        ),
        ("Tell running shells to re-read their variables.", f"{cli} -b"),
    ]

    console.print("\n[bold blue]EXAMPLES[/bold blue]")
    for index, (description, command) in enumerate(examples, 1):
        console.print(f"  [{index}] {description}", markup=False)
        console.print(f"      [cyan]{escape(command)}[/cyan]")
