#!/usr/bin/env python3
"""envar CLI - list and modify persisted environment variables.

A single Typer command whose action is chosen by flag:
- ``-l`` lists the user, machine or a process' variables
- ``-s`` creates, appends to or overwrites a user or machine variable
- ``-b`` tells running listeners to re-read their variables
"""

from typing import Optional

import typer

from envar import __version__
from envar.cli.business_operations import (
    broadcast_operation,
    list_variables_operation,
    set_variable_operation,
)
from envar.cli.display import (
    console,
    display_broadcast_success,
    display_envar_error,
    display_examples,
    display_generic_error,
    display_mutation_result,
    display_process_header,
    display_store_header,
    display_variables,
)
from envar.cli.validation_helpers import (
    BroadcastIntent,
    CommandFlags,
    Intent,
    ListIntent,
    SetIntent,
    build_intent,
)
from envar.config import EnvarConfig, load_config
from envar.errors import EnvarError
from envar.logging import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="envar",
    help="envar - Environment Variables Utility",
    add_completion=False,
)


def _run_list(intent: ListIntent, config: EnvarConfig, plain: bool) -> None:
    variables, process_info = list_variables_operation(
        config, intent.scope, intent.pid
    )
    if not plain:
        if process_info is not None:
            display_process_header(process_info)
        else:
            display_store_header(variables.location)
    display_variables(variables, plain)


def _run_set(intent: SetIntent, config: EnvarConfig) -> None:
    result = set_variable_operation(config, intent.request)
    display_mutation_result(result)

    # The write is already applied; a failed broadcast is still reported
    broadcast_operation(config)
    display_broadcast_success()


def _run(intent: Intent, config: EnvarConfig, plain: bool) -> None:
    if isinstance(intent, ListIntent):
        _run_list(intent, config, plain)
    elif isinstance(intent, SetIntent):
        _run_set(intent, config)
    elif isinstance(intent, BroadcastIntent):
        broadcast_operation(config)
        display_broadcast_success()


@app.command(context_settings={"help_option_names": ["-?", "-h", "--help"]})
def main(
    ctx: typer.Context,
    list_vars: bool = typer.Option(
        False,
        "-l",
        "--list",
        help="List the environment variables. Uses the user's variables "
        "unless -m or -p is given.",
    ),
    set_var: bool = typer.Option(
        False,
        "-s",
        "--set",
        help="Create or update a variable using -n and -v.",
    ),
    broadcast: bool = typer.Option(
        False,
        "-b",
        "--broadcast",
        help="Tell running applications to re-read their environment "
        "without changing anything.",
    ),
    machine: bool = typer.Option(
        False, "-m", "--machine", help="Use the system-wide variables."
    ),
    user: bool = typer.Option(
        False, "-u", "--user", help="Use the current user's variables (default)."
    ),
    pid: Optional[int] = typer.Option(
        None,
        "-p",
        "--pid",
        help="List the environment block of the process with this ID. "
        "IDs are reused by the OS, so the process may not be the one you expect.",
    ),
    append: bool = typer.Option(
        False,
        "-a",
        "--append",
        help="Append the value with a ';' delimiter if the variable exists "
        "(default).",
    ),
    overwrite: bool = typer.Option(
        False, "-o", "--overwrite", help="Overwrite the value of an existing variable."
    ),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Variable name."),
    value: Optional[str] = typer.Option(
        None, "-v", "--value", help="Variable value."
    ),
    plain: bool = typer.Option(
        False, "--plain", help="Use plain NAME=VALUE output (for scripting)."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to the envar configuration file."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output."),
    quiet: bool = typer.Option(False, "--quiet", help="Only log errors."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """envar - Environment Variables Utility.

    List, create and modify user and machine environment variables, inspect
    the environment of a running process, and notify running applications
    when the persisted variables change.
    """
    if version:
        console.print(f"envar v{__version__}")
        raise typer.Exit()

    configure_logging(verbose, quiet)

    flags = CommandFlags(
        list_vars=list_vars,
        set_var=set_var,
        broadcast=broadcast,
        machine=machine,
        user=user,
        pid=pid,
        append=append,
        overwrite=overwrite,
        name=name,
        value=value,
    )

    try:
        config = load_config(config_path)
        configure_logging(verbose, quiet, config.log_level)

        intent = build_intent(flags)
        if intent is None:
            typer.echo(ctx.get_help())
            display_examples(ctx.info_name)
            raise typer.Exit()

        _run(intent, config, plain)

    except typer.Exit:
        raise
    except EnvarError as e:
        logger.error(f"envar failed: {e.message}")
        display_envar_error(e)
        raise typer.Exit(1)
    except OSError as e:
        logger.error(f"Unexpected operating system error: {e}")
        display_generic_error(e, "command execution")
        raise typer.Exit(1)


def cli() -> None:
    """Entry point for the CLI application.

    This is the main entry point called from setup.py or when running
    the module directly. It handles top-level error catching and
    provides consistent exit behavior.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
        raise SystemExit(130)
    except Exception as e:
        logger.error(f"Unexpected CLI error: {e}")
        display_generic_error(e)
        console.print("💡 [dim]Run with --verbose for more details[/dim]")
        raise SystemExit(1)


if __name__ == "__main__":
    # Direct execution support
    cli()
