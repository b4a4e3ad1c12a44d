"""
Alara CLI

Usage:
    alara dev [--port PORT] [--host HOST] [--project-directory DIR] [--no-watch]
    alara parse-value PROPERTY VALUE [--json]
    alara history [--limit N] [--json] [--clear [--keep N]]
    alara undo TRANSACTION_ID
    alara version
"""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from alara import __version__
from alara.logging_config import logger, reset_logging, setup_logging
from alara.exceptions import ConfigError
from alara.mutation import MutationEngine
from alara.styles import parse_css_value, serialize_style_value
from alara.user_config import UserConfig
from alara.cli.config import CLIConfig
from alara.cli.output import get_console, print_error, print_json

app = typer.Typer(help="Alara: edit a running web app and write the changes back to source.")
console = get_console()


@app.callback()
def global_options(
    machine: bool = typer.Option(
        False,
        "--machine",
        "-m",
        help="Machine mode: plain output, no console logging (also via ALARA_MACHINE_MODE)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Alara command-line interface.
    """
    if machine:
        CLIConfig.set_machine_mode(True)
    if machine or verbose:
        reset_logging()
        setup_logging(level="DEBUG" if verbose else "INFO", suppress_console=CLIConfig.is_machine_mode())


@app.command()
def version():
    """
    Prints the current version of Alara.
    """
    typer.echo(f"Alara v{__version__}")


@app.command()
def dev(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default: server.port, 4000)"),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default: server.host)"),
    project_directory: Path = typer.Option(
        Path("."),
        "--project-directory",
        "-d",
        help="Project whose sources are edited",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    watch: Optional[bool] = typer.Option(
        None, "--watch/--no-watch", help="Invalidate cached parses on external edits (default: watcher.enabled)"
    ),
):
    """
    Run the dev server that applies transforms to the project sources.
    """
    from alara.server import run_server

    project_dir = project_directory.resolve()
    try:
        config = UserConfig(project_dir)
    except ConfigError as e:
        print_error(str(e), code="CONFIG_ERROR")
        raise typer.Exit(code=1)

    host = host or config.get("server.host")
    port = port or config.get("server.port")
    if watch is None:
        watch = bool(config.get("watcher.enabled", True))

    engine_config = {
        "backup_enabled": bool(config.get("mutation.backup_enabled", False)),
        "history_enabled": bool(config.get("mutation.history_enabled", True)),
    }

    console.print(f"[bold green]Alara dev server[/bold green] on ws://{host}:{port}/ws")
    console.print(f"Project directory: {escape(str(project_dir))}")
    run_server(project_dir, host=host, port=port, watch=watch, engine_config=engine_config)


@app.command("parse-value")
def parse_value(
    property: str = typer.Argument(..., help="CSS property name, e.g. padding"),
    value: str = typer.Argument(..., help="CSS value, e.g. '16px 8px'"),
    json_output: bool = typer.Option(False, "--json", help="Output the StyleValue as JSON"),
):
    """
    Parse a CSS value into its StyleValue and show how it serializes back.
    """
    parsed = parse_css_value(property, value)
    serialized = serialize_style_value(parsed)

    if json_output or CLIConfig.is_machine_mode():
        print_json({"property": property, "value": parsed.to_wire(), "serialized": serialized})
        return

    table = Table(title=f"{escape(property)}: {escape(value)}")
    table.add_column("Type", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Serialized", style="magenta")
    table.add_row(parsed.type, escape(repr(parsed)), escape(serialized))
    console.print(table)


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of transactions to show"),
    project_directory: Path = typer.Option(Path("."), "--project-directory", "-d", file_okay=False),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    clear: bool = typer.Option(False, "--clear", help="Delete recorded transforms instead of listing them"),
    keep: int = typer.Option(0, "--keep", help="With --clear, keep this many of the most recent transforms"),
):
    """
    List recorded transforms, most recent first.
    """
    engine = MutationEngine(project_directory.resolve())

    if clear:
        deleted = engine.clear_history(keep)
        if json_output or CLIConfig.is_machine_mode():
            print_json({"deleted": deleted})
        else:
            console.print(f"[green]Deleted[/green] {deleted} transform(s) from history")
        return

    transactions = engine.history(limit)

    if json_output or CLIConfig.is_machine_mode():
        print_json([
            {
                "id": t["transaction_id"],
                "timestamp": t.get("timestamp"),
                "type": t.get("transform_type"),
                "requestId": t.get("request_id"),
                "files": t.get("files", []),
            }
            for t in transactions
        ])
        return

    if not transactions:
        console.print("[yellow]No transforms recorded.[/yellow]")
        return

    table = Table(title="Transform history")
    table.add_column("ID", style="cyan")
    table.add_column("Time")
    table.add_column("Type", style="green")
    table.add_column("Files")
    for t in transactions:
        table.add_row(
            t["transaction_id"],
            t.get("timestamp", ""),
            t.get("transform_type", ""),
            escape(", ".join(Path(f).name for f in t.get("files", []))),
        )
    console.print(table)


@app.command()
def undo(
    transaction_id: str = typer.Argument(..., help="Transaction id from 'alara history'"),
    project_directory: Path = typer.Option(Path("."), "--project-directory", "-d", file_okay=False),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Restore the file content recorded before a transform.
    """
    engine = MutationEngine(project_directory.resolve())
    success, applied, errors = engine.undo_transaction(transaction_id)

    if json_output or CLIConfig.is_machine_mode():
        print_json({"success": success, "restored": applied, "errors": errors})
    elif success:
        for file_path in applied:
            console.print(f"[green]Restored[/green] {escape(file_path)}")
    else:
        for error in errors:
            print_error(error, code="UNDO_FAILED", input_value=transaction_id)

    if not success:
        logger.warning(f"Undo of {transaction_id} failed: {errors}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
