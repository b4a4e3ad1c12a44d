"""
CLI Output Utilities

Machine-aware output functions that adapt based on machine mode.
"""

import json
import re
from typing import Any, Optional

import typer
from rich.console import Console as RichConsole
from rich.table import Table

from alara.cli.config import CLIConfig


class MachineAwareConsole:
    """
    A Console wrapper that adapts output based on machine mode.
    Acts as a drop-in replacement for rich.console.Console.
    """

    def __init__(self):
        self._rich_console = RichConsole()

    def print(self, *args, **kwargs):
        if not CLIConfig.is_machine_mode():
            self._rich_console.print(*args, **kwargs)
            return

        for arg in args:
            if isinstance(arg, str):
                # Strip rich markup
                plain = re.sub(r"\[/?[a-z ]+\]", "", arg).strip()
                if plain:
                    typer.echo(plain)
            elif isinstance(arg, Table) or hasattr(arg, "__rich__"):
                # Tables have a --json equivalent
                pass
            elif arg:
                typer.echo(arg)

    def __getattr__(self, name):
        return getattr(self._rich_console, name)


_console = MachineAwareConsole()


def get_console() -> MachineAwareConsole:
    return _console


def print_json(data: Any, minified: Optional[bool] = None) -> None:
    """
    Print JSON data. In machine mode, always minifies. In human mode, pretty prints.
    """
    if minified is None:
        minified = CLIConfig.is_machine_mode()

    if minified:
        typer.echo(json.dumps(data, separators=(",", ":")))
    else:
        typer.echo(json.dumps(data, indent=2))


def structured_error(code: str, message: str, input_value: Optional[str] = None) -> dict:
    error_obj = {"status": "error", "code": code, "message": message}
    if input_value:
        error_obj["input"] = input_value
    return error_obj


def print_error(message: str, code: Optional[str] = None, input_value: Optional[str] = None,
                json_output: bool = False) -> None:
    """
    Print an error message. Structured JSON in machine mode or with --json.
    """
    if CLIConfig.is_machine_mode() or json_output:
        print_json(structured_error(code or "ERROR", message, input_value))
    else:
        typer.echo(f"Error: {message}", err=True)
