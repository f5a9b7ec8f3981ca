"""Interactive input collection.

Every question loops until it gets a usable answer. With prompting disabled
(``--yes``), a question that has no default raises MissingInputError
instead of blocking on stdin.
"""
from typing import Callable, Optional, Sequence

import typer
from rich.console import Console

from autodeploy.core.errors import MissingInputError

Validator = Callable[[str], Optional[str]]


class Prompter:
    """Asks the operator for values the deployment still needs."""

    def __init__(self, interactive: bool = True, console: Optional[Console] = None):
        self.interactive = interactive
        self.console = console or Console()

    def ask(
        self,
        label: str,
        validator: Optional[Validator] = None,
        default: Optional[str] = None,
        field: Optional[str] = None,
    ) -> str:
        """Prompt until the answer is non-empty and passes the validator.

        Args:
            label: Question shown to the operator
            validator: Returns an error message for bad input, None for good input
            default: Value used when the operator just presses enter
            field: Name reported when prompting is disabled

        Returns:
            The stripped answer
        """
        if not self.interactive:
            if default is not None:
                return default
            raise MissingInputError(field or label)

        while True:
            value = typer.prompt(
                label,
                default=default if default is not None else "",
                show_default=default is not None,
            ).strip()

            if not value:
                self.console.print("[yellow]Input cannot be empty. Please try again.[/yellow]")
                continue

            if validator is not None:
                error = validator(value)
                if error:
                    self.console.print(f"[red]{error}[/red]")
                    continue

            return value

    def secret(self, label: str, field: Optional[str] = None) -> str:
        """Prompt for a hidden value such as a password."""
        if not self.interactive:
            raise MissingInputError(field or label)

        while True:
            value = typer.prompt(label, default="", show_default=False, hide_input=True)
            if value:
                return value
            self.console.print("[yellow]Input cannot be empty. Please try again.[/yellow]")

    def choose(
        self,
        label: str,
        options: Sequence[str],
        default: Optional[int] = None,
        field: Optional[str] = None,
        default_note: str = "default",
    ) -> int:
        """Show a numbered menu and return the zero-based index of the choice.

        Args:
            label: Menu prompt (e.g. "Select the technology type")
            options: Menu entries, shown in order starting at 1
            default: Zero-based index pre-selected when enter is pressed
            field: Name reported when prompting is disabled
            default_note: Label shown next to the default entry
        """
        if not self.interactive:
            if default is not None:
                return default
            raise MissingInputError(field or label)

        for number, option in enumerate(options, start=1):
            marker = f" [dim]({default_note})[/dim]" if default == number - 1 else ""
            self.console.print(f"  [cyan]{number})[/cyan] {option}{marker}")

        while True:
            answer = typer.prompt(
                label,
                default=str(default + 1) if default is not None else "",
                show_default=default is not None,
            ).strip()

            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1

            # accept the option text too, e.g. "Python"
            for index, option in enumerate(options):
                if answer and answer.lower() == option.lower():
                    return index

            self.console.print("[yellow]Invalid option. Please try again.[/yellow]")
