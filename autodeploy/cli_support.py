"""Shared utilities for autodeploy CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from autodeploy.core.config import get_config
from autodeploy.core.errors import DeployError
from autodeploy.core.runner import CommandRunner

# Keys accepted in a --spec file, mapped to DeploymentRequest fields
SPEC_KEYS = {
    "repo": "repo_url",
    "name": "app_name",
    "dir": "deploy_dir",
    "stack": "stack",
    "branch": "branch",
    "domain": "domain",
    "port": "port",
    "web_server": "web_server",
    "tls": "tls",
    "email": "email",
    "database": "database",
    "db_name": "db_name",
    "db_user": "db_user",
    "db_password": "db_password",
    "app_file": "app_file",
}


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("AUTODEPLOY_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from autodeploy.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def get_runner(dry_run: bool = False) -> CommandRunner:
    """Return a CommandRunner honouring --dry-run, AUTODEPLOY_MOCK and the host config."""
    config = get_config()
    return CommandRunner(
        mock=dry_run or is_mock(),
        use_sudo=config.use_sudo,
        timeout=config.command_timeout,
    )


def load_spec(path: Optional[str]) -> Dict[str, Any]:
    """Load a deployment spec file and map its keys to request fields.

    Args:
        path: YAML file path, or None for no spec

    Returns:
        Dict keyed by DeploymentRequest field names

    Raises:
        DeployError: If the file is missing, not a mapping or has unknown keys
    """
    if not path:
        return {}

    spec_path = Path(path)
    if not spec_path.exists():
        raise DeployError(f"Spec file not found: {path}")

    try:
        with open(spec_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DeployError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise DeployError(f"Spec file {path} must contain a mapping")

    unknown = sorted(set(data) - set(SPEC_KEYS))
    if unknown:
        raise DeployError(
            f"Unknown key(s) in {path}: {', '.join(unknown)}. "
            f"Allowed: {', '.join(SPEC_KEYS)}"
        )

    return {SPEC_KEYS[key]: value for key, value in data.items() if value is not None}


def confirm_action(message: str, yes_flag: bool = False, mock: bool = False) -> bool:
    """Prompt user for confirmation unless --yes or mock mode.

    Args:
        message: Confirmation message to display
        yes_flag: Skip prompt if True (from --yes flag)
        mock: Skip prompt if True (mock mode)

    Returns:
        True if confirmed, False otherwise
    """
    if yes_flag or mock:
        return True
    return typer.confirm(message)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
