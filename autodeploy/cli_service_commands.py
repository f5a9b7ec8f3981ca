"""Commands for apps that are already deployed: status and update."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from autodeploy.cli_support import (
    get_runner,
    handle_cli_error,
    print_info,
    print_success,
    setup_file_logging,
)
from autodeploy.core.deployer import Deployer
from autodeploy.core.errors import DeployError
from autodeploy.core.prompts import Prompter
from autodeploy.models.deployment import Stack
from autodeploy.services.pm2 import Pm2Manager
from autodeploy.services.systemd import ServiceManager

# Module-level console instance (will be set by register function)
console: Console = Console()


def status(
    name: str = typer.Argument(..., help="Application (service) name"),
    pm2: bool = typer.Option(False, "--pm2", help="Ask PM2 instead of systemd (Node.js apps)"),
):
    """Show the service status of a deployed application."""
    runner = get_runner()
    if pm2:
        output = Pm2Manager(runner).status(name)
    else:
        output = ServiceManager(runner).status(name)

    if output:
        console.print(escape(output.rstrip()))
    elif runner.mock:
        console.print(f"[dim]MOCK: no status for {name}[/dim]")


def update(
    name: str = typer.Argument(..., help="Application (service) name"),
    directory: str = typer.Option(..., "--dir", "-d", help="Deployment directory holding the checkout"),
    stack: Optional[Stack] = typer.Option(None, "--stack", "-s", help="Skip detection and use this stack"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would run without changing anything"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging and tracebacks"),
):
    """Pull the latest code for a deployed app and restart it.

    Examples:
        autodeploy update api --dir /srv/api
        autodeploy update shop --dir /var/www/shop --stack laravel
    """
    setup_file_logging(log_file=log_file, verbose=verbose)

    runner = get_runner(dry_run)
    deployer = Deployer(runner, Prompter(interactive=False, console=console))

    print_info(console, f"Pulling latest changes for {name} in {directory}...")
    try:
        used = deployer.update(name, directory, stack)
    except DeployError as e:
        handle_cli_error(e, console, verbose)
    else:
        print_success(console, f"{name} ({used.label}) updated")


def register_service_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register commands that act on deployed apps."""
    global console
    console = shared_console

    app.command()(status)
    app.command()(update)
