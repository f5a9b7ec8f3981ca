"""Read-only commands: detect, stacks, render, version."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from autodeploy.cli_support import handle_cli_error, print_error, print_success
from autodeploy.core.template_loader import get_template_loader
from autodeploy.discovery.stack_detector import StackDetector
from autodeploy.models.deployment import ServiceUnit, SiteConfig, Stack, WebServer
from autodeploy.services.systemd import render_unit
from autodeploy.services.webserver import render_site

VERSION = "0.1.0"

# Module-level console instance (will be set by register function)
console: Console = Console()

RenderTyper = typer.Typer(help="Print generated configuration without touching the system")


def parse_env(pairs: List[str]) -> Dict[str, str]:
    """Turn KEY=VALUE strings into a dict."""
    env: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="--env")
        env[key.strip()] = value
    return env


def detect(
    path: Path = typer.Argument(Path("."), help="Checkout to inspect"),
):
    """Detect the technology stack of a checked-out application.

    Examples:
        autodeploy detect /srv/api
    """
    if not path.is_dir():
        print_error(console, f"Not a directory: {path}")
        raise typer.Exit(2)

    info = StackDetector(path).describe()
    stack: Optional[Stack] = info.pop("stack")
    root = info.pop("root")
    markers = info.pop("markers")

    if stack is None:
        print_error(console, f"No supported technology detected in {root}")
        if markers:
            console.print(f"[dim]Found: {', '.join(markers)}[/dim]")
        raise typer.Exit(1)

    print_success(console, f"{stack.label} ({stack.value}) detected in {root}")
    console.print(f"  [bold]Markers:[/bold] {', '.join(markers)}")
    for key, value in info.items():
        if value:
            console.print(f"  [bold]{key.replace('_', ' ').capitalize()}:[/bold] {value}")


def stacks():
    """List the supported technology stacks."""
    catalog = get_template_loader().load_stack_catalog()

    table = Table(title="Supported stacks", show_header=True)
    table.add_column("Stack", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Detected by", style="blue")
    table.add_column("Runs under", style="green")
    table.add_column("Description")

    for stack in Stack:
        meta = catalog.get(stack.value, {})
        table.add_row(
            stack.value,
            stack.label,
            ", ".join(meta.get("markers", [])),
            meta.get("service", ""),
            meta.get("description", ""),
        )

    console.print(table)


@RenderTyper.command("service")
def render_service(
    name: str = typer.Option(..., "--name", "-n", help="Service name"),
    exec_start: str = typer.Option(..., "--exec-start", help="ExecStart command line"),
    directory: str = typer.Option(..., "--dir", "-d", help="WorkingDirectory"),
    user: str = typer.Option("www-data", "--user", help="User= for the service"),
    description: Optional[str] = typer.Option(None, "--description", help="Unit description"),
    env: List[str] = typer.Option([], "--env", "-e", help="Environment KEY=VALUE (repeatable)"),
    unit_type: Optional[str] = typer.Option(None, "--type", help="Type= (e.g. simple)"),
    restart_sec: Optional[int] = typer.Option(None, "--restart-sec", help="RestartSec="),
):
    """Print a systemd unit file.

    Examples:
        autodeploy render service --name api --dir /srv/api --exec-start "/srv/api/venv/bin/python app.py"
    """
    unit = ServiceUnit(
        name=name,
        description=description or f"{name} application",
        user=user,
        working_directory=directory,
        exec_start=exec_start,
        environment=parse_env(env),
        unit_type=unit_type,
        restart_sec=restart_sec,
    )
    typer.echo(render_unit(unit), nl=False)


@RenderTyper.command("site")
def render_site_command(
    name: str = typer.Option(..., "--name", "-n", help="Application name"),
    domain: str = typer.Option(..., "--domain", help="Server name"),
    web_server: WebServer = typer.Option(WebServer.NGINX, "--web-server", help="nginx or apache"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Upstream port (proxy sites)"),
    root: Optional[str] = typer.Option(None, "--root", help="Document root (php sites)"),
    php_socket: Optional[str] = typer.Option(None, "--php-socket", help="php-fpm socket (php sites)"),
    static_alias: Optional[str] = typer.Option(None, "--static-alias", help="URL prefix served from --static-root"),
    static_root: Optional[str] = typer.Option(None, "--static-root", help="Directory behind --static-alias"),
    tls: bool = typer.Option(False, "--tls/--no-tls", help="Include the HTTPS server block"),
):
    """Print a web server virtual host.

    A --root makes it a php-fpm site; otherwise it is a reverse proxy to --port.

    Examples:
        autodeploy render site --name api --domain api.example.com --port 8000
        autodeploy render site --name shop --domain shop.example.com --root /srv/shop/public --php-socket /var/run/php/php8.2-fpm.sock
    """
    if web_server == WebServer.NONE:
        print_error(console, "Choose nginx or apache to render a site")
        raise typer.Exit(2)

    try:
        site = SiteConfig(
            app_name=name,
            domain=domain,
            web_server=web_server,
            kind="php" if root else "proxy",
            port=port,
            document_root=root,
            php_socket=php_socket,
            static_alias=static_alias,
            static_root=static_root,
            tls=tls,
        )
    except ValueError as e:
        handle_cli_error(e, console, exit_code=2)
    typer.echo(render_site(site), nl=False)


def version():
    """Show autodeploy version."""
    console.print(f"autodeploy v{VERSION}")


def register_inspect_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register detection, rendering and info commands with the main Typer app."""
    global console
    console = shared_console

    app.command()(detect)
    app.command()(stacks)
    app.command()(version)
    app.add_typer(RenderTyper, name="render")
