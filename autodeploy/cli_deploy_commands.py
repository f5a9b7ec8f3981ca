"""The interactive `deploy` command."""
from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from autodeploy.cli_support import (
    confirm_action,
    get_runner,
    handle_cli_error,
    load_spec,
    print_success,
    print_warning,
    setup_file_logging,
)
from autodeploy.core.deployer import Deployer
from autodeploy.core.errors import DeployError, DeploymentAborted, MissingInputError
from autodeploy.core.prompts import Prompter
from autodeploy.models.deployment import (
    DatabaseEngine,
    DeploymentRequest,
    DeploymentResult,
    Stack,
    WebServer,
    app_name_error,
    repo_url_error,
)

# Module-level console instance (will be set by register function)
console: Console = Console()

AUTO_STACK = "auto"


def parse_stack(value: Optional[str]) -> Optional[str]:
    """Normalise a --stack value; 'auto' is returned as-is, None when unset."""
    if value is None:
        return None
    value = str(value).strip().lower()
    if value == AUTO_STACK:
        return AUTO_STACK
    try:
        return Stack(value).value
    except ValueError:
        choices = ", ".join([stack.value for stack in Stack] + [AUTO_STACK])
        raise typer.BadParameter(f"Unknown stack '{value}'. Choose from: {choices}")


def merge_values(spec_values: Dict[str, Any], flags: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay explicit CLI flags on top of spec file values."""
    values = dict(spec_values)
    values.update({key: value for key, value in flags.items() if value is not None})
    return values


def _show_header() -> None:
    console.print(Panel(
        "[bold]Clone, build and serve an application on this host[/bold]\n"
        "[dim]Node.js · Python · Java/Spring · Laravel · Remix[/dim]",
        title="🚀 autodeploy",
        border_style="cyan",
    ))


def _show_plan(request: DeploymentRequest, mock: bool) -> None:
    stack = request.stack.label if request.stack else "detect after cloning"
    lines = [
        f"[bold]Repository:[/bold] {escape(request.repo_url)}",
        f"[bold]Application:[/bold] {escape(request.app_name)}",
        f"[bold]Directory:[/bold] {escape(request.deploy_dir)}",
        f"[bold]Technology:[/bold] {stack}",
    ]
    if request.branch:
        lines.append(f"[bold]Branch:[/bold] {escape(request.branch)}")
    if request.domain:
        lines.append(f"[bold]Domain:[/bold] {request.domain} ({request.web_server.value})")
    if mock:
        lines.append("[yellow]Dry run: no commands will be executed[/yellow]")
    console.print(Panel("\n".join(lines), title="📋 Deployment plan", border_style="blue"))


def _show_summary(result: DeploymentResult) -> None:
    lines = [
        f"[bold]Application:[/bold] {escape(result.app_name)} ({result.stack.label})",
        f"[bold]Directory:[/bold] {escape(result.deploy_dir)}",
    ]
    if result.service:
        lines.append(f"[bold]Service:[/bold] {result.service}")
    if result.commit:
        lines.append(f"[bold]Commit:[/bold] {result.commit[:12]}")
    if result.url:
        lines.append(f"[bold]URL:[/bold] {result.url}")
    lines.append(f"[bold]Status:[/bold] {escape(result.status_command or '')}")
    for note in result.notes:
        lines.append(f"[yellow]⚠[/yellow] {escape(note)}")
    console.print(Panel("\n".join(lines), title="✅ Deployment complete", border_style="green"))


def collect_request(values: Dict[str, Any], prompter: Prompter, deployer: Deployer) -> DeploymentRequest:
    """Prompt for whatever the flags and spec file left out, then validate."""
    if not values.get("repo_url"):
        values["repo_url"] = prompter.ask(
            "Enter the git repository URL", validator=repo_url_error, field="repo"
        )
    if not values.get("app_name"):
        values["app_name"] = prompter.ask(
            "Enter the application name (for service naming)",
            validator=app_name_error,
            field="name",
        )
    if not values.get("deploy_dir"):
        values["deploy_dir"] = prompter.ask("Enter the deployment directory path", field="dir")

    stack = parse_stack(values.pop("stack", None))
    if stack is None:
        chosen = deployer.choose_stack(deployer.detect(values["deploy_dir"]))
        values["stack"] = chosen.value if chosen else None
    elif stack != AUTO_STACK:
        values["stack"] = stack

    return DeploymentRequest(**values)


def deploy(
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Git repository URL (https://... .git or git@...: .git)"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Application name, used for the service name"),
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="Deployment directory"),
    stack: Optional[str] = typer.Option(None, "--stack", "-s", help="nodejs, python, java, laravel, remix or auto"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to deploy (default: the remote's default)"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Domain for the web server virtual host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", min=1, max=65535, help="Port the app listens on"),
    web_server: Optional[WebServer] = typer.Option(None, "--web-server", help="Web server in front of the app"),
    tls: Optional[bool] = typer.Option(None, "--tls/--no-tls", help="Obtain a Let's Encrypt certificate"),
    email: Optional[str] = typer.Option(None, "--email", help="Let's Encrypt account email (default: <user>@<domain>)"),
    database: Optional[DatabaseEngine] = typer.Option(None, "--database", help="Laravel database engine"),
    db_name: Optional[str] = typer.Option(None, "--db-name", help="Laravel database name"),
    db_user: Optional[str] = typer.Option(None, "--db-user", help="Laravel database user"),
    db_password: Optional[str] = typer.Option(None, "--db-password", envvar="AUTODEPLOY_DB_PASSWORD", help="Laravel database password"),
    app_file: Optional[str] = typer.Option(None, "--app-file", help="Python entry point relative to the checkout"),
    spec: Optional[str] = typer.Option(None, "--spec", help="Load deployment values from a YAML file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Never prompt; fail when a value is missing"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would run without changing anything"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path (default: /var/log/autodeploy/autodeploy.log)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging and tracebacks"),
):
    """Deploy an application from a git repository.

    Anything not given as an option or in --spec is asked for interactively.

    Examples:
        autodeploy deploy
        autodeploy deploy --repo https://github.com/acme/api.git --name api --dir /srv/api --stack python
        autodeploy deploy --spec deploy.yml --yes
    """
    setup_file_logging(log_file=log_file, verbose=verbose)

    runner = get_runner(dry_run)
    prompter = Prompter(interactive=not yes, console=console)
    deployer = Deployer(runner, prompter)

    _show_header()

    try:
        values = merge_values(load_spec(spec), {
            "repo_url": repo,
            "app_name": name,
            "deploy_dir": directory,
            "stack": stack,
            "branch": branch,
            "domain": domain,
            "port": port,
            "web_server": web_server,
            "tls": tls,
            "email": email,
            "database": database,
            "db_name": db_name,
            "db_user": db_user,
            "db_password": db_password,
            "app_file": app_file,
        })
        request = collect_request(values, prompter, deployer)

        _show_plan(request, runner.mock)
        if not confirm_action("Proceed with deployment?", yes_flag=yes, mock=runner.mock):
            print_warning(console, "Deployment cancelled")
            raise typer.Exit(0)

        result = deployer.deploy(request)
    except DeploymentAborted as e:
        console.print(str(e))
        raise typer.Exit(0)
    except MissingInputError as e:
        handle_cli_error(e, console, verbose, exit_code=2)
    except (DeployError, ValidationError) as e:
        handle_cli_error(e, console, verbose)
    else:
        _show_summary(result)
        print_success(console, f"{result.stack.label} application deployed successfully!")


def register_deploy_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register the deploy command with the main Typer app."""
    global console
    console = shared_console

    app.command()(deploy)
