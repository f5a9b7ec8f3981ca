#!/usr/bin/env python3
"""autodeploy CLI - clone, build and serve an app on this host."""

import typer
from rich.console import Console

from autodeploy.cli_deploy_commands import register_deploy_commands
from autodeploy.cli_inspect_commands import register_inspect_commands
from autodeploy.cli_service_commands import register_service_commands

app = typer.Typer(
    name="autodeploy",
    help="""autodeploy - Deploy Node.js, Python, Java/Spring, Laravel and Remix apps

Clones the repository, installs dependencies, writes a systemd unit and an
Nginx/Apache virtual host, and optionally obtains a Let's Encrypt certificate.

Quick start:
  autodeploy deploy                    # Answer the prompts
  autodeploy deploy --spec deploy.yml  # Read values from a file
  autodeploy detect /srv/api           # What would be deployed?
  autodeploy update api --dir /srv/api # Pull and restart

Set AUTODEPLOY_MOCK=1 (or pass --dry-run) to see commands without running them.
""",
    add_completion=False,
)

console = Console()

# Attach modular subcommands
register_deploy_commands(app, console)
register_inspect_commands(app, console)
register_service_commands(app, console)

if __name__ == "__main__":
    app()
