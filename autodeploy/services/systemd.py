"""systemd unit generation and service control."""
from pathlib import Path
from typing import Optional

from autodeploy.core.config import DeployerConfig, get_config
from autodeploy.core.errors import CommandError
from autodeploy.core.logger import get_logger
from autodeploy.core.runner import CommandRunner
from autodeploy.core.template_loader import TemplateLoader, get_template_loader
from autodeploy.models.deployment import ServiceUnit

logger = get_logger(__name__)


def render_unit(unit: ServiceUnit, loader: Optional[TemplateLoader] = None) -> str:
    """Render a systemd unit file for the given service."""
    loader = loader or get_template_loader()
    return loader.render("systemd.service.j2", unit=unit)


class ServiceManager:
    """Installs unit files and drives systemctl."""

    def __init__(self, runner: CommandRunner, config: Optional[DeployerConfig] = None):
        self.runner = runner
        self.config = config or get_config()

    def unit_path(self, name: str) -> str:
        return str(Path(self.config.systemd_dir) / f"{name}.service")

    def install(self, unit: ServiceUnit) -> str:
        """Write the unit file and reload systemd.

        Returns:
            Path of the written unit file
        """
        path = self.unit_path(unit.name)
        logger.info(f"Setting up systemd service {unit.filename}")
        self.runner.write_file(path, render_unit(unit), sudo=True)
        self.runner.run(['systemctl', 'daemon-reload'], sudo=True)
        return path

    def enable_and_start(self, name: str, restart: bool = False) -> bool:
        """Enable the service at boot and start it now.

        Args:
            name: Service name without the .service suffix
            restart: Restart instead of start, for a unit that may already be
                running the previous checkout
        """
        service = f"{name}.service"
        action = 'restart' if restart else 'start'
        try:
            self.runner.run(['systemctl', 'enable', service], sudo=True)
            self.runner.run(['systemctl', action, service], sudo=True)
        except CommandError as e:
            logger.error(f"Failed to start {service}: {e}")
            return False

        logger.info(f"✓ {service} enabled and started")
        return True

    def restart(self, name: str) -> bool:
        service = f"{name}.service"
        try:
            self.runner.run(['systemctl', 'restart', service], sudo=True)
        except CommandError as e:
            logger.error(f"Failed to restart {service}: {e}")
            return False
        return True

    def is_installed(self, name: str) -> bool:
        return Path(self.unit_path(name)).exists()

    def status(self, name: str) -> str:
        """Return `systemctl status` output (status exits non-zero for stopped units)."""
        result = self.runner.run(
            ['systemctl', 'status', '--no-pager', f"{name}.service"],
            check=False,
        )
        return result.stdout or result.stderr
