"""PHP toolchain checks needed before a Laravel deployment."""
from pathlib import Path
from typing import Optional

from autodeploy.core.config import DeployerConfig, get_config
from autodeploy.core.errors import CommandError, PrerequisiteError
from autodeploy.core.logger import get_logger
from autodeploy.core.runner import CommandRunner

logger = get_logger(__name__)

MOCK_PHP_VERSION = "8.2"


class PhpToolchain:
    """Detects the PHP version and its php-fpm socket."""

    def __init__(self, runner: CommandRunner, config: Optional[DeployerConfig] = None):
        self.runner = runner
        self.config = config or get_config()

    def detect_version(self) -> str:
        """Return the PHP major.minor version.

        Raises:
            PrerequisiteError: If php is missing or prints nothing
        """
        if self.runner.mock:
            return MOCK_PHP_VERSION

        self.runner.require("php", "Install PHP and PHP-FPM first")
        try:
            result = self.runner.run(
                ['php', '-r', "echo PHP_MAJOR_VERSION.'.'.PHP_MINOR_VERSION;"]
            )
        except CommandError as e:
            raise PrerequisiteError(f"Could not detect PHP version: {e}") from e

        version = result.stdout.strip()
        if not version:
            raise PrerequisiteError("Could not detect PHP version")

        logger.info(f"Detected PHP version: {version}")
        return version

    def fpm_socket(self, version: str) -> str:
        """Return the php-fpm socket path for the version.

        Raises:
            PrerequisiteError: If the socket does not exist
        """
        socket = str(Path(self.config.php_fpm_socket_dir) / f"php{version}-fpm.sock")
        if self.runner.mock:
            return socket

        if not Path(socket).is_socket():
            raise PrerequisiteError(
                f"PHP-FPM socket not found for PHP {version} ({socket}). "
                "Please ensure PHP-FPM is installed and running"
            )
        return socket
