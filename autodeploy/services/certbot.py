"""TLS certificates from Let's Encrypt via certbot."""
import getpass
from typing import Dict, Optional

from autodeploy.core.errors import CommandError, DeployError
from autodeploy.core.logger import get_logger
from autodeploy.core.retry import retry
from autodeploy.core.runner import CommandRunner

logger = get_logger(__name__)

LETSENCRYPT_LIVE = "/etc/letsencrypt/live"
PLUGINS = {"nginx", "apache"}


class CertbotManager:
    """Installs certbot and obtains certificates for a domain."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def ensure_installed(self, plugin: str = "nginx") -> None:
        """Install certbot and its web server plugin when certbot is missing."""
        if plugin not in PLUGINS:
            raise ValueError(f"Unsupported certbot plugin: {plugin}")

        if self.runner.which("certbot"):
            return

        logger.info("Installing Certbot...")
        self.runner.run(['apt-get', 'update'], sudo=True)
        self.runner.run(
            ['apt-get', 'install', '-y', 'certbot', f'python3-certbot-{plugin}'],
            sudo=True,
        )

    @staticmethod
    def default_email(domain: str) -> str:
        return f"{getpass.getuser()}@{domain}"

    @retry(max_attempts=3, delay=10, exceptions=(CommandError,))
    def _certonly(self, domain: str, email: str, plugin: str) -> None:
        self.runner.run(
            [
                'certbot', 'certonly', f'--{plugin}',
                '-d', domain,
                '--non-interactive', '--agree-tos',
                '--email', email,
            ],
            sudo=True,
        )

    def obtain(self, domain: str, email: Optional[str] = None, plugin: str = "nginx") -> Dict[str, str]:
        """Obtain (or renew) a certificate for the domain.

        The web server must already answer plain HTTP for the domain so the
        plugin can complete the challenge.

        Returns:
            Certificate paths (see certificate_paths)

        Raises:
            DeployError: If certbot fails after retries
        """
        self.ensure_installed(plugin)
        email = email or self.default_email(domain)

        logger.info(f"Obtaining SSL certificate for {domain}...")
        try:
            self._certonly(domain, email, plugin)
        except CommandError as e:
            raise DeployError(f"Could not obtain a certificate for {domain}: {e}") from e

        logger.info(f"✓ Certificate issued for {domain}")
        return self.certificate_paths(domain)

    @staticmethod
    def certificate_paths(domain: str) -> Dict[str, str]:
        return {
            "fullchain": f"{LETSENCRYPT_LIVE}/{domain}/fullchain.pem",
            "privkey": f"{LETSENCRYPT_LIVE}/{domain}/privkey.pem",
        }
