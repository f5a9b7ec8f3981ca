"""Abstract base class for per-stack installers."""
import getpass
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Set

from autodeploy.core.config import DeployerConfig, get_config
from autodeploy.core.errors import DeployError
from autodeploy.core.logger import get_logger
from autodeploy.core.prompts import Prompter
from autodeploy.core.runner import CommandResult, CommandRunner
from autodeploy.discovery.stack_detector import StackDetector
from autodeploy.models.deployment import (
    DeploymentRequest,
    DeploymentResult,
    ServiceUnit,
    SiteConfig,
    Stack,
    WebServer,
    domain_error,
    port_error,
)
from autodeploy.services.certbot import CertbotManager
from autodeploy.services.git_manager import GitManager
from autodeploy.services.systemd import ServiceManager
from autodeploy.services.webserver import get_site_manager

logger = get_logger(__name__)


class StackInstaller(ABC):
    """Clones an app, installs its dependencies and wires up its service.

    Subclasses implement :meth:`install` for one technology stack. The
    shared steps (prerequisite checks, checkout, unit and site publishing)
    live here.
    """

    stack: Stack
    required_tools: List[str] = ["git"]
    default_tls: bool = False

    def __init__(
        self,
        request: DeploymentRequest,
        runner: CommandRunner,
        prompter: Prompter,
        config: Optional[DeployerConfig] = None,
    ):
        self.request = request
        self.runner = runner
        self.prompter = prompter
        self.config = config or get_config()
        self.git = GitManager(runner)
        self.services = ServiceManager(runner, self.config)
        self.certbot = CertbotManager(runner)
        self.commit: Optional[str] = None
        self.notes: List[str] = []
        self.existing_units: Set[str] = set()

    @property
    def mock(self) -> bool:
        return self.runner.mock

    @property
    def app_name(self) -> str:
        return self.request.app_name

    @property
    def deploy_dir(self) -> str:
        return str(Path(self.request.deploy_dir).expanduser().absolute())

    @property
    def detector(self) -> StackDetector:
        return StackDetector(self.deploy_dir)

    @property
    def tls(self) -> bool:
        if self.request.tls is None:
            return self.default_tls
        return self.request.tls

    def app_path(self, *parts: str) -> Path:
        return Path(self.deploy_dir, *parts)

    def run_in_app(self, argv: List[str], env: Optional[Dict[str, str]] = None, sudo: bool = False) -> CommandResult:
        """Run a command with the deployment directory as working directory."""
        return self.runner.run(argv, cwd=self.deploy_dir, env=env, sudo=sudo)

    def service_user(self) -> str:
        return getpass.getuser()

    def check_prerequisites(self) -> None:
        """Fail early when a required tool is missing."""
        for tool in self.required_tools:
            self.runner.require(tool)

    def before_checkout(self) -> None:
        """Hook for checks that must pass before anything is cloned."""
        return None

    def checkout(self) -> None:
        """Create the deployment directory and clone the repository into it."""
        if not self.git.checkout(self.request.repo_url, self.deploy_dir, self.request.branch):
            raise DeployError(f"Failed to check out {self.request.repo_url} into {self.deploy_dir}")

    def run(self, checked_out: bool = False) -> DeploymentResult:
        """Full deployment: prerequisites, checkout, then stack-specific install.

        Args:
            checked_out: The repository is already in place (it was cloned
                to detect the stack), so skip the checkout step
        """
        self.check_prerequisites()
        self.before_checkout()
        if not checked_out:
            self.checkout()

        self.commit = self.git.get_current_commit(self.deploy_dir)
        if self.commit:
            logger.info(f"Checked out commit {self.commit[:12]}")

        result = self.install()
        result.commit = self.commit
        result.notes.extend(self.notes)
        return result

    @abstractmethod
    def install(self) -> DeploymentResult:
        """Install dependencies and start the app from an existing checkout."""
        pass

    def update(self) -> None:
        """Refresh an existing deployment after `git pull` (default: restart the unit)."""
        if not self.services.restart(self.app_name):
            raise DeployError(f"Failed to restart {self.app_name}.service")

    def ask_port(self, label: str, default: int) -> int:
        if self.request.port:
            return self.request.port
        return int(self.prompter.ask(label, validator=port_error, default=str(default), field="port"))

    def ask_domain(self) -> str:
        if self.request.domain:
            return self.request.domain
        return self.prompter.ask(
            "Enter the domain name (e.g., example.com)",
            validator=domain_error,
            field="domain",
        )

    def start_service(self, unit: ServiceUnit, start: bool = True) -> None:
        """Install the unit and (optionally) enable and start it.

        A unit that was installed before is restarted rather than started, so
        a repeated deployment serves the freshly pulled code.
        """
        if self.services.is_installed(unit.name):
            self.existing_units.add(unit.name)
        self.services.install(unit)
        if start:
            self.enable_service(unit.name)

    def enable_service(self, name: str) -> None:
        if not self.services.enable_and_start(name, restart=name in self.existing_units):
            raise DeployError(f"Service {name}.service failed to start")

    def systemd_status(self) -> str:
        return f"sudo systemctl status {self.app_name}"

    def publish_site(self, site: SiteConfig) -> Optional[str]:
        """Publish a vhost for the app and return its public URL."""
        if site.web_server == WebServer.NONE:
            logger.info("No web server selected; skipping virtual host setup")
            return None

        manager = get_site_manager(site.web_server, self.runner, self.config)
        manager.publish_with_tls(site, self.certbot, email=self.request.email)
        scheme = "https" if site.tls else "http"
        return f"{scheme}://{site.domain}"

    def proxy_site(self, port: int, domain: Optional[str] = None, **extra) -> SiteConfig:
        return SiteConfig(
            app_name=self.app_name,
            domain=domain or self.request.domain,
            web_server=self.request.web_server,
            kind="proxy",
            port=port,
            tls=self.tls,
            **extra,
        )

    def maybe_publish_proxy(self, port: int) -> Optional[str]:
        """Put a reverse proxy in front of the app when a domain was given."""
        if not self.request.domain:
            return None
        return self.publish_site(self.proxy_site(port))

    def port_env(self, port: Optional[int]) -> Optional[Dict[str, str]]:
        if port is None:
            return None
        env = dict(os.environ)
        env["PORT"] = str(port)
        return env

    def result(self, service: Optional[str], url: Optional[str] = None, status_command: Optional[str] = None) -> DeploymentResult:
        return DeploymentResult(
            app_name=self.app_name,
            stack=self.stack,
            deploy_dir=self.deploy_dir,
            service=service,
            url=url,
            status_command=status_command or self.systemd_status(),
        )
