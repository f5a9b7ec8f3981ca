"""Node.js apps managed by PM2."""
from autodeploy.core.logger import get_logger
from autodeploy.models.deployment import DeploymentResult, Stack
from autodeploy.services.pm2 import Pm2Manager
from autodeploy.stacks.base import StackInstaller

logger = get_logger(__name__)


class NodeInstaller(StackInstaller):
    """npm install, then keep the app alive with PM2."""

    stack = Stack.NODEJS
    required_tools = ["git", "npm"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pm2 = Pm2Manager(self.runner)

    def _port(self):
        if self.request.port:
            return self.request.port
        if self.request.domain:
            return self.config.node_port
        return None

    def install(self) -> DeploymentResult:
        logger.info("Installing dependencies...")
        self.run_in_app(["npm", "install"])

        self.pm2.ensure_installed()

        command = self.detector.node_start_command()
        logger.info(f"Start command: {' '.join(command)}")

        port = self._port()
        self.pm2.start(self.app_name, command, cwd=self.deploy_dir, env=self.port_env(port))
        self.pm2.save()

        url = self.maybe_publish_proxy(port) if port else None
        if port is None:
            self.notes.append("The app's listening port is up to the app itself (set --port to pass PORT)")

        return self.result(
            service=f"pm2:{self.app_name}",
            url=url,
            status_command=f"pm2 status {self.app_name}",
        )

    def update(self) -> None:
        self.run_in_app(["npm", "install"])
        self.pm2.restart(self.app_name)
