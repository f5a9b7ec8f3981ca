"""Remix apps served by systemd behind an Nginx/Apache reverse proxy."""
from autodeploy.core.logger import get_logger
from autodeploy.models.deployment import DeploymentResult, ServiceUnit, Stack
from autodeploy.stacks.base import StackInstaller

logger = get_logger(__name__)


class RemixInstaller(StackInstaller):
    stack = Stack.REMIX
    required_tools = ["git", "npm"]
    default_tls = True

    def build(self) -> None:
        logger.info("Installing dependencies...")
        self.run_in_app(["npm", "install"])
        logger.info("Building Remix application...")
        self.run_in_app(["npm", "run", "build"])

    def install(self) -> DeploymentResult:
        self.build()

        port = self.ask_port(
            "Enter the port number for the Remix app (e.g., 3000)",
            default=self.config.node_port,
        )
        domain = self.ask_domain()

        unit = ServiceUnit(
            name=self.app_name,
            description=f"{self.app_name} Remix service",
            user=self.service_user(),
            working_directory=self.deploy_dir,
            environment={"PORT": str(port), "NODE_ENV": "production"},
            exec_start=f"{self.runner.which('npm')} start",
            unit_type="simple",
            restart_sec=10,
        )
        self.start_service(unit, start=False)

        site = self.proxy_site(
            port,
            domain=domain,
            static_alias="/_assets",
            static_root=str(self.app_path("public", "build")),
        )
        url = self.publish_site(site)

        self.enable_service(unit.name)
        return self.result(service=unit.filename, url=url)

    def update(self) -> None:
        self.build()
        super().update()
