"""Python apps in a virtualenv, served by gunicorn when they are web apps."""
from pathlib import PurePosixPath
from typing import Optional

from autodeploy.core.logger import get_logger
from autodeploy.models.deployment import DeploymentResult, ServiceUnit, Stack
from autodeploy.stacks.base import StackInstaller

logger = get_logger(__name__)

UVICORN_WORKER = "uvicorn.workers.UvicornWorker"


def wsgi_module(app_file: str, framework: Optional[str]) -> str:
    """Map an entry file to a gunicorn app spec (``app.py`` -> ``app:app``).

    Django projects expose ``application``; everything else is assumed to
    expose ``app``.
    """
    module = str(PurePosixPath(app_file).with_suffix("")).replace("/", ".")
    attribute = "application" if framework == "django" else "app"
    return f"{module}:{attribute}"


class PythonInstaller(StackInstaller):
    stack = Stack.PYTHON
    required_tools = ["git", "python3"]

    @property
    def venv_bin(self) -> str:
        return str(self.app_path("venv", "bin"))

    def _install_requirements(self) -> None:
        if self.mock or self.app_path("requirements.txt").exists():
            logger.info("Installing dependencies from requirements.txt...")
            self.run_in_app([f"{self.venv_bin}/pip", "install", "-r", "requirements.txt"])
        else:
            logger.info("No requirements.txt found. Skipping dependency installation.")

    def _app_file(self) -> str:
        if self.request.app_file:
            return self.request.app_file

        detected = self.detector.python_app_file()
        if detected:
            return detected
        if self.mock:
            logger.info("MOCK: No checkout to inspect, assuming app.py")
            return "app.py"

        def must_exist(value: str) -> Optional[str]:
            if self.app_path(value).is_file():
                return None
            return f"{value} not found in {self.deploy_dir}"

        return self.prompter.ask(
            "Main Python file not detected. Please specify the main file",
            validator=must_exist,
            field="app_file",
        )

    def exec_start(self, app_file: str, framework: Optional[str], port: int) -> str:
        if not framework:
            return f"{self.venv_bin}/python {app_file}"

        parts = [
            f"{self.venv_bin}/gunicorn",
            f"--workers {self.config.gunicorn_workers}",
            f"--bind 0.0.0.0:{port}",
        ]
        if framework == "fastapi":
            parts.append(f"-k {UVICORN_WORKER}")
        parts.append(wsgi_module(app_file, framework))
        return " ".join(parts)

    def install(self) -> DeploymentResult:
        logger.info("Creating virtual environment...")
        self.run_in_app(["python3", "-m", "venv", "venv"])
        self._install_requirements()

        app_file = self._app_file()
        framework = self.detector.python_framework()
        port = self.request.port or self.config.python_port

        if framework:
            logger.info(f"Detected web framework ({framework}), setting up with Gunicorn...")
            packages = ["gunicorn"] + (["uvicorn"] if framework == "fastapi" else [])
            self.run_in_app([f"{self.venv_bin}/pip", "install"] + packages)
        else:
            logger.info("Setting up basic Python application service...")

        unit = ServiceUnit(
            name=self.app_name,
            description=f"{self.app_name} service",
            user=self.service_user(),
            working_directory=self.deploy_dir,
            exec_start=self.exec_start(app_file, framework, port),
        )
        self.start_service(unit)

        url = self.maybe_publish_proxy(port) if framework else None
        return self.result(service=unit.filename, url=url)

    def update(self) -> None:
        self._install_requirements()
        super().update()
