"""Laravel apps on php-fpm behind Nginx or Apache."""
import re
import shutil
from pathlib import Path
from typing import Dict, Optional

from autodeploy.core.errors import DeployError
from autodeploy.core.logger import get_logger, register_secret
from autodeploy.models.deployment import (
    DatabaseEngine,
    DeploymentResult,
    SiteConfig,
    Stack,
    WebServer,
)
from autodeploy.services.php import PhpToolchain
from autodeploy.stacks.base import StackInstaller

logger = get_logger(__name__)

ARTISAN_CACHE_COMMANDS = ["optimize", "config:cache", "route:cache", "view:cache"]
WRITABLE_DIRS = ["storage", "bootstrap/cache"]


def _format_env_value(value: str) -> str:
    if value == "" or re.search(r"[\s#\"'$]", value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def update_env_file(path: Path, values: Dict[str, str]) -> None:
    """Set KEY=value pairs in a dotenv file.

    Existing keys are replaced in place, including keys that ship commented
    out (``# DB_HOST=127.0.0.1``); missing keys are appended.
    """
    lines = path.read_text().splitlines() if path.exists() else []
    remaining = dict(values)

    for index, line in enumerate(lines):
        match = re.match(r"^\s*#?\s*([A-Z0-9_]+)\s*=", line)
        if match and match.group(1) in remaining:
            key = match.group(1)
            lines[index] = f"{key}={_format_env_value(remaining.pop(key))}"

    for key, value in remaining.items():
        lines.append(f"{key}={_format_env_value(value)}")

    path.write_text("\n".join(lines) + "\n")


class LaravelInstaller(StackInstaller):
    stack = Stack.LARAVEL
    required_tools = ["git", "php", "composer"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.php = PhpToolchain(self.runner, self.config)
        self.php_socket: Optional[str] = None

    def check_prerequisites(self) -> None:
        if self.request.web_server == WebServer.NONE:
            raise DeployError("Laravel needs a web server in front of php-fpm (use nginx or apache)")
        super().check_prerequisites()

    def before_checkout(self) -> None:
        version = self.php.detect_version()
        self.php_socket = self.php.fpm_socket(version)

    def artisan(self, *args: str) -> None:
        self.run_in_app(["php", "artisan"] + list(args))

    def _choose_database(self) -> DatabaseEngine:
        if self.request.database:
            return self.request.database
        engines = list(DatabaseEngine)
        index = self.prompter.choose(
            "Select the database type",
            [engine.label for engine in engines],
            field="database",
        )
        return engines[index]

    def database_settings(self, engine: DatabaseEngine) -> Dict[str, str]:
        """Collect the DB_* values for the chosen engine."""
        settings = {"DB_CONNECTION": engine.value}
        if engine == DatabaseEngine.SQLITE:
            return settings

        settings["DB_DATABASE"] = self.request.db_name or self.prompter.ask(
            "Enter database name", field="db_name"
        )
        settings["DB_USERNAME"] = self.request.db_user or self.prompter.ask(
            "Enter database user", field="db_user"
        )
        settings["DB_PASSWORD"] = self.request.db_password or self.prompter.secret(
            "Enter database password", field="db_password"
        )
        register_secret(settings["DB_PASSWORD"])
        return settings

    def configure_env(self) -> None:
        """Create .env from .env.example, generate the key and set the database."""
        example = self.app_path(".env.example")
        env_file = self.app_path(".env")

        if not example.exists() and not self.mock:
            logger.info("No .env.example found. Skipping environment setup.")
            return

        if self.mock:
            logger.info(f"MOCK: Would copy {example} to {env_file}")
        else:
            shutil.copyfile(example, env_file)
        self.artisan("key:generate")

        engine = self._choose_database()
        settings = self.database_settings(engine)

        if self.mock:
            logger.info(f"MOCK: Would set {', '.join(settings)} in {env_file}")
            return

        if engine == DatabaseEngine.SQLITE:
            database = self.app_path("database", "database.sqlite")
            database.parent.mkdir(parents=True, exist_ok=True)
            database.touch()
        update_env_file(env_file, settings)

    def install(self) -> DeploymentResult:
        logger.info("Installing Composer dependencies...")
        self.run_in_app(["composer", "install", "--no-dev", "--optimize-autoloader"])

        self.configure_env()

        self.run_in_app(["chmod", "-R", "775"] + WRITABLE_DIRS)

        logger.info("Running database migrations...")
        self.artisan("migrate", "--force")
        logger.info("Seeding database...")
        self.artisan("db:seed", "--force")

        for command in ARTISAN_CACHE_COMMANDS:
            self.artisan(command)

        domain = self.ask_domain()
        site = SiteConfig(
            app_name=self.app_name,
            domain=domain,
            web_server=self.request.web_server,
            kind="php",
            document_root=str(self.app_path("public")),
            php_socket=self.php_socket,
            tls=self.tls,
        )
        url = self.publish_site(site)

        fpm_service = Path(self.php_socket).stem
        return self.result(
            service=fpm_service,
            url=url,
            status_command=f"sudo systemctl status {fpm_service}",
        )

    def update(self) -> None:
        self.run_in_app(["composer", "install", "--no-dev", "--optimize-autoloader"])
        self.artisan("migrate", "--force")
        for command in ARTISAN_CACHE_COMMANDS:
            self.artisan(command)
