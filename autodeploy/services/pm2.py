"""PM2 process manager for Node.js apps."""
import json
from typing import Dict, List, Optional

from autodeploy.core.logger import get_logger
from autodeploy.core.runner import CommandRunner

logger = get_logger(__name__)


class Pm2Manager:
    """Keeps Node.js apps running with PM2."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def ensure_installed(self) -> None:
        if self.runner.which("pm2"):
            return
        logger.info("Installing PM2 for process management...")
        self.runner.run(['npm', 'install', '-g', 'pm2'], sudo=True)

    @staticmethod
    def start_argv(name: str, command: List[str]) -> List[str]:
        """Build the pm2 invocation for a resolved start command.

        ``npm start`` runs npm as the process with ``start`` as its argument;
        anything else is ``<interpreter> <script>`` and pm2 runs the script.
        """
        if command[:1] == ["npm"]:
            return ['pm2', 'start', 'npm', '--name', name, '--'] + command[1:]
        script = command[-1]
        return ['pm2', 'start', script, '--name', name]

    def process_names(self) -> List[str]:
        """Names of the processes PM2 currently manages."""
        result = self.runner.run(['pm2', 'jlist'], check=False)
        try:
            processes = json.loads(result.stdout or "[]")
        except ValueError:
            logger.warning("Could not parse `pm2 jlist` output")
            return []
        return [process.get("name") for process in processes if isinstance(process, dict)]

    def start(self, name: str, command: List[str], cwd: str, env: Optional[Dict[str, str]] = None) -> None:
        """Start the app, replacing a process registered under the same name.

        The old process is deleted rather than restarted so a changed start
        command or PORT takes effect.
        """
        if name in self.process_names():
            logger.info(f"Replacing existing PM2 process {name}")
            self.runner.run(['pm2', 'delete', name])
        logger.info("Starting application with PM2...")
        self.runner.run(self.start_argv(name, command), cwd=cwd, env=env)

    def save(self) -> None:
        """Persist the process list so `pm2 resurrect` brings it back."""
        self.runner.run(['pm2', 'save'])

    def restart(self, name: str) -> None:
        self.runner.run(['pm2', 'restart', name])

    def status(self, name: str) -> str:
        result = self.runner.run(['pm2', 'status', name], check=False)
        return result.stdout or result.stderr
