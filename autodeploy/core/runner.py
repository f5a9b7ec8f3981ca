"""External command invocation with mock support.

Every tool autodeploy drives (git, npm, pip, mvn, composer, systemctl, nginx,
certbot, ...) is started through :class:`CommandRunner` so that privilege
escalation, logging and dry-run behaviour live in one place.
"""
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from autodeploy.core.errors import CommandError, PrerequisiteError
from autodeploy.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands on the deployment host."""

    def __init__(self, mock: bool = False, use_sudo: bool = True, timeout: Optional[int] = None):
        self.mock = mock
        self.use_sudo = use_sudo
        self.timeout = timeout

    def _argv(self, argv: Sequence[str], sudo: bool) -> List[str]:
        cmd = [str(part) for part in argv]
        if sudo and self.use_sudo:
            cmd = ["sudo"] + cmd
        return cmd

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        sudo: bool = False,
        check: bool = True,
    ) -> CommandResult:
        """Run a command and return its result.

        Args:
            argv: Command and arguments
            cwd: Working directory
            env: Full environment for the child (inherits ours when None)
            input: Text written to the child's stdin
            sudo: Escalate with sudo when the runner is configured to
            check: Raise CommandError on a non-zero exit

        Returns:
            CommandResult with captured output

        Raises:
            CommandError: If the command exits non-zero (and check is set)
                or the executable cannot be found
        """
        cmd = self._argv(argv, sudo)
        where = f" (in {cwd})" if cwd else ""

        if self.mock:
            logger.info(f"MOCK: Would run: {' '.join(cmd)}{where}")
            return CommandResult(returncode=0)

        logger.info(f"$ {' '.join(cmd)}{where}")
        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                input=input,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            logger.error(f"Executable not found: {cmd[0]}")
            raise CommandError(cmd, 127, str(e)) from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"Command timed out after {self.timeout}s: {' '.join(cmd)}")
            raise CommandError(cmd, -1, f"timed out after {self.timeout}s") from e

        result = CommandResult(proc.returncode, proc.stdout or "", proc.stderr or "")
        if result.stdout:
            logger.debug(result.stdout.rstrip())

        if check and not result.ok:
            logger.error(f"Command failed with exit code {result.returncode}: {' '.join(cmd)}")
            if result.stderr:
                logger.error(f"Error output: {result.stderr.rstrip()}")
            raise CommandError(cmd, result.returncode, result.stderr)

        return result

    def which(self, tool: str) -> Optional[str]:
        """Return the absolute path of a tool, or None when it is not on PATH."""
        if self.mock:
            return f"/usr/bin/{tool}"
        return shutil.which(tool)

    def require(self, tool: str, hint: Optional[str] = None) -> str:
        """Return the path of a tool or raise PrerequisiteError."""
        path = self.which(tool)
        if path is None:
            message = f"Required tool '{tool}' was not found on PATH"
            if hint:
                message += f". {hint}"
            raise PrerequisiteError(message)
        return path

    def write_file(self, path: str, content: str, sudo: bool = False) -> None:
        """Write a file, going through `tee` when elevation is needed."""
        if self.mock:
            logger.info(f"MOCK: Would write {path} ({len(content)} bytes)")
            return

        if sudo and self.use_sudo:
            self.run(["tee", path], input=content, sudo=True)
            return

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        logger.info(f"Wrote {path}")

    def symlink(self, source: str, link: str, sudo: bool = False) -> None:
        """Create or replace a symlink (ln -sf)."""
        self.run(["ln", "-sf", source, link], sudo=sudo)
