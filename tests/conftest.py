"""Shared test fixtures for autodeploy tests."""
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from autodeploy.core.config import DeployerConfig, set_config
from autodeploy.core.errors import CommandError
from autodeploy.core.logger import clear_secrets
from autodeploy.core.prompts import Prompter
from autodeploy.core.runner import CommandResult, CommandRunner


class RecordingRunner(CommandRunner):
    """CommandRunner that records commands instead of running them.

    ``outputs`` maps a command prefix to the stdout it should produce;
    commands starting with a prefix in ``failures`` exit 1.
    Files are still written (to the temporary host layout).
    """

    def __init__(
        self,
        outputs: Optional[Dict[str, str]] = None,
        failures: Iterable[str] = (),
        use_sudo: bool = False,
    ):
        super().__init__(mock=False, use_sudo=use_sudo)
        self.outputs = outputs or {}
        self.failures = list(failures)
        self.calls: List[dict] = []

    def run(self, argv, cwd=None, env=None, input=None, sudo=False, check=True):
        cmd = self._argv(argv, sudo)
        self.calls.append({"argv": cmd, "cwd": cwd, "env": env, "input": input})
        line = " ".join(cmd)

        for prefix in self.failures:
            if line.startswith(prefix):
                if check:
                    raise CommandError(cmd, 1, "simulated failure")
                return CommandResult(1, "", "simulated failure")

        for prefix, stdout in self.outputs.items():
            if line.startswith(prefix):
                return CommandResult(0, stdout)
        return CommandResult(0)

    def which(self, tool):
        return f"/usr/bin/{tool}"

    @property
    def commands(self) -> List[str]:
        return [" ".join(call["argv"]) for call in self.calls]

    def call_for(self, prefix: str) -> dict:
        for call in self.calls:
            if " ".join(call["argv"]).startswith(prefix):
                return call
        raise AssertionError(f"No command starting with {prefix!r} in {self.commands}")


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached global config between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture(autouse=True)
def forget_secrets():
    """Secrets registered by one test must not mask another test's output."""
    yield
    clear_secrets()


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    """Make retry backoff instant."""
    monkeypatch.setattr("autodeploy.core.retry.time.sleep", lambda seconds: None)


@pytest.fixture
def host_config(tmp_path) -> DeployerConfig:
    """Host layout rooted in a temporary directory."""
    config = DeployerConfig(
        systemd_dir=str(tmp_path / "systemd"),
        nginx_sites_available=str(tmp_path / "nginx" / "sites-available"),
        nginx_sites_enabled=str(tmp_path / "nginx" / "sites-enabled"),
        apache_sites_available=str(tmp_path / "apache2" / "sites-available"),
        php_fpm_socket_dir=str(tmp_path / "php"),
        use_sudo=False,
    )
    set_config(config)
    return config


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def mock_runner() -> CommandRunner:
    """CommandRunner in mock mode."""
    return CommandRunner(mock=True)


@pytest.fixture
def prompter() -> Prompter:
    """Non-interactive prompter: every value must come from the request."""
    return Prompter(interactive=False)


@pytest.fixture
def app_dir(tmp_path) -> Path:
    """An existing checkout (with .git) to install into."""
    path = tmp_path / "app"
    (path / ".git").mkdir(parents=True)
    return path


def write_files(root: Path, files: Dict[str, str]) -> None:
    for name, content in files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


@pytest.fixture
def make_files():
    """Return a helper that writes {relative path: content} under a root."""
    return write_files
