"""Git repository management for app deployment."""
from pathlib import Path
from typing import Optional

from autodeploy.core.errors import CommandError
from autodeploy.core.logger import get_logger
from autodeploy.core.retry import retry
from autodeploy.core.runner import CommandRunner

logger = get_logger(__name__)


class GitManager:
    """Manages git operations for app deployment."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @property
    def mock(self) -> bool:
        return self.runner.mock

    def ensure_directory(self, directory: str) -> bool:
        """Ensure the deployment directory exists."""
        if not directory or directory in {'.', '/'}:
            return True

        try:
            self.runner.run(['mkdir', '-p', directory])
            return True
        except CommandError as e:
            logger.error(f"Failed to create directory {directory}: {e}")
            return False

    def repo_exists(self, path: str) -> bool:
        """Check if a git repository already exists at the given path."""
        if self.mock:
            logger.info(f"MOCK: Would check for git repo at {path}")
            return False
        return (Path(path) / '.git').is_dir()

    @retry(max_attempts=3, delay=5, exceptions=(CommandError,))
    def _clone(self, url: str, path: str, branch: Optional[str]) -> None:
        cmd = ['git', 'clone']
        if branch:
            cmd += ['-b', branch]
        cmd += [url, path]
        self.runner.run(cmd)

    def clone_repo(self, url: str, path: str, branch: Optional[str] = None) -> bool:
        """Clone a git repository into the deployment directory.

        The directory may already exist as long as it is empty, so the
        checkout lands directly in it rather than in a subdirectory.

        Args:
            url: Git repository URL
            path: Deployment directory
            branch: Branch to clone (default: the remote's default branch)

        Returns:
            True if successful, False otherwise
        """
        if self.repo_exists(path):
            logger.error(f"{path} already contains a git repository; use 'autodeploy update' instead")
            return False

        target = Path(path)
        if not self.mock and target.is_dir() and any(target.iterdir()):
            logger.error(f"Deployment directory {path} is not empty")
            return False

        branch_label = branch or "default branch"
        logger.info(f"Cloning {url} ({branch_label}) to {path}")
        try:
            self._clone(url, path, branch)
        except CommandError as e:
            logger.error(f"Failed to clone repository: {e}")
            return False

        logger.info(f"✓ Successfully cloned repository to {path}")
        return True

    def checkout(self, url: str, path: str, branch: Optional[str] = None) -> bool:
        """Make sure the deployment directory holds a checkout of the repository.

        A fresh directory is cloned into; an existing checkout of the same
        remote is pulled instead so a deployment can be re-run.

        Returns:
            True if successful, False otherwise
        """
        if not self.ensure_directory(path):
            return False

        if self.repo_exists(path):
            remote = self.get_remote_url(path)
            if remote and remote != url:
                logger.error(f"{path} already holds a checkout of {remote}")
                return False
            logger.info(f"Repository already cloned in {path}, pulling latest changes")
            return self.pull_repo(path)

        return self.clone_repo(url, path, branch)

    def pull_repo(self, path: str) -> bool:
        """Pull latest changes from git repository.

        Args:
            path: Path to the git checkout

        Returns:
            True if successful, False otherwise
        """
        logger.info(f"Pulling latest changes in {path}")
        try:
            result = self.runner.run(['git', 'pull'], cwd=path)
        except CommandError as e:
            logger.error(f"Failed to pull repository: {e}")
            return False

        logger.info("✓ Successfully pulled latest changes")
        if result.stdout:
            logger.debug(f"Git output: {result.stdout}")
        return True

    def get_remote_url(self, path: str) -> Optional[str]:
        """Return the URL of the origin remote, or None when there is none."""
        if self.mock:
            return None

        result = self.runner.run(['git', 'remote', 'get-url', 'origin'], cwd=path, check=False)
        url = result.stdout.strip()
        return url or None

    def get_current_commit(self, path: str) -> Optional[str]:
        """Get current commit hash from repository.

        Returns:
            Commit hash or None if failed
        """
        if self.mock:
            return "mock-commit-hash-1234567890"

        try:
            result = self.runner.run(['git', 'rev-parse', 'HEAD'], cwd=path)
        except CommandError as e:
            logger.error(f"Failed to get commit hash: {e}")
            return None
        return result.stdout.strip()
