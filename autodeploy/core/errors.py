"""Exception hierarchy shared by installers, managers and the CLI."""
from typing import Optional, Sequence


class DeployError(Exception):
    """Raised when a deployment step cannot complete."""
    pass


class PrerequisiteError(DeployError):
    """Raised when a required tool, socket or build file is missing."""
    pass


class MissingInputError(DeployError):
    """Raised when a value is needed but prompting is disabled."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"Missing required value: {field} (pass it as an option or in --spec)"
        )


class DeploymentAborted(DeployError):
    """Raised when the user picks Quit from the technology menu."""
    pass


class CommandError(DeployError):
    """Raised when an external command fails or cannot be started."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int,
        stderr: Optional[str] = None,
    ):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)
