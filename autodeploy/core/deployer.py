"""Technology dispatch: pick a stack and hand the request to its installer."""
from pathlib import Path
from typing import List, Optional

from autodeploy.core.config import DeployerConfig, get_config
from autodeploy.core.errors import DeployError, DeploymentAborted
from autodeploy.core.logger import get_logger
from autodeploy.core.prompts import Prompter
from autodeploy.core.runner import CommandRunner
from autodeploy.discovery.stack_detector import StackDetector
from autodeploy.models.deployment import DeploymentRequest, DeploymentResult, Stack, WebServer
from autodeploy.services.git_manager import GitManager
from autodeploy.stacks import get_installer

logger = get_logger(__name__)

AUTO_OPTION = "Detect automatically"
QUIT_OPTION = "Quit"


class Deployer:
    """Routes a deployment request to the installer for its stack."""

    def __init__(
        self,
        runner: CommandRunner,
        prompter: Prompter,
        config: Optional[DeployerConfig] = None,
    ):
        self.runner = runner
        self.prompter = prompter
        self.config = config or get_config()
        self.git = GitManager(runner)

    @staticmethod
    def menu() -> List[str]:
        return [stack.label for stack in Stack] + [AUTO_OPTION, QUIT_OPTION]

    def detect(self, deploy_dir: Optional[str]) -> Optional[Stack]:
        """Detect the stack of an existing checkout, if there is one."""
        if not deploy_dir:
            return None
        path = Path(deploy_dir).expanduser()
        if not path.is_dir():
            return None

        stack = StackDetector(path).detect()
        if stack:
            logger.info(f"Detected {stack.label} project in {path}")
        return stack

    def choose_stack(self, detected: Optional[Stack] = None) -> Optional[Stack]:
        """Ask for the technology from the menu.

        The detected stack (if any) is the default, otherwise automatic
        detection is.

        Returns:
            The chosen stack, or None for automatic detection

        Raises:
            DeploymentAborted: If Quit is selected
        """
        stacks = list(Stack)
        options = self.menu()
        default = stacks.index(detected) if detected else options.index(AUTO_OPTION)

        index = self.prompter.choose(
            "Select the technology type",
            options,
            default=default,
            field="stack",
            default_note="detected" if detected else "default",
        )
        if options[index] == QUIT_OPTION:
            raise DeploymentAborted("Exiting script.")
        if options[index] == AUTO_OPTION:
            return None
        return stacks[index]

    def _detect_after_checkout(self, request: DeploymentRequest) -> Stack:
        deploy_dir = str(Path(request.deploy_dir).expanduser().absolute())
        if not self.git.checkout(request.repo_url, deploy_dir, request.branch):
            raise DeployError(f"Failed to check out {request.repo_url} into {deploy_dir}")

        stack = self.detect(deploy_dir)
        if stack is None:
            hint = " (nothing is cloned in dry-run mode)" if self.runner.mock else ""
            raise DeployError(
                f"Could not detect the technology of {request.repo_url}{hint}; pass --stack"
            )
        return stack

    def deploy(self, request: DeploymentRequest) -> DeploymentResult:
        """Run the installer for the request's stack.

        Without a stack the repository is cloned first and the stack is
        detected from its files.
        """
        checked_out = False
        if request.stack is None:
            stack = self._detect_after_checkout(request)
            request = request.model_copy(update={"stack": stack})
            checked_out = True

        installer = get_installer(request.stack)(request, self.runner, self.prompter, self.config)

        logger.info(f"Setting up {request.stack.label} application...")
        result = installer.run(checked_out=checked_out)

        logger.info(f"{request.stack.label} application deployed successfully!")
        if result.url:
            logger.info(f"Your application is now accessible at {result.url}")
        logger.info(f"Deployment completed. Check service status with: {result.status_command}")
        return result

    def update(self, app_name: str, deploy_dir: str, stack: Optional[Stack] = None) -> Stack:
        """Pull the latest code for a deployed app and refresh it.

        Returns:
            The stack the app was refreshed as
        """
        stack = stack or self.detect(deploy_dir)
        if stack is None:
            raise DeployError(f"Could not detect the technology of {deploy_dir}; pass --stack")

        if not self.git.pull_repo(str(Path(deploy_dir).expanduser())):
            raise DeployError(f"git pull failed in {deploy_dir}")

        # update only needs the name, directory and stack; skip URL validation
        request = DeploymentRequest.model_construct(
            repo_url="",
            app_name=app_name,
            deploy_dir=deploy_dir,
            stack=stack,
            web_server=WebServer.NONE,
        )
        installer = get_installer(stack)(request, self.runner, self.prompter, self.config)
        installer.update()
        logger.info(f"✓ {app_name} updated")
        return stack
