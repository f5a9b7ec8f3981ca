"""Java/Spring apps built with Maven or Gradle and run from the jar."""
from pathlib import Path

from autodeploy.core.errors import PrerequisiteError
from autodeploy.core.logger import get_logger
from autodeploy.models.deployment import DeploymentResult, ServiceUnit, Stack
from autodeploy.stacks.base import StackInstaller

logger = get_logger(__name__)

SPRING_DEFAULT_PORT = 8080


class JavaInstaller(StackInstaller):
    stack = Stack.JAVA
    required_tools = ["git", "java"]

    def _build_tool(self) -> str:
        build_tool = self.detector.java_build_tool()
        if build_tool:
            return build_tool
        if self.mock:
            logger.info("MOCK: No checkout to inspect, assuming a Maven project")
            return "maven"
        raise PrerequisiteError(
            "Neither Maven nor Gradle configuration found. Cannot build the project."
        )

    def build(self) -> str:
        """Build the project and return the build tool that was used."""
        build_tool = self._build_tool()

        if build_tool == "maven":
            logger.info("Maven project detected...")
            self.runner.require("mvn", "Install Maven to build pom.xml projects")
            self.run_in_app(["mvn", "clean", "package"])
        else:
            logger.info("Gradle project detected...")
            if self.app_path("gradlew").exists():
                self.run_in_app(["./gradlew", "build"])
            else:
                self.runner.require("gradle", "Add a Gradle wrapper or install Gradle")
                self.run_in_app(["gradle", "build"])
        return build_tool

    def jar_path(self, build_tool: str) -> Path:
        jar = self.detector.find_jar(build_tool)
        if jar is not None:
            return jar
        if self.mock:
            output = "target" if build_tool == "maven" else "build/libs"
            return self.app_path(output, f"{self.app_name}.jar")
        raise PrerequisiteError(f"Build finished but no runnable jar was found in {self.deploy_dir}")

    def service_unit(self, jar: Path) -> ServiceUnit:
        environment = {}
        if self.request.port:
            environment["SERVER_PORT"] = str(self.request.port)

        return ServiceUnit(
            name=self.app_name,
            description=f"{self.app_name} service",
            user=self.service_user(),
            working_directory=self.deploy_dir,
            environment=environment,
            exec_start=f"{self.config.java_bin} -jar {jar}",
        )

    def install(self) -> DeploymentResult:
        build_tool = self.build()
        jar = self.jar_path(build_tool)
        logger.info(f"Using jar {jar}")

        unit = self.service_unit(jar)
        self.start_service(unit)

        url = self.maybe_publish_proxy(self.request.port or SPRING_DEFAULT_PORT)
        return self.result(service=unit.filename, url=url)

    def update(self) -> None:
        # the jar name can change with the version, so the unit is rewritten
        build_tool = self.build()
        self.services.install(self.service_unit(self.jar_path(build_tool)))
        super().update()
