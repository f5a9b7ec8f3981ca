"""Technology detection for a checked-out application repository."""
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from autodeploy.core.logger import get_logger
from autodeploy.models.deployment import Stack

logger = get_logger(__name__)

PYTHON_MARKERS = ["requirements.txt", "pyproject.toml", "setup.py", "app.py", "main.py", "wsgi.py"]
PYTHON_APP_FILES = ["app.py", "main.py", "wsgi.py"]
JAVA_MARKERS = ["pom.xml", "build.gradle", "build.gradle.kts"]
REMIX_CONFIGS = ["remix.config.js", "remix.config.mjs"]
PYTHON_FRAMEWORKS = ["flask", "django", "fastapi"]
JAR_SKIP_SUFFIXES = ("-plain.jar", "-sources.jar", "-javadoc.jar")


class StackDetector:
    """Inspects marker files to work out how an app should be deployed.

    Detection order matters: Remix and Laravel apps also carry the generic
    Node.js/PHP markers, so the specific stacks are checked first.
    """

    def __init__(self, root):
        self.root = Path(root)

    def _exists(self, name: str) -> bool:
        return (self.root / name).exists()

    def package_json(self) -> Dict[str, Any]:
        path = self.root / "package.json"
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Could not parse {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def composer_json(self) -> Dict[str, Any]:
        path = self.root / "composer.json"
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Could not parse {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _node_dependencies(self) -> List[str]:
        package = self.package_json()
        names: List[str] = []
        for section in ("dependencies", "devDependencies"):
            deps = package.get(section)
            if isinstance(deps, dict):
                names.extend(deps.keys())
        return names

    def is_remix(self) -> bool:
        if any(self._exists(name) for name in REMIX_CONFIGS):
            return True
        return any(dep.startswith("@remix-run/") for dep in self._node_dependencies())

    def laravel_version(self) -> Optional[str]:
        """Version constraint of laravel/framework in composer.json, if any."""
        require = self.composer_json().get("require")
        if isinstance(require, dict):
            return require.get("laravel/framework")
        return None

    def is_laravel(self) -> bool:
        # artisan alone is enough; laravel/framework may come from a fork
        return self._exists("artisan") and self._exists("composer.json")

    def detect(self) -> Optional[Stack]:
        """Return the stack of the checkout, or None when nothing matches."""
        if not self.root.is_dir():
            return None

        if self.is_remix():
            return Stack.REMIX
        if self.is_laravel():
            return Stack.LARAVEL
        if any(self._exists(name) for name in JAVA_MARKERS):
            return Stack.JAVA
        if self._exists("package.json"):
            return Stack.NODEJS
        if any(self._exists(name) for name in PYTHON_MARKERS):
            return Stack.PYTHON
        return None

    def node_start_command(self) -> List[str]:
        """Resolve how a Node.js app is started.

        A ``start`` script wins, then the ``main`` entry, then index.js.
        """
        package = self.package_json()
        scripts = package.get("scripts")
        if isinstance(scripts, dict) and scripts.get("start"):
            return ["npm", "start"]

        main = package.get("main")
        if isinstance(main, str) and main:
            return ["node", main]
        return ["node", "index.js"]

    def python_app_file(self) -> Optional[str]:
        for name in PYTHON_APP_FILES:
            if self._exists(name):
                return name
        return None

    def python_framework(self) -> Optional[str]:
        """Return flask, django or fastapi when requirements.txt names one."""
        requirements = self.root / "requirements.txt"
        if not requirements.exists():
            return None

        text = requirements.read_text(errors="replace").lower()
        for framework in PYTHON_FRAMEWORKS:
            if re.search(rf"^\s*{framework}\b", text, re.MULTILINE):
                return framework
        return None

    def java_build_tool(self) -> Optional[str]:
        if self._exists("pom.xml"):
            return "maven"
        if self._exists("build.gradle") or self._exists("build.gradle.kts"):
            return "gradle"
        return None

    def find_jar(self, build_tool: Optional[str] = None) -> Optional[Path]:
        """Find the runnable jar produced by the build."""
        build_tool = build_tool or self.java_build_tool()
        output_dir = self.root / ("target" if build_tool == "maven" else "build/libs")
        if not output_dir.is_dir():
            return None

        for jar in sorted(output_dir.rglob("*.jar")):
            if jar.name.endswith(JAR_SKIP_SUFFIXES) or jar.name.startswith("original-"):
                continue
            return jar
        return None

    def describe(self) -> Dict[str, Any]:
        """Summarise what detection found, for display."""
        candidates = (
            ["package.json", "composer.json", "artisan"]
            + REMIX_CONFIGS
            + JAVA_MARKERS
            + PYTHON_MARKERS
            + [".env.example", "gradlew"]
        )
        markers = []
        for name in candidates:
            if name not in markers and self._exists(name):
                markers.append(name)

        stack = self.detect()
        info: Dict[str, Any] = {
            "root": str(self.root),
            "stack": stack,
            "markers": markers,
        }
        if stack in (Stack.NODEJS, Stack.REMIX):
            info["start_command"] = " ".join(self.node_start_command())
        elif stack == Stack.PYTHON:
            info["app_file"] = self.python_app_file()
            info["framework"] = self.python_framework()
        elif stack == Stack.JAVA:
            info["build_tool"] = self.java_build_tool()
        elif stack == Stack.LARAVEL:
            info["laravel_version"] = self.laravel_version()
        return info
