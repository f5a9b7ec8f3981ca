"""Tests for technology detection."""
import json

import pytest

from autodeploy.discovery.stack_detector import StackDetector
from autodeploy.models.deployment import Stack


def package(**fields):
    return json.dumps(fields)


class TestDetect:

    @pytest.mark.parametrize("files,expected", [
        ({"package.json": package(name="api")}, Stack.NODEJS),
        ({"requirements.txt": "flask\n"}, Stack.PYTHON),
        ({"main.py": "print('hi')\n"}, Stack.PYTHON),
        ({"pom.xml": "<project/>"}, Stack.JAVA),
        ({"build.gradle.kts": ""}, Stack.JAVA),
        ({"artisan": "#!/usr/bin/env php", "composer.json": "{}"}, Stack.LARAVEL),
        ({"remix.config.js": "", "package.json": package(name="web")}, Stack.REMIX),
    ])
    def test_detects_stack(self, tmp_path, make_files, files, expected):
        make_files(tmp_path, files)
        assert StackDetector(tmp_path).detect() == expected

    def test_remix_from_dependencies(self, tmp_path, make_files):
        """Vite-based Remix apps have no remix.config.js."""
        make_files(tmp_path, {
            "package.json": package(dependencies={"@remix-run/node": "^2.8.0", "react": "^18"}),
        })
        assert StackDetector(tmp_path).detect() == Stack.REMIX

    def test_laravel_wins_over_node(self, tmp_path, make_files):
        """Laravel ships a package.json for its frontend assets."""
        make_files(tmp_path, {
            "artisan": "",
            "composer.json": "{}",
            "package.json": package(scripts={"dev": "vite"}),
        })
        assert StackDetector(tmp_path).detect() == Stack.LARAVEL

    def test_java_wins_over_node(self, tmp_path, make_files):
        make_files(tmp_path, {"pom.xml": "", "package.json": package(name="frontend")})
        assert StackDetector(tmp_path).detect() == Stack.JAVA

    def test_nothing_detected(self, tmp_path, make_files):
        make_files(tmp_path, {"README.md": "# hello"})
        assert StackDetector(tmp_path).detect() is None

    def test_missing_directory(self, tmp_path):
        assert StackDetector(tmp_path / "missing").detect() is None

    def test_broken_package_json(self, tmp_path, make_files):
        make_files(tmp_path, {"package.json": "{not json"})
        detector = StackDetector(tmp_path)
        assert detector.package_json() == {}
        assert detector.detect() == Stack.NODEJS


class TestNodeStartCommand:

    def test_start_script(self, tmp_path, make_files):
        make_files(tmp_path, {"package.json": package(scripts={"start": "node server.js"}, main="lib/index.js")})
        assert StackDetector(tmp_path).node_start_command() == ["npm", "start"]

    def test_main_entry(self, tmp_path, make_files):
        make_files(tmp_path, {"package.json": package(main="lib/index.js")})
        assert StackDetector(tmp_path).node_start_command() == ["node", "lib/index.js"]

    def test_default_index(self, tmp_path, make_files):
        make_files(tmp_path, {"package.json": package(name="api")})
        assert StackDetector(tmp_path).node_start_command() == ["node", "index.js"]


class TestPython:

    def test_app_file_order(self, tmp_path, make_files):
        make_files(tmp_path, {"main.py": "", "wsgi.py": ""})
        assert StackDetector(tmp_path).python_app_file() == "main.py"

    @pytest.mark.parametrize("requirements,expected", [
        ("Flask==3.0.0\n", "flask"),
        ("gunicorn\nDjango>=4.2\n", "django"),
        ("fastapi[all]\nuvicorn\n", "fastapi"),
        ("requests\n# flask is optional\n", None),
        ("pyflask-tools\n", None),
    ])
    def test_framework(self, tmp_path, make_files, requirements, expected):
        make_files(tmp_path, {"requirements.txt": requirements})
        assert StackDetector(tmp_path).python_framework() == expected


class TestJava:

    def test_build_tool(self, tmp_path, make_files):
        make_files(tmp_path, {"build.gradle": ""})
        assert StackDetector(tmp_path).java_build_tool() == "gradle"

    def test_find_jar_skips_secondary_artifacts(self, tmp_path, make_files):
        make_files(tmp_path, {
            "pom.xml": "",
            "target/api-1.0.jar": "",
            "target/api-1.0-sources.jar": "",
            "target/original-api-1.0.jar": "",
        })
        assert StackDetector(tmp_path).find_jar().name == "api-1.0.jar"

    def test_find_gradle_jar(self, tmp_path, make_files):
        make_files(tmp_path, {
            "build.gradle": "",
            "build/libs/api-0.0.1-SNAPSHOT-plain.jar": "",
            "build/libs/api-0.0.1-SNAPSHOT.jar": "",
        })
        assert StackDetector(tmp_path).find_jar().name == "api-0.0.1-SNAPSHOT.jar"

    def test_no_jar(self, tmp_path, make_files):
        make_files(tmp_path, {"pom.xml": ""})
        assert StackDetector(tmp_path).find_jar() is None


def test_describe(tmp_path, make_files):
    make_files(tmp_path, {"requirements.txt": "django\n", "wsgi.py": ""})
    info = StackDetector(tmp_path).describe()

    assert info["stack"] == Stack.PYTHON
    assert info["markers"] == ["requirements.txt", "wsgi.py"]
    assert info["framework"] == "django"
    assert info["app_file"] == "wsgi.py"


def test_describe_laravel_version(tmp_path, make_files):
    make_files(tmp_path, {
        "artisan": "",
        "composer.json": '{"require": {"php": "^8.2", "laravel/framework": "^11.0"}}',
    })
    info = StackDetector(tmp_path).describe()

    assert info["stack"] == Stack.LARAVEL
    assert info["laravel_version"] == "^11.0"


def test_laravel_fork_without_framework_package(tmp_path, make_files):
    make_files(tmp_path, {"artisan": "", "composer.json": "{not json"})
    detector = StackDetector(tmp_path)

    assert detector.detect() == Stack.LARAVEL
    assert detector.laravel_version() is None
