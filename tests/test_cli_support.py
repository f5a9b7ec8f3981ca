"""Tests for CLI support utilities."""
import pytest
import typer
from rich.console import Console

from autodeploy.cli_deploy_commands import merge_values, parse_stack
from autodeploy.cli_support import (
    confirm_action,
    get_runner,
    handle_cli_error,
    is_mock,
    load_spec,
    print_error,
    print_success,
)
from autodeploy.core.errors import DeployError


class TestIsMock:
    """Test mock mode detection."""

    def test_mock_enabled(self, monkeypatch):
        monkeypatch.setenv("AUTODEPLOY_MOCK", "1")
        assert is_mock() is True

    def test_mock_disabled(self, monkeypatch):
        monkeypatch.delenv("AUTODEPLOY_MOCK", raising=False)
        assert is_mock() is False

    def test_runner_follows_dry_run_and_config(self, monkeypatch, host_config):
        monkeypatch.delenv("AUTODEPLOY_MOCK", raising=False)

        runner = get_runner(dry_run=True)
        assert runner.mock is True
        assert runner.use_sudo is False
        assert runner.timeout == host_config.command_timeout
        assert get_runner().mock is False


class TestLoadSpec:

    def test_maps_keys_to_request_fields(self, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text(
            "repo: git@github.com:acme/api.git\n"
            "name: api\n"
            "dir: /srv/api\n"
            "port: 8000\n"
            "tls: false\n"
            "branch:\n"
        )

        assert load_spec(str(spec)) == {
            "repo_url": "git@github.com:acme/api.git",
            "app_name": "api",
            "deploy_dir": "/srv/api",
            "port": 8000,
            "tls": False,
        }

    def test_no_spec(self):
        assert load_spec(None) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DeployError, match="Spec file not found"):
            load_spec(str(tmp_path / "missing.yml"))

    def test_not_a_mapping(self, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text("- repo\n- name\n")
        with pytest.raises(DeployError, match="must contain a mapping"):
            load_spec(str(spec))

    def test_invalid_yaml(self, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text("repo: [unclosed\n")
        with pytest.raises(DeployError, match="Invalid YAML"):
            load_spec(str(spec))

    def test_unknown_keys(self, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text("repo: x\nreplicas: 2\nimage: nginx\n")
        with pytest.raises(DeployError, match="image, replicas"):
            load_spec(str(spec))


class TestDeployValues:

    def test_flags_override_spec(self):
        merged = merge_values(
            {"app_name": "api", "port": 8000, "stack": "python"},
            {"app_name": None, "port": 9000, "stack": None},
        )
        assert merged == {"app_name": "api", "port": 9000, "stack": "python"}

    def test_parse_stack(self):
        assert parse_stack(None) is None
        assert parse_stack("Laravel") == "laravel"
        assert parse_stack("auto") == "auto"
        with pytest.raises(typer.BadParameter):
            parse_stack("rails")


class TestConfirmAction:

    def test_yes_flag_skips_prompt(self):
        assert confirm_action("Proceed?", yes_flag=True) is True

    def test_mock_skips_prompt(self):
        assert confirm_action("Proceed?", mock=True) is True

    def test_prompts_otherwise(self, monkeypatch):
        monkeypatch.setattr("autodeploy.cli_support.typer.confirm", lambda message: False)
        assert confirm_action("Proceed?") is False


class TestOutputHelpers:

    def test_handle_cli_error_exits(self):
        console = Console(record=True, width=120)
        with pytest.raises(typer.Exit) as exc_info:
            handle_cli_error(DeployError("Service api.service failed to start"), console, exit_code=3)

        assert exc_info.value.exit_code == 3
        assert "Error: Service api.service failed to start" in console.export_text()

    def test_error_text_is_not_treated_as_markup(self):
        console = Console(record=True, width=120)
        with pytest.raises(typer.Exit):
            handle_cli_error(ValueError("Input should be 'nginx' [type=enum]"), console)
        assert "[type=enum]" in console.export_text()

    def test_print_helpers(self):
        console = Console(record=True, width=120)
        print_success(console, "Deployed")
        print_error(console, "Failed")

        text = console.export_text()
        assert "✓ Deployed" in text
        assert "✗ Failed" in text
