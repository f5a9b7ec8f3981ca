"""Tests for the deploy command."""
import pytest
from typer.testing import CliRunner

from autodeploy.cli import app

runner = CliRunner()


def output(result):
    """Command output with Rich line wrapping undone."""
    return " ".join(result.stdout.split())


REPO = "https://github.com/acme/api.git"


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, host_config, tmp_path):
    monkeypatch.delenv("AUTODEPLOY_MOCK", raising=False)
    monkeypatch.delenv("AUTODEPLOY_DB_PASSWORD", raising=False)
    monkeypatch.setattr("autodeploy.stacks.base.getpass.getuser", lambda: "deploy")


@pytest.fixture
def base_args(tmp_path):
    return ["deploy", "--dry-run", "--log-file", str(tmp_path / "autodeploy.log")]


class TestDeployFlags:

    def test_all_values_as_flags(self, base_args, tmp_path):
        result = runner.invoke(app, base_args + [
            "--repo", REPO,
            "--name", "api",
            "--dir", str(tmp_path / "srv" / "api"),
            "--stack", "nodejs",
            "--yes",
        ])

        assert result.exit_code == 0, result.stdout
        assert "Node.js application deployed successfully!" in output(result)
        assert "MOCK: Would run" in output(result)

    def test_missing_value_without_prompts(self, base_args):
        result = runner.invoke(app, base_args + ["--name", "api", "--yes"])

        assert result.exit_code == 2
        assert "Missing required value: repo" in output(result)

    def test_unknown_stack(self, base_args, tmp_path):
        result = runner.invoke(app, base_args + [
            "--repo", REPO, "--name", "api", "--dir", str(tmp_path / "api"), "--stack", "rails", "--yes",
        ])
        assert result.exit_code == 2

    def test_invalid_domain_is_reported(self, base_args, tmp_path):
        result = runner.invoke(app, base_args + [
            "--repo", REPO, "--name", "api", "--dir", str(tmp_path / "api"),
            "--stack", "python", "--domain", "https://api.example.com", "--yes",
        ])

        assert result.exit_code == 1
        assert "Error:" in output(result)
        assert "without a scheme" in output(result)

    def test_auto_detection_needs_a_checkout(self, base_args, tmp_path):
        result = runner.invoke(app, base_args + [
            "--repo", REPO, "--name", "api", "--dir", str(tmp_path / "api"), "--stack", "auto", "--yes",
        ])

        assert result.exit_code == 1
        assert "pass --stack" in output(result)


class TestDeployPrompts:

    def test_prompts_for_missing_values(self, base_args, tmp_path):
        answers = "\n".join([REPO, "api", str(tmp_path / "srv" / "api"), "1"]) + "\n"
        result = runner.invoke(app, base_args, input=answers)

        assert result.exit_code == 0, result.stdout
        assert "Enter the git repository URL" in output(result)
        assert "Enter the application name (for service naming)" in output(result)
        assert "Enter the deployment directory path" in output(result)
        assert "Select the technology type" in output(result)
        assert "Node.js application deployed successfully!" in output(result)

    def test_invalid_url_is_asked_again(self, base_args, tmp_path):
        answers = "\n".join([
            "https://github.com/acme/api", REPO, "api", str(tmp_path / "srv" / "api"), "2",
        ]) + "\n"
        result = runner.invoke(app, base_args + ["--app-file", "app.py"], input=answers)

        assert result.exit_code == 0, result.stdout
        assert "Invalid git repository URL" in output(result)
        assert "Python application deployed successfully!" in output(result)

    def test_quit(self, base_args, tmp_path):
        answers = "\n".join([REPO, "api", str(tmp_path / "srv" / "api"), "7"]) + "\n"
        result = runner.invoke(app, base_args, input=answers)

        assert result.exit_code == 0
        assert "Exiting script." in output(result)
        assert "Detect automatically (default)" in output(result)
        assert "(detected)" not in output(result)
        assert "deployed successfully" not in output(result)

    def test_detected_stack_is_offered(self, base_args, tmp_path):
        checkout = tmp_path / "srv" / "api"
        checkout.mkdir(parents=True)
        (checkout / "pom.xml").write_text("<project/>")

        result = runner.invoke(app, base_args + ["--repo", REPO, "--name", "api", "--dir", str(checkout)], input="\n")

        assert result.exit_code == 0, result.stdout
        assert "Java/Spring (detected)" in output(result)
        assert "Java/Spring application deployed successfully!" in output(result)

    def test_declined_confirmation(self, tmp_path):
        result = runner.invoke(app, [
            "deploy", "--log-file", str(tmp_path / "autodeploy.log"),
            "--repo", REPO, "--name", "api", "--dir", str(tmp_path / "api"), "--stack", "nodejs",
        ], input="n\n")

        assert result.exit_code == 0
        assert "Deployment cancelled" in output(result)


class TestDeploySpecFile:

    def test_values_from_spec(self, base_args, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text(
            f"repo: {REPO}\n"
            "name: shop\n"
            f"dir: {tmp_path / 'srv' / 'shop'}\n"
            "stack: laravel\n"
            "domain: shop.example.com\n"
            "web_server: apache\n"
            "database: sqlite\n"
        )

        result = runner.invoke(app, base_args + ["--spec", str(spec), "--yes"])

        assert result.exit_code == 0, result.stdout
        assert "Laravel application deployed successfully!" in output(result)
        assert "a2ensite shop.conf" in output(result)

    def test_flags_override_spec(self, base_args, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text(f"repo: {REPO}\nname: api\ndir: {tmp_path / 'api'}\nstack: laravel\n")

        result = runner.invoke(app, base_args + ["--spec", str(spec), "--stack", "nodejs", "--yes"])

        assert result.exit_code == 0, result.stdout
        assert "Node.js application deployed successfully!" in output(result)

    def test_unknown_spec_key(self, base_args, tmp_path):
        spec = tmp_path / "deploy.yml"
        spec.write_text(f"repo: {REPO}\nreplicas: 3\n")

        result = runner.invoke(app, base_args + ["--spec", str(spec), "--yes"])

        assert result.exit_code == 1
        assert "Unknown key(s)" in output(result)
