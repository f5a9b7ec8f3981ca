"""Tests for detect, stacks, render, status, update and version."""
import json

import pytest
from typer.testing import CliRunner

from autodeploy.cli import app

runner = CliRunner()


def output(result):
    """Command output with Rich line wrapping undone."""
    return " ".join(result.stdout.split())


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, host_config):
    monkeypatch.delenv("AUTODEPLOY_MOCK", raising=False)


class TestDetectCommand:

    def test_detects_node(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"scripts": {"start": "node server.js"}}))

        result = runner.invoke(app, ["detect", str(tmp_path)])

        assert result.exit_code == 0
        assert "Node.js (nodejs) detected" in output(result)
        assert "package.json" in output(result)
        assert "npm start" in output(result)

    def test_nothing_detected(self, tmp_path):
        (tmp_path / "README.md").write_text("# hello")

        result = runner.invoke(app, ["detect", str(tmp_path)])

        assert result.exit_code == 1
        assert "No supported technology detected" in output(result)

    def test_not_a_directory(self, tmp_path):
        result = runner.invoke(app, ["detect", str(tmp_path / "missing")])
        assert result.exit_code == 2


def test_stacks_table():
    result = runner.invoke(app, ["stacks"])

    assert result.exit_code == 0
    for label in ("Node.js", "Python", "Java/Spring", "Laravel", "Remix"):
        assert label in result.stdout


class TestRenderCommands:

    def test_render_service(self):
        result = runner.invoke(app, [
            "render", "service",
            "--name", "api",
            "--dir", "/srv/api",
            "--exec-start", "/srv/api/venv/bin/python app.py",
            "--env", "PORT=8000",
            "--env", "APP_ENV=production",
        ])

        assert result.exit_code == 0
        assert "ExecStart=/srv/api/venv/bin/python app.py" in result.stdout
        assert "WorkingDirectory=/srv/api" in result.stdout
        assert "Environment=PORT=8000" in result.stdout
        assert "Environment=APP_ENV=production" in result.stdout

    def test_render_service_bad_env(self):
        result = runner.invoke(app, [
            "render", "service", "--name", "api", "--dir", "/srv/api",
            "--exec-start", "/usr/bin/node index.js", "--env", "PORT",
        ])
        assert result.exit_code == 2

    def test_render_proxy_site(self):
        result = runner.invoke(app, [
            "render", "site", "--name", "api", "--domain", "api.example.com", "--port", "8000", "--tls",
        ])

        assert result.exit_code == 0
        assert "server 127.0.0.1:8000;" in result.stdout
        assert "ssl_certificate /etc/letsencrypt/live/api.example.com/fullchain.pem;" in result.stdout

    def test_render_php_site_for_apache(self):
        result = runner.invoke(app, [
            "render", "site", "--name", "shop", "--domain", "shop.example.com",
            "--web-server", "apache",
            "--root", "/var/www/shop/public",
            "--php-socket", "/var/run/php/php8.3-fpm.sock",
        ])

        assert result.exit_code == 0
        assert "DocumentRoot /var/www/shop/public" in result.stdout
        assert "proxy:unix:/var/run/php/php8.3-fpm.sock|fcgi://localhost" in result.stdout

    def test_render_site_needs_port_or_root(self):
        result = runner.invoke(app, ["render", "site", "--name", "api", "--domain", "api.example.com"])

        assert result.exit_code == 2
        assert "require a port" in output(result)


class TestServiceCommands:

    def test_status_dry_run(self, monkeypatch):
        monkeypatch.setenv("AUTODEPLOY_MOCK", "1")
        result = runner.invoke(app, ["status", "api"])
        assert result.exit_code == 0

    def test_update_dry_run(self, tmp_path):
        result = runner.invoke(app, [
            "update", "api", "--dir", str(tmp_path), "--stack", "python", "--dry-run",
            "--log-file", str(tmp_path / "autodeploy.log"),
        ])

        assert result.exit_code == 0, result.stdout
        assert f"ℹ Pulling latest changes for api in {tmp_path}" in output(result)
        assert "api (Python) updated" in output(result)
        assert "git pull" in output(result)

    def test_update_unknown_stack(self, tmp_path):
        result = runner.invoke(app, [
            "update", "api", "--dir", str(tmp_path), "--dry-run",
            "--log-file", str(tmp_path / "autodeploy.log"),
        ])

        assert result.exit_code == 1
        assert "pass --stack" in output(result)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "autodeploy v0.1.0" in result.stdout
