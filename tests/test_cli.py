"""Tests for gakwaya CLI.

CliContext.client is patched to return a MagicMock API client.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from gakwaya import __version__
from gakwaya.cli import cli
from gakwaya.cli.utils import CliContext
from gakwaya.errors import ApiResponseError, TransportError
from gakwaya.session import TokenStore


@pytest.fixture
def client() -> Iterator[MagicMock]:
    mock = MagicMock()
    with patch.object(CliContext, "client", return_value=mock):
        yield mock


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestRoot:
    """Tests for the root group and auth commands."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_groups(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "apps" in result.output
        assert "docker" in result.output

    def test_login_stores_token(self, runner: CliRunner, client: MagicMock) -> None:
        """Successful login saves the returned token."""
        client.login.return_value = {"token": "abc"}
        result = runner.invoke(cli, ["login", "ann", "--password", "pw"])
        assert result.exit_code == 0, result.output
        client.login.assert_called_once_with("ann", "pw")
        assert TokenStore().load() == "abc"
        assert "Logged in as ann" in result.output

    def test_login_failure(self, runner: CliRunner, client: MagicMock) -> None:
        """Backend errors are printed and exit 1."""
        client.login.side_effect = ApiResponseError("Invalid username or password", 401)
        result = runner.invoke(cli, ["login", "ann", "--password", "bad"])
        assert result.exit_code == 1
        assert "Invalid username or password" in result.output
        assert TokenStore().load() is None

    def test_login_without_token(self, runner: CliRunner, client: MagicMock) -> None:
        client.login.return_value = {}
        result = runner.invoke(cli, ["login", "ann", "--password", "pw"])
        assert result.exit_code == 1
        assert "did not contain a token" in result.output

    def test_register(self, runner: CliRunner, client: MagicMock) -> None:
        client.register.return_value = {"id": 1, "username": "ann"}
        result = runner.invoke(cli, ["register", "ann", "--password", "pw"])
        assert result.exit_code == 0, result.output
        client.register.assert_called_once_with("ann", "pw")

    def test_logout(self, runner: CliRunner) -> None:
        TokenStore().save("abc")
        result = runner.invoke(cli, ["logout"])
        assert result.exit_code == 0
        assert "Logged out" in result.output
        assert TokenStore().load() is None

    def test_api_url_option(self, runner: CliRunner) -> None:
        """--api-url reaches the session used by the client."""
        with patch("gakwaya.cli.utils.ApiClient") as api_cls:
            api_cls.return_value.me.return_value = {"username": "ann"}
            TokenStore().save("tok")
            result = runner.invoke(cli, ["--api-url", "https://panel.example.com/api", "whoami"])
        assert result.exit_code == 0, result.output
        session = api_cls.call_args.args[0]
        assert session.api_url == "https://panel.example.com/api"
        assert session.token == "tok"

    def test_invalid_api_url(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--api-url", "not-a-url", "whoami"])
        assert result.exit_code == 1
        assert "Invalid API URL" in result.output


class TestAppsCreate:
    """Tests for the deploy wizard command."""

    def test_image_deploy(self, runner: CliRunner, client: MagicMock) -> None:
        client.create_application.return_value = {"id": 12}
        result = runner.invoke(
            cli,
            ["apps", "create", "web", "--image", "nginx:latest", "-e", "A=1", "--host-port", ""],
        )
        assert result.exit_code == 0, result.output
        payload = client.create_application.call_args.args[0]
        assert payload["image"] == "nginx:latest"
        assert payload["env"] == {"A": "1"}
        assert "host_port" not in payload
        assert "id 12" in result.output

    def test_git_deploy(self, runner: CliRunner, client: MagicMock) -> None:
        client.create_application.return_value = {"id": 7}
        client.deploy_from_git.return_value = {"status": "started"}
        result = runner.invoke(
            cli,
            ["apps", "create", "My App", "--git-url", "https://g/x.git", "--branch", "main"],
        )
        assert result.exit_code == 0, result.output
        payload = client.create_application.call_args.args[0]
        assert payload["image"].startswith("my_app_")
        assert client.deploy_from_git.call_args.args[0] == 7

    def test_partial_failure(self, runner: CliRunner, client: MagicMock) -> None:
        """A failed second step reports the orphaned id and exits 1."""
        client.create_application.return_value = {"id": 7}
        client.deploy_from_git.side_effect = ApiResponseError("clone failed", 500)
        result = runner.invoke(cli, ["apps", "create", "web", "--git-url", "https://g/x.git"])
        assert result.exit_code == 1
        assert "Application 7 was created" in result.output
        client.delete_application.assert_not_called()

    def test_validation_error(self, runner: CliRunner, client: MagicMock) -> None:
        """Missing image is rejected before any request."""
        result = runner.invoke(cli, ["apps", "create", "web"])
        assert result.exit_code == 1
        assert "Docker image is required" in result.output
        client.create_application.assert_not_called()

    def test_env_file(self, runner: CliRunner, client: MagicMock, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("# app\nPORT=3000\n", encoding="utf-8")
        client.create_application.return_value = {"id": 1}
        result = runner.invoke(
            cli, ["apps", "create", "web", "-i", "node:20", "--env-file", str(env_file)]
        )
        assert result.exit_code == 0, result.output
        assert client.create_application.call_args.args[0]["env"] == {"PORT": "3000"}

    def test_env_file_not_utf8(
        self, runner: CliRunner, client: MagicMock, tmp_path: Path
    ) -> None:
        """An undecodable env file is reported as an error, not a traceback."""
        env_file = tmp_path / "bad.env"
        env_file.write_bytes(b"A=\xff\n")
        result = runner.invoke(
            cli, ["apps", "create", "web", "--image", "nginx", "--env-file", str(env_file)]
        )
        assert result.exit_code == 1
        assert "UTF-8" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)
        client.create_application.assert_not_called()

    def test_non_ascii_port(self, runner: CliRunner, client: MagicMock) -> None:
        result = runner.invoke(cli, ["apps", "create", "web", "-i", "nginx", "--host-port", "²"])
        assert result.exit_code == 1
        assert "host_port must be a number" in result.output
        client.create_application.assert_not_called()


class TestAppsCommands:
    """Tests for application management commands."""

    RECORD = {
        "id": 3,
        "name": "web",
        "image": "nginx",
        "status": "created",
        "env": '{"A": "1"}',
        "git_url": "https://g/x.git",
        "branch": "main",
        "port": 80,
    }

    def test_list(self, runner: CliRunner, client: MagicMock) -> None:
        client.list_applications.return_value = [self.RECORD]
        result = runner.invoke(cli, ["apps", "list"])
        assert result.exit_code == 0, result.output
        assert "web" in result.output
        assert "nginx" in result.output

    def test_list_empty(self, runner: CliRunner, client: MagicMock) -> None:
        client.list_applications.return_value = []
        result = runner.invoke(cli, ["apps", "list"])
        assert "No applications yet" in result.output

    def test_show(self, runner: CliRunner, client: MagicMock) -> None:
        client.get_application.return_value = self.RECORD
        result = runner.invoke(cli, ["apps", "show", "3"])
        assert result.exit_code == 0, result.output
        assert "A=1" in result.output

    def test_env(self, runner: CliRunner, client: MagicMock) -> None:
        """env prints .env text from a JSON-string env field."""
        client.get_application.return_value = self.RECORD
        result = runner.invoke(cli, ["apps", "env", "3"])
        assert result.exit_code == 0
        assert result.output == "A=1\n"

    def test_set_env_merges(self, runner: CliRunner, client: MagicMock) -> None:
        client.get_application.return_value = self.RECORD
        client.update_application_env.return_value = {"updated": True}
        result = runner.invoke(cli, ["apps", "set-env", "3", "-e", "B=2", "-u", "A"])
        assert result.exit_code == 0, result.output
        client.update_application_env.assert_called_once_with("3", {"B": "2"})

    def test_set_env_file_replaces(
        self, runner: CliRunner, client: MagicMock, tmp_path: Path
    ) -> None:
        env_file = tmp_path / "prod.env"
        env_file.write_text("X=1\n", encoding="utf-8")
        client.update_application_env.return_value = {}
        result = runner.invoke(cli, ["apps", "set-env", "3", "--env-file", str(env_file)])
        assert result.exit_code == 0, result.output
        client.get_application.assert_not_called()
        client.update_application_env.assert_called_once_with("3", {"X": "1"})

    def test_set_env_file_not_utf8(
        self, runner: CliRunner, client: MagicMock, tmp_path: Path
    ) -> None:
        env_file = tmp_path / "bad.env"
        env_file.write_bytes(b"A=\xff\n")
        result = runner.invoke(cli, ["apps", "set-env", "3", "--env-file", str(env_file)])
        assert result.exit_code == 1
        assert "UTF-8" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)
        client.update_application_env.assert_not_called()

    def test_logs_by_application(self, runner: CliRunner, client: MagicMock) -> None:
        """apps logs resolves the record's container and prints its logs."""
        client.get_application.return_value = {**self.RECORD, "container_id": "c0ffee"}
        client.container_logs.return_value = "listening on :80\n"
        result = runner.invoke(cli, ["apps", "logs", "3"])
        assert result.exit_code == 0, result.output
        client.container_logs.assert_called_once_with("c0ffee")
        assert result.output == "listening on :80\n"

    def test_logs_without_container(self, runner: CliRunner, client: MagicMock) -> None:
        client.get_application.return_value = self.RECORD
        result = runner.invoke(cli, ["apps", "logs", "3"])
        assert result.exit_code == 1
        assert "has no container yet" in result.output
        client.container_logs.assert_not_called()

    def test_update_keeps_fields(self, runner: CliRunner, client: MagicMock) -> None:
        """update resends stored fields with the given changes applied."""
        client.get_application.return_value = self.RECORD
        client.update_application.return_value = {"updated": True}
        result = runner.invoke(cli, ["apps", "update", "3", "--image", "nginx:1.27", "--port", ""])
        assert result.exit_code == 0, result.output
        app_id, payload = client.update_application.call_args.args
        assert app_id == "3"
        assert payload["image"] == "nginx:1.27"
        assert payload["name"] == "web"
        assert payload["env"] == {"A": "1"}
        assert "port" not in payload
        assert "status" not in payload

    def test_delete_requires_confirmation(self, runner: CliRunner, client: MagicMock) -> None:
        result = runner.invoke(cli, ["apps", "delete", "3"], input="n\n")
        assert "Cancelled" in result.output
        client.delete_application.assert_not_called()

    def test_delete_force(self, runner: CliRunner, client: MagicMock) -> None:
        client.delete_application.return_value = {"deleted": True}
        result = runner.invoke(cli, ["apps", "delete", "3", "--force"])
        assert result.exit_code == 0
        client.delete_application.assert_called_once_with("3")

    def test_deploy(self, runner: CliRunner, client: MagicMock) -> None:
        client.deploy_application.return_value = {"container_id": "abcdef0123456789"}
        result = runner.invoke(cli, ["apps", "deploy", "3"])
        assert result.exit_code == 0
        assert "abcdef012345" in result.output

    def test_deploy_git_uses_record(self, runner: CliRunner, client: MagicMock) -> None:
        client.get_application.return_value = self.RECORD
        client.deploy_from_git.return_value = {"image_tag": "app:1"}
        result = runner.invoke(cli, ["apps", "deploy-git", "3"])
        assert result.exit_code == 0, result.output
        app_id, payload = client.deploy_from_git.call_args.args
        assert app_id == "3"
        assert payload["git_url"] == "https://g/x.git"
        assert payload["branch"] == "main"

    def test_deploy_git_without_source(self, runner: CliRunner, client: MagicMock) -> None:
        client.get_application.return_value = {"id": 3, "name": "web", "image": "nginx"}
        result = runner.invoke(cli, ["apps", "deploy-git", "3"])
        assert result.exit_code == 1
        assert "Git URL is required" in result.output
        client.deploy_from_git.assert_not_called()


class TestDockerCommands:
    """Tests for Docker commands."""

    def test_containers(self, runner: CliRunner, client: MagicMock) -> None:
        client.list_containers.return_value = [
            {"id": "0123456789abcdef", "image": "nginx", "names": ["/web"], "status": "Up 1 hour"}
        ]
        result = runner.invoke(cli, ["docker", "containers"])
        assert result.exit_code == 0, result.output
        assert "running" in result.output
        assert "web" in result.output

    def test_containers_empty(self, runner: CliRunner, client: MagicMock) -> None:
        client.list_containers.return_value = {"containers": []}
        result = runner.invoke(cli, ["docker", "containers"])
        assert "No Docker containers found" in result.output

    def test_stop(self, runner: CliRunner, client: MagicMock) -> None:
        client.stop_container.return_value = {"stopped": True, "id": "abc"}
        result = runner.invoke(cli, ["docker", "stop", "abc"])
        assert result.exit_code == 0
        client.stop_container.assert_called_once_with("abc")

    def test_restart(self, runner: CliRunner, client: MagicMock) -> None:
        client.restart_container.return_value = {}
        result = runner.invoke(cli, ["docker", "restart", "abc"])
        assert result.exit_code == 0
        client.restart_container.assert_called_once_with("abc")

    def test_rm_force(self, runner: CliRunner, client: MagicMock) -> None:
        client.remove_container.return_value = {"removed": True}
        result = runner.invoke(cli, ["docker", "rm", "abc", "-f"])
        assert result.exit_code == 0
        client.remove_container.assert_called_once_with("abc")

    def test_logs(self, runner: CliRunner, client: MagicMock) -> None:
        client.container_logs.return_value = "hello\nworld\n"
        result = runner.invoke(cli, ["docker", "logs", "abc"])
        assert result.output == "hello\nworld\n"

    def test_logs_error(self, runner: CliRunner, client: MagicMock) -> None:
        client.container_logs.side_effect = TransportError("Failed to fetch logs: refused")
        result = runner.invoke(cli, ["docker", "logs", "abc"])
        assert result.exit_code == 1
        assert "Failed to fetch logs" in result.output

    def test_ports(self, runner: CliRunner, client: MagicMock) -> None:
        client.exposed_ports.return_value = ["80/tcp"]
        result = runner.invoke(cli, ["docker", "ports", "--image", "nginx"])
        assert result.exit_code == 0
        assert "80/tcp" in result.output
        client.exposed_ports.assert_called_once_with(container_id=None, image="nginx")

    def test_ports_needs_selector(self, runner: CliRunner, client: MagicMock) -> None:
        result = runner.invoke(cli, ["docker", "ports"])
        assert result.exit_code == 1
        client.exposed_ports.assert_not_called()

    def test_prune(self, runner: CliRunner, client: MagicMock) -> None:
        client.prune.return_value = {"containers": {}}
        result = runner.invoke(cli, ["docker", "prune", "--force"])
        assert result.exit_code == 0, result.output
        client.prune.assert_called_once()
        client.prune_all.assert_not_called()

    def test_prune_all(self, runner: CliRunner, client: MagicMock) -> None:
        client.prune_all.return_value = {"SpaceReclaimed": 0}
        result = runner.invoke(cli, ["docker", "prune", "--all"], input="y\n")
        assert result.exit_code == 0, result.output
        client.prune_all.assert_called_once()

    def test_inspect(self, runner: CliRunner, client: MagicMock) -> None:
        client.inspect_container.return_value = {"Id": "abc"}
        result = runner.invoke(cli, ["docker", "inspect", "abc"])
        assert result.exit_code == 0
        assert '"Id"' in result.output
