"""Tests for the command handlers in cli/app.py.

``_open_client`` is patched to return a ``MagicMock`` Console client, so
the handlers run end to end without authentication or network access.
"""

from __future__ import annotations

import io
import json
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from ownstak.cli import exit_codes
from ownstak.cli.app import main
from ownstak.core.models import (
    Deployment,
    DeploymentRequest,
    Environment,
    Organization,
    Permissions,
    Project,
    ResourceReference,
)
from ownstak.exceptions import OwnstakError, ResourceForbiddenError, ResourceNotFoundError
from ownstak.infra.cli_config import CliConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ref(slug: str, **can: bool) -> ResourceReference:
    permissions = {"read": True}
    permissions.update(can)
    return ResourceReference(id=f"id-{slug}", slug=slug, can=Permissions(**permissions))


def _make_client(env_can_update: bool = True) -> MagicMock:
    client = MagicMock()
    client.__enter__.return_value = client
    client.lookup_organization.return_value = _ref("acme")
    client.lookup_project.return_value = _ref("web")
    client.lookup_environment.return_value = _ref("prod", update=env_can_update)
    client.lookup_environment_cloud_backend.return_value = _ref("aws-1")
    client.lookup_organization_cloud_backend.return_value = _ref("shared")
    client.get_organizations.return_value = [Organization(id="id-acme", name="Acme", slug="acme")]
    client.get_projects.return_value = [
        Project(id="id-web", name="Web", slug="web", organization_id="id-acme"),
    ]
    client.get_environments.return_value = [
        Environment(id="id-prod", name="Production", slug="prod", project_id="id-web"),
    ]
    deployment = Deployment(id="dep-1", environment_id="id-prod", build_number="7", status="pending")
    client.create_deployment.return_value = deployment
    client.deploy_deployment.return_value = deployment
    return client


@pytest.fixture()
def client() -> Iterator[MagicMock]:
    mock = _make_client()
    with patch("ownstak.cli.app._open_client", return_value=mock):
        yield mock


# ---------------------------------------------------------------------------
# Listing commands
# ---------------------------------------------------------------------------

class TestListing:
    def test_organizations(self, client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["organizations"]) == exit_codes.SUCCESS
        assert "acme" in capsys.readouterr().out

    def test_projects_resolves_organization_first(self, client: MagicMock) -> None:
        assert main(["projects", "--organization", "acme"]) == exit_codes.SUCCESS
        client.lookup_organization.assert_called_once_with("acme")
        client.get_projects.assert_called_once_with("id-acme")

    def test_environments(self, client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["environments", "--organization", "acme", "--project", "web"])
        assert code == exit_codes.SUCCESS
        client.get_environments.assert_called_once_with("id-web")
        assert "prod" in capsys.readouterr().out
        client.lookup_organization.assert_called_once_with("acme")

    def test_missing_slug_without_terminal(
        self, client: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO())
        with pytest.raises(OwnstakError, match="--organization"):
            main(["projects"])


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------

class TestResolve:
    def test_json_output(self, client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        code = main([
            "resolve", "--organization", "acme", "--project", "web",
            "--environment", "prod", "--json",
        ])
        assert code == exit_codes.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["environment"]["id"] == "id-prod"
        assert data["project"]["can"]["read"] is True

    def test_organization_cloud_backend(
        self, client: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = main(["resolve", "--organization", "acme", "--cloud-backend", "shared", "--json"])
        assert code == exit_codes.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert set(data) == {"organization", "cloud_backend"}

    def test_invalid_combination(self, client: MagicMock) -> None:
        with pytest.raises(OwnstakError, match="requires a project"):
            main(["resolve", "--organization", "acme", "--environment", "prod"])

    def test_requires_organization(self, client: MagicMock) -> None:
        with pytest.raises(OwnstakError, match="--organization"):
            main(["resolve"])

    def test_not_found_propagates(self, client: MagicMock) -> None:
        client.lookup_project.return_value = None
        with pytest.raises(ResourceNotFoundError):
            main(["resolve", "--organization", "acme", "--project", "nope"])


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------

class TestDeploy:
    ARGS = ["deploy", "--organization", "acme", "--project", "web", "--environment", "prod"]

    def test_creates_and_triggers(self, client: MagicMock) -> None:
        assert main([*self.ARGS, "--memory", "2048"]) == exit_codes.SUCCESS
        env_id, request = client.create_deployment.call_args.args
        assert env_id == "id-prod"
        assert isinstance(request, DeploymentRequest)
        assert request.memory == 2048
        assert request.timeout == 20
        client.deploy_deployment.assert_called_once_with("dep-1")

    def test_each_level_looked_up_once(self, client: MagicMock) -> None:
        main(self.ARGS)
        client.lookup_organization.assert_called_once_with("acme")
        client.lookup_project.assert_called_once_with(_ref("acme"), "web")
        client.lookup_environment.assert_called_once_with(_ref("web"), "prod")

    def test_requires_update_permission(self) -> None:
        client = _make_client(env_can_update=False)
        with patch("ownstak.cli.app._open_client", return_value=client):
            with pytest.raises(ResourceForbiddenError) as exc_info:
                main(self.ARGS)
        assert exc_info.value.action == "update"
        client.create_deployment.assert_not_called()

    def test_rejects_invalid_memory_before_any_request(self, client: MagicMock) -> None:
        with pytest.raises(OwnstakError, match="memory"):
            main([*self.ARGS, "--memory", "0"])
        client.lookup_organization.assert_not_called()


# ---------------------------------------------------------------------------
# login / logout / config
# ---------------------------------------------------------------------------

class TestAccountCommands:
    def test_login_routes_arguments(self) -> None:
        with patch("ownstak.cli.login.run_login") as run_login:
            assert main(["login", "--api-key", "osk_given"]) == exit_codes.SUCCESS
        run_login.assert_called_once_with(None, "osk_given")

    def test_logout(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_existing")
        config.save()
        assert main(["logout"]) == exit_codes.SUCCESS
        assert CliConfig().get_api_key() is None

    def test_config_print_masks_keys(self, capsys: pytest.CaptureFixture[str]) -> None:
        config = CliConfig()
        config.set_api_key("osk_1234567890abcd")
        config.save()
        assert main(["config", "print"]) == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert "osk******abcd" in out
        assert "osk_1234567890abcd" not in out

    def test_config_without_action(self) -> None:
        assert main(["config"]) == exit_codes.GENERAL_ERROR
