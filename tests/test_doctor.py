"""Tests for the ``ownstak doctor`` command (cli/doctor.py).

Package lookups are mocked via ``importlib.metadata``; no network, no
dependence on what happens to be installed.

Coverage:
* Individual check functions return correct tuples.
* Doctor returns SUCCESS when everything required is present.
* Doctor returns GENERAL_ERROR when a required package is missing.
"""

from __future__ import annotations

from importlib import metadata
from unittest.mock import patch

from ownstak.cli import exit_codes
from ownstak.cli.doctor import (
    _credentials_check,
    _os_check,
    _package_check,
    _python_version_check,
    _status_plain,
    run_doctor,
)
from ownstak.infra.cli_config import CliConfig


def _version_without(*missing: str):
    def _version(distribution: str) -> str:
        if distribution in missing:
            raise metadata.PackageNotFoundError(distribution)
        return "1.0.0"

    return _version


# ---------------------------------------------------------------------------
# Individual check functions
# ---------------------------------------------------------------------------

class TestPythonVersionCheck:
    def test_returns_tuple(self) -> None:
        label, value, status = _python_version_check()
        assert label == "Python"
        assert isinstance(value, str)
        assert "OK" in status


class TestPackageCheck:
    @patch("ownstak.cli.doctor.metadata.version", side_effect=_version_without())
    def test_installed(self, _mock: object) -> None:
        assert _package_check("httpx", required=True) == ("httpx", "1.0.0", "[green]OK[/green]")

    @patch("ownstak.cli.doctor.metadata.version", side_effect=_version_without("httpx"))
    def test_required_missing_fails(self, _mock: object) -> None:
        label, value, status = _package_check("httpx", required=True)
        assert value == "NOT INSTALLED"
        assert "FAIL" in status

    @patch("ownstak.cli.doctor.metadata.version", side_effect=_version_without("rich"))
    def test_optional_missing_warns(self, _mock: object) -> None:
        _, _, status = _package_check("rich", required=False)
        assert "WARN" in status


class TestCredentialsCheck:
    def test_not_logged_in(self) -> None:
        label, value, status = _credentials_check()
        assert label == "API key"
        assert value == "not logged in"
        assert "WARN" in status

    def test_logged_in(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_existing")
        config.save()
        _, value, status = _credentials_check()
        assert value.startswith("stored for ")
        assert "OK" in status

    def test_unreadable_config(self) -> None:
        path = CliConfig().path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{broken")
        _, value, status = _credentials_check()
        assert value == "config unreadable"
        assert "FAIL" in status


class TestOsCheck:
    @patch("ownstak.cli.doctor.platform.system", return_value="Darwin")
    def test_macos_display_name(self, _mock: object) -> None:
        label, value, status = _os_check()
        assert label == "OS"
        assert value.startswith("macOS ")
        assert "OK" in status


def test_status_plain() -> None:
    assert _status_plain("[red]FAIL (>=3.10 required)[/red]") == "FAIL"
    assert _status_plain("[green]OK[/green]") == "OK"


# ---------------------------------------------------------------------------
# run_doctor
# ---------------------------------------------------------------------------

class TestRunDoctor:
    @patch("ownstak.cli.doctor.metadata.version", side_effect=_version_without("questionary"))
    def test_optional_missing_still_succeeds(self, _mock: object) -> None:
        assert run_doctor() == exit_codes.SUCCESS

    @patch("ownstak.cli.doctor.metadata.version", side_effect=_version_without("httpx"))
    def test_required_missing_fails(self, _mock: object) -> None:
        assert run_doctor() == exit_codes.GENERAL_ERROR
