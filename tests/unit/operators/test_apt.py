"""Unit tests for AptOperator.

Tests for the APT package operator implementation.
"""

from unittest.mock import patch

import pytest
from ldapctl.models.config import EnsureState
from ldapctl.operators.apt import AptOperator
from ldapctl.utils.shell import CommandResult


class TestAptOperator:
    """Tests for AptOperator class."""

    @pytest.fixture
    def operator(self) -> AptOperator:
        """Create AptOperator instance."""
        return AptOperator()

    def test_manager_is_apt(self, operator: AptOperator) -> None:
        assert operator.manager == "apt"

    def test_is_available_when_apt_exists(self, operator: AptOperator) -> None:
        """is_available returns True when apt-get and dpkg-query exist."""
        with patch("ldapctl.operators.apt.command_exists", return_value=True):
            assert operator.is_available() is True

    def test_is_available_when_apt_missing(self, operator: AptOperator) -> None:
        with patch("ldapctl.operators.apt.command_exists", return_value=False):
            assert operator.is_available() is False

    def test_is_installed(self, operator: AptOperator) -> None:
        with patch("ldapctl.operators.apt.run_command") as mock_run:
            mock_run.return_value = CommandResult(
                stdout="install ok installed", stderr="", returncode=0
            )
            assert operator.is_installed("ldap-utils") is True

        args = mock_run.call_args[0][0]
        assert args[0] == "dpkg-query"
        assert args[-1] == "ldap-utils"

    def test_removed_but_configured_is_not_installed(self, operator: AptOperator) -> None:
        """A package with only leftover configuration counts as absent."""
        with patch("ldapctl.operators.apt.run_command") as mock_run:
            mock_run.return_value = CommandResult(
                stdout="deinstall ok config-files", stderr="", returncode=0
            )
            assert operator.is_installed("ldap-utils") is False

    def test_unknown_package_is_not_installed(self, operator: AptOperator) -> None:
        with patch("ldapctl.operators.apt.run_command") as mock_run:
            mock_run.return_value = CommandResult(
                stdout="", stderr="dpkg-query: no packages found", returncode=1
            )
            assert operator.is_installed("nothing") is False

    def test_is_satisfied(self, operator: AptOperator) -> None:
        with patch.object(operator, "is_installed", return_value=True):
            assert operator.is_satisfied("ldap-utils", EnsureState.PRESENT) is True
            assert operator.is_satisfied("ldap-utils", EnsureState.ABSENT) is False

    def test_ensure_present(self, operator: AptOperator) -> None:
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("ldap-utils", EnsureState.PRESENT)

        mock_run.assert_called_once()
        assert mock_run.call_args[0][0] == ["apt-get", "install", "-y", "-q", "ldap-utils"]

    def test_ensure_absent(self, operator: AptOperator) -> None:
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("ldap-utils", EnsureState.ABSENT)

        assert mock_run.call_args[0][0] == ["apt-get", "remove", "-y", "-q", "ldap-utils"]

    def test_ensure_failure(self, operator: AptOperator) -> None:
        """Failing apt-get raises RuntimeError carrying its stderr."""
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="", stderr="E: Unable to locate package ldap-utils", returncode=100
            )

            with pytest.raises(RuntimeError, match="Unable to locate package"):
                operator.ensure("ldap-utils", EnsureState.PRESENT)

    def test_ensure_unavailable(self, operator: AptOperator) -> None:
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=False),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            with pytest.raises(RuntimeError, match="not available"):
                operator.ensure("ldap-utils", EnsureState.PRESENT)

        mock_run.assert_not_called()

    def test_ensure_is_non_interactive(self, operator: AptOperator) -> None:
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("ldap-utils", EnsureState.PRESENT)

        assert mock_run.call_args.kwargs["env"] == {"DEBIAN_FRONTEND": "noninteractive"}

    def test_root_targets_dpkg_database_under_root(self, tmp_path) -> None:
        operator = AptOperator(root=tmp_path)
        with patch("ldapctl.operators.apt.run_command") as mock_run:
            mock_run.return_value = CommandResult(
                stdout="install ok installed", stderr="", returncode=0
            )
            assert operator.is_installed("ldap-utils") is True

        assert mock_run.call_args[0][0][:2] == [
            "dpkg-query",
            f"--admindir={tmp_path / 'var/lib/dpkg'}",
        ]

    def test_root_targets_apt_get_and_dpkg(self, tmp_path) -> None:
        operator = AptOperator(root=tmp_path)
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("ldap-utils", EnsureState.PRESENT)

        args = mock_run.call_args[0][0]
        assert args[:5] == [
            "apt-get",
            "-o",
            f"Dir={tmp_path}",
            "-o",
            f"DPkg::Options::=--root={tmp_path}",
        ]
        assert args[5:] == ["install", "-y", "-q", "ldap-utils"]
