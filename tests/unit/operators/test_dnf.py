"""Unit tests for DnfOperator."""

from pathlib import Path
from unittest.mock import patch

import pytest
from ldapctl.models.config import EnsureState
from ldapctl.operators.dnf import DnfOperator
from ldapctl.utils.shell import CommandResult


class TestDnfOperator:
    """Tests for DnfOperator class."""

    @pytest.fixture
    def operator(self) -> DnfOperator:
        """Create DnfOperator instance."""
        return DnfOperator()

    def test_is_installed_uses_rpm(self, operator: DnfOperator) -> None:
        with patch("ldapctl.operators.dnf.run_command") as mock_run:
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
            assert operator.is_installed("openldap-clients") is True

        assert mock_run.call_args[0][0] == ["rpm", "-q", "--quiet", "openldap-clients"]

    def test_not_installed(self, operator: DnfOperator) -> None:
        with patch("ldapctl.operators.dnf.run_command") as mock_run:
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=1)
            assert operator.is_installed("openldap-clients") is False

    def test_ensure_present(self, operator: DnfOperator) -> None:
        with (
            patch("ldapctl.operators.dnf.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("openldap-clients", EnsureState.PRESENT)

        assert mock_run.call_args[0][0] == ["dnf", "install", "-y", "-q", "openldap-clients"]

    def test_ensure_failure_without_stderr(self, operator: DnfOperator) -> None:
        with (
            patch("ldapctl.operators.dnf.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=1)

            with pytest.raises(RuntimeError, match="dnf command failed"):
                operator.ensure("openldap-clients", EnsureState.ABSENT)


class TestDnfOperatorWithRoot:
    """Tests for DnfOperator acting on a separate system root."""

    @pytest.fixture
    def operator(self, tmp_path: Path) -> DnfOperator:
        return DnfOperator(root=tmp_path)

    def test_rpm_queries_root(self, operator: DnfOperator, tmp_path: Path) -> None:
        with patch("ldapctl.operators.dnf.run_command") as mock_run:
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=1)
            assert operator.is_installed("openldap-clients") is False

        assert mock_run.call_args[0][0] == [
            "rpm",
            "--root",
            str(tmp_path),
            "-q",
            "--quiet",
            "openldap-clients",
        ]

    def test_dnf_installs_into_root(self, operator: DnfOperator, tmp_path: Path) -> None:
        with (
            patch("ldapctl.operators.dnf.command_exists", return_value=True),
            patch("ldapctl.operators.base.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            operator.ensure("openldap-clients", EnsureState.ABSENT)

        assert mock_run.call_args[0][0] == [
            "dnf",
            f"--installroot={tmp_path}",
            "remove",
            "-y",
            "-q",
            "openldap-clients",
        ]
