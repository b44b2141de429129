"""Unit tests for apply command.

Tests for the CLI apply command implementation.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from ldapctl.cli.main import app
from ldapctl.utils.shell import CommandResult
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def params_file(tmp_path: Path, cert_pem: bytes) -> Path:
    """Parameter file with TLS and nsswitch, next to its CA certificate."""
    workdir = tmp_path / "params"
    workdir.mkdir()
    (workdir / "ca.pem").write_bytes(cert_pem)
    path = workdir / "ldap.toml"
    path.write_text(
        'uri = "ldap://ldap1.example.com"\n'
        'base = "dc=example,dc=com"\n'
        "ssl = true\n"
        'ssl_cert = "ca.pem"\n'
        "nsswitch = true\n"
    )
    return path


def _args(params_file: Path, host_root: Path, current_owner: tuple[str, str], *extra: str):
    owner, group = current_owner
    return [
        "apply",
        str(params_file),
        "--platform",
        "debian",
        "--root",
        str(host_root),
        "--owner",
        owner,
        "--group",
        group,
        *extra,
    ]


class TestApplyCommandHelp:
    """Tests for apply command help."""

    def test_apply_help_shows_options(self) -> None:
        result = runner.invoke(app, ["apply", "--help"])
        assert result.exit_code == 0
        assert "--yes" in result.stdout
        assert "--dry-run" in result.stdout
        assert "--cert-source" in result.stdout


class TestApplyCommand:
    """Tests for running apply against a temporary root."""

    def test_apply_converges(self, params_file, host_root, current_owner, packages) -> None:
        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            result = runner.invoke(app, _args(params_file, host_root, current_owner, "--yes"))

        assert result.exit_code == 0, result.output
        assert (host_root / "etc/ldap/ldap.conf").exists()
        assert (host_root / "etc/ssl/certs/ca.pem").exists()
        assert (host_root / "var/lib/ldapctl/handoff/nsswitch.toml").exists()
        assert packages.installed == {"ldap-utils"}

    def test_second_apply_reports_converged(
        self, params_file, host_root, current_owner, packages
    ) -> None:
        args = _args(params_file, host_root, current_owner, "--yes")
        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            runner.invoke(app, args)
            result = runner.invoke(app, args)

        assert result.exit_code == 0
        assert "already converged" in result.stdout

    def test_dry_run_changes_nothing(
        self, params_file, host_root, current_owner, packages
    ) -> None:
        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            result = runner.invoke(app, _args(params_file, host_root, current_owner, "-n"))

        assert result.exit_code == 0
        assert "Dry-run mode" in result.stdout
        assert list(host_root.iterdir()) == []
        assert packages.calls == []

    def test_declined_confirmation(
        self, params_file, host_root, current_owner, packages
    ) -> None:
        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            result = runner.invoke(app, _args(params_file, host_root, current_owner), input="n\n")

        assert result.exit_code == 0
        assert "Aborted" in result.stdout
        assert list(host_root.iterdir()) == []

    def test_failed_run_exits_one(
        self, params_file, host_root, current_owner, packages, tmp_path
    ) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        args = _args(params_file, host_root, current_owner, "--yes", "--cert-source", str(empty))

        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert not (host_root / "etc/ldap/ldap.conf").exists()

    def test_invalid_parameters_exit_two(
        self, tmp_path, host_root, current_owner, packages
    ) -> None:
        params = tmp_path / "bad.toml"
        params.write_text('uri = "ldap://x"\nbase = "dc=x"\nssl = true\n')

        with patch("ldapctl.cli.commands.apply.get_package_operator", return_value=packages):
            result = runner.invoke(app, _args(params, host_root, current_owner, "--yes"))

        assert result.exit_code == 2
        assert packages.calls == []
        assert list(host_root.iterdir()) == []

    def test_missing_parameter_file(self, tmp_path, host_root, current_owner) -> None:
        result = runner.invoke(
            app, _args(tmp_path / "missing.toml", host_root, current_owner, "--yes")
        )
        assert result.exit_code == 2

    def test_packages_are_changed_under_root(
        self, params_file, host_root, current_owner
    ) -> None:
        """With --root, dpkg and apt-get are pointed at the root instead of the host."""
        missing = CommandResult(stdout="", stderr="no packages found", returncode=1)
        done = CommandResult(stdout="", stderr="", returncode=0)
        with (
            patch("ldapctl.operators.apt.command_exists", return_value=True),
            patch("ldapctl.operators.apt.run_command", return_value=missing) as query,
            patch("ldapctl.operators.base.run_command", return_value=done) as change,
        ):
            result = runner.invoke(app, _args(params_file, host_root, current_owner, "--yes"))

        assert result.exit_code == 0, result.output
        assert query.call_args[0][0][:2] == [
            "dpkg-query",
            f"--admindir={host_root / 'var/lib/dpkg'}",
        ]
        assert change.call_args[0][0] == [
            "apt-get",
            "-o",
            f"Dir={host_root}",
            "-o",
            f"DPkg::Options::=--root={host_root}",
            "install",
            "-y",
            "-q",
            "ldap-utils",
        ]
