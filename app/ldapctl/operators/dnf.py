"""DNF package operator implementation.

Queries package state with rpm and installs or removes packages using
dnf. With a root set, rpm uses --root and dnf --installroot.
"""

from ldapctl.operators.base import PackageOperator
from ldapctl.utils.shell import command_exists, run_command


class DnfOperator(PackageOperator):
    """Operator for RPM packages managed by dnf."""

    @property
    def manager(self) -> str:
        """Return dnf as the package manager."""
        return "dnf"

    def is_available(self) -> bool:
        """Check if dnf and rpm are available."""
        return command_exists("dnf") and command_exists("rpm")

    def is_installed(self, package: str) -> bool:
        """Check if rpm reports the package as installed."""
        args = ["rpm"] if self.root is None else ["rpm", "--root", str(self.root)]
        return run_command([*args, "-q", "--quiet", package]).success

    def _dnf(self, command: str, package: str) -> list[str]:
        args = ["dnf"] if self.root is None else ["dnf", f"--installroot={self.root}"]
        return [*args, command, "-y", "-q", package]

    def _install_args(self, package: str) -> list[str]:
        return self._dnf("install", package)

    def _remove_args(self, package: str) -> list[str]:
        return self._dnf("remove", package)
