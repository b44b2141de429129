"""APT package operator implementation.

Queries package state with dpkg-query and installs or removes packages
using apt-get. With a root set, both act on the dpkg database and
filesystem under that root.
"""

import logging

from ldapctl.operators.base import PackageOperator
from ldapctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class AptOperator(PackageOperator):
    """Operator for APT/dpkg packages.

    Uses apt-get non-interactively. Requires root privileges for
    actual execution.
    """

    # dpkg-query status of a fully installed package
    _INSTALLED_STATUS = "install ok installed"

    @property
    def manager(self) -> str:
        """Return apt as the package manager."""
        return "apt"

    def is_available(self) -> bool:
        """Check if apt-get and dpkg-query are available."""
        return command_exists("apt-get") and command_exists("dpkg-query")

    def is_installed(self, package: str) -> bool:
        """Check if a package is installed according to dpkg.

        A package dpkg does not know about is reported as not installed.
        """
        args = ["dpkg-query"]
        if self.root is not None:
            args.append(f"--admindir={self.root / 'var/lib/dpkg'}")
        result = run_command([*args, "-W", "-f", "${Status}", package])
        if not result.success:
            logger.debug("dpkg-query knows no package %s", package)
            return False
        return result.stdout.strip() == self._INSTALLED_STATUS

    def _command_env(self) -> dict[str, str]:
        """Keep debconf from prompting during install and remove."""
        return {"DEBIAN_FRONTEND": "noninteractive"}

    def _apt_get(self, command: str, package: str) -> list[str]:
        args = ["apt-get"]
        if self.root is not None:
            args += ["-o", f"Dir={self.root}", "-o", f"DPkg::Options::=--root={self.root}"]
        return [*args, command, "-y", "-q", package]

    def _install_args(self, package: str) -> list[str]:
        return self._apt_get("install", package)

    def _remove_args(self, package: str) -> list[str]:
        return self._apt_get("remove", package)
