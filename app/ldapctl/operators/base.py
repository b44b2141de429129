"""Abstract base class for package operators.

This module defines the PackageOperator interface the executor uses to
query and change the state of a single package.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ldapctl.models.config import EnsureState
from ldapctl.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class PackageOperator(ABC):
    """Abstract base class for all package operators.

    Operators query whether a package is installed and install or remove
    it through a specific package manager.

    Example:
        >>> operator = AptOperator()
        >>> if operator.is_available() and not operator.is_installed("ldap-utils"):
        ...     operator.ensure("ldap-utils", EnsureState.PRESENT)
    """

    # Timeout for package manager operations (5 minutes)
    _TIMEOUT: float = 300.0

    def __init__(self, root: Path | None = None) -> None:
        """Initialize the operator.

        Args:
            root: Directory holding the target system. Packages are
                queried and changed there instead of on the running host.
        """
        self._root = root

    @property
    def root(self) -> Path | None:
        """Return the target system root, or None for the running host."""
        return self._root

    @property
    @abstractmethod
    def manager(self) -> str:
        """Return the package manager identifier (e.g., "apt")."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Check if a package is currently installed.

        Raises:
            RuntimeError: If the package database cannot be queried.
        """

    @abstractmethod
    def _install_args(self, package: str) -> list[str]:
        """Command line that installs package."""

    @abstractmethod
    def _remove_args(self, package: str) -> list[str]:
        """Command line that removes package."""

    def _command_env(self) -> dict[str, str] | None:
        """Extra environment for install and remove commands."""
        return None

    def is_satisfied(self, package: str, state: EnsureState) -> bool:
        """Check if the package already is in the desired state."""
        return self.is_installed(package) == (state == EnsureState.PRESENT)

    def ensure(self, package: str, state: EnsureState) -> None:
        """Install or remove a package.

        Args:
            package: Package name.
            state: PRESENT to install, ABSENT to remove.

        Raises:
            RuntimeError: If the package manager is unavailable or fails.
        """
        if not self.is_available():
            msg = f"{self.manager.upper()} package manager is not available on this system"
            raise RuntimeError(msg)

        if state == EnsureState.PRESENT:
            args = self._install_args(package)
        else:
            args = self._remove_args(package)

        logger.info("Executing %s for package %s (%s)", self.manager, package, state.value)
        result = run_command(args, timeout=self._TIMEOUT, env=self._command_env())
        self._check(result, package, state)

    def _check(self, result: CommandResult, package: str, state: EnsureState) -> None:
        if not result.success:
            error = result.stderr.strip() or f"{self.manager} command failed"
            msg = f"Could not ensure {package} {state.value}: {error}"
            raise RuntimeError(msg)
