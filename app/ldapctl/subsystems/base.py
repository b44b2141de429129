"""Abstract base class for subsystem collaborators.

A subsystem collaborator (nsswitch, PAM, SSSD) receives a parameter
bundle and applies it however it sees fit. The executor only needs to
know whether the bundle is already in effect and how to hand it over.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import Any

logger = logging.getLogger(__name__)


class Subsystem(ABC):
    """Abstract base class for all subsystem collaborators."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the subsystem name used in plans (e.g., "pam")."""

    @abstractmethod
    def is_satisfied(self, params: Mapping[str, Any]) -> bool:
        """Check if params are already in effect.

        Raises:
            OSError: If the current state cannot be read.
        """

    @abstractmethod
    def apply(self, params: Mapping[str, Any]) -> None:
        """Apply params.

        Raises:
            OSError: If the parameters cannot be handed over.
            RuntimeError: If the subsystem rejects them.
        """


class SubsystemRegistry:
    """Name-indexed set of subsystem collaborators."""

    def __init__(self, subsystems: list[Subsystem] | None = None) -> None:
        self._subsystems: dict[str, Subsystem] = {}
        for subsystem in subsystems or []:
            self.register(subsystem)

    def register(self, subsystem: Subsystem) -> None:
        """Add or replace a collaborator under its name."""
        if subsystem.name in self._subsystems:
            logger.debug("Replacing subsystem collaborator %s", subsystem.name)
        self._subsystems[subsystem.name] = subsystem

    def get(self, name: str) -> Subsystem | None:
        """Return the collaborator registered under name, if any."""
        return self._subsystems.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._subsystems

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._subsystems))
