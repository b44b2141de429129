"""Subsystem collaborators (nsswitch, PAM, SSSD)."""

from ldapctl.subsystems.base import Subsystem, SubsystemRegistry
from ldapctl.subsystems.handoff import HandoffSubsystem, default_registry

__all__ = ["HandoffSubsystem", "Subsystem", "SubsystemRegistry", "default_registry"]
