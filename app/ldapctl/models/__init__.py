"""Data models for ldapctl.

This module exports the core data structures used throughout the application.
"""

from ldapctl.models.action import (
    Action,
    ActionKind,
    ActionOutcome,
    ActionStatus,
    DirectoryAction,
    FileAction,
    HashLinkAction,
    PackageAction,
    Plan,
    RunResult,
    SubsystemAction,
)
from ldapctl.models.config import (
    EnsureState,
    NssConfig,
    PamConfig,
    ReconnectPolicy,
    ResolvedConfig,
)
from ldapctl.models.params import ClientParams

__all__ = [
    "Action",
    "ActionKind",
    "ActionOutcome",
    "ActionStatus",
    "ClientParams",
    "DirectoryAction",
    "EnsureState",
    "FileAction",
    "HashLinkAction",
    "NssConfig",
    "PackageAction",
    "PamConfig",
    "Plan",
    "ReconnectPolicy",
    "ResolvedConfig",
    "RunResult",
    "SubsystemAction",
]
