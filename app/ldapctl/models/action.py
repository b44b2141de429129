"""Action models for convergence plans.

This module defines the tagged variant of idempotent actions a plan is
made of, the ordered plan itself, and the per-action outcomes of a run.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, ClassVar

from ldapctl.models.config import EnsureState
from ldapctl.utils.x509 import subject_hash


class ActionKind(Enum):
    """Variant tag of an action."""

    PACKAGE = "package"
    DIRECTORY = "directory"
    FILE = "file"
    HASH_LINK = "hashlink"
    SUBSYSTEM = "subsystem"


@dataclass(frozen=True, slots=True, kw_only=True)
class Action:
    """Base of all plan actions.

    Attributes:
        requires: Keys of the actions that must complete before this one.
    """

    kind: ClassVar[ActionKind]

    requires: tuple[str, ...] = ()

    @property
    def resource(self) -> str:
        """Package name, path or subsystem name this action targets."""
        raise NotImplementedError

    @property
    def key(self) -> str:
        """Unique identifier of this action within a plan."""
        return f"{self.kind.value}:{self.resource}"

    def describe(self) -> str:
        """Short human-readable description."""
        return f"{self.kind.value} {self.resource}"


@dataclass(frozen=True, slots=True, kw_only=True)
class PackageAction(Action):
    """Ensure a package is installed or removed."""

    kind: ClassVar[ActionKind] = ActionKind.PACKAGE

    name: str
    state: EnsureState = EnsureState.PRESENT

    def __post_init__(self) -> None:
        """Validate action data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

    @property
    def resource(self) -> str:
        return self.name

    def describe(self) -> str:
        return f"package {self.name} {self.state.value}"


@dataclass(frozen=True, slots=True, kw_only=True)
class DirectoryAction(Action):
    """Ensure a directory exists or is removed (never recursively)."""

    kind: ClassVar[ActionKind] = ActionKind.DIRECTORY

    path: Path
    state: EnsureState = EnsureState.PRESENT
    mode: int = 0o755
    owner: str | None = None
    group: str | None = None

    @property
    def resource(self) -> str:
        return str(self.path)

    def describe(self) -> str:
        return f"directory {self.path} {self.state.value}"


@dataclass(frozen=True, slots=True, kw_only=True)
class FileAction(Action):
    """Ensure a file holds given content, or is removed.

    Content comes either inline (``content``) or from a source file read
    at apply time (``source``).
    """

    kind: ClassVar[ActionKind] = ActionKind.FILE

    path: Path
    state: EnsureState = EnsureState.PRESENT
    content: str | None = None
    source: Path | None = None
    mode: int = 0o644
    owner: str | None = None
    group: str | None = None

    def __post_init__(self) -> None:
        """Validate that present files have exactly one content origin."""
        if self.state == EnsureState.PRESENT and (self.content is None) == (self.source is None):
            msg = f"File {self.path} needs exactly one of content or source"
            raise ValueError(msg)

    @property
    def resource(self) -> str:
        return str(self.path)

    def describe(self) -> str:
        return f"file {self.path} {self.state.value}"


@dataclass(frozen=True, slots=True, kw_only=True)
class HashLinkAction(Action):
    """Ensure a ``<hash>.0`` symlink points at a certificate.

    The link name depends on the installed certificate, so it is only
    computed at apply time through ``hash_fn``.
    """

    kind: ClassVar[ActionKind] = ActionKind.HASH_LINK

    cert_path: Path
    state: EnsureState = EnsureState.PRESENT
    hash_fn: Callable[[Path], str] = field(default=subject_hash, compare=False)

    @property
    def resource(self) -> str:
        return str(self.cert_path)

    def link_path(self) -> Path:
        """Compute the hash-derived link path from the installed certificate.

        Raises:
            OSError: If the certificate cannot be read.
            ValueError: If the certificate cannot be parsed.
        """
        return self.cert_path.parent / f"{self.hash_fn(self.cert_path)}.0"

    def describe(self) -> str:
        return f"hash link -> {self.cert_path.name} {self.state.value}"


@dataclass(frozen=True, slots=True, kw_only=True)
class SubsystemAction(Action):
    """Hand a parameter bundle to a named subsystem collaborator."""

    kind: ClassVar[ActionKind] = ActionKind.SUBSYSTEM

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the parameter bundle."""
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def resource(self) -> str:
        return self.name

    def describe(self) -> str:
        return f"invoke {self.name}"


@dataclass(frozen=True, slots=True)
class Plan:
    """Topologically ordered list of actions."""

    actions: tuple[Action, ...] = ()

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __getitem__(self, index: int) -> Action:
        return self.actions[index]

    @property
    def keys(self) -> list[str]:
        """Action keys in execution order."""
        return [action.key for action in self.actions]

    def index(self, key: str) -> int:
        """Position of the action with the given key.

        Raises:
            KeyError: If no action has this key.
        """
        for position, action in enumerate(self.actions):
            if action.key == key:
                return position
        raise KeyError(key)

    def of_kind(self, kind: ActionKind) -> list[Action]:
        """Actions of one variant, in plan order."""
        return [action for action in self.actions if action.kind == kind]


class ActionStatus(Enum):
    """Outcome of a single action in a run."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    NOT_RUN = "not_run"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of evaluating and possibly performing one action.

    Attributes:
        action: The action that was evaluated.
        status: What happened to it.
        message: Optional information, e.g. "would apply" in dry-run.
        error: Error message if the action failed.
    """

    action: Action
    status: ActionStatus
    message: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return self.status == ActionStatus.FAILED


@dataclass(frozen=True, slots=True)
class RunResult:
    """Structured result of applying a plan.

    Attributes:
        outcomes: One outcome per plan action, in plan order.
        cancelled: Whether the run stopped on external cancellation.
        error: The execution error that aborted the run, if any.
        dry_run: Whether the host was left untouched.
    """

    outcomes: tuple[ActionOutcome, ...]
    cancelled: bool = False
    error: Exception | None = None
    dry_run: bool = False

    def _count(self, status: ActionStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def applied_count(self) -> int:
        """Number of actions that changed the host."""
        return self._count(ActionStatus.APPLIED)

    @property
    def skipped_count(self) -> int:
        """Number of actions whose postcondition already held."""
        return self._count(ActionStatus.SKIPPED)

    @property
    def completed_count(self) -> int:
        """Number of actions that finished, applied or skipped."""
        return self.applied_count + self.skipped_count

    @property
    def success(self) -> bool:
        """Check if every action completed."""
        return self.error is None and not self.cancelled

    @property
    def failed_outcome(self) -> ActionOutcome | None:
        """The failed action's outcome, if any."""
        for outcome in self.outcomes:
            if outcome.failed:
                return outcome
        return None
