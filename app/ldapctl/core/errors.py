"""Error taxonomy for convergence runs.

Validation and planning errors are raised before anything touches the
host. Execution errors are recorded per action on the run result.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ldapctl.models.action import Action


class ValidationReason(str, Enum):
    """Reason a parameter set was rejected by the resolver."""

    MISSING_CERT = "missing_cert"
    INVALID_SCOPE = "invalid_scope"
    INVALID_PORT = "invalid_port"
    INVALID_ENSURE = "invalid_ensure"
    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"
    UNSUPPORTED_PLATFORM = "unsupported_platform"


class PlanningReason(str, Enum):
    """Reason a plan could not be built or accepted for execution."""

    CYCLE = "cycle"
    UNKNOWN_DEPENDENCY = "unknown_dependency"
    DUPLICATE_ACTION = "duplicate_action"
    UNKNOWN_SUBSYSTEM = "unknown_subsystem"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single rejected parameter.

    Attributes:
        reason: Classified reason for the rejection.
        field: Parameter name, or None for cross-field checks.
        message: Human-readable description.
    """

    reason: ValidationReason
    field: str | None
    message: str


class LdapctlError(Exception):
    """Base exception for all ldapctl errors."""


class ValidationError(LdapctlError):
    """Raised when input parameters are invalid.

    Attributes:
        issues: Every rejected parameter, in the order they were found.
    """

    def __init__(self, issues: list[ValidationIssue]) -> None:
        if not issues:
            msg = "ValidationError requires at least one issue"
            raise ValueError(msg)
        self.issues = list(issues)
        super().__init__("; ".join(self._format(issue) for issue in self.issues))

    @property
    def reason(self) -> ValidationReason:
        """Reason of the first issue."""
        return self.issues[0].reason

    @property
    def reasons(self) -> set[ValidationReason]:
        """All distinct reasons."""
        return {issue.reason for issue in self.issues}

    @staticmethod
    def _format(issue: ValidationIssue) -> str:
        if issue.field:
            return f"{issue.field}: {issue.message}"
        return issue.message

    @classmethod
    def single(
        cls, reason: ValidationReason, message: str, field: str | None = None
    ) -> ValidationError:
        """Build an error carrying one issue."""
        return cls([ValidationIssue(reason=reason, field=field, message=message)])


class PlanningError(LdapctlError):
    """Raised when a plan is internally inconsistent.

    Attributes:
        reason: Classified reason.
    """

    def __init__(self, reason: PlanningReason, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class ExecutionError(LdapctlError):
    """A single action failed while applying a plan.

    Attributes:
        action: The action that failed.
        resource: Package name, path or subsystem name the action targets.
        cause: Underlying error message.
    """

    def __init__(self, action: Action, cause: str) -> None:
        self.action = action
        self.resource = action.resource
        self.cause = cause
        super().__init__(f"{action.key} failed on {self.resource}: {cause}")
