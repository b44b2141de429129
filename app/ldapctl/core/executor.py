"""Plan execution.

Applies an ordered plan against the live host. Each action's
postcondition is checked first: satisfied actions are skipped, the
others are performed. The first failure aborts the rest of the plan;
actions already applied are kept, so re-running is the recovery path.

Execution is sequential. Cancellation is honoured between actions,
never in the middle of one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ldapctl.core.errors import ExecutionError, PlanningError, PlanningReason
from ldapctl.core.planner import plan_convergence
from ldapctl.core.resolver import resolve
from ldapctl.models.action import (
    Action,
    ActionOutcome,
    ActionStatus,
    PackageAction,
    Plan,
    RunResult,
    SubsystemAction,
)
from ldapctl.operators.apt import AptOperator
from ldapctl.operators.dnf import DnfOperator
from ldapctl.operators.files import FileOperator

if TYPE_CHECKING:
    from ldapctl.core.platform import PlatformPolicy
    from ldapctl.operators.base import PackageOperator
    from ldapctl.subsystems.base import Subsystem, SubsystemRegistry

logger = logging.getLogger(__name__)

# Errors an action may raise that are reported as execution failures
_ACTION_ERRORS = (OSError, RuntimeError, ValueError)


def get_package_operator(platform: PlatformPolicy, root: Path | None = None) -> PackageOperator:
    """Get the package operator for a platform's package manager.

    Args:
        platform: Target platform policy.
        root: Optional directory holding the target system; packages
            are then queried and changed under it.
    """
    if platform.package_manager == "dnf":
        return DnfOperator(root)
    return AptOperator(root)


class Executor:
    """Applies plans using filesystem, package and subsystem collaborators.

    Attributes:
        dry_run: If True, only evaluate postconditions and report what
            would be applied.
    """

    def __init__(
        self,
        packages: PackageOperator,
        subsystems: SubsystemRegistry,
        files: FileOperator | None = None,
        dry_run: bool = False,
    ) -> None:
        self._packages = packages
        self._subsystems = subsystems
        self._files = files if files is not None else FileOperator()
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if executor is in dry-run mode."""
        return self._dry_run

    def check_plan(self, plan: Plan) -> None:
        """Reject plans that name subsystems nobody can apply.

        Raises:
            PlanningError: If a subsystem action has no registered collaborator.
        """
        for action in plan:
            if isinstance(action, SubsystemAction) and action.name not in self._subsystems:
                msg = f"No collaborator registered for subsystem '{action.name}'"
                raise PlanningError(PlanningReason.UNKNOWN_SUBSYSTEM, msg)

    def is_satisfied(self, action: Action) -> bool:
        """Evaluate an action's postcondition against the host."""
        if isinstance(action, PackageAction):
            return self._packages.is_satisfied(action.name, action.state)
        if isinstance(action, SubsystemAction):
            return self._subsystem(action).is_satisfied(action.params)
        return self._files.is_satisfied(action)

    def perform(self, action: Action) -> None:
        """Perform an action unconditionally."""
        if isinstance(action, PackageAction):
            self._packages.ensure(action.name, action.state)
        elif isinstance(action, SubsystemAction):
            self._subsystem(action).apply(action.params)
        else:
            self._files.apply(action)

    def _subsystem(self, action: SubsystemAction) -> Subsystem:
        subsystem = self._subsystems.get(action.name)
        if subsystem is None:
            msg = f"No collaborator registered for subsystem '{action.name}'"
            raise PlanningError(PlanningReason.UNKNOWN_SUBSYSTEM, msg)
        return subsystem

    def _run_one(self, action: Action) -> ActionOutcome:
        try:
            satisfied = self.is_satisfied(action)
        except _ACTION_ERRORS as e:
            if self._dry_run:
                # Predecessors were not applied, so the check may not be possible yet
                return ActionOutcome(
                    action=action,
                    status=ActionStatus.APPLIED,
                    message=f"would apply (not checkable yet: {e})",
                )
            raise

        if satisfied:
            logger.debug("Skipping %s: already satisfied", action.key)
            return ActionOutcome(action=action, status=ActionStatus.SKIPPED)

        if self._dry_run:
            logger.info("Dry-run: would apply %s", action.key)
            return ActionOutcome(action=action, status=ActionStatus.APPLIED, message="would apply")

        self.perform(action)
        logger.info("Applied %s", action.key)
        return ActionOutcome(action=action, status=ActionStatus.APPLIED)

    def apply(self, plan: Plan, cancel: threading.Event | None = None) -> RunResult:
        """Apply a plan in order.

        Args:
            plan: Ordered plan from the planner.
            cancel: Optional event; when set, the run stops before the
                next action.

        Returns:
            RunResult with one outcome per action. On failure the result
            carries the ExecutionError and every later action is NOT_RUN.

        Raises:
            PlanningError: If the plan references an unknown subsystem.
                Nothing is applied in that case.
        """
        self.check_plan(plan)

        outcomes: list[ActionOutcome] = []
        error: ExecutionError | None = None
        cancelled = False

        for position, action in enumerate(plan):
            if cancel is not None and cancel.is_set():
                cancelled = True
                logger.warning(
                    "Run cancelled after %d of %d action(s)", position, len(plan)
                )
                outcomes.extend(
                    ActionOutcome(action=rest, status=ActionStatus.NOT_RUN)
                    for rest in plan.actions[position:]
                )
                break

            try:
                outcomes.append(self._run_one(action))
            except _ACTION_ERRORS as e:
                error = ExecutionError(action, str(e))
                logger.error("%s", error)
                outcomes.append(
                    ActionOutcome(action=action, status=ActionStatus.FAILED, error=str(e))
                )
                outcomes.extend(
                    ActionOutcome(action=rest, status=ActionStatus.NOT_RUN)
                    for rest in plan.actions[position + 1 :]
                )
                break

        return RunResult(
            outcomes=tuple(outcomes),
            cancelled=cancelled,
            error=error,
            dry_run=self._dry_run,
        )


def converge(
    raw: Mapping[str, Any],
    platform: PlatformPolicy,
    executor: Executor,
    cert_source: Path,
    cancel: threading.Event | None = None,
) -> RunResult:
    """Run one resolve, plan and apply cycle.

    Args:
        raw: Flat parameter mapping.
        platform: Target platform policy.
        executor: Executor bound to the host's collaborators.
        cert_source: Directory the CA certificate is read from.
        cancel: Optional cancellation event.

    Returns:
        RunResult of the apply step.

    Raises:
        ValidationError: If the parameters are invalid. Nothing is planned.
        PlanningError: If the plan cannot be built or executed.
    """
    config = resolve(raw)
    plan = plan_convergence(config, platform, cert_source)
    return executor.apply(plan, cancel=cancel)
