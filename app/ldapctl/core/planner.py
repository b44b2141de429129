"""Action planning.

Assembles package, directory, certificate, configuration-file and
subsystem actions into one dependency-ordered plan.

Ordering rules when present:
1. The client package precedes every directory and file.
2. A directory precedes every file or directory inside it.
3. A certificate file precedes its hash link.
4. The configuration file depends only on the package and its directory.
5. Subsystem invocations run after every file and package action.

When absent, rules 1 and 2 are reversed: files and links are removed
before their directories, and the package is removed last.
"""

import heapq
import logging
from dataclasses import replace
from pathlib import Path

from ldapctl.core.certs import plan_certificates
from ldapctl.core.errors import PlanningError, PlanningReason
from ldapctl.core.platform import PlatformPolicy
from ldapctl.core.render import render
from ldapctl.core.subsystems import compose
from ldapctl.models.action import (
    Action,
    ActionKind,
    DirectoryAction,
    FileAction,
    HashLinkAction,
    PackageAction,
    Plan,
)
from ldapctl.models.config import EnsureState, ResolvedConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_MODE = 0o644
DIRECTORY_MODE = 0o755


def _target_path(action: Action) -> Path | None:
    if isinstance(action, (DirectoryAction, FileAction)):
        return action.path
    if isinstance(action, HashLinkAction):
        return action.cert_path
    return None


def _derived_requirements(actions: list[Action], absent: bool) -> dict[str, set[str]]:
    """Compute the edges implied by the ordering rules."""
    edges: dict[str, set[str]] = {action.key: set() for action in actions}
    packages = [a for a in actions if a.kind == ActionKind.PACKAGE]
    directories = [a for a in actions if isinstance(a, DirectoryAction)]
    for action in actions:
        path = _target_path(action)
        if path is None:
            continue
        containing = [d for d in directories if d.path in path.parents]

        if absent:
            # Reverse of rules 1-2: the package and containing directories wait
            for package in packages:
                edges[package.key].add(action.key)
            for directory in containing:
                edges[directory.key].add(action.key)
        else:
            for package in packages:
                edges[action.key].add(package.key)
            for directory in containing:
                edges[action.key].add(directory.key)

    # Rule 3: a hash link follows the placement of its certificate
    for action in actions:
        if isinstance(action, HashLinkAction) and action.state == EnsureState.PRESENT:
            cert_key = f"{ActionKind.FILE.value}:{action.cert_path}"
            if cert_key in edges:
                edges[action.key].add(cert_key)

    # Rule 5: subsystems run after everything else
    others = [a.key for a in actions if a.kind != ActionKind.SUBSYSTEM]
    for action in actions:
        if action.kind == ActionKind.SUBSYSTEM:
            edges[action.key].update(others)

    return edges


def _drop_required_package_removals(actions: list[Action]) -> list[Action]:
    """Remove package removals for packages another action needs present."""
    required = {
        a.name for a in actions if isinstance(a, PackageAction) and a.state == EnsureState.PRESENT
    }
    kept: list[Action] = []
    for action in actions:
        if (
            isinstance(action, PackageAction)
            and action.state == EnsureState.ABSENT
            and action.name in required
        ):
            logger.info("Keeping package %s: required by another action", action.name)
            continue
        kept.append(action)
    return kept


def order_actions(actions: list[Action]) -> Plan:
    """Topologically order actions by their declared requirements.

    Among actions that are ready at the same time, the one listed first
    runs first, so the result is deterministic.

    Args:
        actions: Actions with their requires edges filled in.

    Returns:
        Ordered Plan.

    Raises:
        PlanningError: On duplicate keys, unknown requirements or cycles.
    """
    index: dict[str, int] = {}
    for position, action in enumerate(actions):
        if action.key in index:
            msg = f"Duplicate action {action.key}"
            raise PlanningError(PlanningReason.DUPLICATE_ACTION, msg)
        index[action.key] = position

    dependents: dict[str, list[str]] = {action.key: [] for action in actions}
    pending: dict[str, int] = {}
    for action in actions:
        unique = set(action.requires)
        for required in unique:
            if required not in index:
                msg = f"{action.key} requires unknown action {required}"
                raise PlanningError(PlanningReason.UNKNOWN_DEPENDENCY, msg)
            dependents[required].append(action.key)
        pending[action.key] = len(unique)

    ready = [index[key] for key, count in pending.items() if count == 0]
    heapq.heapify(ready)
    ordered: list[Action] = []

    while ready:
        action = actions[heapq.heappop(ready)]
        ordered.append(action)
        for dependent in dependents[action.key]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(ready, index[dependent])

    if len(ordered) != len(actions):
        stuck = sorted(key for key, count in pending.items() if count > 0)
        msg = f"Dependency cycle between: {', '.join(stuck)}"
        raise PlanningError(PlanningReason.CYCLE, msg)

    return Plan(actions=tuple(ordered))


def build_plan(
    config: ResolvedConfig,
    platform: PlatformPolicy,
    cert_actions: list[Action],
    rendered: str,
    subsystem_actions: list[Action],
) -> Plan:
    """Assemble every action of a run into an ordered plan.

    Args:
        config: Resolved configuration.
        platform: Target platform policy.
        cert_actions: Output of plan_certificates().
        rendered: Rendered client configuration content.
        subsystem_actions: Output of compose().

    Returns:
        Plan satisfying the ordering rules of this module.

    Raises:
        PlanningError: If the assembled actions cannot be ordered.
    """
    state = config.ensure
    absent = config.is_absent

    package = PackageAction(name=platform.package, state=state)
    directories: list[Action] = [
        DirectoryAction(
            path=platform.config_dir,
            state=state,
            mode=DIRECTORY_MODE,
            owner=platform.owner,
            group=platform.group,
        )
    ]
    if cert_actions and platform.cert_dir != platform.config_dir:
        directories.append(
            DirectoryAction(
                path=platform.cert_dir,
                state=state,
                mode=DIRECTORY_MODE,
                owner=platform.cert_owner,
                group=platform.cert_group,
            )
        )

    if absent:
        config_file = FileAction(path=platform.config_file, state=state)
        # Innermost directories first
        directories.sort(key=lambda d: len(Path(d.resource).parts), reverse=True)
        actions = [*cert_actions, config_file, *directories, package]
    else:
        config_file = FileAction(
            path=platform.config_file,
            content=rendered,
            mode=CONFIG_FILE_MODE,
            owner=platform.owner,
            group=platform.group,
        )
        actions = [package, *directories, *cert_actions, config_file]

    actions.extend(subsystem_actions)
    actions = _drop_required_package_removals(actions)

    derived = _derived_requirements(actions, absent)
    wired = [
        replace(action, requires=tuple(sorted(set(action.requires) | derived[action.key])))
        for action in actions
    ]

    plan = order_actions(wired)
    logger.debug("Planned %d action(s): %s", len(plan), ", ".join(plan.keys))
    return plan


def plan_convergence(
    config: ResolvedConfig,
    platform: PlatformPolicy,
    cert_source: Path,
) -> Plan:
    """Run certificate planning, rendering and composition, then build the plan.

    Args:
        config: Resolved configuration.
        platform: Target platform policy.
        cert_source: Directory the CA certificate is read from.

    Returns:
        Ordered Plan for the run.
    """
    cert_actions = plan_certificates(config, platform, cert_source)
    rendered = render(config, platform)
    subsystem_actions = compose(config, config.nss, config.pam, platform)
    return build_plan(config, platform, cert_actions, rendered, list(subsystem_actions))
