"""Apply command implementation.

Converges the host to a parameter file: resolves it, builds the plan
and applies it, reporting every action as applied, skipped or failed.
"""

import os
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from ldapctl.cli.commands.plan import create_plan_table
from ldapctl.cli.types import EXIT_INVALID, PlatformChoice, load_config, load_platform
from ldapctl.core.errors import PlanningError
from ldapctl.core.executor import Executor, get_package_operator
from ldapctl.core.planner import plan_convergence
from ldapctl.core.platform import HANDOFF_DIR
from ldapctl.models.action import ActionStatus, RunResult
from ldapctl.subsystems.handoff import default_registry
from ldapctl.utils.formatting import (
    console,
    create_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

_STATUS_TEXT: dict[ActionStatus, str] = {
    ActionStatus.APPLIED: "[changed]changed[/changed]",
    ActionStatus.SKIPPED: "[success]ok[/success]",
    ActionStatus.FAILED: "[error]FAIL[/error]",
    ActionStatus.NOT_RUN: "[muted]not run[/muted]",
}


def create_results_table(result: RunResult) -> Table:
    """Create a Rich table displaying per-action outcomes.

    Args:
        result: Run result to display.

    Returns:
        Rich Table configured for results display.
    """
    title = "Results (Dry Run)" if result.dry_run else "Results"
    table = create_table(title, "Status", "Action", "Resource", "Message")

    for outcome in result.outcomes:
        message = outcome.error or outcome.message or ""
        table.add_row(
            _STATUS_TEXT[outcome.status],
            outcome.action.kind.value,
            outcome.action.resource,
            f"[muted]{escape(message)}[/muted]",
        )

    return table


def _print_results_summary(result: RunResult) -> None:
    """Print a summary of the run."""
    if result.error is not None:
        failed = result.failed_outcome
        resource = failed.action.resource if failed is not None else "?"
        print_error(f"Failed on {resource}: {result.error}")
        console.print(
            f"[changed]{result.applied_count} changed[/changed], "
            f"[success]{result.skipped_count} ok[/success] before the failure. "
            "Re-run to finish converging."
        )
    elif result.cancelled:
        print_warning(f"Cancelled after {result.completed_count} action(s).")
    elif result.applied_count == 0:
        print_success(f"Host already converged: {result.skipped_count} action(s) ok.")
    else:
        verb = "would change" if result.dry_run else "changed"
        print_success(
            f"{result.applied_count} action(s) {verb}, {result.skipped_count} already ok."
        )


def apply_params(
    params: Annotated[Path, typer.Argument(help="Parameter file (TOML).")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt and proceed."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would be done without making changes."),
    ] = False,
    platform_choice: Annotated[
        PlatformChoice,
        typer.Option("--platform", "-p", help="Target platform.", case_sensitive=False),
    ] = PlatformChoice.AUTO,
    root: Annotated[
        Path | None,
        typer.Option("--root", help="Directory standing in for the filesystem root."),
    ] = None,
    cert_source: Annotated[
        Path | None,
        typer.Option(
            "--cert-source",
            help="Directory holding ssl_cert. Defaults to the parameter file's directory.",
        ),
    ] = None,
    handoff_dir: Annotated[
        Path | None,
        typer.Option("--handoff-dir", help="Directory for subsystem parameter bundles."),
    ] = None,
    owner: Annotated[
        str | None,
        typer.Option("--owner", help="Override the owner of managed files."),
    ] = None,
    group: Annotated[
        str | None,
        typer.Option("--group", help="Override the group of managed files."),
    ] = None,
) -> None:
    """Converge the host to a parameter file.

    Every action is checked first: actions whose result already holds
    are reported as ok and left alone, so running apply twice changes
    nothing the second time.

    Examples:
        ldapctl apply ldap.toml --dry-run   # Preview changes
        ldapctl apply ldap.toml --yes       # Apply without confirmation
    """
    config = load_config(params)
    platform = load_platform(platform_choice, root, owner, group)

    if handoff_dir is None and root is not None:
        handoff_dir = root / HANDOFF_DIR.relative_to(HANDOFF_DIR.anchor)

    try:
        plan = plan_convergence(config, platform, cert_source or params.parent)
    except PlanningError as e:
        print_error(f"Planning failed: {e}")
        raise typer.Exit(code=EXIT_INVALID) from e

    console.print(create_plan_table(plan))

    if not dry_run and os.geteuid() != 0:
        target = "under --root" if root is not None else "on this host"
        print_warning(f"Not running as root: package changes {target} will likely fail.")

    if not dry_run and not yes and not typer.confirm(
        f"\nConverge {len(plan)} action(s)?", default=False
    ):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    executor = Executor(
        packages=get_package_operator(platform, root),
        subsystems=default_registry(handoff_dir),
        dry_run=dry_run,
    )

    try:
        result = executor.apply(plan)
    except PlanningError as e:
        print_error(f"Planning failed: {e}")
        raise typer.Exit(code=EXIT_INVALID) from e

    console.print(create_results_table(result))
    _print_results_summary(result)

    if dry_run:
        print_info("\nDry-run mode: No changes were made.")

    if not result.success:
        raise typer.Exit(code=1)
