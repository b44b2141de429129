"""Plan command implementation.

Shows the ordered actions a convergence run would take, without
inspecting or changing the host.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ldapctl.cli.types import EXIT_INVALID, PlatformChoice, load_config, load_platform
from ldapctl.core.errors import PlanningError
from ldapctl.core.planner import plan_convergence
from ldapctl.models.action import Plan
from ldapctl.utils.formatting import console, create_table, print_error

_STATE_STYLES = {"present": "added", "absent": "removed"}


def create_plan_table(plan: Plan) -> Table:
    """Create a Rich table listing planned actions in order.

    Args:
        plan: Ordered plan to display.

    Returns:
        Rich Table configured for plan display.
    """
    table = create_table("Planned Actions", "#", "Kind", "Resource", "State", "After")
    for position, action in enumerate(plan, start=1):
        state = getattr(action, "state", None)
        state_text = ""
        if state is not None:
            style = _STATE_STYLES[state.value]
            state_text = f"[{style}]{state.value}[/{style}]"
        requires = ", ".join(str(plan.index(key) + 1) for key in action.requires)
        table.add_row(
            str(position),
            action.kind.value,
            action.resource,
            state_text,
            f"[muted]{requires}[/muted]",
        )
    return table


def show_plan(
    params: Annotated[Path, typer.Argument(help="Parameter file (TOML).")],
    platform_choice: Annotated[
        PlatformChoice,
        typer.Option("--platform", "-p", help="Target platform.", case_sensitive=False),
    ] = PlatformChoice.AUTO,
    root: Annotated[
        Path | None,
        typer.Option("--root", help="Directory standing in for the filesystem root."),
    ] = None,
) -> None:
    """Show the ordered action plan for a parameter file.

    Examples:
        ldapctl plan ldap.toml
        ldapctl plan ldap.toml --platform redhat
    """
    config = load_config(params)
    platform = load_platform(platform_choice, root)

    try:
        plan = plan_convergence(config, platform, params.parent)
    except PlanningError as e:
        print_error(f"Planning failed: {e}")
        raise typer.Exit(code=EXIT_INVALID) from e

    console.print(create_plan_table(plan))
