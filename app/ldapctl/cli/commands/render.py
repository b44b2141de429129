"""Render command implementation.

Prints the client configuration file a run would write.
"""

from pathlib import Path
from typing import Annotated

import typer

from ldapctl.cli.types import PlatformChoice, load_config, load_platform
from ldapctl.core.render import render


def render_config(
    params: Annotated[Path, typer.Argument(help="Parameter file (TOML).")],
    platform_choice: Annotated[
        PlatformChoice,
        typer.Option("--platform", "-p", help="Target platform.", case_sensitive=False),
    ] = PlatformChoice.AUTO,
) -> None:
    """Print the rendered client configuration for a parameter file."""
    config = load_config(params)
    platform = load_platform(platform_choice)
    typer.echo(render(config, platform), nl=False)
