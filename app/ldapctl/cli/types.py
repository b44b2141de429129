"""Shared types and helpers for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path

import typer

from ldapctl.core.errors import ValidationError
from ldapctl.core.params import ParamsError, ParamsNotFoundError, load_params
from ldapctl.core.platform import PlatformPolicy, detect_platform, get_platform
from ldapctl.core.resolver import resolve
from ldapctl.models.config import ResolvedConfig
from ldapctl.utils.formatting import print_error

# Exit code for invalid input, as opposed to a failed run
EXIT_INVALID = 2


class PlatformChoice(str, Enum):
    """Available platform presets for CLI commands."""

    AUTO = "auto"
    DEBIAN = "debian"
    REDHAT = "redhat"


def report_validation_error(error: ValidationError) -> None:
    """Print every issue of a validation error."""
    print_error("Invalid parameters:")
    for issue in error.issues:
        location = f"{issue.field}: " if issue.field else ""
        print_error(f"  {location}{issue.message} [{issue.reason.value}]")


def load_config(params_path: Path) -> ResolvedConfig:
    """Load and resolve a parameter file or exit with a helpful message.

    Raises:
        typer.Exit: If the file cannot be loaded or is invalid.
    """
    try:
        raw = load_params(params_path)
    except ParamsNotFoundError as e:
        print_error(f"Parameter file not found: {params_path}")
        raise typer.Exit(code=EXIT_INVALID) from e
    except ParamsError as e:
        print_error(f"Failed to load parameters: {e}")
        raise typer.Exit(code=EXIT_INVALID) from e

    try:
        return resolve(raw)
    except ValidationError as e:
        report_validation_error(e)
        raise typer.Exit(code=EXIT_INVALID) from e


def load_platform(
    choice: PlatformChoice,
    root: Path | None = None,
    owner: str | None = None,
    group: str | None = None,
) -> PlatformPolicy:
    """Resolve the platform policy for a command or exit.

    Args:
        choice: Preset name, or AUTO to detect from os-release.
        root: Optional directory standing in for the filesystem root.
        owner: Optional owner overriding the preset's ownership.
        group: Optional group overriding the preset's ownership.

    Raises:
        typer.Exit: If the platform is unsupported.
    """
    try:
        if choice == PlatformChoice.AUTO:
            platform = detect_platform()
        else:
            platform = get_platform(choice.value)
    except ValidationError as e:
        report_validation_error(e)
        raise typer.Exit(code=EXIT_INVALID) from e

    if root is not None:
        platform = platform.rooted(root)
    if owner is not None or group is not None:
        platform = platform.with_ownership(owner or platform.owner, group or platform.group)
    return platform
