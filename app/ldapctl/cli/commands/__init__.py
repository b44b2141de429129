"""CLI commands for ldapctl.

This package contains all subcommand implementations.
"""

from ldapctl.cli.commands import apply, plan, render

__all__ = ["apply", "plan", "render"]
