"""Main CLI application entry point.

Defines the Typer application, global options and log routing.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from ldapctl import __version__
from ldapctl.cli.commands import apply, plan, render
from ldapctl.utils.formatting import err_console

app = typer.Typer(
    name="ldapctl",
    help="Converge a host's LDAP client configuration to a parameter file.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("plan")(plan.show_plan)
app.command("apply")(apply.apply_params)
app.command("render")(render.render_config)


def configure_logging(verbose: bool) -> None:
    """Route ldapctl log records to stderr through Rich.

    Only warnings are shown unless verbose is set, in which case every
    checked, skipped and applied action is logged.
    """
    package_logger = logging.getLogger("ldapctl")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.addHandler(RichHandler(console=err_console, show_path=False))
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"ldapctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_show_version,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every action to stderr."),
    ] = False,
) -> None:
    """ldapctl - Declarative LDAP client configuration.

    Describe the desired LDAP client setup in a parameter file and
    converge the host to it: client package, ldap.conf, CA certificate
    and nsswitch/PAM/SSSD handoff.
    """
    configure_logging(verbose)


if __name__ == "__main__":
    app()
