"""Subprocess helpers for package manager commands.

Commands run with a C locale so their output can be parsed, and a
missing executable is reported as exit code 127 like a shell would.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit status a POSIX shell reports for an unknown command
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of one command.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def command_env(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Current environment with a C locale and optional overrides."""
    return {**os.environ, "LC_ALL": "C", **(extra or {})}


def run_command(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        args: Command and arguments to execute.
        timeout: Seconds to wait before giving up.
        env: Extra environment variables on top of command_env().

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        RuntimeError: If the command exceeds timeout.
    """
    logger.debug("Running %s", " ".join(args))
    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            env=command_env(env),
        )
    except FileNotFoundError:
        return CommandResult(
            stdout="",
            stderr=f"{args[0]}: command not found",
            returncode=COMMAND_NOT_FOUND,
        )
    except subprocess.TimeoutExpired as e:
        msg = f"{args[0]} did not finish within {timeout:g}s"
        raise RuntimeError(msg) from e

    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(name) is not None
