"""Parameter file I/O.

Parameters are kept in a flat TOML file:

    uri = "ldap://ldap1 ldap://ldap2"
    base = "dc=example,dc=com"
    ssl = true
    ssl_cert = "ca.pem"
"""

import tomllib
from pathlib import Path
from typing import Any

from ldapctl.core.errors import LdapctlError


class ParamsError(LdapctlError):
    """Base exception for parameter file errors."""


class ParamsNotFoundError(ParamsError):
    """Raised when the parameter file is not found."""


class ParamsParseError(ParamsError):
    """Raised when the parameter file cannot be parsed."""


def load_params(path: Path) -> dict[str, Any]:
    """Load a raw parameter mapping from a TOML file.

    The mapping is not validated here; pass it to resolve().

    Args:
        path: Path to the parameter file.

    Returns:
        Raw parameter mapping.

    Raises:
        ParamsNotFoundError: If the file doesn't exist.
        ParamsParseError: If the TOML syntax is invalid.
        ParamsError: If the file cannot be read.
    """
    if not path.exists():
        raise ParamsNotFoundError(f"Parameter file not found: {path}")

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ParamsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ParamsError(f"Failed to read parameter file: {e}") from e
