"""Platform policy for target operating systems.

This module provides the per-distribution values the planner needs:
client package name, configuration and certificate paths, and file
ownership. Values are passed around explicitly as a PlatformPolicy
instead of being looked up ambiently.

Presets:
- debian: ldap-utils, /etc/ldap/ldap.conf, /etc/ssl/certs
- redhat: openldap-clients, /etc/openldap/ldap.conf, /etc/openldap/cacerts
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

from ldapctl.core.errors import ValidationError, ValidationReason

logger = logging.getLogger(__name__)

# Application identifier for directory naming
APP_NAME = "ldapctl"

# Handoff directory for subsystem parameter bundles
HANDOFF_DIR = Path("/var/lib") / APP_NAME / "handoff"

OS_RELEASE_PATH = Path("/etc/os-release")

PackageManagerType = Literal["apt", "dnf"]


@dataclass(frozen=True, slots=True)
class PlatformPolicy:
    """Per-OS values supplied to the planner.

    Attributes:
        name: Preset identifier (e.g., "debian").
        package: Client package name.
        config_dir: Directory owned by the client package.
        config_file: Rendered client configuration path.
        cert_dir: Trust-material directory.
        owner: Owner of the configuration file.
        group: Group of the configuration file.
        cert_owner: Owner of certificate files and directories.
        cert_group: Group of certificate files and directories.
        package_manager: Package collaborator to use.
    """

    name: str
    package: str
    config_dir: Path
    config_file: Path
    cert_dir: Path
    owner: str | None = "root"
    group: str | None = "root"
    cert_owner: str | None = "root"
    cert_group: str | None = "root"
    package_manager: PackageManagerType = "apt"

    def rooted(self, prefix: Path) -> "PlatformPolicy":
        """Return a copy with every path re-based under prefix.

        Args:
            prefix: Directory that stands in for the filesystem root.

        Returns:
            PlatformPolicy whose paths live under prefix.
        """

        def _rebase(path: Path) -> Path:
            return prefix / path.relative_to(path.anchor)

        return replace(
            self,
            config_dir=_rebase(self.config_dir),
            config_file=_rebase(self.config_file),
            cert_dir=_rebase(self.cert_dir),
        )

    def with_ownership(self, owner: str | None, group: str | None) -> "PlatformPolicy":
        """Return a copy with all ownership set to owner and group."""
        return replace(self, owner=owner, group=group, cert_owner=owner, cert_group=group)


DEBIAN = PlatformPolicy(
    name="debian",
    package="ldap-utils",
    config_dir=Path("/etc/ldap"),
    config_file=Path("/etc/ldap/ldap.conf"),
    cert_dir=Path("/etc/ssl/certs"),
    package_manager="apt",
)

REDHAT = PlatformPolicy(
    name="redhat",
    package="openldap-clients",
    config_dir=Path("/etc/openldap"),
    config_file=Path("/etc/openldap/ldap.conf"),
    cert_dir=Path("/etc/openldap/cacerts"),
    package_manager="dnf",
)

PLATFORMS: dict[str, PlatformPolicy] = {
    "debian": DEBIAN,
    "redhat": REDHAT,
}

# os-release IDs mapped to presets
_OS_FAMILIES: dict[str, str] = {
    "debian": "debian",
    "ubuntu": "debian",
    "pop": "debian",
    "linuxmint": "debian",
    "rhel": "redhat",
    "centos": "redhat",
    "fedora": "redhat",
    "rocky": "redhat",
    "almalinux": "redhat",
}


def get_platform(name: str) -> PlatformPolicy:
    """Get a platform preset by name.

    Raises:
        ValidationError: If no preset has this name.
    """
    try:
        return PLATFORMS[name]
    except KeyError:
        raise ValidationError.single(
            ValidationReason.UNSUPPORTED_PLATFORM,
            f"Unknown platform '{name}' (expected one of: {', '.join(PLATFORMS)})",
            field="platform",
        ) from None


def _parse_os_release(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key] = value.strip().strip("\"'")
    return values


def detect_platform(os_release: Path | None = None) -> PlatformPolicy:
    """Detect the platform preset from os-release.

    Args:
        os_release: Path to the os-release file. Defaults to /etc/os-release.

    Returns:
        Matching PlatformPolicy.

    Raises:
        ValidationError: If the distribution is unknown or undetectable.
    """
    path = os_release or OS_RELEASE_PATH
    try:
        values = _parse_os_release(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ValidationError.single(
            ValidationReason.UNSUPPORTED_PLATFORM,
            f"Cannot read {path}: {e}",
            field="platform",
        ) from e

    candidates = [values.get("ID", ""), *values.get("ID_LIKE", "").split()]
    for candidate in candidates:
        family = _OS_FAMILIES.get(candidate.lower())
        if family is not None:
            logger.debug("Detected platform %s from %s=%s", family, path, candidate)
            return PLATFORMS[family]

    raise ValidationError.single(
        ValidationReason.UNSUPPORTED_PLATFORM,
        f"Unsupported distribution: {' '.join(c for c in candidates if c) or 'unknown'}",
        field="platform",
    )
