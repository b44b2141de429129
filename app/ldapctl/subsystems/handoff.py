"""File-based handoff to subsystem collaborators.

The bundled collaborator writes each subsystem's parameter bundle as a
TOML file into a handoff directory, where the tooling that owns the
subsystem picks it up:

    /var/lib/ldapctl/handoff/nsswitch.toml
    /var/lib/ldapctl/handoff/pam.toml
    /var/lib/ldapctl/handoff/sssd.toml
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w

from ldapctl.core.platform import HANDOFF_DIR
from ldapctl.core.subsystems import SUBSYSTEM_NAMES
from ldapctl.subsystems.base import Subsystem, SubsystemRegistry

logger = logging.getLogger(__name__)

HANDOFF_MODE = 0o600


def _plain(value: Any) -> Any:
    """Convert read-only mappings into plain dicts for serialization."""
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class HandoffSubsystem(Subsystem):
    """Subsystem collaborator that hands its bundle over as a TOML file.

    Attributes:
        handoff_dir: Directory the bundle file is written to.
    """

    def __init__(self, name: str, handoff_dir: Path | None = None) -> None:
        self._name = name
        self.handoff_dir = handoff_dir if handoff_dir is not None else HANDOFF_DIR

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        """Path of the bundle file."""
        return self.handoff_dir / f"{self._name}.toml"

    def render(self, params: Mapping[str, Any]) -> bytes:
        """Serialize params to TOML with sorted keys."""
        return tomli_w.dumps(dict(sorted(_plain(params).items()))).encode("utf-8")

    def is_satisfied(self, params: Mapping[str, Any]) -> bool:
        """Check if the bundle file already holds exactly these params."""
        if not self.path.is_file():
            return False
        return self.path.read_bytes() == self.render(params)

    def apply(self, params: Mapping[str, Any]) -> None:
        """Write the bundle file atomically.

        Raises:
            OSError: If the file cannot be written.
        """
        data = self.render(params)
        self.handoff_dir.mkdir(parents=True, exist_ok=True)

        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="wb",
                dir=self.handoff_dir,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(data)
            os.chmod(tmp_path, HANDOFF_MODE)
            os.replace(tmp_path, self.path)
        except OSError:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise

        logger.info("Handed %s parameters to %s", self._name, self.path)


def default_registry(handoff_dir: Path | None = None) -> SubsystemRegistry:
    """Registry with a handoff collaborator for nsswitch, pam and sssd."""
    return SubsystemRegistry([HandoffSubsystem(name, handoff_dir) for name in SUBSYSTEM_NAMES])
