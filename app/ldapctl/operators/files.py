"""Filesystem operator for directories, files and hash links.

Evaluates whether a filesystem action's postcondition already holds and
performs it when it does not. File content is written atomically via a
temporary file in the target directory.
"""

import grp
import logging
import os
import pwd
from pathlib import Path
from tempfile import NamedTemporaryFile

from ldapctl.models.action import Action, DirectoryAction, FileAction, HashLinkAction
from ldapctl.models.config import EnsureState

logger = logging.getLogger(__name__)


def _lexists(path: Path) -> bool:
    return path.exists() or path.is_symlink()


def resolve_uid(owner: str | None) -> int | None:
    """Look up a user id by name.

    Raises:
        RuntimeError: If the user does not exist.
    """
    if owner is None:
        return None
    try:
        return pwd.getpwnam(owner).pw_uid
    except KeyError:
        msg = f"Unknown user: {owner}"
        raise RuntimeError(msg) from None


def resolve_gid(group: str | None) -> int | None:
    """Look up a group id by name.

    Raises:
        RuntimeError: If the group does not exist.
    """
    if group is None:
        return None
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError:
        msg = f"Unknown group: {group}"
        raise RuntimeError(msg) from None


class FileOperator:
    """Checks and applies directory, file and hash-link actions.

    Directories are never removed recursively: a non-empty directory
    marked absent is left in place and counts as satisfied.
    """

    def handles(self, action: Action) -> bool:
        """Check if this operator handles the action's variant."""
        return isinstance(action, (DirectoryAction, FileAction, HashLinkAction))

    def is_satisfied(self, action: Action) -> bool:
        """Check if the action's postcondition already holds.

        Raises:
            OSError: If the filesystem cannot be inspected.
            RuntimeError: If owner or group do not exist.
            ValueError: If a certificate cannot be parsed.
            TypeError: If the action is not a filesystem action.
        """
        if isinstance(action, DirectoryAction):
            return self._directory_satisfied(action)
        if isinstance(action, FileAction):
            return self._file_satisfied(action)
        if isinstance(action, HashLinkAction):
            return self._link_satisfied(action)
        msg = f"FileOperator cannot handle {action.key}"
        raise TypeError(msg)

    def apply(self, action: Action) -> None:
        """Perform the action.

        Raises:
            OSError: If the filesystem operation fails.
            RuntimeError: If owner or group do not exist.
            ValueError: If a certificate cannot be parsed.
            TypeError: If the action is not a filesystem action.
        """
        if isinstance(action, DirectoryAction):
            self._apply_directory(action)
        elif isinstance(action, FileAction):
            self._apply_file(action)
        elif isinstance(action, HashLinkAction):
            self._apply_link(action)
        else:
            msg = f"FileOperator cannot handle {action.key}"
            raise TypeError(msg)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _attributes_match(
        self, path: Path, mode: int, owner: str | None, group: str | None
    ) -> bool:
        stat = path.stat()
        if stat.st_mode & 0o7777 != mode:
            return False
        uid = resolve_uid(owner)
        if uid is not None and stat.st_uid != uid:
            return False
        gid = resolve_gid(group)
        return gid is None or stat.st_gid == gid

    def _set_attributes(
        self, path: Path, mode: int, owner: str | None, group: str | None
    ) -> None:
        uid = resolve_uid(owner)
        gid = resolve_gid(group)
        if uid is not None or gid is not None:
            os.chown(path, -1 if uid is None else uid, -1 if gid is None else gid)
        os.chmod(path, mode)

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def _directory_satisfied(self, action: DirectoryAction) -> bool:
        path = action.path
        if action.state == EnsureState.ABSENT:
            if not _lexists(path):
                return True
            if path.is_dir() and not path.is_symlink() and any(path.iterdir()):
                logger.warning("Not removing non-empty directory %s", path)
                return True
            return False

        if not path.is_dir():
            return False
        return self._attributes_match(path, action.mode, action.owner, action.group)

    def _apply_directory(self, action: DirectoryAction) -> None:
        if action.state == EnsureState.ABSENT:
            logger.info("Removing directory %s", action.path)
            action.path.rmdir()
            return

        logger.info("Ensuring directory %s", action.path)
        action.path.mkdir(parents=True, exist_ok=True)
        self._set_attributes(action.path, action.mode, action.owner, action.group)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _desired_content(self, action: FileAction) -> bytes:
        if action.content is not None:
            return action.content.encode("utf-8")
        if action.source is None:
            msg = f"File {action.path} has no content"
            raise ValueError(msg)
        try:
            return action.source.read_bytes()
        except FileNotFoundError as e:
            msg = f"Source file not found: {action.source}"
            raise FileNotFoundError(msg) from e

    def _file_satisfied(self, action: FileAction) -> bool:
        path = action.path
        if action.state == EnsureState.ABSENT:
            return not _lexists(path)

        if path.is_symlink() or not path.is_file():
            return False
        if path.read_bytes() != self._desired_content(action):
            return False
        return self._attributes_match(path, action.mode, action.owner, action.group)

    def _apply_file(self, action: FileAction) -> None:
        path = action.path
        if action.state == EnsureState.ABSENT:
            logger.info("Removing file %s", path)
            path.unlink()
            return

        data = self._desired_content(action)
        logger.info("Writing file %s (%d bytes)", path, len(data))

        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
                tmp_path = Path(f.name)
                f.write(data)
            self._set_attributes(tmp_path, action.mode, action.owner, action.group)
            # os.replace() is atomic on POSIX
            os.replace(tmp_path, path)
        except (OSError, RuntimeError):
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise

    # ------------------------------------------------------------------
    # Hash links
    # ------------------------------------------------------------------

    def _points_at(self, link: Path, target: Path) -> bool:
        if not link.is_symlink():
            return False
        return (link.parent / os.readlink(link)) == target or link.resolve() == target.resolve()

    def _link_satisfied(self, action: HashLinkAction) -> bool:
        if action.state == EnsureState.ABSENT:
            if not action.cert_path.exists():
                return True
            return not self._points_at(action.link_path(), action.cert_path)

        # Any existing entry at the hash-derived name counts as satisfied
        return _lexists(action.link_path())

    def _apply_link(self, action: HashLinkAction) -> None:
        link = action.link_path()
        if action.state == EnsureState.ABSENT:
            logger.info("Removing hash link %s", link)
            link.unlink()
            return

        logger.info("Linking %s -> %s", link, action.cert_path.name)
        os.symlink(action.cert_path.name, link)
