"""Unit tests for action models."""

from pathlib import Path

import pytest
from ldapctl.core.errors import ExecutionError
from ldapctl.models.action import (
    ActionKind,
    ActionOutcome,
    ActionStatus,
    DirectoryAction,
    FileAction,
    HashLinkAction,
    PackageAction,
    Plan,
    RunResult,
    SubsystemAction,
)
from ldapctl.models.config import EnsureState


class TestActionKeys:
    """Tests for action identity."""

    def test_keys(self) -> None:
        assert PackageAction(name="ldap-utils").key == "package:ldap-utils"
        assert DirectoryAction(path=Path("/etc/ldap")).key == "directory:/etc/ldap"
        assert FileAction(path=Path("/etc/ldap/ldap.conf"), content="").key == (
            "file:/etc/ldap/ldap.conf"
        )
        assert HashLinkAction(cert_path=Path("/etc/ssl/certs/ca.pem")).key == (
            "hashlink:/etc/ssl/certs/ca.pem"
        )
        assert SubsystemAction(name="pam").key == "subsystem:pam"

    def test_actions_are_frozen(self) -> None:
        action = PackageAction(name="ldap-utils")
        with pytest.raises(AttributeError):
            action.name = "other"  # type: ignore[misc]


class TestActionValidation:
    """Tests for __post_init__ checks."""

    def test_empty_package_name(self) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            PackageAction(name="")

    def test_file_needs_one_origin(self) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            FileAction(path=Path("/etc/ldap/ldap.conf"))
        with pytest.raises(ValueError, match="exactly one"):
            FileAction(path=Path("/etc/ldap/ldap.conf"), content="x", source=Path("/tmp/x"))

    def test_absent_file_needs_no_origin(self) -> None:
        action = FileAction(path=Path("/etc/ldap/ldap.conf"), state=EnsureState.ABSENT)
        assert action.content is None

    def test_subsystem_params_copied(self) -> None:
        params = {"ensure": "present"}
        action = SubsystemAction(name="pam", params=params)
        params["ensure"] = "absent"
        assert action.params["ensure"] == "present"


class TestHashLinkAction:
    """Tests for hash-derived link names."""

    def test_link_path_uses_hash_fn(self) -> None:
        action = HashLinkAction(
            cert_path=Path("/etc/ssl/certs/ca.pem"), hash_fn=lambda _: "0a1b2c3d"
        )
        assert action.link_path() == Path("/etc/ssl/certs/0a1b2c3d.0")


class TestPlan:
    """Tests for Plan accessors."""

    def test_accessors(self) -> None:
        package = PackageAction(name="ldap-utils")
        directory = DirectoryAction(path=Path("/etc/ldap"))
        plan = Plan(actions=(package, directory))

        assert len(plan) == 2
        assert plan[1] is directory
        assert plan.index("directory:/etc/ldap") == 1
        assert plan.of_kind(ActionKind.PACKAGE) == [package]

    def test_index_unknown_key(self) -> None:
        with pytest.raises(KeyError):
            Plan().index("package:missing")


class TestRunResult:
    """Tests for RunResult aggregation."""

    def test_counts(self) -> None:
        a = PackageAction(name="a")
        b = PackageAction(name="b")
        c = PackageAction(name="c")
        result = RunResult(
            outcomes=(
                ActionOutcome(action=a, status=ActionStatus.APPLIED),
                ActionOutcome(action=b, status=ActionStatus.SKIPPED),
                ActionOutcome(action=c, status=ActionStatus.SKIPPED),
            )
        )

        assert result.applied_count == 1
        assert result.skipped_count == 2
        assert result.completed_count == 3
        assert result.success
        assert result.failed_outcome is None

    def test_failure(self) -> None:
        a = PackageAction(name="a")
        b = PackageAction(name="b")
        error = ExecutionError(a, "boom")
        result = RunResult(
            outcomes=(
                ActionOutcome(action=a, status=ActionStatus.FAILED, error="boom"),
                ActionOutcome(action=b, status=ActionStatus.NOT_RUN),
            ),
            error=error,
        )

        assert not result.success
        assert result.failed_outcome is not None
        assert result.failed_outcome.action is a
        assert str(error) == "package:a failed on a: boom"
