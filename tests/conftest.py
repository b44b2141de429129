"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import datetime
import grp
import os
import pwd
from pathlib import Path
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from ldapctl.core.platform import DEBIAN, PlatformPolicy
from ldapctl.models.config import EnsureState
from ldapctl.operators.base import PackageOperator
from ldapctl.subsystems.base import SubsystemRegistry
from ldapctl.subsystems.handoff import default_registry


def make_certificate(common_name: str = "Example Root CA", organization: str = "Example") -> bytes:
    """Create a self-signed PEM certificate with the given subject."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "DE"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    now = datetime.datetime.now(datetime.UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM)


class FakePackageOperator(PackageOperator):
    """In-memory package operator recording every change."""

    def __init__(self, installed: set[str] | None = None, failing: set[str] | None = None) -> None:
        self.installed = set(installed or ())
        self.failing = set(failing or ())
        self.calls: list[tuple[str, EnsureState]] = []

    @property
    def manager(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True

    def is_installed(self, package: str) -> bool:
        return package in self.installed

    def _install_args(self, package: str) -> list[str]:
        return ["fake", "install", package]

    def _remove_args(self, package: str) -> list[str]:
        return ["fake", "remove", package]

    def ensure(self, package: str, state: EnsureState) -> None:
        self.calls.append((package, state))
        if package in self.failing:
            msg = f"Could not ensure {package} {state.value}: simulated failure"
            raise RuntimeError(msg)
        if state == EnsureState.PRESENT:
            self.installed.add(package)
        else:
            self.installed.discard(package)


@pytest.fixture(scope="session")
def cert_pem() -> bytes:
    """Self-signed CA certificate in PEM format."""
    return make_certificate()


@pytest.fixture
def current_owner() -> tuple[str, str]:
    """Name of the current user and group."""
    return pwd.getpwuid(os.getuid()).pw_name, grp.getgrgid(os.getgid()).gr_name


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Directory standing in for the host's filesystem root."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def platform(host_root: Path, current_owner: tuple[str, str]) -> PlatformPolicy:
    """Debian policy rooted in a temporary directory, owned by the current user."""
    owner, group = current_owner
    return DEBIAN.rooted(host_root).with_ownership(owner, group)


@pytest.fixture
def cert_source(tmp_path: Path, cert_pem: bytes) -> Path:
    """Directory holding ca.pem."""
    source = tmp_path / "source"
    source.mkdir()
    (source / "ca.pem").write_bytes(cert_pem)
    return source


@pytest.fixture
def packages() -> FakePackageOperator:
    """Package operator with nothing installed."""
    return FakePackageOperator()


@pytest.fixture
def handoff_dir(tmp_path: Path) -> Path:
    """Directory for subsystem parameter bundles."""
    return tmp_path / "handoff"


@pytest.fixture
def registry(handoff_dir: Path) -> SubsystemRegistry:
    """Handoff collaborators for nsswitch, pam and sssd."""
    return default_registry(handoff_dir)


@pytest.fixture
def base_params() -> dict[str, Any]:
    """Minimal valid parameters."""
    return {"uri": "ldap://ldap1.example.com", "base": "dc=example,dc=com"}


@pytest.fixture
def ssl_params(base_params: dict[str, Any]) -> dict[str, Any]:
    """Parameters requesting TLS with ca.pem."""
    return {**base_params, "ssl": True, "ssl_cert": "ca.pem"}


@pytest.fixture(scope="session")
def make_cert():
    """Factory for self-signed PEM certificates with a chosen subject."""
    return make_certificate
