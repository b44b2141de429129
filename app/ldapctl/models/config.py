"""Resolved configuration records.

These immutable records are built once per convergence run by the
resolver and consumed by the certificate manager, the renderer, the
subsystem composer and the planner.
"""

from dataclasses import dataclass, field
from enum import Enum


class EnsureState(str, Enum):
    """Desired existence state of a managed resource."""

    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """Back-off schedule handed to name-service caching.

    Attributes:
        tries: Reconnect attempts before sleeping.
        sleep_time: Initial sleep between attempts (seconds).
        max_sleep_time: Upper bound for the doubling sleep (seconds).
        max_conn_tries: Connection attempts per reconnect.
    """

    tries: int = 5
    sleep_time: int = 4
    max_sleep_time: int = 64
    max_conn_tries: int = 2

    def schedule(self) -> list[int]:
        """Return the sleep sequence, doubling up to max_sleep_time."""
        delays: list[int] = []
        delay = self.sleep_time
        for _ in range(self.tries):
            delays.append(min(delay, self.max_sleep_time))
            delay *= 2
        return delays


@dataclass(frozen=True, slots=True)
class NssConfig:
    """Name-service switch integration settings.

    Attributes:
        enabled: Whether the nsswitch collaborator is invoked.
        passwd: Search base for passwd lookups, already joined with base.
        group: Search base for group lookups, already joined with base.
        shadow: Search base for shadow lookups, already joined with base.
        reconnect: Reconnect back-off policy.
    """

    enabled: bool = False
    passwd: str | None = None
    group: str | None = None
    shadow: str | None = None
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)


@dataclass(frozen=True, slots=True)
class PamConfig:
    """PAM integration settings."""

    enabled: bool = False
    login_attribute: str = "uid"
    member_attribute: str = "member"
    password_scheme: str = "md5"
    filter: str = "objectClass=posixAccount"


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Fully defaulted and validated client configuration.

    Attributes:
        uri: Space-separated list of LDAP endpoints.
        base: Search base distinguished name.
        port: Derived or explicit server port.
        ssl_cert: CA certificate file name (only meaningful when ssl is set).
        ensure: Desired state of files and directories.
        nss: Name-service switch settings.
        pam: PAM settings.
        sssd: Whether the SSSD collaborator is invoked.
    """

    uri: str
    base: str
    port: int
    version: int = 3
    timelimit: int = 30
    bind_timelimit: int = 30
    idle_timelimit: int = 60
    binddn: str | None = None
    bindpw: str | None = None
    scope: str = "sub"
    ssl: bool = False
    ssl_cert: str | None = None
    tls_checkpeer: bool = True
    tls_ciphers: str = "TLSv1"
    schema: str = "rfc2307bis"
    ensure: EnsureState = EnsureState.PRESENT
    nss: NssConfig = field(default_factory=NssConfig)
    pam: PamConfig = field(default_factory=PamConfig)
    sssd: bool = False

    @property
    def uris(self) -> list[str]:
        """Individual endpoints."""
        return self.uri.split()

    @property
    def is_absent(self) -> bool:
        """Check if the configuration is being removed."""
        return self.ensure == EnsureState.ABSENT
