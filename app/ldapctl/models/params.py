"""Input parameter schema.

This module defines the Pydantic model for the flat parameter mapping
that describes the desired LDAP client state of a host.
"""

from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    model_validator,
)
from pydantic_core import PydanticCustomError

# Type alias for LDAP search scope
ScopeType = Literal["base", "one", "sub"]

# Type alias for desired resource state
EnsureType = Literal["present", "absent"]

# Credentials are taken verbatim, surrounding whitespace included
Credential = Annotated[str, StringConstraints(strip_whitespace=False)]


class ClientParams(BaseModel):
    """Raw client parameters with defaults applied.

    Required: uri and base. Every other field has a default. Port is left
    unset here and derived by the resolver.

    Attributes:
        uri: Space-separated list of LDAP endpoints.
        base: Default search base distinguished name.
        ssl: Whether TLS is requested.
        ssl_cert: File name of the CA certificate, required when ssl is set.
        nsswitch: Whether to wire the name-service switch to LDAP.
        pam: Whether to wire PAM to LDAP.
        sssd: Whether to hand the configuration to SSSD.
        ensure: Desired state of the whole client configuration.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    uri: Annotated[str, Field(min_length=1, description="LDAP endpoints")]
    base: Annotated[str, Field(min_length=1, description="Search base DN")]
    version: Annotated[PositiveInt, Field(description="LDAP protocol version")] = 3
    timelimit: Annotated[PositiveInt, Field(description="Search time limit (s)")] = 30
    bind_timelimit: Annotated[PositiveInt, Field(description="Bind time limit (s)")] = 30
    idle_timelimit: Annotated[PositiveInt, Field(description="Idle time limit (s)")] = 60
    binddn: Annotated[str | None, Field(description="Bind identity")] = None
    bindpw: Annotated[Credential | None, Field(description="Bind password")] = None
    port: Annotated[int | None, Field(ge=1, le=65535, description="Server port")] = None
    scope: Annotated[ScopeType, Field(description="Search scope")] = "sub"
    ssl: Annotated[bool, Field(description="Enable TLS")] = False
    ssl_cert: Annotated[str | None, Field(description="CA certificate file name")] = None
    tls_checkpeer: Annotated[bool, Field(description="Verify server certificate")] = True
    tls_ciphers: Annotated[str, Field(description="TLS cipher suite")] = "TLSv1"
    schema_: Annotated[
        str,
        Field(alias="schema", description="Directory schema"),
    ] = "rfc2307bis"
    ensure: Annotated[EnsureType, Field(description="Desired state")] = "present"

    nsswitch: Annotated[bool, Field(description="Enable nsswitch integration")] = False
    nss_passwd: Annotated[str | None, Field(description="passwd search suffix")] = None
    nss_group: Annotated[str | None, Field(description="group search suffix")] = None
    nss_shadow: Annotated[str | None, Field(description="shadow search suffix")] = None
    nss_reconnect_tries: PositiveInt = 5
    nss_reconnect_sleeptime: PositiveInt = 4
    nss_reconnect_maxsleeptime: PositiveInt = 64
    nss_reconnect_maxconntries: PositiveInt = 2

    pam: Annotated[bool, Field(description="Enable PAM integration")] = False
    pam_att_login: Annotated[str, Field(min_length=1)] = "uid"
    pam_att_member: Annotated[str, Field(min_length=1)] = "member"
    pam_passwd: Annotated[str, Field(min_length=1)] = "md5"
    pam_filter: Annotated[str, Field(min_length=1)] = "objectClass=posixAccount"

    sssd: Annotated[bool, Field(description="Enable SSSD integration")] = False

    @model_validator(mode="after")
    def validate_ssl_cert(self) -> "ClientParams":
        """Reject TLS without a CA certificate."""
        if self.ssl and not self.ssl_cert:
            raise PydanticCustomError(
                "missing_cert",
                "ssl is enabled but no ssl_cert was given",
            )
        return self
