"""Parameter resolution.

Turns a raw parameter mapping into a ResolvedConfig: applies defaults,
derives the port and search bases, and rejects invalid input before any
action is planned. Performs no I/O.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ldapctl.core.errors import ValidationError, ValidationIssue, ValidationReason
from ldapctl.models.config import (
    EnsureState,
    NssConfig,
    PamConfig,
    ReconnectPolicy,
    ResolvedConfig,
)
from ldapctl.models.params import ClientParams

logger = logging.getLogger(__name__)

LDAP_PORT = 389
LDAPS_PORT = 636

# Parameter name to reason for type/range failures on that parameter
_FIELD_REASONS: dict[str, ValidationReason] = {
    "scope": ValidationReason.INVALID_SCOPE,
    "port": ValidationReason.INVALID_PORT,
    "ensure": ValidationReason.INVALID_ENSURE,
}

# Pydantic error type to reason, checked before field reasons
_TYPE_REASONS: dict[str, ValidationReason] = {
    "missing_cert": ValidationReason.MISSING_CERT,
    "missing": ValidationReason.MISSING_FIELD,
}


def derive_port(ssl: bool, port: int | None = None) -> int:
    """Return the explicit port, or the LDAP/LDAPS default."""
    if port is not None:
        return port
    return LDAPS_PORT if ssl else LDAP_PORT


def join_base(suffix: str | None, base: str) -> str | None:
    """Append base to a search-base suffix.

    A suffix that already ends with base is returned unchanged.

    Args:
        suffix: Relative search base (e.g., "ou=People"), or None.
        base: Directory base DN.

    Returns:
        Absolute search base, or None if no suffix was given.
    """
    if not suffix:
        return None
    if suffix.lower().endswith(base.lower()):
        return suffix
    return f"{suffix},{base}"


def _to_issue(error: Mapping[str, Any]) -> ValidationIssue:
    loc = error.get("loc") or ()
    field = str(loc[0]) if loc else None
    if field == "schema_":
        field = "schema"

    reason = _TYPE_REASONS.get(error["type"])
    if reason is None:
        reason = _FIELD_REASONS.get(field or "", ValidationReason.INVALID_VALUE)

    return ValidationIssue(reason=reason, field=field, message=error["msg"])


def validate_params(raw: Mapping[str, Any]) -> ClientParams:
    """Validate a raw mapping against the parameter schema.

    Raises:
        ValidationError: With one issue per rejected parameter.
    """
    try:
        return ClientParams.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise ValidationError([_to_issue(error) for error in e.errors()]) from e


def resolve(raw: Mapping[str, Any]) -> ResolvedConfig:
    """Resolve raw parameters into a fully defaulted configuration.

    Args:
        raw: Flat parameter mapping. Requires uri and base.

    Returns:
        Immutable ResolvedConfig.

    Raises:
        ValidationError: If any parameter is invalid, including
            ssl without ssl_cert (MISSING_CERT).
    """
    params = validate_params(raw)

    if bool(params.binddn) != bool(params.bindpw):
        logger.warning("binddn and bindpw are normally set together")

    if params.ssl_cert and not params.ssl:
        logger.warning("ssl_cert %s is ignored because ssl is disabled", params.ssl_cert)

    nss = NssConfig(
        enabled=params.nsswitch,
        passwd=join_base(params.nss_passwd, params.base),
        group=join_base(params.nss_group, params.base),
        shadow=join_base(params.nss_shadow, params.base),
        reconnect=ReconnectPolicy(
            tries=params.nss_reconnect_tries,
            sleep_time=params.nss_reconnect_sleeptime,
            max_sleep_time=params.nss_reconnect_maxsleeptime,
            max_conn_tries=params.nss_reconnect_maxconntries,
        ),
    )
    pam = PamConfig(
        enabled=params.pam,
        login_attribute=params.pam_att_login,
        member_attribute=params.pam_att_member,
        password_scheme=params.pam_passwd,
        filter=params.pam_filter,
    )

    config = ResolvedConfig(
        uri=params.uri,
        base=params.base,
        port=derive_port(params.ssl, params.port),
        version=params.version,
        timelimit=params.timelimit,
        bind_timelimit=params.bind_timelimit,
        idle_timelimit=params.idle_timelimit,
        binddn=params.binddn,
        bindpw=params.bindpw,
        scope=params.scope,
        ssl=params.ssl,
        ssl_cert=params.ssl_cert,
        tls_checkpeer=params.tls_checkpeer,
        tls_ciphers=params.tls_ciphers,
        schema=params.schema_,
        ensure=EnsureState(params.ensure),
        nss=nss,
        pam=pam,
        sssd=params.sssd,
    )
    logger.debug("Resolved configuration for %s (port %d)", config.uri, config.port)
    return config
