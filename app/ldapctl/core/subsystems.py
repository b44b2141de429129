"""Subsystem composition.

Decides which collaborator subsystems (nsswitch, PAM, SSSD) take part in
a run and which parameter bundle each receives. How a subsystem applies
its bundle is not known here.

Bundles only hold TOML-serializable values; unset options are omitted.
"""

from typing import Any

from ldapctl.core.certs import cert_path
from ldapctl.core.platform import PlatformPolicy
from ldapctl.models.action import SubsystemAction
from ldapctl.models.config import NssConfig, PamConfig, ResolvedConfig

NSSWITCH = "nsswitch"
PAM = "pam"
SSSD = "sssd"

SUBSYSTEM_NAMES: tuple[str, ...] = (NSSWITCH, PAM, SSSD)


def _drop_unset(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def nss_params(config: ResolvedConfig, nss: NssConfig) -> dict[str, Any]:
    """Parameter bundle for the nsswitch collaborator."""
    reconnect = nss.reconnect
    return _drop_unset(
        {
            "ensure": config.ensure.value,
            "uri": config.uri,
            "base": config.base,
            "passwd_base": nss.passwd,
            "group_base": nss.group,
            "shadow_base": nss.shadow,
            "reconnect": {
                "tries": reconnect.tries,
                "sleep_time": reconnect.sleep_time,
                "max_sleep_time": reconnect.max_sleep_time,
                "max_conn_tries": reconnect.max_conn_tries,
                "schedule": reconnect.schedule(),
            },
        }
    )


def pam_params(config: ResolvedConfig, pam: PamConfig) -> dict[str, Any]:
    """Parameter bundle for the PAM collaborator."""
    return {
        "ensure": config.ensure.value,
        "login_attribute": pam.login_attribute,
        "member_attribute": pam.member_attribute,
        "password_scheme": pam.password_scheme,
        "filter": pam.filter,
    }


def sssd_params(
    config: ResolvedConfig,
    nss: NssConfig,
    pam: PamConfig,
    platform: PlatformPolicy | None = None,
) -> dict[str, Any]:
    """Parameter bundle for the SSSD collaborator.

    Carries copies of the connection, TLS and schema settings along with
    the nsswitch and PAM sub-parameters, so SSSD does not depend on the
    nsswitch or PAM invocations.
    """
    cacertdir = cacertfile = None
    if platform is not None and config.ssl:
        cacertdir = str(platform.cert_dir)
        installed = cert_path(config, platform)
        cacertfile = str(installed) if installed is not None else None

    return _drop_unset(
        {
            "ensure": config.ensure.value,
            "uri": config.uri,
            "base": config.base,
            "port": config.port,
            "version": config.version,
            "scope": config.scope,
            "timelimit": config.timelimit,
            "bind_timelimit": config.bind_timelimit,
            "idle_timelimit": config.idle_timelimit,
            "binddn": config.binddn,
            "bindpw": config.bindpw,
            "ssl": config.ssl,
            "tls_checkpeer": config.tls_checkpeer,
            "tls_ciphers": config.tls_ciphers,
            "tls_cacertdir": cacertdir,
            "tls_cacertfile": cacertfile,
            "schema": config.schema,
            "nss": {"enabled": nss.enabled, **nss_params(config, nss)},
            "pam": {"enabled": pam.enabled, **pam_params(config, pam)},
        }
    )


def compose(
    config: ResolvedConfig,
    nss: NssConfig,
    pam: PamConfig,
    platform: PlatformPolicy | None = None,
) -> list[SubsystemAction]:
    """Compose subsystem invocations for a run.

    nsswitch is invoked iff nss.enabled, pam iff pam.enabled and sssd iff
    config.sssd. All three may fire together.

    Args:
        config: Resolved configuration.
        nss: Name-service switch settings.
        pam: PAM settings.
        platform: Platform policy, used for certificate paths in the SSSD bundle.

    Returns:
        Subsystem actions in nsswitch, pam, sssd order.
    """
    actions: list[SubsystemAction] = []

    if nss.enabled:
        actions.append(SubsystemAction(name=NSSWITCH, params=nss_params(config, nss)))

    if pam.enabled:
        actions.append(SubsystemAction(name=PAM, params=pam_params(config, pam)))

    if config.sssd:
        actions.append(
            SubsystemAction(name=SSSD, params=sssd_params(config, nss, pam, platform))
        )

    return actions
