"""Client configuration rendering.

Produces the text of the LDAP client configuration file from a
ResolvedConfig. Output depends only on the configuration values, so
identical inputs render byte-identical files.
"""

from ldapctl.core.certs import cert_path
from ldapctl.core.platform import PlatformPolicy
from ldapctl.models.config import ResolvedConfig

HEADER = "# This file is managed by ldapctl. Local changes will be overwritten."


def _on_off(value: bool) -> str:
    return "on" if value else "off"


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def render(config: ResolvedConfig, platform: PlatformPolicy) -> str:
    """Render the client configuration file.

    Args:
        config: Resolved configuration.
        platform: Target platform policy (supplies the certificate directory).

    Returns:
        File content, newline-terminated.
    """
    lines: list[tuple[str, object]] = [
        ("uri", config.uri),
        ("base", config.base),
        ("ldap_version", config.version),
        ("port", config.port),
        ("scope", config.scope),
        ("timelimit", config.timelimit),
        ("bind_timelimit", config.bind_timelimit),
        ("idle_timelimit", config.idle_timelimit),
    ]

    if config.binddn:
        lines.append(("binddn", config.binddn))
    if config.bindpw:
        lines.append(("bindpw", config.bindpw))

    lines.append(("nss_schema", config.schema))

    # TLS
    lines.append(("ssl", _on_off(config.ssl)))
    if config.ssl:
        lines.append(("tls_checkpeer", _yes_no(config.tls_checkpeer)))
        lines.append(("tls_ciphers", config.tls_ciphers))
        lines.append(("tls_cacertdir", platform.cert_dir))
        cacertfile = cert_path(config, platform)
        if cacertfile is not None:
            lines.append(("tls_cacertfile", cacertfile))

    body = "\n".join(f"{key} {value}" for key, value in lines)
    return f"{HEADER}\n\n{body}\n"
