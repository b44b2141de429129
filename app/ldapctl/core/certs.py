"""Trust-material planning.

Plans placement of the CA certificate in the platform's certificate
directory and the hash-linked trust anchor next to it. Nothing is
planned unless TLS is requested.
"""

from pathlib import Path

from ldapctl.core.platform import PlatformPolicy
from ldapctl.models.action import Action, FileAction, HashLinkAction
from ldapctl.models.config import EnsureState, ResolvedConfig
from ldapctl.utils.x509 import subject_hash

CERT_MODE = 0o644


def cert_path(config: ResolvedConfig, platform: PlatformPolicy) -> Path | None:
    """Installed location of the CA certificate, or None without TLS."""
    if not config.ssl or not config.ssl_cert:
        return None
    return platform.cert_dir / Path(config.ssl_cert).name


def plan_certificates(
    config: ResolvedConfig,
    platform: PlatformPolicy,
    source_dir: Path,
    *,
    requires: tuple[str, ...] = (),
) -> list[Action]:
    """Plan the certificate file and its hash link.

    When the configuration is present the file is placed first and the
    link depends on it. When absent the order is reversed: the link is
    removed while the certificate is still there to hash.

    Args:
        config: Resolved configuration.
        platform: Target platform policy.
        source_dir: Directory the certificate named by ssl_cert is read from.
        requires: Keys the first planned action must wait for.

    Returns:
        Empty list without TLS, otherwise the file and link actions.
    """
    target = cert_path(config, platform)
    if target is None or config.ssl_cert is None:
        return []

    if config.is_absent:
        link = HashLinkAction(
            cert_path=target,
            state=EnsureState.ABSENT,
            hash_fn=subject_hash,
            requires=requires,
        )
        cert = FileAction(
            path=target,
            state=EnsureState.ABSENT,
            requires=(link.key,),
        )
        return [link, cert]

    cert = FileAction(
        path=target,
        source=source_dir / config.ssl_cert,
        mode=CERT_MODE,
        owner=platform.cert_owner,
        group=platform.cert_group,
        requires=requires,
    )
    link = HashLinkAction(
        cert_path=target,
        hash_fn=subject_hash,
        requires=(cert.key,),
    )
    return [cert, link]
