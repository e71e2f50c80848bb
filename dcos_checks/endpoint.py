"""
dcos_checks/endpoint.py — Where the local diagnostics service listens.

Master nodes run dcos-diagnostics on TCP 1050 (plain HTTP); Admin Router
terminates TLS for it on 443. Agent nodes only expose diagnostics through the
agent Admin Router on 61001 (HTTP) or 61002 (HTTPS).
"""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING

from dcos_checks.errors import InvalidConfigError
from dcos_checks.settings import ROLE_AGENT, ROLE_AGENT_PUBLIC, ROLE_MASTER

if TYPE_CHECKING:
    from dcos_checks.nodeinfo import NodeInfo
    from dcos_checks.settings import Settings

DIAGNOSTICS_MASTER_HTTP_PORT = 1050
ADMINROUTER_MASTER_HTTPS_PORT = 443
ADMINROUTER_AGENT_HTTP_PORT = 61001
ADMINROUTER_AGENT_HTTPS_PORT = 61002

# (role, force_tls) -> port
PORTS: dict[tuple[str, bool], int] = {
    (ROLE_MASTER, False): DIAGNOSTICS_MASTER_HTTP_PORT,
    (ROLE_MASTER, True): ADMINROUTER_MASTER_HTTPS_PORT,
    (ROLE_AGENT, False): ADMINROUTER_AGENT_HTTP_PORT,
    (ROLE_AGENT, True): ADMINROUTER_AGENT_HTTPS_PORT,
    (ROLE_AGENT_PUBLIC, False): ADMINROUTER_AGENT_HTTP_PORT,
    (ROLE_AGENT_PUBLIC, True): ADMINROUTER_AGENT_HTTPS_PORT,
}


def port_for(role: str, force_tls: bool) -> int:
    try:
        return PORTS[(role, bool(force_tls))]
    except KeyError:
        raise InvalidConfigError(
            f"invalid role {role}, force_tls: {str(bool(force_tls)).lower()}"
        ) from None


def health_url(
    role: str,
    force_tls: bool,
    path: str,
    ip: ipaddress.IPv4Address | ipaddress.IPv6Address,
) -> str:
    """Compose ``<scheme>://<ip>:<port><path>``, bracketing IPv6 hosts.

    A path without a leading slash gets one.
    """
    port = port_for(role, force_tls)
    scheme = "https" if force_tls else "http"
    host = f"[{ip}]" if ip.version == 6 else str(ip)
    if not path.startswith("/"):
        path = "/" + path
    return f"{scheme}://{host}:{port}{path}"


def resolve(cfg: Settings, path: str, detector: NodeInfo | None = None) -> str:
    """Resolve the diagnostics URL for the node described by ``cfg``.

    The port is looked up first so an unknown role fails without running
    IP discovery.
    """
    port_for(cfg.role, cfg.force_tls)
    return health_url(cfg.role, cfg.force_tls, path, cfg.ip(detector))
