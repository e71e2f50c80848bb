"""
dcos_checks/nodeinfo.py — Node IP discovery via the detect_ip helper.

Every DC/OS node ships /opt/mesosphere/bin/detect_ip, a small script that
prints the address the node uses inside the cluster.
"""

from __future__ import annotations

import ipaddress
import logging
import subprocess

from dcos_checks.errors import DiscoveryFailedError

log = logging.getLogger(__name__)


class NodeInfo:
    def __init__(self, detect_ip_path: str, timeout_seconds: float = 10.0) -> None:
        self.detect_ip_path = detect_ip_path
        self.timeout_seconds = timeout_seconds

    def detect_ip(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Run detect_ip and parse the first line of its stdout as an address."""
        log.debug("executing %s", self.detect_ip_path)
        try:
            result = subprocess.run(
                [self.detect_ip_path],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            raise DiscoveryFailedError(
                f"{self.detect_ip_path} timed out ({self.timeout_seconds}s)"
            ) from None
        except OSError as exc:
            raise DiscoveryFailedError(
                f"unable to execute {self.detect_ip_path}: {exc}"
            ) from exc

        if result.returncode != 0:
            raise DiscoveryFailedError(
                f"{self.detect_ip_path} exited with code {result.returncode}: "
                f"{result.stderr.strip()[:500]}"
            )

        lines = result.stdout.splitlines()
        first = lines[0].strip() if lines else ""
        if not first:
            raise DiscoveryFailedError(f"{self.detect_ip_path} returned empty output")
        try:
            return ipaddress.ip_address(first)
        except ValueError:
            raise DiscoveryFailedError(
                f"{self.detect_ip_path} returned invalid IP address: {first}"
            ) from None
