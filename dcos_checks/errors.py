"""
dcos_checks/errors.py — Error kinds raised by settings, discovery and checks.

INVALID_CONFIG is raised before any check runs. DISCOVERY_FAILED,
TRANSPORT_FAILED and DECODE_FAILED are attached to a CheckResult by the
check that hit them; the dispatcher turns them into FatalCheckError.
"""

from __future__ import annotations


class ChecksError(Exception):
    """Base class for every error this package raises on purpose."""


class InvalidConfigError(ChecksError):
    """A flag is missing or out of domain, or (role, tls) has no port."""


class DiscoveryFailedError(ChecksError):
    """The detect_ip helper could not be run or its output is not an IP."""


class TransportFailedError(ChecksError):
    """Building, sending or reading an HTTP request failed."""


class DecodeFailedError(ChecksError):
    """The diagnostics body is not JSON or does not have the expected shape."""


class FatalCheckError(ChecksError):
    def __init__(self, check_id: str, cause: BaseException, exit_code: int) -> None:
        super().__init__(f"Error executing {check_id}: {cause}")
        self.check_id = check_id
        self.cause = cause
        self.exit_code = exit_code
