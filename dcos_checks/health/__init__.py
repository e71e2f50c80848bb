"""
dcos_checks/health — Composable node checks for the checks CLI.

Each check exposes id() and run(ctx, cfg, client) -> CheckResult.
dcos_checks.checks runs them in order and folds the codes into one exit code.

Usage:
    from dcos_checks.health import CheckResult, STATUS_OK
    from dcos_checks.health.components import ComponentsCheck
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from dcos_checks.client import HTTPClient
    from dcos_checks.settings import Settings

# Nagios-style exit codes
STATUS_OK = 0
STATUS_WARNING = 1
STATUS_FAILURE = 2
STATUS_UNKNOWN = 3


@dataclass
class CheckResult:
    message: str
    code: int
    error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        if self.error is not None:
            self.code = STATUS_UNKNOWN


@dataclass(frozen=True)
class RunContext:
    """Deadline handle handed to every check; forwarded to outbound HTTP calls."""

    deadline: Optional[float] = None  # time.monotonic() based

    @classmethod
    def with_timeout(cls, seconds: float) -> RunContext:
        return cls(deadline=time.monotonic() + seconds)

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()


class Check(Protocol):
    def id(self) -> str: ...

    def run(
        self, ctx: RunContext | None, cfg: Settings, client: HTTPClient
    ) -> CheckResult: ...
