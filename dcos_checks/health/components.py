"""
dcos_checks/health/components.py — DC/OS components (systemd units) health.

GETs /system/health/v1 from the local dcos-diagnostics service and reports
every unit whose health field is not 0. The response looks like:

    {"units": [{"id": "dcos-mesos-master.service", "name": "Mesos Master",
                "health": 0, "output": "", "description": "...", "help": "..."}]}
"""

from __future__ import annotations

import http.client
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, StrictInt, ValidationError, field_validator

from dcos_checks import endpoint
from dcos_checks.errors import ChecksError, DecodeFailedError, TransportFailedError
from dcos_checks.health import STATUS_FAILURE, STATUS_OK, STATUS_UNKNOWN, CheckResult
from dcos_checks.settings import DEFAULT_HEALTH_URL

if TYPE_CHECKING:
    from dcos_checks.client import HTTPClient
    from dcos_checks.health import RunContext
    from dcos_checks.nodeinfo import NodeInfo
    from dcos_checks.settings import Settings

log = logging.getLogger(__name__)

DEFAULT_NAME = "DC/OS components health check"


class Unit(BaseModel):
    id: str = ""
    name: str
    health: StrictInt = Field(ge=0)
    output: str = ""
    description: str = ""
    help: str = ""


class DiagnosticsResponse(BaseModel):
    units: list[Unit] = []

    @field_validator("units", mode="before")
    @classmethod
    def null_units_are_empty(cls, v: object) -> object:
        return [] if v is None else v

    def check_health(self) -> tuple[list[str], int]:
        errors = [
            f"component {unit.name} has health status {unit.health}"
            for unit in self.units
            if unit.health != STATUS_OK
        ]
        return errors, STATUS_FAILURE if errors else STATUS_OK


def decode(body: bytes | str) -> DiagnosticsResponse:
    try:
        return DiagnosticsResponse.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeFailedError(f"unable to unmarshal diagnostics response: {exc}") from exc


def evaluate(response: DiagnosticsResponse) -> tuple[str, int]:
    errors, code = response.check_health()
    return ", ".join(errors), code


class ComponentsCheck:
    def __init__(
        self,
        name: str = DEFAULT_NAME,
        health_path: str = DEFAULT_HEALTH_URL,
        detector: NodeInfo | None = None,
    ) -> None:
        self.name = name
        self.health_path = health_path
        self.detector = detector

    def id(self) -> str:
        return self.name

    def run(self, ctx: RunContext | None, cfg: Settings, client: HTTPClient) -> CheckResult:
        try:
            url = endpoint.resolve(cfg, self.health_path, self.detector)
        except ChecksError as exc:
            return CheckResult("", STATUS_UNKNOWN, exc)

        log.info("GET %s", url)
        try:
            req = client.request("GET", url)
        except ValueError as exc:
            return CheckResult(
                "", STATUS_UNKNOWN,
                TransportFailedError(f"unable to create a new HTTP request: {exc}"),
            )

        try:
            resp = client.do(req, ctx)
        except ChecksError as exc:
            return CheckResult("", STATUS_UNKNOWN, exc)
        except (OSError, http.client.HTTPException) as exc:
            return CheckResult(
                "", STATUS_UNKNOWN,
                TransportFailedError(f"unable to GET {self.health_path}: {exc}"),
            )

        # Status code is not checked; a non-2xx body goes to the decoder as is.
        try:
            with resp:
                log.debug("%s returned status %s", url, resp.getcode())
                body = resp.read()
        except (OSError, http.client.HTTPException) as exc:
            return CheckResult(
                "", STATUS_UNKNOWN,
                TransportFailedError(f"unable to read response body: {exc}"),
            )

        try:
            response = decode(body)
        except DecodeFailedError as exc:
            return CheckResult("", STATUS_UNKNOWN, exc)

        message, code = evaluate(response)
        return CheckResult(message, code)
