"""
dcos_checks/settings.py — Configuration contract for the checks CLI.

Uses pydantic-settings to validate everything a check needs to know about
the node it runs on: role, TLS preference, how to find the node IP, and where
the credential material lives.

Two usage modes:
  Production (checks CLI):
      cfg = load_settings(config_file, overrides=cli_flags)
      # $HOME/.checks.yaml < CHECKS_* environment < command-line flags

  Tests (isolated — no config file, no os.environ bleed):
      cfg = Settings(role="master", node_ip="10.0.0.5")
"""
from __future__ import annotations

import ipaddress
import logging
import os
import pathlib
from collections.abc import Mapping
from typing import Literal, Optional

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from dcos_checks.errors import InvalidConfigError
from dcos_checks.nodeinfo import NodeInfo

log = logging.getLogger(__name__)

ROLE_MASTER = "master"
ROLE_AGENT = "agent"
ROLE_AGENT_PUBLIC = "agent_public"
VALID_ROLES = (ROLE_MASTER, ROLE_AGENT, ROLE_AGENT_PUBLIC)

DEFAULT_DETECT_IP = "/opt/mesosphere/bin/detect_ip"
DEFAULT_HEALTH_URL = "/system/health/v1"

ENV_PREFIX = "CHECKS_"
CONFIG_FILE_NAMES = (".checks.yaml", ".checks.yml")


class Settings(BaseSettings):
    # Settings() reads only kwargs. load_settings() is the production entry
    # point that layers the config file, CHECKS_* env vars and CLI flags.
    model_config = SettingsConfigDict(
        env_file=None,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)

    # -------------------------------------------------------------------------
    # Node
    # -------------------------------------------------------------------------
    role: Literal["master", "agent", "agent_public"]
    force_tls: bool = False
    node_ip: Optional[str] = None
    detect_ip: str = DEFAULT_DETECT_IP

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------
    iam_config: Optional[str] = None
    ca_cert: Optional[str] = None

    # -------------------------------------------------------------------------
    # Behaviour
    # -------------------------------------------------------------------------
    verbose: bool = False
    health_url: str = DEFAULT_HEALTH_URL
    timeout_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("role", "node_ip", "detect_ip", "iam_config", "ca_cert", mode="before")
    @classmethod
    def strip_whitespace(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    # -------------------------------------------------------------------------
    # Derived
    # -------------------------------------------------------------------------

    def ip(
        self, detector: NodeInfo | None = None
    ) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Return the node IP.

        An explicit node_ip always wins and the detector is never touched.
        Otherwise the detect_ip helper is executed and its output parsed.

        Raises:
            InvalidConfigError: node_ip is set but is not an IP literal.
            DiscoveryFailedError: detect_ip could not produce an address.
        """
        if self.node_ip:
            try:
                return ipaddress.ip_address(self.node_ip)
            except ValueError:
                raise InvalidConfigError(
                    f"node ip has invalid IP address: {self.node_ip}"
                ) from None

        if detector is None:
            detector = NodeInfo(self.detect_ip, timeout_seconds=self.timeout_seconds)
        return detector.detect_ip()


def _normalise_key(key: object) -> str:
    return str(key).strip().lower().replace("-", "_")


def _read_config_file(path: pathlib.Path) -> dict[str, object]:
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise InvalidConfigError(f"unable to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise InvalidConfigError(f"unable to parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise InvalidConfigError(
            f"config file {path} must contain a mapping, got {type(data).__name__}"
        )
    return {_normalise_key(k): v for k, v in data.items()}


def _find_config_file(config_file: str | None, environ: Mapping[str, str]) -> pathlib.Path | None:
    if config_file:
        path = pathlib.Path(config_file).expanduser()
        if not path.is_file():
            raise InvalidConfigError(f"config file {config_file} does not exist")
        return path
    home = environ.get("HOME")
    if not home:
        return None
    for name in CONFIG_FILE_NAMES:
        candidate = pathlib.Path(home) / name
        if candidate.is_file():
            return candidate
    return None


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"])
        if field == "role":
            if err["type"] == "missing":
                problems.append(f"--role is required (one of {', '.join(VALID_ROLES)})")
            else:
                problems.append(
                    f"--role must be one of {', '.join(VALID_ROLES)}: {err['input']}"
                )
        else:
            problems.append(f"{field}: {err['msg']} (got {err.get('input')!r})")
    return "; ".join(problems)


def load_settings(
    config_file: str | None = None,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings from a config file, the environment and flags.

    Precedence, lowest first:
      1. YAML config file (``config_file`` or ``$HOME/.checks.yaml``)
      2. ``CHECKS_<FIELD>`` environment variables (e.g. CHECKS_ROLE)
      3. ``overrides`` — only the flags the user actually passed

    A missing default config file is fine; a missing explicit one is not.

    Raises:
        InvalidConfigError: unreadable config file or any invalid value.
    """
    if environ is None:
        environ = os.environ

    merged: dict[str, object] = {}

    path = _find_config_file(config_file, environ)
    if path is not None:
        log.debug("Using config file: %s", path)
        merged.update(_read_config_file(path))

    for key, value in environ.items():
        if key.startswith(ENV_PREFIX):
            merged[_normalise_key(key[len(ENV_PREFIX):])] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            merged[_normalise_key(key)] = value

    known = {k: v for k, v in merged.items() if k in Settings.model_fields}
    try:
        return Settings(**known)
    except ValidationError as exc:
        raise InvalidConfigError(_describe_validation_error(exc)) from exc
