#!/usr/bin/env python3
"""
dcos_checks/checks.py — `checks` command line entry point.

Parses flags, builds the settings and the shared HTTP client, then runs the
checks registered for the requested subcommand one by one.

Exit codes (Nagios convention):
  0  OK       every check healthy
  2  FAILURE  at least one check reported a non-OK code
  3  UNKNOWN  a check failed to run, or the configuration is invalid

Usage:
    checks --role master components
    checks --role agent --force-tls --ca-cert /run/dcos/pki/CA/ca-bundle.crt components
    python -m dcos_checks.checks --role master --node-ip 10.0.0.5 components -u /system/health/v1

Importable (used by tests):
    from dcos_checks.checks import main, run_checks
    exit_code = run_checks([ComponentsCheck()], cfg, client)
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TextIO

from dcos_checks.client import new_client
from dcos_checks.errors import ChecksError, FatalCheckError, InvalidConfigError
from dcos_checks.health import STATUS_FAILURE, STATUS_OK, STATUS_UNKNOWN, RunContext
from dcos_checks.health.components import ComponentsCheck
from dcos_checks.settings import (
    DEFAULT_DETECT_IP,
    DEFAULT_HEALTH_URL,
    Settings,
    load_settings,
)

if TYPE_CHECKING:
    from dcos_checks.client import HTTPClient
    from dcos_checks.health import Check
    from dcos_checks.nodeinfo import NodeInfo

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool) -> None:
    """Log to stderr; stdout is reserved for check output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def run_checks(
    checks: Sequence[Check],
    cfg: Settings,
    client: HTTPClient,
    ctx: RunContext | None = None,
    out: TextIO | None = None,
) -> int:
    """Run ``checks`` in order and return the aggregate exit code.

    Any non-OK code makes the aggregate FAILURE. A check that returns an
    error stops the run: FatalCheckError is raised and later checks never
    execute.
    """
    if not checks:
        raise ValueError("run_checks needs at least one check")
    if out is None:
        out = sys.stdout

    exit_code = STATUS_OK
    for check in checks:
        result = check.run(ctx, cfg, client)
        if result.error is not None:
            log.critical("Error executing %s: %s", check.id(), result.error)
            raise FatalCheckError(check.id(), result.error, STATUS_UNKNOWN)
        if result.message:
            print(f"[{check.id()}]: {result.message}", file=out)
        if result.code != STATUS_OK:
            exit_code = STATUS_FAILURE
    return exit_code


def validate_required(cfg: Settings, detector: NodeInfo | None = None) -> None:
    """Make sure the node IP can be determined before any check runs."""
    try:
        ip = cfg.ip(detector)
    except ChecksError as exc:
        raise InvalidConfigError(
            "unable to get node's IP. Make sure to use --detect-ip or --node-ip option. "
            f"{exc}"
        ) from exc
    log.debug("using node's IP address %s", ip)


def _components_checks(cfg: Settings) -> list[Check]:
    return [ComponentsCheck(health_path=cfg.health_url)]


# subcommand -> factory of the checks it runs
SUBCOMMANDS: dict[str, Callable[[Settings], list[Check]]] = {
    "components": _components_checks,
}


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        # argparse exits 2 by default, which monitoring agents read as FAILURE
        self.print_usage(sys.stderr)
        self.exit(STATUS_UNKNOWN, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    # Persistent flags live on a parent parser shared by the root parser and
    # every subcommand. SUPPRESS keeps unset flags out of the namespace so
    # they never shadow config file or environment values.
    common = _ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
    common.add_argument(
        "--config", help="config file (default is $HOME/.checks.yaml)"
    )
    common.add_argument(
        "--force-tls", action="store_true", help="use HTTPS for GET/POST requests"
    )
    common.add_argument("--verbose", action="store_true", help="enable verbose output")
    common.add_argument(
        "--role", help="set DC/OS role (valid roles: master, agent, agent_public)"
    )
    common.add_argument(
        "--iam-config", help="a path to identity and access management config"
    )
    common.add_argument("--ca-cert", help="a path to certificate authority file")
    common.add_argument(
        "--detect-ip", help=f"a path to detect ip script (default {DEFAULT_DETECT_IP})"
    )
    common.add_argument("--node-ip", help="set node IP address overriding detect_ip output")

    parser = _ArgumentParser(
        prog="checks",
        usage="checks <check name> [parameters]",
        description="DC/OS checks provides an easy interface to check the DC/OS components health.",
        parents=[common],
    )
    sub = parser.add_subparsers(dest="command", metavar="<check name>")

    components = sub.add_parser(
        "components",
        parents=[common],
        argument_default=argparse.SUPPRESS,
        help="Check DC/OS components",
        description=(
            "Check DC/OS components health by making a GET request to the "
            "dcos-diagnostics service and validating the health field of every unit."
        ),
    )
    components.add_argument(
        "--health-url",
        "-u",
        help=f"set dcos-diagnostics health url (default {DEFAULT_HEALTH_URL})",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    return {k: v for k, v in vars(args).items() if k not in ("command", "config")}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help(sys.stderr)
        return STATUS_UNKNOWN

    setup_logging(getattr(args, "verbose", False))

    try:
        cfg = load_settings(getattr(args, "config", None), overrides=_overrides(args))
    except InvalidConfigError as exc:
        log.critical("%s", exc)
        return STATUS_UNKNOWN
    if cfg.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        client = new_client(cfg.iam_config, cfg.ca_cert, timeout_seconds=cfg.timeout_seconds)
    except InvalidConfigError as exc:
        log.critical("Unable to initialize http client: %s", exc)
        return STATUS_UNKNOWN

    try:
        validate_required(cfg)
    except InvalidConfigError as exc:
        log.critical("%s", exc)
        return STATUS_UNKNOWN

    checks = SUBCOMMANDS[args.command](cfg)
    try:
        return run_checks(checks, cfg, client, ctx=RunContext())
    except FatalCheckError as exc:
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
