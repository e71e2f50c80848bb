"""Unit tests for dcos_checks.nodeinfo detect_ip execution."""

from __future__ import annotations

import ipaddress
import subprocess

import pytest

from dcos_checks import nodeinfo
from dcos_checks.errors import DiscoveryFailedError
from dcos_checks.nodeinfo import NodeInfo


def _fake_run(stdout: str = "", stderr: str = "", returncode: int = 0, calls=None):
    def fake_run(*args, **kwargs):  # noqa: ANN002, ANN003
        if calls is not None:
            calls.append((args, kwargs))
        return subprocess.CompletedProcess(args[0], returncode, stdout, stderr)

    return fake_run


def test_first_line_is_parsed(monkeypatch):
    calls = []
    monkeypatch.setattr(nodeinfo.subprocess, "run", _fake_run("10.0.0.7\nignored\n", calls=calls))
    ip = NodeInfo("/opt/mesosphere/bin/detect_ip", timeout_seconds=3).detect_ip()
    assert ip == ipaddress.ip_address("10.0.0.7")
    args, kwargs = calls[0]
    assert args[0] == ["/opt/mesosphere/bin/detect_ip"]
    assert kwargs["timeout"] == 3


def test_ipv6_output(monkeypatch):
    monkeypatch.setattr(nodeinfo.subprocess, "run", _fake_run("  fd00::1  \n"))
    assert NodeInfo("/bin/detect_ip").detect_ip() == ipaddress.ip_address("fd00::1")


def test_garbage_output_raises(monkeypatch):
    monkeypatch.setattr(nodeinfo.subprocess, "run", _fake_run("not-an-ip\n"))
    with pytest.raises(DiscoveryFailedError, match="not-an-ip"):
        NodeInfo("/bin/detect_ip").detect_ip()


def test_empty_output_raises(monkeypatch):
    monkeypatch.setattr(nodeinfo.subprocess, "run", _fake_run(""))
    with pytest.raises(DiscoveryFailedError, match="empty output"):
        NodeInfo("/bin/detect_ip").detect_ip()


def test_non_zero_exit_raises_with_stderr(monkeypatch):
    monkeypatch.setattr(
        nodeinfo.subprocess, "run", _fake_run(stderr="eth0: no such device", returncode=1)
    )
    with pytest.raises(DiscoveryFailedError, match="eth0: no such device"):
        NodeInfo("/bin/detect_ip").detect_ip()


def test_missing_helper_raises(tmp_path):
    with pytest.raises(DiscoveryFailedError, match="unable to execute"):
        NodeInfo(str(tmp_path / "missing_detect_ip")).detect_ip()


def test_timeout_raises(monkeypatch):
    def fake_run(*args, **kwargs):  # noqa: ANN002, ANN003
        raise subprocess.TimeoutExpired(cmd="detect_ip", timeout=1)

    monkeypatch.setattr(nodeinfo.subprocess, "run", fake_run)
    with pytest.raises(DiscoveryFailedError, match="timed out"):
        NodeInfo("/bin/detect_ip", timeout_seconds=1).detect_ip()
