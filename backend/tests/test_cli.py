"""
Tests for the command line interface
"""
import json

import pytest
from unittest.mock import AsyncMock, patch

from netdiag.cli import build_parser, main
from netdiag.errors import DomainNotFoundError
from netdiag.probes.schemas import PortRecord, PortScanResult, PortState


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("netdiag.cli.configure_logging"):
        yield


def _scan_result():
    return PortScanResult(
        host="example.com",
        scanned_ports=[22, 80],
        open_ports=[PortRecord(port=80, service="HTTP", state=PortState.OPEN)],
        closed_ports=[22],
        scan_duration_ms=12.5,
    )


def test_parser_commands():
    args = build_parser().parse_args(["ports", "example.com", "-p", "22", "80"])
    assert args.command == "ports"
    assert args.ports == [22, 80]

    args = build_parser().parse_args(["ping", "example.com", "--locations", "a", "b", "c"])
    assert args.locations == ["a", "b", "c"]


def test_invalid_port_exit_code(capsys):
    assert main(["ports", "127.0.0.1", "-p", "70000"]) == 2

    output = json.loads(capsys.readouterr().out)
    assert output["error"]["code"] == "VALIDATION_ERROR"


def test_missing_scheme_exit_code(capsys):
    assert main(["http", "example.com"]) == 2
    assert "http:// or https://" in capsys.readouterr().out


def test_json_output(capsys):
    with patch("netdiag.cli.DiagnosticService") as service_cls:
        service_cls.return_value.scan = AsyncMock(return_value=_scan_result())
        assert main(["--json", "ports", "example.com", "-p", "22", "80"]) == 0

    service_cls.return_value.scan.assert_awaited_once_with("example.com", [22, 80])
    output = json.loads(capsys.readouterr().out)
    assert output["open_ports"] == [{"port": 80, "service": "HTTP", "state": "open"}]
    assert output["closed_ports"] == [22]


def test_console_output(capsys):
    with patch("netdiag.cli.DiagnosticService") as service_cls:
        service_cls.return_value.scan = AsyncMock(return_value=_scan_result())
        assert main(["ports", "example.com"]) == 0

    out = capsys.readouterr().out
    assert "PORT SCAN - example.com" in out
    assert "80/tcp  open    HTTP" in out


def test_probe_failure_exit_code(capsys):
    with patch("netdiag.cli.DiagnosticService") as service_cls:
        service_cls.return_value.inspect = AsyncMock(
            side_effect=DomainNotFoundError("Domain not found: nope.invalid", {"domain": "nope.invalid"})
        )
        assert main(["ssl", "nope.invalid"]) == 1

    output = json.loads(capsys.readouterr().out)
    assert output["error"]["code"] == "DOMAIN_NOT_FOUND"
    assert output["error"]["retryable"] is True
