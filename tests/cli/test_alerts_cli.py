from __future__ import annotations

from typing import Any

import pytest

import uavfleet.cli.alerts as alerts_cli
from uavfleet.infrastructure.errors import APIError, NetworkError

_ALERTS = {
    "alerts": [
        {
            "id": 1,
            "type": "BATTERY_LOW",
            "severity": "HIGH",
            "title": "Battery low",
            "message": "UAV 3 at 12%",
            "uavId": 3,
            "timestamp": "2024-05-01T10:00:00Z",
        },
        {
            "id": 2,
            "type": "UAV_OFFLINE",
            "severity": "LOW",
            "title": "Offline",
            "message": "gone",
            "acknowledged": True,
            "timestamp": "2024-05-01T11:00:00Z",
        },
        {
            "id": 3,
            "type": "GEOFENCE_VIOLATION",
            "severity": "CRITICAL",
            "title": "Geofence",
            "message": "left zone",
            "timestamp": "2024-05-01T12:00:00Z",
        },
    ]
}


@pytest.fixture
def cli(monkeypatch: pytest.MonkeyPatch, fleet_ctx: Any, fake_api: Any) -> Any:
    monkeypatch.setattr(alerts_cli, "build_context", lambda: fleet_ctx)
    fake_api.responses[("GET", "/api/dashboard/alerts")] = _ALERTS
    return fake_api


def test_list_hides_acknowledged_newest_first(
    cli: Any, capsys: pytest.CaptureFixture[str]
) -> None:
    assert alerts_cli.main(["list"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("2024-05-01T12:00:00+00:00 [CRITICAL] NEW 3: Geofence")
    assert lines[1].endswith("UAV 3 at 12% uav=3")


def test_list_all_and_severity(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert alerts_cli.main(["list", "--all"]) == 0
    assert len(capsys.readouterr().out.strip().splitlines()) == 3

    assert alerts_cli.main(["list", "--all", "--severity", "LOW", "HIGH"]) == 0
    out = capsys.readouterr().out
    assert " ack 2:" in out and " 1:" in out and " 3:" not in out


def test_list_empty_and_failure(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("GET", "/api/dashboard/alerts")] = {"alerts": []}
    assert alerts_cli.main(["list"]) == 0
    assert "No alerts." in capsys.readouterr().out

    cli.responses[("GET", "/api/dashboard/alerts")] = NetworkError("offline")
    assert alerts_cli.main(["list"]) == 1
    assert "Error: offline" in capsys.readouterr().err


def test_ack_single_and_multiple(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert alerts_cli.main(["ack", "1"]) == 0
    assert "Acknowledged 1 alert(s)." in capsys.readouterr().out
    assert cli.paths("POST") == ["/api/dashboard/alerts/1/acknowledge"]

    cli.responses[("POST", "/api/dashboard/alerts/acknowledge-multiple")] = {
        "acknowledged": [1],
        "failed": [3],
    }
    assert alerts_cli.main(["ack", "1", "3"]) == 1
    assert "Could not acknowledge 3: rejected by server" in capsys.readouterr().err


def test_ack_failure_reports_reason(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("POST", "/api/dashboard/alerts/7/acknowledge")] = APIError("Alert not found")
    assert alerts_cli.main(["ack", "7"]) == 1
    assert "Could not acknowledge 7: Alert not found" in capsys.readouterr().err


def test_dismiss(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert alerts_cli.main(["dismiss", "2"]) == 0
    assert "Dismissed alert 2." in capsys.readouterr().out
    cli.responses[("DELETE", "/api/dashboard/alerts/2")] = NetworkError("offline")
    assert alerts_cli.main(["dismiss", "2"]) == 1
    assert "Error: offline" in capsys.readouterr().err
