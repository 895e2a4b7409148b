from __future__ import annotations

from typing import Any

import pytest

import uavfleet.cli.docking as docking_cli
import uavfleet.cli.pod as pod_cli
from uavfleet.infrastructure.errors import APIError

_STATION = {
    "id": 1,
    "name": "Alpha",
    "latitude": 47.5,
    "longitude": 19.0,
    "maxCapacity": 4,
    "currentOccupancy": 1,
    "stationType": "CHARGING",
    "chargingAvailable": True,
    "weatherProtected": True,
}


@pytest.fixture
def pod(monkeypatch: pytest.MonkeyPatch, fleet_ctx: Any, fake_api: Any) -> Any:
    monkeypatch.setattr(pod_cli, "build_context", lambda: fleet_ctx)
    fake_api.responses[("GET", "/api/hibernate-pod/status")] = {
        "currentCapacity": 2,
        "maxCapacity": 2,
        "uavIds": [4, 7],
    }
    return fake_api


@pytest.fixture
def docking(monkeypatch: pytest.MonkeyPatch, fleet_ctx: Any, fake_api: Any) -> Any:
    monkeypatch.setattr(docking_cli, "build_context", lambda: fleet_ctx)
    return fake_api


def test_pod_status(pod: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert pod_cli.main(["status"]) == 0
    out = capsys.readouterr().out
    assert "Hibernate pod: 2/2 (100.0% used, 0 free) FULL" in out
    assert "UAVs: 4, 7" in out


def test_pod_add_rejected(pod: Any, capsys: pytest.CaptureFixture[str]) -> None:
    pod.responses[("POST", "/api/hibernate-pod/add")] = APIError("Hibernate pod is full")
    assert pod_cli.main(["add", "9"]) == 1
    assert "Error: Hibernate pod is full" in capsys.readouterr().err
    assert pod.calls[-1]["params"] == {"uavId": 9}


def test_pod_remove(pod: Any, capsys: pytest.CaptureFixture[str]) -> None:
    pod.responses[("POST", "/api/hibernate-pod/remove")] = {
        "currentCapacity": 1,
        "maxCapacity": 2,
        "uavIds": [4],
    }
    assert pod_cli.main(["remove", "7"]) == 0
    assert "Hibernate pod: 1/2 (50.0% used, 1 free)" in capsys.readouterr().out


def test_docking_list(docking: Any, capsys: pytest.CaptureFixture[str]) -> None:
    docking.responses[("GET", "/api/docking-stations")] = [_STATION]
    assert docking_cli.main(["list"]) == 0
    out = capsys.readouterr().out
    assert "[1] Alpha CHARGING OPERATIONAL 1/4 (3 free) charging, sheltered" in out


def test_docking_available_empty(docking: Any, capsys: pytest.CaptureFixture[str]) -> None:
    docking.responses[("GET", "/api/docking-stations/available")] = {"stations": []}
    assert docking_cli.main(["list", "--available"]) == 0
    assert "No docking stations found." in capsys.readouterr().out


def test_docking_nearest(docking: Any, capsys: pytest.CaptureFixture[str]) -> None:
    docking.responses[("GET", "/api/docking-stations/nearest")] = [_STATION]
    assert docking_cli.main(["nearest", "47.4", "19.1", "--limit", "2"]) == 0
    assert "Alpha" in capsys.readouterr().out
    assert docking.calls[-1]["params"] == {"latitude": 47.4, "longitude": 19.1, "limit": 2}


def test_docking_nearest_rejects_bad_coordinates(docking: Any) -> None:
    with pytest.raises(SystemExit) as exc:
        docking_cli.main(["nearest", "95", "0"])
    assert exc.value.code == 2
