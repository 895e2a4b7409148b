from __future__ import annotations

from typing import Any, Dict

import pytest

import uavfleet.cli.uavs as uavs_cli
from uavfleet.infrastructure.errors import NetworkError, NotFoundError


def _uav(uav_id: int, **extra: Any) -> Dict[str, Any]:
    return {
        "id": uav_id,
        "rfidTag": f"RFID-{uav_id}",
        "model": "X8",
        "ownerName": "Ops",
        **extra,
    }


@pytest.fixture
def cli(monkeypatch: pytest.MonkeyPatch, fleet_ctx: Any, fake_api: Any) -> Any:
    monkeypatch.setattr(uavs_cli, "build_context", lambda: fleet_ctx)
    fake_api.responses[("GET", "/api/uav/all")] = {
        "uavs": [
            _uav(1, status="AUTHORIZED", batteryLevel=80),
            _uav(2, ownerName="Harbor Patrol", inHibernatePod=True),
        ]
    }
    return fake_api


def test_list_prints_rows(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert uavs_cli.main(["list"]) == 0
    out = capsys.readouterr().out
    assert "[1] RFID-1 X8 (Ops) AUTHORIZED/READY battery=80%" in out
    assert "[2] RFID-2 X8 (Harbor Patrol) UNAUTHORIZED/READY battery=- [pod]" in out


def test_list_filters(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert uavs_cli.main(["list", "--status", "AUTHORIZED"]) == 0
    out = capsys.readouterr().out
    assert "RFID-1" in out and "RFID-2" not in out

    assert uavs_cli.main(["list", "--hibernating"]) == 0
    out = capsys.readouterr().out
    assert "RFID-2" in out and "RFID-1" not in out

    assert uavs_cli.main(["list", "--search", "nomatch"]) == 0
    assert "No UAVs found." in capsys.readouterr().out


def test_list_failure(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("GET", "/api/uav/all")] = NetworkError("Network connection failed.")
    assert uavs_cli.main(["list"]) == 1
    assert "Error: Network connection failed." in capsys.readouterr().err


def test_show(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("GET", "/api/uav/1")] = _uav(
        1,
        serialNumber="SN-1",
        regions=[{"id": 1, "regionName": "North"}],
        currentLatitude=47.5,
        currentLongitude=19.04,
        totalFlightHours=12.5,
    )
    assert uavs_cli.main(["show", "1"]) == 0
    out = capsys.readouterr().out
    assert "serial: SN-1" in out
    assert "regions: North" in out
    assert "location: 47.50000, 19.04000" in out
    assert "flight hours: 12.5" in out


def test_show_missing(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("GET", "/api/uav/9")] = NotFoundError("UAV not found")
    assert uavs_cli.main(["show", "9"]) == 1
    assert "UAV not found" in capsys.readouterr().err


def test_create(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("POST", "/api/uav")] = _uav(5, rfidTag="NEW-5")
    rc = uavs_cli.main(["create", "--rfid", "NEW-5", "--owner", "Ops", "--model", "X8"])
    assert rc == 0
    assert "Created [5] NEW-5" in capsys.readouterr().out
    body = cli.calls[-1]["data"]
    assert body["rfidTag"] == "NEW-5"
    assert body["status"] == "UNAUTHORIZED"


def test_create_with_empty_rfid_is_usage_error(
    cli: Any, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc:
        uavs_cli.main(["create", "--rfid", "", "--owner", "Ops", "--model", "X8"])
    assert exc.value.code == 2
    assert "invalid UAV:" in capsys.readouterr().err
    assert cli.paths("POST") == []


def test_delete_and_status(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    assert uavs_cli.main(["delete", "2"]) == 0
    assert "Deleted UAV 2." in capsys.readouterr().out
    assert cli.paths("DELETE") == ["/api/uav/2"]

    cli.responses[("PUT", "/api/uav/2/status")] = _uav(2, status="AUTHORIZED")
    assert uavs_cli.main(["status", "2", "AUTHORIZED"]) == 0
    assert "UAV 2 is now AUTHORIZED." in capsys.readouterr().out
    assert cli.calls[-1]["data"] == {"status": "AUTHORIZED"}


def test_toggle(cli: Any, capsys: pytest.CaptureFixture[str]) -> None:
    cli.responses[("GET", "/api/uav/1")] = _uav(1, status="AUTHORIZED")
    cli.responses[("PUT", "/api/uav/1/status")] = _uav(1, status="UNAUTHORIZED")
    assert uavs_cli.main(["toggle", "1"]) == 0
    assert "UAV 1 is now UNAUTHORIZED." in capsys.readouterr().out
    assert cli.calls[-1]["data"] == {"status": "UNAUTHORIZED"}


def test_invalid_status_choice_exits() -> None:
    with pytest.raises(SystemExit) as exc:
        uavs_cli.main(["status", "1", "FLYING"])
    assert exc.value.code == 2
