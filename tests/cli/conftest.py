# mypy: ignore-errors

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

import pytest

from uavfleet.application.services.auth_service import AuthService
from uavfleet.application.services.dashboard_service import DashboardService
from uavfleet.application.services.docking_service import DockingStationService
from uavfleet.application.services.hibernate_pod_service import HibernatePodService
from uavfleet.application.services.region_service import RegionService
from uavfleet.application.services.uav_service import UAVService
from uavfleet.application.stores.auth_store import AuthStore
from uavfleet.application.stores.dashboard_store import DashboardStore
from uavfleet.application.stores.uav_store import UAVStore
from uavfleet.cli.context import FleetContext
from uavfleet.config.settings import Settings
from uavfleet.repositories.sessions import InMemorySessionRepo


class FakeAPI:
    """Answers service calls from a ``(method, path) -> payload`` table."""

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self.token: str | None = None

    def _answer(self, method: str, path: str, data: Any, params: Any) -> Any:
        self.calls.append({"method": method, "path": path, "data": data, "params": params})
        result = self.responses.get((method, path))
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._answer("GET", path, None, params)

    def post(self, path: str, data: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return self._answer("POST", path, data, params)

    def put(self, path: str, data: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return self._answer("PUT", path, data, params)

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._answer("DELETE", path, None, params)

    def set_auth_token(self, token: str) -> None:
        self.token = token

    def clear_auth_token(self) -> None:
        self.token = None

    def paths(self, method: str) -> List[str]:
        return [c["path"] for c in self.calls if c["method"] == method]


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def fleet_ctx(fake_api: FakeAPI) -> FleetContext:
    cfg = Settings(
        api_url="http://fleet.test",
        ws_url="ws://fleet.test/ws",
        features={"realtime": True, "analytics": True, "weather": False},
    )
    return FleetContext(
        settings=cfg,
        auth=AuthStore(AuthService(fake_api), InMemorySessionRepo()),
        uavs=UAVStore(
            UAVService(fake_api),
            pod_service=HibernatePodService(fake_api),
            docking_service=DockingStationService(fake_api),
            region_service=RegionService(fake_api),
        ),
        dashboard=DashboardStore(
            DashboardService(fake_api), cache_seconds=0, max_alerts=50, weather_enabled=False
        ),
    )
