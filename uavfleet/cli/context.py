"""Wiring shared by the command line tools."""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from uavfleet.application.services.auth_service import AuthService
from uavfleet.application.services.dashboard_service import DashboardService
from uavfleet.application.services.docking_service import DockingStationService
from uavfleet.application.services.hibernate_pod_service import HibernatePodService
from uavfleet.application.services.region_service import RegionService
from uavfleet.application.services.uav_service import UAVService
from uavfleet.application.stores.auth_store import AuthStore
from uavfleet.application.stores.dashboard_store import DashboardStore
from uavfleet.application.stores.uav_store import UAVStore
from uavfleet.config.settings import Settings, settings
from uavfleet.infrastructure.fleet_api_client import FleetAPIClient
from uavfleet.logging_config import get_logger
from uavfleet.repositories.sessions import SessionRepo
from uavfleet.repositories.sqlite.sessions_sqlite import SessionRepoSqlite


@dataclass
class FleetContext:
    settings: Settings
    auth: AuthStore
    uavs: UAVStore
    dashboard: DashboardStore
    client: Optional[FleetAPIClient] = None


def open_session_db(db_path: str) -> sqlite3.Connection:
    parent = Path(db_path).parent
    if str(parent) not in ("", "."):
        os.makedirs(parent, exist_ok=True)
    return sqlite3.connect(db_path, timeout=30.0)


def build_context(
    cfg: Settings = settings,
    *,
    client: Optional[FleetAPIClient] = None,
    session_repo: Optional[SessionRepo] = None,
) -> FleetContext:
    """Create the API client, stores and session persistence.

    A previously saved session is restored and its token refreshed when it is
    about to expire.
    """
    get_logger()
    api = client or FleetAPIClient(
        cfg.api_url, timeout=cfg.timeout, max_retries=cfg.max_retries
    )
    repo = session_repo or SessionRepoSqlite(open_session_db(cfg.session_db))

    auth = AuthStore(AuthService(api), repo)
    api.on_unauthorized = auth.handle_unauthorized

    uavs = UAVStore(
        UAVService(api),
        pod_service=HibernatePodService(api),
        docking_service=DockingStationService(api),
        region_service=RegionService(api),
    )
    dashboard = DashboardStore(
        DashboardService(api),
        cache_seconds=cfg.dashboard_cache_seconds,
        max_alerts=cfg.max_alerts,
        weather_enabled=cfg.feature_enabled("weather"),
    )

    if auth.restore():
        auth.ensure_fresh_token()
    return FleetContext(settings=cfg, auth=auth, uavs=uavs, dashboard=dashboard, client=api)
