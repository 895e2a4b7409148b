from .alert import Alert, GeoPoint
from .auth import AuthSession, AuthTokens, Permission, Role, User
from .dashboard import (
    ChartPoint,
    ComponentHealth,
    ConnectionStatus,
    DashboardMetrics,
    RealtimeData,
    SystemHealth,
    WeatherData,
)
from .docking import DockingRecord, DockingStation, DockingStatistics
from .hibernate_pod import HibernatePodStatus
from .uav import (
    UAV,
    BatteryStatus,
    CreateUAVRequest,
    FleetStatistics,
    LocationUpdate,
    Region,
    UAVFilter,
)

__all__ = [
    "Alert",
    "AuthSession",
    "AuthTokens",
    "BatteryStatus",
    "ChartPoint",
    "ComponentHealth",
    "ConnectionStatus",
    "CreateUAVRequest",
    "DashboardMetrics",
    "DockingRecord",
    "DockingStation",
    "DockingStatistics",
    "FleetStatistics",
    "GeoPoint",
    "HibernatePodStatus",
    "LocationUpdate",
    "Permission",
    "RealtimeData",
    "Region",
    "Role",
    "SystemHealth",
    "UAV",
    "UAVFilter",
    "User",
    "WeatherData",
]
