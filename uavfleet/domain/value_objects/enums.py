from enum import Enum


class UAVStatus(str, Enum):
    AUTHORIZED = "AUTHORIZED"
    UNAUTHORIZED = "UNAUTHORIZED"


class OperationalStatus(str, Enum):
    READY = "READY"
    IN_FLIGHT = "IN_FLIGHT"
    MAINTENANCE = "MAINTENANCE"
    CHARGING = "CHARGING"
    HIBERNATING = "HIBERNATING"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    EMERGENCY = "EMERGENCY"
    LOST_COMMUNICATION = "LOST_COMMUNICATION"


class ChargingStatus(str, Enum):
    CHARGING = "CHARGING"
    DISCHARGING = "DISCHARGING"
    FULL = "FULL"
    CRITICAL = "CRITICAL"


class AlertType(str, Enum):
    BATTERY_LOW = "BATTERY_LOW"
    BATTERY_CRITICAL = "BATTERY_CRITICAL"
    UAV_OFFLINE = "UAV_OFFLINE"
    UNAUTHORIZED_UAV = "UNAUTHORIZED_UAV"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    MAINTENANCE_DUE = "MAINTENANCE_DUE"
    GEOFENCE_VIOLATION = "GEOFENCE_VIOLATION"
    EMERGENCY_LANDING = "EMERGENCY_LANDING"
    COMMUNICATION_LOST = "COMMUNICATION_LOST"
    DOCKING_STATION_ERROR = "DOCKING_STATION_ERROR"
    HIBERNATE_POD_FULL = "HIBERNATE_POD_FULL"
    NOTIFICATION = "NOTIFICATION"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class HealthStatus(str, Enum):
    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


class StationStatus(str, Enum):
    OPERATIONAL = "OPERATIONAL"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    EMERGENCY = "EMERGENCY"


class StationType(str, Enum):
    STANDARD = "STANDARD"
    CHARGING = "CHARGING"
    MAINTENANCE = "MAINTENANCE"
    EMERGENCY = "EMERGENCY"
    WEATHER_SHELTER = "WEATHER_SHELTER"


class DockingPurpose(str, Enum):
    CHARGING = "CHARGING"
    MAINTENANCE = "MAINTENANCE"
    STORAGE = "STORAGE"
    EMERGENCY = "EMERGENCY"


class TimeRange(str, Enum):
    LAST_HOUR = "1h"
    LAST_6_HOURS = "6h"
    LAST_DAY = "24h"
    LAST_WEEK = "7d"
    LAST_MONTH = "30d"
