"""Database models."""
from .device_registration import DeviceRegistration, ApprovalStatus, DEFAULT_INTERVAL_MINUTES
from .telemetry_record import TelemetryRecord

__all__ = ["DeviceRegistration", "ApprovalStatus", "DEFAULT_INTERVAL_MINUTES", "TelemetryRecord"]
