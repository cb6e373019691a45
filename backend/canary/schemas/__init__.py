"""Pydantic schemas for API request/response models."""
from .registration import (
    DeviceRegister,
    DeviceUpdate,
    DeviceUploadByMac,
    DeviceRegistrationResponse,
    RegisterResponse,
    ApproveResponse,
    UploadResponse,
    MessageResponse,
)
from .telemetry import (
    WebsitePerformance,
    NetworkPerformance,
    TelemetryReport,
    TelemetryRecordResponse,
)
from .device_config import (
    DeviceConfigResponse,
    ResetFlagRequest,
)

__all__ = [
    "DeviceRegister",
    "DeviceUpdate",
    "DeviceUploadByMac",
    "DeviceRegistrationResponse",
    "RegisterResponse",
    "ApproveResponse",
    "UploadResponse",
    "MessageResponse",
    "WebsitePerformance",
    "NetworkPerformance",
    "TelemetryReport",
    "TelemetryRecordResponse",
    "DeviceConfigResponse",
    "ResetFlagRequest",
]
