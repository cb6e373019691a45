"""Telemetry schemas for API."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, Field, field_serializer, field_validator

# Format used for timestamps in telemetry responses
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class WebsitePerformance(BaseModel):
    """Result of probing one destination URL."""
    url: str
    http_status: Optional[int] = None
    load_time: Optional[float] = None
    content_length: Optional[int] = None
    error_message: Optional[str] = None


class NetworkPerformance(BaseModel):
    """Result of the bandwidth/latency probe."""
    download_speed_mbps: Optional[float] = None
    upload_speed_mbps: Optional[float] = None
    ping_ms: Optional[float] = None


class TelemetryReport(BaseModel):
    """Schema for a device submitting one round of measurements."""
    timestamp: datetime
    mac_address: str = Field(..., min_length=1, max_length=64)
    authenticator_key: Optional[str] = None
    website_performance: WebsitePerformance
    network_performance: NetworkPerformance
    trace_route: Optional[Union[str, List[Any], Dict[str, Any]]] = None
    
    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        """Offsets are folded into naive UTC; naive values are taken as UTC already."""
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class TelemetryRecordResponse(BaseModel):
    """Schema for a stored telemetry row in API responses."""
    id: int
    deviceName: Optional[str] = Field(None, validation_alias=AliasChoices("device_name", "deviceName"))
    mac_address: str
    url: Optional[str] = None
    http_status: Optional[int] = None
    load_time: Optional[float] = None
    content_length: Optional[int] = None
    error_message: Optional[str] = None
    download_speed_mbps: Optional[float] = None
    upload_speed_mbps: Optional[float] = None
    ping_ms: Optional[float] = None
    traceroute_hops: Optional[str] = None
    timestamp: datetime
    
    class Config:
        from_attributes = True
    
    @field_serializer("timestamp")
    def format_timestamp(self, value: datetime) -> str:
        return value.strftime(TIMESTAMP_FORMAT)
