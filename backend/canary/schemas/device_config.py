"""Device configuration schemas for API."""
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class DeviceConfigResponse(BaseModel):
    """What a device needs to run its probes."""
    destinations: List[Any]
    interval_minutes: int
    authenticator_key: Optional[str] = None
    update_script: int = 0


class ResetFlagRequest(BaseModel):
    """Device acknowledging (0) or re-requesting (non-zero) its pending update."""
    mac_address: str = Field(..., min_length=1, max_length=64)
    update_script: int = 0
