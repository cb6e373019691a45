"""Device registration schemas for API."""
from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, Field


# Destinations arrive either as a list of URLs or as already-serialized JSON
Destination = Optional[Union[List[str], str]]


class DeviceRegister(BaseModel):
    """Schema for a device registering itself (or being registered by an admin)."""
    device_name: str = Field(..., min_length=1, max_length=255)
    mac_address: str = Field(..., min_length=1, max_length=64)
    destination: Destination = None
    interval_minutes: Optional[int] = Field(None, ge=0)


class DeviceUpdate(BaseModel):
    """Schema for a full overwrite of a registration's mutable fields."""
    device_name: str = Field(..., min_length=1, max_length=255)
    mac_address: str = Field(..., min_length=1, max_length=64)
    destination: Destination = None
    interval_minutes: Optional[int] = Field(None, ge=0)
    update_script: bool = False


class DeviceUploadByMac(BaseModel):
    """Schema for updating a device by MAC, optionally attaching an update bundle.
    
    ``zipBinary`` is the bundle encoded as base64 text.
    """
    device_name: str = Field(..., min_length=1, max_length=255)
    mac_address: str = Field(..., min_length=1, max_length=64)
    destination: Destination = None
    interval_minutes: Optional[int] = Field(None, ge=0)
    zip_binary: Optional[str] = Field(None, alias="zipBinary")
    zip_name: Optional[str] = Field(None, alias="zipName", max_length=255)


class DeviceRegistrationResponse(BaseModel):
    """Schema for a registration in API responses."""
    id: int
    device_name: str
    mac_address: str
    destination: Optional[str] = None
    interval_minutes: Optional[int] = None
    approval_status: str  # pending, approved
    authenticator_key: Optional[str] = None
    update_script: int = 0
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    id: int


class ApproveResponse(BaseModel):
    message: str
    auth_key: str


class UploadResponse(BaseModel):
    message: str
    filePath: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
