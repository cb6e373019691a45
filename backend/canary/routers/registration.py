"""Device registration and administration endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_artifact_store, get_registry
from ..exceptions import (
    ArtifactStorageError,
    DeviceConflictError,
    DeviceNotFoundError,
    InvalidPayloadError,
)
from ..schemas.registration import (
    ApproveResponse,
    DeviceRegister,
    DeviceRegistrationResponse,
    DeviceUpdate,
    DeviceUploadByMac,
    MessageResponse,
    RegisterResponse,
    UploadResponse,
)
from ..services import ArtifactStore, DeviceRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["registration"])


@router.post("/registerCanary", response_model=RegisterResponse)
async def register_device(data: DeviceRegister, registry: DeviceRegistry = Depends(get_registry)):
    """Register a new device. It stays pending until an admin approves it."""
    logger.info(f"Received device registration: {data.device_name} ({data.mac_address})")
    try:
        device = await registry.register(
            data.device_name,
            data.mac_address,
            destination=data.destination,
            interval_minutes=data.interval_minutes,
        )
    except DeviceConflictError:
        logger.warning(f"Registration rejected - MAC already registered: {data.mac_address}")
        raise HTTPException(status_code=400, detail="MAC address already registered.")
    
    return RegisterResponse(message="Device registered successfully", id=device.id)


@router.get("/canaryRegister", response_model=List[DeviceRegistrationResponse])
async def list_devices(registry: DeviceRegistry = Depends(get_registry)):
    """List all registered devices."""
    devices = await registry.list_devices()
    return [DeviceRegistrationResponse.model_validate(d) for d in devices]


@router.put("/canaryRegister/approve/{device_id}", response_model=ApproveResponse)
async def approve_device(device_id: int, registry: DeviceRegistry = Depends(get_registry)):
    """Approve a device and hand back its new authenticator key.
    
    This is the only response that carries the key in plaintext; approving
    again rotates it.
    """
    try:
        auth_key = await registry.approve(device_id)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail="Device not found")
    
    return ApproveResponse(message="Device approved", auth_key=auth_key)


@router.post("/canaryRegister/uploadByMac", response_model=UploadResponse)
async def upload_by_mac(
    data: DeviceUploadByMac,
    registry: DeviceRegistry = Depends(get_registry),
    artifacts: ArtifactStore = Depends(get_artifact_store),
):
    """Update a device by MAC and, when a bundle is attached, flag it for update.
    
    The bundle is written before the flag is set, so a failed write never
    leaves a device waiting for a file that does not exist.
    """
    payload = None
    if data.zip_binary:
        try:
            payload = artifacts.decode(data.zip_binary)
        except InvalidPayloadError as e:
            raise HTTPException(status_code=400, detail=str(e))
    
    if not await registry.get_by_mac(data.mac_address):
        raise HTTPException(status_code=404, detail="Device not found")
    
    file_path = None
    if payload is not None:
        try:
            file_path = await artifacts.save(payload, data.zip_name)
        except ArtifactStorageError:
            raise HTTPException(status_code=500, detail="Error saving file")
    
    try:
        await registry.update_by_mac(
            data.mac_address,
            data.device_name,
            destination=data.destination,
            interval_minutes=data.interval_minutes,
            has_artifact=payload is not None,
        )
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail="Device not found")
    
    if file_path is not None:
        return UploadResponse(message="Device updated + zip file saved", filePath=str(file_path))
    return UploadResponse(message="Device updated (no zip file)")


@router.put("/canaryRegister/{device_id}", response_model=MessageResponse)
async def update_device(
    device_id: int,
    data: DeviceUpdate,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Overwrite a device's name, MAC, destinations, interval and update flag."""
    try:
        await registry.update(
            device_id,
            data.device_name,
            data.mac_address,
            destination=data.destination,
            interval_minutes=data.interval_minutes,
            update_script=data.update_script,
        )
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail="Device not found")
    except DeviceConflictError:
        raise HTTPException(status_code=400, detail="MAC address already registered.")
    
    return MessageResponse(message="Device updated successfully")


@router.delete("/canaryRegister/{device_id}", response_model=MessageResponse)
async def delete_device(device_id: int, registry: DeviceRegistry = Depends(get_registry)):
    """Delete a registration. Telemetry it already sent is kept."""
    try:
        await registry.delete(device_id)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail="Device not found")
    
    return MessageResponse(message="Device deleted successfully")
