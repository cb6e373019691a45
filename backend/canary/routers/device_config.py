"""Device-facing configuration endpoints."""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_config_resolver, get_registry
from ..exceptions import DeviceNotFoundError
from ..schemas.device_config import DeviceConfigResponse, ResetFlagRequest
from ..schemas.registration import MessageResponse
from ..services import ConfigResolver, DeviceRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/canaryConfig", tags=["config"])


@router.get("", response_model=DeviceConfigResponse)
async def get_device_config(
    mac_address: Optional[str] = Query(None),
    resolver: ConfigResolver = Depends(get_config_resolver),
):
    """Destinations, probe interval and key for a device."""
    if not mac_address:
        raise HTTPException(status_code=400, detail="MAC address is required in the query string")
    
    try:
        config = await resolver.resolve(mac_address)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail="Device not found for the given MAC address")
    
    return DeviceConfigResponse(**asdict(config))


@router.post("/resetFlag", response_model=MessageResponse)
async def reset_update_flag(
    data: ResetFlagRequest,
    registry: DeviceRegistry = Depends(get_registry),
):
    """Device reports the outcome of an update (0 when it was applied)."""
    await registry.reset_update_flag(data.mac_address, data.update_script)
    return MessageResponse(message="update_script reset successfully")
