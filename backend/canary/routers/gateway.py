"""Public-facing gateway endpoints.

Device traffic is relayed verbatim to the internal API and the upstream
status and body are returned unchanged. The only responses produced here are
local validation failures, transport failures and the update-script download.
"""
import json
import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse

from ..dependencies import get_relay
from ..exceptions import UpstreamError
from ..services import RelayedResponse, UpstreamRelay

logger = logging.getLogger(__name__)
router = APIRouter(tags=["gateway"])


def _peek_mac(body: bytes) -> str | None:
    """MAC address from a JSON body, for logging and local validation."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("mac_address")
    return None


def _mirror(upstream: RelayedResponse) -> Response:
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
    )


@router.post("/canaryPerformanceFromPi")
async def relay_performance(request: Request, relay: UpstreamRelay = Depends(get_relay)):
    """Relay a telemetry submission."""
    body = await request.body()
    mac_address = _peek_mac(body)
    logger.info(f"Received performance data from device (MAC: {mac_address})")
    
    try:
        upstream = await relay.forward(
            "POST",
            "/api/canaryPerformanceFromPi",
            content=body,
            headers=request.headers,
        )
    except UpstreamError:
        logger.error(f"Error forwarding performance data (MAC: {mac_address})")
        raise HTTPException(status_code=500, detail="Error processing performance data")
    
    logger.info(f"Forwarded performance data (MAC: {mac_address}): {upstream.status_code}")
    return _mirror(upstream)


@router.get("/canaryConfig")
async def relay_config(request: Request, relay: UpstreamRelay = Depends(get_relay)):
    """Relay a configuration lookup."""
    mac_address = request.query_params.get("mac_address")
    logger.info(f"Received canaryConfig request from device (MAC: {mac_address})")
    
    if not mac_address:
        logger.warning("Missing MAC address in canaryConfig request.")
        raise HTTPException(status_code=400, detail="MAC address is required")
    
    try:
        upstream = await relay.forward(
            "GET",
            "/api/canaryConfig",
            params=request.query_params.multi_items(),
            headers=request.headers,
        )
    except UpstreamError:
        logger.error(f"Error forwarding canaryConfig request (MAC: {mac_address})")
        raise HTTPException(status_code=500, detail="Error fetching device configuration")
    
    return _mirror(upstream)


@router.post("/canaryConfig/resetFlag")
async def relay_reset_flag(request: Request, relay: UpstreamRelay = Depends(get_relay)):
    """Relay an update acknowledgement."""
    body = await request.body()
    mac_address = _peek_mac(body)
    logger.info(f"Received resetFlag request from device (MAC: {mac_address})")
    
    if not mac_address:
        logger.warning("Missing MAC address in resetFlag request.")
        raise HTTPException(status_code=400, detail="MAC address is required")
    
    try:
        upstream = await relay.forward(
            "POST",
            "/api/canaryConfig/resetFlag",
            content=body,
            headers=request.headers,
        )
    except UpstreamError:
        logger.error(f"Error forwarding resetFlag request (MAC: {mac_address})")
        raise HTTPException(status_code=500, detail="Error resetting update_script")
    
    return _mirror(upstream)


@router.get("/getCanaryScript")
async def get_canary_script(request: Request):
    """Download the generic update-script bundle."""
    file_path = request.app.state.settings.get_update_script_path()
    logger.info(f"Serving update script from: {file_path}")
    
    if not os.path.isfile(file_path) or not os.access(file_path, os.R_OK):
        logger.error(f"Error sending update script: {file_path} is missing or unreadable")
        raise HTTPException(status_code=500, detail="Error sending update script")
    
    return FileResponse(
        file_path,
        filename=os.path.basename(file_path),
        media_type="application/zip",
    )
