"""Telemetry ingestion and query endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from ..dependencies import get_registry, get_telemetry_store
from ..exceptions import StorageError, UnauthorizedError
from ..schemas.telemetry import TelemetryReport, TelemetryRecordResponse
from ..services import DeviceRegistry, TelemetryStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["performance"])


@router.post("/canaryPerformanceFromPi", response_class=PlainTextResponse)
async def receive_performance(
    data: TelemetryReport,
    registry: DeviceRegistry = Depends(get_registry),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    """Device submits one round of measurements.
    
    The MAC address and authenticator key must match a registration exactly.
    """
    logger.info(f"Received performance data (MAC: {data.mac_address})")
    
    try:
        await registry.authenticate(data.mac_address, data.authenticator_key)
    except UnauthorizedError:
        logger.warning(f"Performance data rejected - invalid credentials (MAC: {data.mac_address})")
        raise HTTPException(status_code=401, detail="Invalid mac_address or authenticator_key")
    
    try:
        await store.ingest(data)
    except StorageError:
        raise HTTPException(status_code=500, detail="An error occurred")
    
    return "Data received"


@router.get("/canaryPerformance/latestPerDevice", response_model=List[TelemetryRecordResponse])
async def latest_per_device(store: TelemetryStore = Depends(get_telemetry_store)):
    """Newest record for every device that ever reported."""
    records = await store.latest_per_device()
    return [TelemetryRecordResponse.model_validate(r) for r in records]


@router.get("/canaryPerformance/allByMac/{mac}", response_model=List[TelemetryRecordResponse])
async def all_by_mac(mac: str, store: TelemetryStore = Depends(get_telemetry_store)):
    """Full history for one device, newest first."""
    logger.info(f"Fetching all records for MAC: {mac}")
    records = await store.all_by_mac(mac)
    return [TelemetryRecordResponse.model_validate(r) for r in records]
