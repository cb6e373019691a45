"""FastAPI dependencies wiring request handlers to the app's services."""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .services import ArtifactStore, ConfigResolver, DeviceRegistry, TelemetryStore, UpstreamRelay


def get_registry(db: AsyncSession = Depends(get_db)) -> DeviceRegistry:
    return DeviceRegistry(db)


def get_telemetry_store(db: AsyncSession = Depends(get_db)) -> TelemetryStore:
    return TelemetryStore(db)


def get_config_resolver(registry: DeviceRegistry = Depends(get_registry)) -> ConfigResolver:
    return ConfigResolver(registry)


def get_artifact_store(request: Request) -> ArtifactStore:
    return request.app.state.artifact_store


def get_relay(request: Request) -> UpstreamRelay:
    return request.app.state.relay
