"""Services for registration, telemetry, device config, update bundles and relaying."""
from .registry import DeviceRegistry
from .telemetry_store import TelemetryStore
from .config_resolver import ConfigResolver, DeviceConfig
from .artifact_store import ArtifactStore
from .relay import UpstreamRelay, RelayedResponse

__all__ = [
    "DeviceRegistry",
    "TelemetryStore",
    "ConfigResolver",
    "DeviceConfig",
    "ArtifactStore",
    "UpstreamRelay",
    "RelayedResponse",
]
