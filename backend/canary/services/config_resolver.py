"""Per-device configuration derived from the registration."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..exceptions import DeviceNotFoundError
from ..models import DEFAULT_INTERVAL_MINUTES
from .registry import DeviceRegistry

logger = logging.getLogger(__name__)


@dataclass
class DeviceConfig:
    """What a device is told to probe, how often, and with which key."""
    destinations: List[Any] = field(default_factory=list)
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    authenticator_key: Optional[str] = None
    update_script: int = 0


def parse_destinations(raw, mac_address: str = "") -> List[Any]:
    """Decode stored destinations; anything unusable becomes an empty list."""
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.error(f"Error parsing destination (MAC: {mac_address}): {e}")
        return []
    if not isinstance(parsed, list):
        logger.error(f"Destination is not a list (MAC: {mac_address}): {raw!r}")
        return []
    return parsed


class ConfigResolver:
    """Resolve the operational configuration for a MAC address."""

    def __init__(self, registry: DeviceRegistry):
        self.registry = registry

    async def resolve(self, mac_address: str) -> DeviceConfig:
        device = await self.registry.get_by_mac(mac_address)
        if not device:
            logger.info(f"Device not found for MAC address: {mac_address}")
            raise DeviceNotFoundError(f"No device with MAC address {mac_address}")

        return DeviceConfig(
            destinations=parse_destinations(device.destination, mac_address),
            interval_minutes=device.interval_minutes or DEFAULT_INTERVAL_MINUTES,
            authenticator_key=device.authenticator_key or None,
            update_script=device.update_script or 0,
        )
