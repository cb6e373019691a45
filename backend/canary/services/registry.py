"""Device registry - registration rows and their approval lifecycle."""
import json
import logging
import secrets
from typing import List, Optional, Sequence, Union

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import DeviceConflictError, DeviceNotFoundError, UnauthorizedError
from ..models import DeviceRegistration, ApprovalStatus
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)

# 16 random bytes, hex-encoded
AUTH_KEY_BYTES = 16


def generate_auth_key() -> str:
    """Generate a fresh authenticator key for an approved device."""
    return secrets.token_hex(AUTH_KEY_BYTES)


def serialize_destination(destination: Optional[Union[Sequence[str], str]]) -> Optional[str]:
    """Store destinations as JSON text; strings are assumed to be serialized already."""
    if destination is None:
        return None
    if isinstance(destination, str):
        return destination
    return json.dumps(list(destination))


class DeviceRegistry:
    """Sole writer of ``canary_device_registration`` rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, device_id: int) -> DeviceRegistration:
        result = await self.session.execute(
            select(DeviceRegistration).where(DeviceRegistration.id == device_id)
        )
        device = result.scalar_one_or_none()
        if not device:
            raise DeviceNotFoundError(f"No device with id {device_id}")
        return device

    async def get_by_mac(self, mac_address: str) -> Optional[DeviceRegistration]:
        result = await self.session.execute(
            select(DeviceRegistration).where(DeviceRegistration.mac_address == mac_address)
        )
        return result.scalar_one_or_none()

    async def list_devices(self) -> List[DeviceRegistration]:
        """All registrations, for administrative display."""
        result = await self.session.execute(select(DeviceRegistration).order_by(DeviceRegistration.id))
        return list(result.scalars().all())

    async def register(
        self,
        device_name: str,
        mac_address: str,
        destination: Optional[Union[Sequence[str], str]] = None,
        interval_minutes: Optional[int] = None,
    ) -> DeviceRegistration:
        """Create a pending registration.

        The existence query gives a clean error for the common case; the
        unique index on ``mac_address`` catches two registrations racing
        past it.
        """
        if await self.get_by_mac(mac_address):
            raise DeviceConflictError(f"MAC address {mac_address} already registered")

        async def work():
            device = DeviceRegistration(
                device_name=device_name,
                mac_address=mac_address,
                destination=serialize_destination(destination),
                interval_minutes=interval_minutes or None,
                approval_status=ApprovalStatus.PENDING.value,
                authenticator_key=None,
                update_script=0,
            )
            self.session.add(device)
            await self.session.flush()
            return device

        try:
            device = await retry_on_lock(self.session, work)
        except IntegrityError:
            await self.session.rollback()
            raise DeviceConflictError(f"MAC address {mac_address} already registered")

        logger.info(f"Device registered: {device_name} ({mac_address}), id={device.id}")
        return device

    async def approve(self, device_id: int) -> str:
        """Approve a device and issue it a new authenticator key.

        Approving an already-approved device rotates its key. The key is
        returned to the caller and never logged.
        """
        device = await self.get(device_id)
        auth_key = generate_auth_key()

        async def work():
            await self.session.execute(
                update(DeviceRegistration)
                .where(DeviceRegistration.id == device_id)
                .values(approval_status=ApprovalStatus.APPROVED.value, authenticator_key=auth_key)
            )

        await retry_on_lock(self.session, work)
        logger.info(f"Device approved: {device.device_name} ({device.mac_address})")
        return auth_key

    async def update(
        self,
        device_id: int,
        device_name: str,
        mac_address: str,
        destination: Optional[Union[Sequence[str], str]],
        interval_minutes: Optional[int],
        update_script: bool,
    ) -> None:
        """Overwrite the mutable fields; approval state and key are left alone."""
        await self.get(device_id)

        async def work():
            await self.session.execute(
                update(DeviceRegistration)
                .where(DeviceRegistration.id == device_id)
                .values(
                    device_name=device_name,
                    mac_address=mac_address,
                    destination=serialize_destination(destination),
                    interval_minutes=interval_minutes,
                    update_script=1 if update_script else 0,
                )
            )

        try:
            await retry_on_lock(self.session, work)
        except IntegrityError:
            await self.session.rollback()
            raise DeviceConflictError(f"MAC address {mac_address} already registered")

        logger.info(f"Device updated: id={device_id} ({mac_address})")

    async def update_by_mac(
        self,
        mac_address: str,
        device_name: str,
        destination: Optional[Union[Sequence[str], str]],
        interval_minutes: Optional[int],
        has_artifact: bool,
    ) -> None:
        """Overwrite the mutable fields of the device with this MAC.

        ``update_script`` is set when an update bundle came with the request
        and cleared otherwise.
        """
        if not await self.get_by_mac(mac_address):
            raise DeviceNotFoundError(f"No device with MAC address {mac_address}")

        async def work():
            await self.session.execute(
                update(DeviceRegistration)
                .where(DeviceRegistration.mac_address == mac_address)
                .values(
                    device_name=device_name,
                    destination=serialize_destination(destination),
                    interval_minutes=interval_minutes,
                    update_script=1 if has_artifact else 0,
                )
            )

        await retry_on_lock(self.session, work)
        logger.info(f"Device updated by MAC: {mac_address} (update_script={1 if has_artifact else 0})")

    async def delete(self, device_id: int) -> None:
        """Remove a registration. Its telemetry stays."""
        device = await self.get(device_id)

        async def work():
            await self.session.execute(
                delete(DeviceRegistration).where(DeviceRegistration.id == device_id)
            )

        await retry_on_lock(self.session, work)
        logger.info(f"Device deleted: {device.device_name} ({device.mac_address})")

    async def authenticate(self, mac_address: str, authenticator_key: Optional[str]) -> DeviceRegistration:
        """Return the registration matching both MAC and key exactly."""
        if not mac_address or not authenticator_key:
            raise UnauthorizedError("Invalid mac_address or authenticator_key")

        result = await self.session.execute(
            select(DeviceRegistration)
            .where(
                DeviceRegistration.mac_address == mac_address,
                DeviceRegistration.authenticator_key == authenticator_key,
            )
            .limit(1)
        )
        device = result.scalar_one_or_none()
        if not device:
            raise UnauthorizedError("Invalid mac_address or authenticator_key")
        return device

    async def reset_update_flag(self, mac_address: str, value: int) -> int:
        """Set ``update_script`` for a MAC; returns the number of rows touched."""
        async def work():
            result = await self.session.execute(
                update(DeviceRegistration)
                .where(DeviceRegistration.mac_address == mac_address)
                .values(update_script=value)
            )
            return result.rowcount

        rowcount = await retry_on_lock(self.session, work)
        if not rowcount:
            logger.warning(f"update_script reset for unregistered MAC: {mac_address}")
        return rowcount
