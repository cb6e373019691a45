"""Telemetry store - append-only performance records."""
import json
import logging
from typing import List

from sqlalchemy import select, insert, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import StorageError
from ..models import DeviceRegistration, TelemetryRecord
from ..schemas.telemetry import TelemetryReport
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


def _traceroute_text(trace_route) -> str | None:
    """Traceroute output is kept as free-form text."""
    if trace_route is None or isinstance(trace_route, str):
        return trace_route
    return json.dumps(trace_route)


class TelemetryStore:
    """Sole writer of ``canary`` rows; reads registrations for the device name."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ingest(self, report: TelemetryReport) -> None:
        """Store one submission. The caller must have authenticated the device.

        The device name is copied from the registration inside the INSERT, so
        renaming a device later leaves existing rows as they were.
        """
        device_name = (
            select(DeviceRegistration.device_name)
            .where(DeviceRegistration.mac_address == report.mac_address)
            .limit(1)
            .scalar_subquery()
        )
        website = report.website_performance
        network = report.network_performance

        stmt = insert(TelemetryRecord).values(
            timestamp=report.timestamp,
            mac_address=report.mac_address,
            device_name=device_name,
            url=website.url,
            http_status=website.http_status,
            load_time=website.load_time,
            content_length=website.content_length,
            error_message=website.error_message or None,
            download_speed_mbps=network.download_speed_mbps,
            upload_speed_mbps=network.upload_speed_mbps,
            ping_ms=network.ping_ms,
            traceroute_hops=_traceroute_text(report.trace_route) or None,
        )

        async def work():
            await self.session.execute(stmt)

        try:
            await retry_on_lock(self.session, work)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error inserting telemetry (MAC: {report.mac_address}): {e}")
            raise StorageError("Failed to store telemetry") from e

        logger.debug(f"Telemetry stored (MAC: {report.mac_address})")

    async def latest_per_device(self) -> List[TelemetryRecord]:
        """The newest row for every MAC present in telemetry.

        Rows sharing the newest timestamp are resolved in favour of the
        highest id, i.e. the one inserted last.
        """
        ranked = (
            select(
                TelemetryRecord.id.label("id"),
                func.row_number()
                .over(
                    partition_by=TelemetryRecord.mac_address,
                    order_by=(TelemetryRecord.timestamp.desc(), TelemetryRecord.id.desc()),
                )
                .label("row_rank"),
            )
            .subquery()
        )
        result = await self.session.execute(
            select(TelemetryRecord)
            .join(ranked, ranked.c.id == TelemetryRecord.id)
            .where(ranked.c.row_rank == 1)
            .order_by(TelemetryRecord.timestamp.desc(), TelemetryRecord.id.desc())
        )
        return list(result.scalars().all())

    async def all_by_mac(self, mac_address: str) -> List[TelemetryRecord]:
        """Full history for one MAC, newest first. Empty for an unknown MAC."""
        result = await self.session.execute(
            select(TelemetryRecord)
            .where(TelemetryRecord.mac_address == mac_address)
            .order_by(TelemetryRecord.timestamp.desc(), TelemetryRecord.id.desc())
        )
        return list(result.scalars().all())
