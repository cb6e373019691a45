"""TelemetryRecord model - one row per performance submission."""
from sqlalchemy import Column, Integer, Float, String, Text, DateTime

from ..database import Base


class TelemetryRecord(Base):
    """Website and network probe results reported by a canary.
    
    ``mac_address`` refers to a registration by value only, so rows outlive
    the registration they came from. ``device_name`` is the registration's
    name at insert time.
    """
    
    __tablename__ = "canary"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    mac_address = Column(String(64), nullable=False, index=True)
    device_name = Column("deviceName", String(255), key="device_name", nullable=True)
    
    # Website probe
    url = Column(String(2048), nullable=True)
    http_status = Column(Integer, nullable=True)
    load_time = Column(Float, nullable=True)
    content_length = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    
    # Network probe
    download_speed_mbps = Column(Float, nullable=True)
    upload_speed_mbps = Column(Float, nullable=True)
    ping_ms = Column(Float, nullable=True)
    
    traceroute_hops = Column(Text, nullable=True)
