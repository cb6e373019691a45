"""DeviceRegistration model - one row per physical canary device."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime

from ..database import Base


# Probe cadence handed to devices that never had one set
DEFAULT_INTERVAL_MINUTES = 5


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


class DeviceRegistration(Base):
    """A registered canary, its approval state and its probe configuration."""
    
    __tablename__ = "canary_device_registration"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    device_name = Column(String(255), nullable=False)
    mac_address = Column(String(64), nullable=False, unique=True, index=True)
    destination = Column(Text, nullable=True)  # JSON list of URLs to probe
    interval_minutes = Column(Integer, nullable=True)
    approval_status = Column(String(16), nullable=False, default=ApprovalStatus.PENDING.value)
    authenticator_key = Column(String(64), nullable=True)  # NULL until approved
    update_script = Column(Integer, nullable=False, default=0)  # non-zero = update pending
    created_at = Column(DateTime, default=datetime.utcnow)
