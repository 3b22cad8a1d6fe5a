from sqlalchemy import Column, String, BigInteger, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone

from models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceEvent(Base):
    """
    One normalized device event belonging to a group.

    A group's rows are always replaced as a whole by the ingestion job:
    every run deletes the group's rows and bulk-inserts the new set.

    Column Mapping:
    - groupId -> group_id
    - source key of the payload -> source
    - type -> event_type
    - deviceId -> device_id
    - time -> event_time (ISO string as produced by the parser)
    - full record -> payload (JSONB)
    """
    __tablename__ = "device_events"
    
    id = Column(BigInteger, primary_key=True, autoincrement=True)
    
    # Ownership
    group_id = Column(String(100), nullable=False, index=True)
    source = Column(String(32), nullable=True)
    
    # Identity fields shared by every record
    event_type = Column(String(64), nullable=False)
    device_id = Column(String(255), nullable=False)
    event_time = Column(String(64), nullable=False)
    
    # Full normalized record
    payload = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    
    __table_args__ = (
        Index("idx_device_events_group_time", "group_id", "event_time"),
        Index("idx_device_events_group_type", "group_id", "event_type"),
    )
